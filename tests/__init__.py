"""
Static map cache test suite

Structure:
- unit/: parsers, canonical key, cache store, single-flight, renderer, service
- integration/: HTTP app end-to-end with a fake renderer
"""
