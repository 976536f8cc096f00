"""
Query parsing: turns loosely-typed map query parameters into a validated MapRequest.

- location: "lat,lon" tokens -> Coordinate
- grammar: shared `key:value` config grammar for markers / paths / texts
- fields: per-parameter assemblers (size, zoom, format, markers, path, text)
- request: whole-query assembly returning a ParseResult
"""
