"""
Static map server

- GET /?size&center&zoom&format&markers&path&text -> image bytes (X-Cache: HIT|MISS)
- Validation errors -> 400 {"data": "error", "error": "<message>"}
- Rendered images are cached under cache.root, sharded by cache key
- Optional endpoint: /health

Run:
    uvicorn mapserver.app:create_app --factory --port 8000
"""
