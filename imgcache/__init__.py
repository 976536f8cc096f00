"""
Image cache

- canonical: order-independent request serialization + SHA-256 cache key
- store: sharded on-disk store root/ab/cd/ef/gh/<digest>.<ext>, atomic writes
- singleflight: one render per cache key across concurrent requests
"""
