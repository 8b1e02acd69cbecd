import os

import redis

cache_db = redis.Redis.from_url(
    os.getenv("REDIS_URL") or f"redis://{os.getenv('REDIS_HOST', '127.0.0.1')}:{os.getenv('REDIS_PORT', '6379')}/0",
    username=os.getenv("REDIS_USERNAME"),
    password=os.getenv("REDIS_PASSWORD"),
    socket_connect_timeout=2,
    socket_timeout=2,
    decode_responses=True,
)
