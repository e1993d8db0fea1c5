"""
Redis-backed cache for club member listings (graceful fallback if Redis
is unavailable).

Only one collection is cached: the member listing of a club, keyed
club:<id>:members with a TTL of settings.members_cache_ttl. Every write
path that changes member counts calls invalidate_members() after commit.
"""

import json
import logging

from gameclub.config import settings

logger = logging.getLogger(__name__)

_redis_client = None


def get_redis():
    """Lazy-initialize and return the Redis client, or None if unavailable."""
    global _redis_client
    if _redis_client is not None:
        return _redis_client
    try:
        import redis

        _redis_client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
        _redis_client.ping()
        logger.info("✓ Redis connected — member cache is enabled")
        return _redis_client
    except Exception:
        logger.warning("⚠ Redis unavailable — running without cache")
        _redis_client = None
        return None


def set_redis_client(client):
    """Swap the client (tests install fakeredis here)."""
    global _redis_client
    _redis_client = client


def members_key(club_id: int) -> str:
    return f"club:{club_id}:members"


def cache_get(key: str):
    """Read a JSON value from Redis; returns None on miss or if Redis is down."""
    r = get_redis()
    if r is None:
        return None
    try:
        data = r.get(key)
        return json.loads(data) if data else None
    except Exception as exc:
        logger.warning("cache_get(%s) failed: %s", key, exc)
        return None


def cache_set(key: str, value, ttl: int):
    """Write a JSON value to Redis with a TTL (seconds)."""
    r = get_redis()
    if r is None:
        return
    try:
        r.setex(key, ttl, json.dumps(value, default=str))
    except Exception as exc:
        logger.warning("cache_set(%s) failed: %s", key, exc)


def cache_invalidate(*keys: str):
    """Delete one or more cache keys."""
    r = get_redis()
    if r is None:
        return
    try:
        r.delete(*keys)
    except Exception as exc:
        logger.warning("cache_invalidate(%s) failed: %s", ", ".join(keys), exc)


def invalidate_members(club_id: int):
    cache_invalidate(members_key(club_id))
