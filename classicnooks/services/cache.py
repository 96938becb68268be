"""
Redis Caching Service

Read-through response cache in front of the catalog queries. The relational
store stays authoritative: a Redis failure is logged and reads fall back to
the database.

Once a connection attempt or a command fails on the connection itself, the
client is dropped and no reconnect is tried for RECONNECT_BACKOFF_SECONDS,
so an outage costs one connect timeout per window instead of one per request.

Entry lifetimes are chosen by the caller:
- Book listings: cache_ttl_book_list (5 minutes by default)
- Single books: cache_ttl_book (1 day by default)
"""

import json
import logging
import time
from typing import Any, Optional

import redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from classicnooks.config import get_settings

logger = logging.getLogger(__name__)

RECONNECT_BACKOFF_SECONDS = 30.0

# =============================================================================
# Redis Connection
# =============================================================================

_redis_client: Optional[redis.Redis] = None
_reconnect_at: float = 0.0


def get_redis_client() -> Optional[redis.Redis]:
    """
    Return the shared Redis client, connecting on first use.

    None means "no cache right now": caching is disabled, or the last
    attempt failed less than RECONNECT_BACKOFF_SECONDS ago.
    """
    global _redis_client, _reconnect_at

    if _redis_client is not None:
        return _redis_client

    settings = get_settings()
    if not settings.cache_enabled:
        return None

    if time.monotonic() < _reconnect_at:
        return None

    try:
        client = redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        client.ping()
    except RedisError as e:
        _reconnect_at = time.monotonic() + RECONNECT_BACKOFF_SECONDS
        logger.warning(
            f"Redis unreachable ({e}); cache off for {RECONNECT_BACKOFF_SECONDS:.0f}s"
        )
        return None

    _redis_client = client
    logger.info("Connected to Redis")
    return client


def _connection_lost(error: RedisError) -> None:
    """Drop the client after a connection-level failure and start the back-off."""
    global _redis_client, _reconnect_at

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None
    _reconnect_at = time.monotonic() + RECONNECT_BACKOFF_SECONDS
    logger.warning(f"Lost Redis connection ({error}); retrying in {RECONNECT_BACKOFF_SECONDS:.0f}s")


def close_redis_connection() -> None:
    """Close the client on shutdown and clear any pending back-off."""
    global _redis_client, _reconnect_at
    _reconnect_at = 0.0
    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None
        logger.info("Redis connection closed")


# =============================================================================
# Cache Keys
# =============================================================================

def make_cache_key(prefix: str, *args, **kwargs) -> str:
    """
    Build a key from a prefix, positional parts and sorted keyword parts.

        make_cache_key("book", 1342) -> "book:1342"
        make_cache_key("books", cursor=0, limit=20, search="", genre="poetry")
            -> "books:cursor=0:genre=poetry:limit=20:search="

    Empty strings are kept because they mean "no filter". None is skipped.
    """
    parts = [prefix]
    parts.extend(str(arg) for arg in args if arg is not None)
    parts.extend(
        f"{name}={kwargs[name]}" for name in sorted(kwargs) if kwargs[name] is not None
    )
    return ":".join(parts)


# =============================================================================
# Reads and Writes
# =============================================================================

def cache_get(key: str) -> Optional[Any]:
    """Decoded JSON stored under ``key``, or None on a miss or any failure."""
    client = get_redis_client()
    if client is None:
        return None

    try:
        raw = client.get(key)
    except (RedisConnectionError, RedisTimeoutError) as e:
        _connection_lost(e)
        return None
    except RedisError as e:
        logger.warning(f"Cache read failed for {key}: {e}")
        return None

    if raw is None:
        logger.debug(f"Cache miss: {key}")
        return None

    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Discarding undecodable cache entry {key}")
        return None
    logger.debug(f"Cache hit: {key}")
    return value


def cache_set(key: str, value: Any, ttl: int) -> bool:
    """
    Store ``value`` as JSON under ``key`` for ``ttl`` seconds.

    Returns whether the entry was written.
    """
    client = get_redis_client()
    if client is None:
        return False

    try:
        payload = json.dumps(value, default=str)
    except (TypeError, ValueError) as e:
        logger.warning(f"Value for {key} is not cacheable: {e}")
        return False

    try:
        client.setex(key, ttl, payload)
    except (RedisConnectionError, RedisTimeoutError) as e:
        _connection_lost(e)
        return False
    except RedisError as e:
        logger.warning(f"Cache write failed for {key}: {e}")
        return False

    logger.debug(f"Cached {key} for {ttl}s")
    return True


def cache_delete_pattern(pattern: str) -> int:
    """Delete every key matching a glob ``pattern``; returns how many went."""
    client = get_redis_client()
    if client is None:
        return 0

    deleted = 0
    try:
        for key in client.scan_iter(match=pattern):
            deleted += client.delete(key)
    except (RedisConnectionError, RedisTimeoutError) as e:
        _connection_lost(e)
    except RedisError as e:
        logger.warning(f"Cache purge of {pattern} stopped: {e}")
    else:
        logger.debug(f"Purged {deleted} keys matching {pattern}")
    return deleted


def invalidate_catalog_cache() -> int:
    """
    Drop every cached listing and book.

    The API never writes the catalog; ingestion tooling calls this after
    loading books so readers do not wait out the TTLs.
    """
    return cache_delete_pattern("books:*") + cache_delete_pattern("book:*")


# =============================================================================
# Health
# =============================================================================

def get_cache_stats() -> dict:
    """Hit/miss counters and key count for the health endpoint."""
    client = get_redis_client()
    if client is None:
        return {"status": "disconnected"}

    try:
        info = client.info("stats")
        keys = client.dbsize()
    except RedisError:
        return {"status": "error"}

    return {
        "status": "connected",
        "hits": info.get("keyspace_hits", 0),
        "misses": info.get("keyspace_misses", 0),
        "keys": keys,
    }
