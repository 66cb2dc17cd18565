# Shared Redis connection for the rate limiter; opt-in via REDIS_ENABLED and fail-open when unreachable.
import logging
import os
from typing import Optional

import redis

_logger = logging.getLogger("lejebolig.redis")

_TRUTHY = {"1", "true", "t", "yes", "y", "on"}


def is_redis_enabled() -> bool:
    return os.getenv("REDIS_ENABLED", "false").strip().lower() in _TRUTHY


# Cached client and a one-shot guard: after a failed connect this process stays without Redis.
_client: Optional[redis.Redis] = None
_attempted = False


def get_redis() -> Optional[redis.Redis]:
    """Return a connected client, or None when Redis is disabled or was unreachable on first use."""
    global _client, _attempted
    if not is_redis_enabled():
        return None
    if _client is not None or _attempted:
        return _client

    _attempted = True
    url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    try:
        client = redis.Redis.from_url(
            url,
            socket_timeout=0.25,
            socket_connect_timeout=0.25,
            retry_on_timeout=False,
        )
        client.ping()
    except redis.RedisError as exc:
        _logger.warning("Redis unavailable, continuing without it: %s", exc)
        return None
    _client = client
    _logger.info("Connected to Redis at %s", url)
    return _client


def reset_redis() -> None:
    """Forget the cached client (used by tests and after config changes)."""
    global _client, _attempted
    _client = None
    _attempted = False
