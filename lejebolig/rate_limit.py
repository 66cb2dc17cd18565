# Fixed-window, per-IP rate limiting for credential and listing-write endpoints.
# Counter keys: rl:v1:{scope}:{ip}, expiring after one window. Messaging endpoints are not limited.
import logging
import os
from typing import Callable, Literal

import redis
from fastapi import HTTPException, Request, status

from .redis_client import get_redis

logger = logging.getLogger("lejebolig.rate_limit")

Scope = Literal["login", "register", "write"]

# Per-window caps, overridable with RATE_LIMIT_<SCOPE>_PER_WINDOW
_DEFAULT_LIMITS = {
    "login": 10,
    "register": 5,
    "write": 30,
}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return default


def window_seconds() -> int:
    return _env_int("RATE_LIMIT_WINDOW_SECONDS", 60)


def limit_for(scope: Scope) -> int:
    return _env_int(f"RATE_LIMIT_{scope.upper()}_PER_WINDOW", _DEFAULT_LIMITS[scope])


def _client_ip(request: Request) -> str:
    # Remote address only; X-Forwarded-For is not trusted here.
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit(scope: Scope) -> Callable[[Request], None]:
    """
    Build a FastAPI dependency that counts hits per client IP in `scope`.

    The first hit in a window sets the key's TTL; once the count passes the cap the request is
    rejected with 429 and a retry_after hint. Without Redis every request is allowed.
    """

    def _dependency(request: Request) -> None:
        r = get_redis()
        if r is None:
            return

        window = window_seconds()
        cap = limit_for(scope)
        ip = _client_ip(request)
        key = f"rl:v1:{scope}:{ip}"
        try:
            current = r.incr(key)
            if current == 1:
                r.expire(key, window)
            if current <= cap:
                return
            ttl = r.ttl(key)
        except redis.RedisError as exc:
            logger.warning("Rate limit fail-open (scope=%s, ip=%s): %s", scope, ip, exc)
            return

        retry_after = ttl if isinstance(ttl, int) and ttl > 0 else window
        logger.info("rate_limit.rejected", extra={"scope": scope, "ip": ip, "count": current})
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={"error": "rate_limited", "scope": scope, "limit": cap, "retry_after": retry_after},
            headers={"Retry-After": str(retry_after)},
        )

    return _dependency
