"""
Rate limiting optionnel des endpoints de checkout.
- fastapi-limiter (Redis) si initialisé par le lifespan.
- Fallback mémoire par process si LOCAL_RATE_LIMIT_FALLBACK=1 (dev/tests).
- Désactivé proprement si app.state.rate_limit_enabled est False.
"""
import hashlib
import logging
import os
import time
from typing import Any, Dict, List
from urllib.parse import urlparse

from fastapi import HTTPException, Request, Response

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session"


def client_key(request: Request) -> str:
    """Clé de comptage: cookie de session (hashé) sinon IP, toujours suffixée par le chemin."""
    path = request.url.path
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        digest = hashlib.sha256(token.encode("utf-8")).hexdigest()[:16]
        return f"session:{digest}:{path}"
    ip = request.client.host if request.client else "local"
    return f"ip:{ip}:{path}"


def _local_hit(request: Request, times: int, seconds: int) -> None:
    now = time.time()
    key = client_key(request)
    store: Dict[str, List[float]] = getattr(request.app.state, "rate_limit_store", None) or {}
    hits = [t for t in store.get(key, []) if now - t < seconds]
    if len(hits) >= times:
        raise HTTPException(status_code=429, detail="Too Many Requests")
    hits.append(now)
    store[key] = hits
    request.app.state.rate_limit_store = store


def optional_rate_limit(times: int, seconds: int):
    async def _dep(request: Request, response: Response):
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            _local_hit(request, times, seconds)
            return

        if getattr(request.app.state, "rate_limit_enabled", None) is False:
            return

        try:
            from fastapi_limiter.depends import RateLimiter

            async def _identifier(req: Request) -> str:
                return client_key(req)
            limiter = RateLimiter(times=times, seconds=seconds, identifier=_identifier)
        except Exception:
            logger.debug("rate_limit fastapi-limiter unavailable, request not limited")
            return
        # HTTPException(429) levée par RateLimiter remonte telle quelle
        try:
            return await limiter(request, response)
        except HTTPException:
            raise
        except Exception:
            logger.warning("rate_limit backend error, request not limited", exc_info=True)
            return
    return _dep


def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    enabled = getattr(request.app.state, "rate_limit_enabled", None)
    ready = False
    try:
        from fastapi_limiter import FastAPILimiter
        ready = getattr(FastAPILimiter, "redis", None) is not None
    except Exception:
        ready = False

    info: Dict[str, Any] = {
        "enabled": bool(enabled) if enabled is not None else None,
        "ready": ready,
        "backend": "redis" if ready else None,
        "local_fallback": os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1",
    }
    redis_url = os.getenv("RATE_LIMIT_REDIS_URL")
    if ready and redis_url:
        p = urlparse(redis_url)
        info["redis"] = {"scheme": p.scheme, "host": p.hostname, "port": p.port}
    return info
