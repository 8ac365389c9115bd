"""
Rate limiting for the AI-backed endpoints (chatbot, content generation) and login
Uses in-memory storage with sliding window algorithm
"""
import time
from typing import Dict, Tuple
from collections import defaultdict

from fastapi import Request, HTTPException, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from .config import settings


class RateLimiter:
    """
    In-memory rate limiter using sliding window algorithm.

    State is per process; several workers each keep their own windows.
    """

    def __init__(self, cleanup_interval: int = 60):
        # {identifier: [timestamp, ...]}
        self._requests: Dict[str, list] = defaultdict(list)
        self._last_cleanup = time.time()
        self._cleanup_interval = cleanup_interval

    def _cleanup_old_entries(self, window_seconds: int):
        now = time.time()
        if now - self._last_cleanup < self._cleanup_interval:
            return

        cutoff = now - window_seconds * 2
        for identifier in list(self._requests.keys()):
            self._requests[identifier] = [ts for ts in self._requests[identifier] if ts > cutoff]
            if not self._requests[identifier]:
                del self._requests[identifier]

        self._last_cleanup = now

    def is_allowed(
        self,
        identifier: str,
        max_requests: int,
        window_seconds: int = 60
    ) -> Tuple[bool, int, int]:
        """
        Check if a request is allowed under the rate limit.

        Returns:
            Tuple of (is_allowed, remaining_requests, retry_after_seconds)
        """
        self._cleanup_old_entries(window_seconds)

        now = time.time()
        window_start = now - window_seconds
        in_window = [ts for ts in self._requests[identifier] if ts > window_start]
        self._requests[identifier] = in_window

        if len(in_window) >= max_requests:
            retry_after = int(min(in_window) + window_seconds - now) + 1 if in_window else 1
            return False, 0, retry_after

        in_window.append(now)
        return True, max_requests - len(in_window), 0

    def reset(self):
        self._requests.clear()


rate_limiter = RateLimiter()


def _limited_paths() -> Dict[str, int]:
    """Path prefix -> requests per minute"""
    return {
        "/api/chat": settings.CHAT_RATE_LIMIT,
        "/api/content": settings.CONTENT_RATE_LIMIT,
    }


def get_client_identifier(request: Request) -> str:
    """Bearer token when present, otherwise client IP (proxy aware)"""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return f"jwt:{hash(auth_header)}"

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return f"ip:{forwarded_for.split(',')[0].strip()}"
    if request.client:
        return f"ip:{request.client.host}"
    return "ip:unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies per-minute limits to the AI endpoints only.

    Headers returned:
    - X-RateLimit-Limit: Maximum requests per window
    - X-RateLimit-Remaining: Remaining requests in current window
    - Retry-After: Seconds until a slot frees up (when limited)
    """

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            return await call_next(request)

        path = request.url.path
        limit = None
        prefix = None
        for candidate, candidate_limit in _limited_paths().items():
            if path.startswith(candidate):
                prefix, limit = candidate, candidate_limit
                break

        if limit is None:
            return await call_next(request)

        identifier = f"{prefix}:{get_client_identifier(request)}"
        is_allowed, remaining, retry_after = rate_limiter.is_allowed(
            identifier=identifier,
            max_requests=limit,
            window_seconds=60
        )

        if not is_allowed:
            # JSONResponse (not HTTPException) so CORS headers still apply
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": "Too many requests. Please wait a moment and try again."},
                headers={
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "Retry-After": str(retry_after),
                }
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response


def rate_limit(max_requests: int, window_seconds: int = 60):
    """
    Dependency factory for per-endpoint limits.

    Usage:
        @router.post("/regenerate", dependencies=[Depends(rate_limit(5))])
    """
    async def checker(request: Request):
        identifier = f"endpoint:{request.url.path}:{get_client_identifier(request)}"
        is_allowed, _, retry_after = rate_limiter.is_allowed(
            identifier=identifier,
            max_requests=max_requests,
            window_seconds=window_seconds
        )
        if not is_allowed:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Rate limit exceeded for this endpoint. Try again in {retry_after} seconds.",
                headers={
                    "X-RateLimit-Limit": str(max_requests),
                    "X-RateLimit-Remaining": "0",
                    "Retry-After": str(retry_after),
                }
            )

    return checker
