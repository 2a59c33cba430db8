"""
Per-IP request limits for the public auth endpoints.

In-memory sliding window, so counters are per process. Each limiter is used as a
route dependency; routes sharing a limiter instance share its budget.
"""
import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict

from fastapi import Request
from app.core.config import settings
from app.core.exceptions import RateLimitError

logger = logging.getLogger(__name__)


class RateLimiter:

    def __init__(self, name: str, max_requests: int, window_seconds: int, message: str):
        self.name = name
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.message = message
        self.hits: Dict[str, Deque[float]] = defaultdict(deque)

    def _client_id(self, request: Request) -> str:
        return request.client.host if request.client else "unknown"

    def _cleanup_old_entries(self, now: float):
        cutoff = now - self.window_seconds
        for client_id in list(self.hits.keys()):
            hits = self.hits[client_id]
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if not hits:
                del self.hits[client_id]

    def reset(self):
        self.hits.clear()

    async def __call__(self, request: Request) -> None:
        if not settings.RATE_LIMIT_ENABLED:
            return

        client_id = self._client_id(request)
        now = time.monotonic()
        self._cleanup_old_entries(now)

        hits = self.hits[client_id]
        if len(hits) >= self.max_requests:
            retry_after = int(hits[0] + self.window_seconds - now) + 1
            logger.warning("Rate limit %s exceeded by %s", self.name, client_id)
            raise RateLimitError(self.message, retry_after)
        hits.append(now)


auth_limiter = RateLimiter(
    "auth",
    settings.AUTH_RATE_LIMIT,
    settings.AUTH_RATE_LIMIT_WINDOW_SECONDS,
    "Too many authentication attempts. Please try again after 15 minutes.",
)
password_reset_limiter = RateLimiter(
    "password_reset",
    settings.PASSWORD_RESET_RATE_LIMIT,
    settings.PASSWORD_RESET_RATE_LIMIT_WINDOW_SECONDS,
    "Too many password reset requests. Please try again after 15 minutes.",
)
email_verification_limiter = RateLimiter(
    "email_verification",
    settings.EMAIL_VERIFICATION_RATE_LIMIT,
    settings.EMAIL_VERIFICATION_RATE_LIMIT_WINDOW_SECONDS,
    "Too many verification email requests. Please try again after 1 hour.",
)

LIMITERS = (auth_limiter, password_reset_limiter, email_verification_limiter)
