"""Rate limiting module."""

from .limiter import IRateLimiter, RateLimiter

__all__ = ["IRateLimiter", "RateLimiter"]
