"""Rate limiting data models."""

from dataclasses import dataclass


@dataclass
class RateLimitCounter:
    """Fixed-window request counter for one client key."""

    count: int
    reset_at: float  # epoch seconds

    def to_dict(self) -> dict:
        return {"count": self.count, "reset_at": self.reset_at}

    @classmethod
    def from_dict(cls, raw: dict) -> "RateLimitCounter":
        return cls(count=int(raw["count"]), reset_at=float(raw["reset_at"]))


@dataclass
class RateLimitDecision:
    """Whether a request may proceed, with quota metadata."""

    allowed: bool
    limit: int
    remaining: int = 0
    reset_at: float | None = None
    retry_after: int | None = None
    enforced: bool = True  # False when the limiter failed open
