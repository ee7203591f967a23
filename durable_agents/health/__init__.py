"""Health scoring module."""

from .scoring import HEALTH_MESSAGES, ScorePolicy, classify_score

__all__ = ["HEALTH_MESSAGES", "ScorePolicy", "classify_score"]
