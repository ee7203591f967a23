"""Health score calculation and status thresholds."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from ..models import AgentState, HealthLevel

UNHEALTHY_BELOW = 0.3
HEALTHY_FROM = 0.7

HEALTH_MESSAGES = {
    HealthLevel.HEALTHY: "All systems operational",
    HealthLevel.DEGRADED: "Operating with issues",
    HealthLevel.UNHEALTHY: "Agent unavailable",
}


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


@dataclass
class ScorePolicy:
    """
    Per-agent scoring parameters.

    The score is the unweighted mean of independently bounded sub-scores.
    Agents that need other terms subclass and override `components()`;
    every term is clamped to [0, 1].
    """

    recency_window: timedelta = timedelta(hours=1)
    capacity: int = 50
    error_ceiling: int = 10

    def components(self, state: AgentState, now: datetime) -> dict[str, float]:
        """Named sub-scores for a state at `now`."""
        age = max(0.0, (now - state.last_activity).total_seconds())
        window = self.recency_window.total_seconds()
        return {
            "recency": 1.0 - min(1.0, age / window) if window > 0 else 0.0,
            "backlog": 1.0 - min(1.0, state.backlog / self.capacity)
            if self.capacity > 0
            else 0.0,
            "errors": max(0.0, 1.0 - state.error_count / self.error_ceiling)
            if self.error_ceiling > 0
            else 0.0,
        }

    def score(self, state: AgentState, now: datetime) -> tuple[float, dict[str, float]]:
        """Return (score, clamped components)."""
        components = {
            name: _clamp(value) for name, value in self.components(state, now).items()
        }
        if not components:
            return 0.0, components
        return sum(components.values()) / len(components), components


def classify_score(score: float) -> HealthLevel:
    """Map a score to a health level."""
    if score < UNHEALTHY_BELOW:
        return HealthLevel.UNHEALTHY
    if score < HEALTHY_FROM:
        return HealthLevel.DEGRADED
    return HealthLevel.HEALTHY
