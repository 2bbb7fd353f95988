import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict

from .parameters import EcoParameters

logger = logging.getLogger("EcoPoints")


@dataclass
class PointAward:
    """Outcome of correcting a flagged violation."""
    points: int
    bonus: bool
    minutes_since_violation: float

    @property
    def message(self) -> str:
        suffix = f" (Bonus +{self.points} for quick action!)" if self.bonus else ""
        return f"🎉 +{self.points} eco points earned{suffix}"

    def to_dict(self, total: int, today: int) -> Dict:
        """Payload for ecoPointsUpdate."""
        return {
            'pointsAwarded': self.points,
            'totalPoints': total,
            'todayPoints': today,
            'message': self.message,
        }


def minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60.0


def compute_award(triggered_at: datetime, now: datetime, params: EcoParameters) -> PointAward:
    """
    Points for turning a device off after its violation was flagged.

    Acting within the quick action window (inclusive) earns the bonus amount,
    anything later earns the base amount.
    """
    elapsed = minutes_between(triggered_at, now)
    if elapsed <= params.quick_action_minutes:
        return PointAward(points=params.quick_action_points, bonus=True, minutes_since_violation=elapsed)
    return PointAward(points=params.base_points, bonus=False, minutes_since_violation=elapsed)
