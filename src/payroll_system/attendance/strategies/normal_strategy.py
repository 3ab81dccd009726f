from __future__ import annotations

from datetime import datetime

from .base import PunchInDecision, PunchInStrategy


class OnTimeStrategy(PunchInStrategy):
    """Punch-in within the early window or the grace period."""

    def decide(self, *, now: datetime, shift_start: datetime, grace_minutes: int) -> PunchInDecision:
        return PunchInDecision()
