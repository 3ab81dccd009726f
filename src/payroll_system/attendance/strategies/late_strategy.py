from __future__ import annotations

from datetime import datetime

from .base import PunchInDecision, PunchInStrategy


class LateStrategy(PunchInStrategy):
    """Late punch-in; lateness counts from shift start, not from the end of grace."""

    def decide(self, *, now: datetime, shift_start: datetime, grace_minutes: int) -> PunchInDecision:
        late_minutes = int((now - shift_start).total_seconds() // 60)
        return PunchInDecision(is_late=True, late_minutes=late_minutes, note=f"Late by {late_minutes} minutes")
