from __future__ import annotations

from datetime import datetime

from ...core.constants import EARLY_PUNCH_IN_MINUTES
from ...core.exceptions import PunchInNotAllowed
from .base import PunchInDecision, PunchInStrategy


class TooEarlyStrategy(PunchInStrategy):
    """Punch-in before the early window opens."""

    def __init__(self, window_minutes: int = EARLY_PUNCH_IN_MINUTES):
        self.window_minutes = window_minutes

    def decide(self, *, now: datetime, shift_start: datetime, grace_minutes: int) -> PunchInDecision:
        raise PunchInNotAllowed(f"Punch-in opens {self.window_minutes} minutes before shift start")
