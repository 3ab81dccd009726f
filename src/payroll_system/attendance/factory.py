from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from ..core.constants import EARLY_PUNCH_IN_MINUTES
from .strategies.base import PunchInStrategy
from .strategies.early_strategy import TooEarlyStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import OnTimeStrategy


@dataclass
class PunchInStrategyFactory:
    """Factory Pattern: choose the punch-in rule for the current instant."""

    early_window_minutes: int = EARLY_PUNCH_IN_MINUTES

    def for_punch_in(self, *, now: datetime, shift_start: datetime, grace_minutes: int) -> PunchInStrategy:
        if now < shift_start - timedelta(minutes=self.early_window_minutes):
            return TooEarlyStrategy(self.early_window_minutes)
        if now <= shift_start + timedelta(minutes=grace_minutes):
            return OnTimeStrategy()
        return LateStrategy()
