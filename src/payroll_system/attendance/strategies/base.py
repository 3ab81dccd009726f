from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class PunchInDecision:
    is_late: bool = False
    late_minutes: int = 0
    note: Optional[str] = None


class PunchInStrategy(ABC):
    """Strategy Pattern: encapsulate how a punch-in is classified."""

    @abstractmethod
    def decide(self, *, now: datetime, shift_start: datetime, grace_minutes: int) -> PunchInDecision:
        raise NotImplementedError
