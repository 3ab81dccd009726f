from __future__ import annotations

import dataclasses
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ..audit.service import AuditRecorder
from ..common.datetime_utils import parse_hhmm
from ..core.exceptions import NotFoundError, ValidationError
from .model import CompanySettings
from .repository import CompanyRepository
from .validation import validate_settings

logger = logging.getLogger(__name__)

_TIME_FIELDS = {"shift_start", "shift_end"}
_DECIMAL_FIELDS = {
    "pf_percentage",
    "esi_percentage",
    "overtime_multiplier",
    "late_penalty_per_minute",
    "absent_penalty_per_day",
}
_FLOAT_FIELDS = {"min_working_hours", "max_daily_hours", "overtime_threshold_hours", "half_day_threshold_hours"}
_INT_FIELDS = {"grace_minutes", "location_radius_meters"}
_BOOL_FIELDS = {"late_penalty_enabled", "absent_penalty_enabled"}
_READONLY_FIELDS = {"company_id", "owner_id"}


class CompanySettingsService:
    def __init__(self, companies: CompanyRepository, *, audit: Optional[AuditRecorder] = None):
        self._companies = companies
        self._audit = audit

    def get_settings(self, company_id: int) -> CompanySettings:
        settings = self._companies.get_by_id(int(company_id))
        if not settings:
            raise NotFoundError("Company not found")
        return settings

    def update_settings(self, *, company_id: int, actor_id: int, changes: dict[str, Any]) -> CompanySettings:
        current = self.get_settings(company_id)
        known = {f.name for f in dataclasses.fields(CompanySettings)}

        parsed: dict[str, Any] = {}
        for key, raw in changes.items():
            if key not in known or key in _READONLY_FIELDS:
                raise ValidationError(f"Unknown or read-only setting {key!r}", field=key)
            parsed[key] = self._coerce(key, raw)

        updated = dataclasses.replace(current, **parsed)
        validate_settings(updated)
        self._companies.save_settings(updated)
        logger.info("Company %s settings updated by %s: %s", company_id, actor_id, sorted(parsed))

        if self._audit:
            self._audit.record(
                company_id=int(company_id),
                actor_id=int(actor_id),
                action="UPDATE_SETTINGS",
                entity="Company",
                entity_id=int(company_id),
                meta={"fields": sorted(parsed)},
            )
        return updated

    @staticmethod
    def _coerce(key: str, raw: Any) -> Any:
        try:
            if key in _TIME_FIELDS:
                return parse_hhmm(str(raw))
            if key in _DECIMAL_FIELDS:
                return Decimal(str(raw))
            if key in _FLOAT_FIELDS:
                return float(raw)
            if key in _INT_FIELDS:
                return int(raw)
            if key in _BOOL_FIELDS:
                return raw if isinstance(raw, bool) else str(raw).lower() in {"1", "true", "yes"}
            if key == "weekly_off_days":
                return tuple(sorted({int(d) for d in raw}))
        except (TypeError, ValueError, InvalidOperation):
            raise ValidationError(f"Invalid value for {key}", field=key)
        return str(raw)
