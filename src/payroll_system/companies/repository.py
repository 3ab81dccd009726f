from __future__ import annotations

from typing import Optional, Protocol

from .model import CompanySettings


class CompanyRepository(Protocol):
    def get_by_id(self, company_id: int) -> Optional[CompanySettings]:
        raise NotImplementedError

    def save_settings(self, settings: CompanySettings) -> None:
        raise NotImplementedError
