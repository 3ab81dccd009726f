"""Generate the month's salaries for every active member of a company.

Usage: python scripts/generate_salaries.py COMPANY_ID MONTH YEAR
"""

from __future__ import annotations

import importlib
import sys

from dotenv import load_dotenv

from payroll_system.common.logging_setup import configure_logging
from payroll_system.common.tasks import InlineTaskRunner
from payroll_system.config import get_settings_module
from payroll_system.container import build_container


def main(argv: list[str]) -> int:
    if len(argv) != 3:
        print(__doc__)
        return 2
    company_id, month, year = (int(a) for a in argv)

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(db_config=dict(settings.DB_CONFIG), tasks=InlineTaskRunner())
    result = container.salary_service.generate_for_company(company_id=company_id, month=month, year=year)

    print(f"processed={result.processed} skipped={result.skipped} errors={len(result.errors)}")
    for user_id, message in result.errors:
        print(f"  user {user_id}: {message}")
    return 1 if result.errors else 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
