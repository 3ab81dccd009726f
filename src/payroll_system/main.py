from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .attendance.controller import register as register_attendance
from .cashbook.controller import register as register_cashbook
from .common.logging_setup import configure_logging
from .common.responses import register_error_handlers
from .common.tasks import InlineTaskRunner, ThreadPoolTaskRunner
from .companies.controller import register as register_companies
from .config import get_settings_module
from .container import Container, build_container
from .corrections.controller import register as register_corrections
from .database.bootstrap import apply_schema, list_tables
from .payroll.controller import register as register_payroll

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"), db_config.get("host"), db_config.get("port", 3306), db_config.get("database"),
        )
        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config)
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))

        if getattr(settings, "INLINE_TASKS", False):
            tasks = InlineTaskRunner()
        else:
            tasks = ThreadPoolTaskRunner(max_workers=int(getattr(settings, "BACKGROUND_WORKERS", 4)))
        container = build_container(db_config=db_config, tasks=tasks)

    app.extensions["payroll_container"] = container
    register_error_handlers(app)
    register_companies(app, container)
    register_attendance(app, container)
    register_corrections(app, container)
    register_payroll(app, container)
    register_cashbook(app, container)

    return app


if __name__ == "__main__":
    create_app().run()
