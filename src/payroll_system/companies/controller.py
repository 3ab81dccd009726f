from __future__ import annotations

from flask import Flask, request

from ..common.responses import ok
from ..common.session import admin_required, current_identity, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/company/settings", methods=["GET"], endpoint="company_settings")
    @login_required
    def get_settings():
        return ok(container.company_service.get_settings(current_identity().company_id))

    @app.route("/api/company/settings", methods=["PATCH"], endpoint="company_settings_update")
    @admin_required
    def update_settings():
        me = current_identity()
        changes = request.get_json(silent=True) or {}
        return ok(container.company_service.update_settings(company_id=me.company_id, actor_id=me.user_id, changes=changes))
