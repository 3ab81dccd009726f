from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.responses import ok
from ..common.session import admin_required, current_identity
from ..container import Container
from ..core.exceptions import ValidationError


def _range_arg(name: str):
    value = request.args.get(name)
    if not value:
        return None
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{name} must be YYYY-MM-DD", field=name)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/cashbook", methods=["GET"], endpoint="cashbook_list")
    @admin_required
    def list_entries():
        me = current_identity()
        start, end = _range_arg("start"), _range_arg("end")
        return ok(
            {
                "entries": container.cashbook_service.list_entries(company_id=me.company_id, start=start, end=end),
                "balance": container.cashbook_service.get_balance(company_id=me.company_id, start=start, end=end),
            }
        )

    @app.route("/api/cashbook", methods=["POST"], endpoint="cashbook_add")
    @admin_required
    def add_entry():
        me = current_identity()
        data = request.get_json(silent=True) or {}
        date_value = data.get("transaction_date")
        try:
            transaction_date = parse_iso_date(date_value) if date_value else None
        except ValueError:
            raise ValidationError("transaction_date must be YYYY-MM-DD", field="transaction_date")
        entry = container.cashbook_service.add_entry(
            company_id=me.company_id,
            actor_id=me.user_id,
            direction=data.get("direction"),
            transaction_type=data.get("transaction_type"),
            amount=data.get("amount"),
            payment_mode=data.get("payment_mode"),
            transaction_date=transaction_date,
            description=data.get("description"),
            user_id=data.get("user_id"),
            reference=data.get("reference"),
            notes=data.get("notes"),
        )
        return ok(entry, 201)

    @app.route("/api/cashbook/<int:entry_id>", methods=["PATCH"], endpoint="cashbook_edit")
    @admin_required
    def edit_entry(entry_id: int):
        me = current_identity()
        changes = request.get_json(silent=True) or {}
        return ok(container.cashbook_service.edit_entry(entry_id, company_id=me.company_id, actor_id=me.user_id, changes=changes))

    @app.route("/api/cashbook/<int:entry_id>", methods=["DELETE"], endpoint="cashbook_delete")
    @admin_required
    def delete_entry(entry_id: int):
        me = current_identity()
        container.cashbook_service.delete_entry(entry_id, company_id=me.company_id, actor_id=me.user_id, actor_role=me.role)
        return ok({"deleted": entry_id})

    @app.route("/api/cashbook/<int:entry_id>/reverse", methods=["POST"], endpoint="cashbook_reverse")
    @admin_required
    def reverse_entry(entry_id: int):
        me = current_identity()
        data = request.get_json(silent=True) or {}
        reversal = container.cashbook_service.reverse_entry(
            entry_id, company_id=me.company_id, actor_id=me.user_id, reason=data.get("reason") or ""
        )
        return ok(reversal, 201)
