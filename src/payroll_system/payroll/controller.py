from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.responses import ok
from ..common.session import admin_required, current_identity, login_required, reviewer_required
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ValidationError


def _int(data: dict, key: str) -> int:
    try:
        return int(data[key])
    except (KeyError, TypeError, ValueError):
        raise ValidationError(f"{key} is required", field=key)


def _optional_date(value, field: str):
    if not value:
        return None
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{field} must be YYYY-MM-DD", field=field)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/salaries/generate", methods=["POST"], endpoint="salaries_generate")
    @admin_required
    def generate():
        me = current_identity()
        data = request.get_json(silent=True) or {}
        if data.get("user_id") is None:
            result = container.salary_service.generate_for_company(
                company_id=me.company_id, month=_int(data, "month"), year=_int(data, "year"), actor_id=me.user_id
            )
            return ok(result)
        salary = container.salary_service.generate_salary(
            user_id=_int(data, "user_id"),
            company_id=me.company_id,
            month=_int(data, "month"),
            year=_int(data, "year"),
            actor_id=me.user_id,
        )
        return ok(salary, 201)

    @app.route("/api/salaries", methods=["GET"], endpoint="salaries_list")
    @reviewer_required
    def list_salaries():
        me = current_identity()
        return ok(
            container.salary_service.list_for_period(
                company_id=me.company_id, month=_int(request.args, "month"), year=_int(request.args, "year")
            )
        )

    @app.route("/api/salaries/<int:salary_id>", methods=["GET"], endpoint="salaries_detail")
    @login_required
    def detail(salary_id: int):
        me = current_identity()
        salary, entries, totals = container.ledger_service.get_ledger(salary_id, company_id=me.company_id)
        if me.role == Role.STAFF and salary.user_id != me.user_id:
            raise AuthorizationError("You can only view your own salary")
        return ok({"salary": salary, "ledger": entries, "totals": totals, "balance": totals.balance})

    @app.route("/api/salaries/<int:salary_id>/recalculate", methods=["POST"], endpoint="salaries_recalculate")
    @admin_required
    def recalculate(salary_id: int):
        me = current_identity()
        container.salary_service.get_salary(salary_id, company_id=me.company_id)
        return ok(container.salary_service.recalculate_salary(salary_id, actor_id=me.user_id))

    @app.route("/api/salaries/<int:salary_id>/approve", methods=["POST"], endpoint="salaries_approve")
    @reviewer_required
    def approve(salary_id: int):
        me = current_identity()
        container.salary_service.get_salary(salary_id, company_id=me.company_id)
        return ok(container.salary_service.approve_salary(salary_id, approver_id=me.user_id))

    @app.route("/api/salaries/<int:salary_id>/reject", methods=["POST"], endpoint="salaries_reject")
    @reviewer_required
    def reject(salary_id: int):
        me = current_identity()
        data = request.get_json(silent=True) or {}
        container.salary_service.get_salary(salary_id, company_id=me.company_id)
        return ok(container.salary_service.reject_salary(salary_id, approver_id=me.user_id, reason=data.get("reason") or ""))

    @app.route("/api/salaries/<int:salary_id>/mark-paid", methods=["POST"], endpoint="salaries_mark_paid")
    @admin_required
    def mark_paid(salary_id: int):
        me = current_identity()
        data = request.get_json(silent=True) or {}
        container.salary_service.get_salary(salary_id, company_id=me.company_id)
        payment_date = _optional_date(data.get("payment_date"), "payment_date")
        if payment_date is None:
            raise ValidationError("payment_date is required", field="payment_date")
        result = container.ledger_service.mark_salary_paid(
            salary_id,
            payment_date=payment_date,
            method=data.get("method"),
            reference=data.get("reference"),
            actor_id=me.user_id,
            notify=bool(data.get("notify", False)),
        )
        return ok(result)

    def _movement(kind: str):
        me = current_identity()
        data = request.get_json(silent=True) or {}
        record = {
            "payment": container.ledger_service.record_payment,
            "recovery": container.ledger_service.record_recovery,
            "deduction": container.ledger_service.record_deduction,
        }[kind]
        result = record(
            company_id=me.company_id,
            user_id=_int(data, "user_id"),
            amount=data.get("amount"),
            actor_id=me.user_id,
            transaction_date=_optional_date(data.get("date"), "date"),
            payment_mode=data.get("payment_mode"),
            description=data.get("description"),
            month=data.get("month"),
            year=data.get("year"),
        )
        return ok(result, 201)

    @app.route("/api/payments", methods=["POST"], endpoint="ledger_payment")
    @admin_required
    def record_payment():
        return _movement("payment")

    @app.route("/api/recoveries", methods=["POST"], endpoint="ledger_recovery")
    @admin_required
    def record_recovery():
        return _movement("recovery")

    @app.route("/api/deductions", methods=["POST"], endpoint="ledger_deduction")
    @admin_required
    def record_deduction():
        return _movement("deduction")
