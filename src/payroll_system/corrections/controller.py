from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.responses import ok
from ..common.session import current_identity, login_required, reviewer_required
from ..container import Container
from ..core.exceptions import ValidationError


def _date(value, field: str, *, required: bool = True):
    if not value:
        if required:
            raise ValidationError(f"{field} is required", field=field)
        return None
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{field} must be YYYY-MM-DD", field=field)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/corrections", methods=["POST"], endpoint="corrections_submit")
    @login_required
    def submit():
        me = current_identity()
        data = request.get_json(silent=True) or {}
        created = container.correction_service.submit(
            user_id=me.user_id,
            company_id=me.company_id,
            correction_type=str(data.get("type", "")).upper(),
            attendance_date=_date(data.get("date"), "date"),
            end_date=_date(data.get("end_date"), "end_date", required=False),
            requested_time=data.get("requested_time"),
            reason=data.get("reason") or "",
            evidence=data.get("evidence"),
        )
        return ok(created, 201)

    @app.route("/api/corrections/mine", methods=["GET"], endpoint="corrections_mine")
    @login_required
    def mine():
        return ok(container.correction_service.list_mine(user_id=current_identity().user_id))

    @app.route("/api/corrections/pending", methods=["GET"], endpoint="corrections_pending")
    @reviewer_required
    def pending():
        return ok(container.correction_service.list_pending(company_id=current_identity().company_id))

    @app.route("/api/corrections/<int:request_id>/review", methods=["POST"], endpoint="corrections_review")
    @reviewer_required
    def review(request_id: int):
        me = current_identity()
        data = request.get_json(silent=True) or {}
        outcome = container.correction_service.review(
            request_id,
            decision=str(data.get("decision", "")).upper(),
            reviewer_id=me.user_id,
            company_id=me.company_id,
            approved_time=data.get("approved_time"),
            review_reason=data.get("review_reason"),
        )
        return ok(outcome)
