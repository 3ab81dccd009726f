from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.responses import ok
from ..common.session import current_identity, login_required, reviewer_required
from ..container import Container
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from .model import Location


def _parse_status(value) -> AttendanceStatus:
    try:
        return AttendanceStatus(str(value or "").upper())
    except ValueError:
        raise ValidationError("Invalid status", field="status")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/punch-in", methods=["POST"], endpoint="attendance_punch_in")
    @login_required
    def punch_in():
        me = current_identity()
        data = request.get_json(silent=True) or {}
        location = None
        if data.get("latitude") is not None and data.get("longitude") is not None:
            location = Location(latitude=float(data["latitude"]), longitude=float(data["longitude"]))
        record = container.attendance_service.punch_in(
            user_id=me.user_id,
            company_id=me.company_id,
            image=data.get("image") or "",
            location=location,
        )
        return ok(record, 201)

    @app.route("/api/attendance/punch-out", methods=["POST"], endpoint="attendance_punch_out")
    @login_required
    def punch_out():
        me = current_identity()
        data = request.get_json(silent=True) or {}
        record = container.attendance_service.punch_out(
            user_id=me.user_id,
            company_id=me.company_id,
            image=data.get("image") or "",
        )
        return ok(record)

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    def today():
        me = current_identity()
        return ok(container.attendance_service.get_today(user_id=me.user_id, company_id=me.company_id))

    @app.route("/api/attendance/<int:attendance_id>/status", methods=["POST"], endpoint="attendance_set_status")
    @reviewer_required
    def set_status(attendance_id: int):
        me = current_identity()
        data = request.get_json(silent=True) or {}
        record = container.attendance_service.set_status(
            attendance_id,
            new_status=_parse_status(data.get("status")),
            approver_id=me.user_id,
            company_id=me.company_id,
            note=data.get("note"),
        )
        return ok(record)

    @app.route("/api/attendance/<int:attendance_id>/hours", methods=["POST"], endpoint="attendance_update_hours")
    @reviewer_required
    def update_hours(attendance_id: int):
        me = current_identity()
        data = request.get_json(silent=True) or {}
        record = container.attendance_service.update_hours(
            attendance_id,
            working_hours=data.get("working_hours"),
            overtime_hours=data.get("overtime_hours"),
            actor_id=me.user_id,
            company_id=me.company_id,
        )
        return ok(record)

    @app.route("/api/attendance/missing", methods=["POST"], endpoint="attendance_add_missing")
    @reviewer_required
    def add_missing():
        me = current_identity()
        data = request.get_json(silent=True) or {}
        try:
            day = parse_iso_date(str(data.get("date", "")))
        except ValueError:
            raise ValidationError("date must be YYYY-MM-DD", field="date")
        record = container.attendance_service.add_missing_attendance(
            user_id=int(data.get("user_id") or 0),
            company_id=me.company_id,
            attendance_date=day,
            status=_parse_status(data.get("status")),
            actor_id=me.user_id,
            note=data.get("note"),
        )
        return ok(record, 201)
