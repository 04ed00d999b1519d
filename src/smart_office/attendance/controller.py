from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import datetime_field, int_field, json_body, optional_int_field, require_field
from ..core.enums import DenialReason, WorkStatus
from ..core.exceptions import ValidationError
from ..container import Container
from ..verification.model import GpsPayload, ManualOverridePayload, QrPayload, VerificationPayload, WifiPayload
from .model import CheckInAttempt


def parse_verification(data) -> VerificationPayload | None:
    """Build a verification payload from ``{"method": ..., ...}``.

    A missing block yields None, which the arbiter denies as malformed input.
    """
    if not data:
        return None
    if not isinstance(data, dict):
        raise ValidationError("verification must be an object")

    method = str(data.get("method") or "").strip().lower()
    if method == "gps":
        return GpsPayload(
            latitude=require_field(data, "latitude"),
            longitude=require_field(data, "longitude"),
            accuracy_m=data.get("accuracy"),
        )
    if method == "wifi":
        return WifiPayload(ssid=str(data.get("ssid") or ""))
    if method in {"qr", "qr_code"}:
        return QrPayload(code=str(data.get("code") or ""))
    if method == "manual":
        return ManualOverridePayload(
            authorizer_id=int_field(data, "authorizer_id"),
            justification=str(data.get("justification") or ""),
        )
    raise ValidationError(f"Unknown verification method: {method!r}")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/checkin", methods=["POST"], endpoint="api_attendance_checkin")
    def api_attendance_checkin():
        data = json_body()
        try:
            status = WorkStatus(str(data.get("status") or "office").lower())
        except ValueError:
            raise ValidationError("status must be office, wfh or leave")

        attempt = CheckInAttempt(
            user_id=int_field(data, "user_id"),
            office_id=optional_int_field(data, "office_id"),
            claimed_at=datetime_field(data, "claimed_at"),
            status=status,
            payload=parse_verification(data.get("verification")),
            note=data.get("note"),
        )
        outcome = container.attendance_service.check_in(attempt)

        if outcome.admitted:
            return jsonify({"success": True, **outcome.to_dict()}), 201
        code = 409 if outcome.reason == DenialReason.QUOTA_EXCEEDED.value else 403
        return jsonify({"success": False, "message": "Check-in denied", **outcome.to_dict()}), code

    @app.route("/api/attendance/checkout", methods=["POST"], endpoint="api_attendance_checkout")
    def api_attendance_checkout():
        data = json_body()
        record = container.attendance_service.check_out(int_field(data, "user_id"))
        return jsonify({"success": True, "record": record.to_dict()}), 200

    @app.route("/api/attendance/<int:user_id>/today", methods=["GET"], endpoint="api_attendance_today")
    def api_attendance_today(user_id: int):
        record = container.attendance_service.get_today_record(user_id)
        return jsonify({"success": True, "record": record.to_dict() if record else None}), 200

    @app.route("/api/attendance/<int:user_id>/history", methods=["GET"], endpoint="api_attendance_history")
    def api_attendance_history(user_id: int):
        days = int_field(request.args, "days", default=30)
        records = container.attendance_service.history(user_id, days=days)
        return jsonify({"success": True, "records": [r.to_dict() for r in records]}), 200

    @app.route("/api/attendance/<int:user_id>/predictions", methods=["GET"], endpoint="api_attendance_predictions")
    def api_attendance_predictions(user_id: int):
        predictions = container.predictor.weekly(user_id)
        return jsonify({"success": True, "weekly_predictions": [p.to_dict() for p in predictions]}), 200
