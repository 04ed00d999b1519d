from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import date_field, int_field, json_body
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/wfh/quota/<int:user_id>", methods=["GET"], endpoint="api_wfh_quota")
    def api_wfh_quota(user_id: int):
        on_day = date_field(request.args, "date") if request.args.get("date") else None
        decision = container.attendance_service.wfh_quota(user_id, on_day)
        return jsonify({"success": True, **decision.to_dict()}), 200

    @app.route("/api/wfh/requests", methods=["POST"], endpoint="api_wfh_request_submit")
    def api_wfh_request_submit():
        data = json_body()
        request_id = container.approval_service.submit(
            user_id=int_field(data, "user_id"),
            requested_for=date_field(data, "requested_for"),
            reason=str(data.get("reason") or ""),
            urgency=str(data.get("urgency") or "normal"),
        )
        return jsonify({"success": True, "request_id": request_id}), 201

    @app.route("/api/wfh/requests/<int:request_id>/approve", methods=["POST"], endpoint="api_wfh_request_approve")
    def api_wfh_request_approve(request_id: int):
        data = json_body()
        container.approval_service.approve(
            approver_id=int_field(data, "approver_id"),
            request_id=request_id,
            note=str(data.get("note") or ""),
        )
        return jsonify({"success": True, "request_id": request_id, "status": "approved"}), 200

    @app.route("/api/wfh/requests/<int:request_id>/deny", methods=["POST"], endpoint="api_wfh_request_deny")
    def api_wfh_request_deny(request_id: int):
        data = json_body()
        container.approval_service.deny(
            approver_id=int_field(data, "approver_id"),
            request_id=request_id,
            note=str(data.get("note") or ""),
        )
        return jsonify({"success": True, "request_id": request_id, "status": "denied"}), 200
