from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_body
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/release/sweep", methods=["POST"], endpoint="api_release_sweep")
    def api_release_sweep():
        data = json_body()
        dry_run = bool(data.get("dry_run")) or request.args.get("dry_run") in {"1", "true", "yes"}
        report = container.release_scheduler.sweep(dry_run=dry_run)
        return jsonify({"success": True, **report.to_dict()}), 200

    @app.route("/api/release/<int:reservation_id>", methods=["POST"], endpoint="api_release_now")
    def api_release_now(reservation_id: int):
        reservation = container.release_scheduler.release_now(reservation_id)
        return jsonify({"success": True, "reservation": reservation.to_dict()}), 200
