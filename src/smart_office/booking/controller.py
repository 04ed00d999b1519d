from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import date_field, int_field, json_body, optional_int_field, time_field
from ..core.exceptions import BookingConflictError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/rooms/<int:room_id>/bookings", methods=["POST"], endpoint="api_room_book")
    def api_room_book(room_id: int):
        data = json_body()
        owner_id = int_field(data, "user_id")
        work_date = date_field(data, "date")
        start_time = time_field(data, "start_time")
        end_time = time_field(data, "end_time")
        attendees = int_field(data, "attendees", default=1)
        try:
            reservation = container.booking_service.book_room(
                owner_id=owner_id,
                room_id=room_id,
                work_date=work_date,
                start_time=start_time,
                end_time=end_time,
                attendees=attendees,
                purpose=data.get("purpose"),
            )
        except BookingConflictError as e:
            alternatives = container.booking_service.suggest_alternatives(
                user_id=owner_id,
                room_id=room_id,
                work_date=work_date,
                start_time=start_time,
                end_time=end_time,
                attendees=attendees,
            )
            return (
                jsonify(
                    {
                        "success": False,
                        "message": str(e),
                        "conflicts": [r.to_dict() for r in e.conflicts],
                        "alternatives": [s.to_dict() for s in alternatives],
                    }
                ),
                409,
            )
        return jsonify({"success": True, "reservation": reservation.to_dict()}), 201

    @app.route("/api/parking/<int:spot_id>/reservations", methods=["POST"], endpoint="api_parking_reserve")
    def api_parking_reserve(spot_id: int):
        data = json_body()
        reservation = container.booking_service.reserve_parking(
            owner_id=int_field(data, "user_id"),
            spot_id=spot_id,
            work_date=date_field(data, "date"),
            purpose=data.get("purpose"),
        )
        return jsonify({"success": True, "reservation": reservation.to_dict()}), 201

    @app.route("/api/reservations/<int:reservation_id>/cancel", methods=["POST"], endpoint="api_reservation_cancel")
    def api_reservation_cancel(reservation_id: int):
        data = json_body()
        reservation = container.booking_service.cancel(
            reservation_id=reservation_id, actor_id=int_field(data, "user_id")
        )
        return jsonify({"success": True, "reservation": reservation.to_dict()}), 200

    @app.route("/api/reservations/<int:reservation_id>/checkin", methods=["POST"], endpoint="api_reservation_checkin")
    def api_reservation_checkin(reservation_id: int):
        data = json_body()
        reservation = container.booking_service.check_in(
            reservation_id=reservation_id, user_id=int_field(data, "user_id")
        )
        return jsonify({"success": True, "reservation": reservation.to_dict()}), 200

    @app.route("/api/users/<int:user_id>/reservations", methods=["GET"], endpoint="api_user_reservations")
    def api_user_reservations(user_id: int):
        since = date_field(request.args, "since") if request.args.get("since") else None
        reservations = container.booking_service.list_for_owner(user_id, since=since)
        return jsonify({"success": True, "reservations": [r.to_dict() for r in reservations]}), 200

    @app.route("/api/rooms/recommendations", methods=["GET"], endpoint="api_room_recommendations")
    def api_room_recommendations():
        args = request.args
        amenities = [a for a in (args.get("amenities") or "").split(",") if a.strip()]
        ranked = container.booking_service.recommend_rooms(
            user_id=int_field(args, "user_id"),
            work_date=date_field(args, "date"),
            start_time=time_field(args, "start_time"),
            end_time=time_field(args, "end_time"),
            attendees=int_field(args, "attendees", default=1),
            amenities=amenities,
            office_id=optional_int_field(args, "office_id"),
            limit=int_field(args, "limit", default=5),
        )
        return jsonify({"success": True, "recommendations": [s.to_dict() for s in ranked]}), 200

    @app.route("/api/rooms/<int:room_id>/availability", methods=["GET"], endpoint="api_room_availability")
    def api_room_availability(room_id: int):
        args = request.args
        availability = container.booking_service.room_availability(
            room_id=room_id,
            work_date=date_field(args, "date"),
            start_time=time_field(args, "start_time"),
            end_time=time_field(args, "end_time"),
        )
        return jsonify({"success": True, **availability.to_dict()}), 200

    @app.route("/api/parking/spots", methods=["GET"], endpoint="api_parking_spots")
    def api_parking_spots():
        spots = container.booking_service.list_parking_spots(optional_int_field(request.args, "office_id"))
        return jsonify({"success": True, "spots": [s.to_dict() for s in spots]}), 200

    @app.route("/api/parking/availability", methods=["GET"], endpoint="api_parking_availability")
    def api_parking_availability():
        args = request.args
        availability = container.booking_service.parking_availability(
            work_date=date_field(args, "date"), office_id=optional_int_field(args, "office_id")
        )
        return (
            jsonify(
                {
                    "success": True,
                    "available": sum(1 for a in availability if a.is_free),
                    "spots": [a.to_dict() for a in availability],
                }
            ),
            200,
        )
