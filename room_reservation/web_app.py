from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable

from flask import Flask, jsonify, request

from .booking import time_options
from .calendar_view import DayBucket, Direction, Granularity, advance, period_bounds, weeks
from .config import Settings, build_store, load_settings
from .models import Reservation
from .state import BoardBusyError, ReservationBoard, UserInUseError
from .store_client import RecordNotFoundError, RecordStore, StoreError
from .validation import ReservationRejected

logger = logging.getLogger("room_reservation.web")

BOARD_EXTENSION_KEY = "reservation_board"
STORE_FAILURE_MESSAGE = "The reservation service is unavailable. Please try again."


def create_app(
    settings: Settings | None = None,
    store: RecordStore | None = None,
    today_provider: Callable[[], date] | None = None,
) -> Flask:
    app = Flask(__name__)
    settings = settings or load_settings()
    board = ReservationBoard(store or build_store(settings), holiday_country=settings.holiday_country)
    app.extensions[BOARD_EXTENSION_KEY] = board
    today: Callable[[], date] = today_provider or date.today

    def _loaded_board() -> ReservationBoard:
        board.ensure_loaded()
        return board

    def _serialize_reservation(record: Reservation) -> dict[str, Any]:
        return {**record.to_dict(), "userName": board.user_name(record.user_id)}

    def _serialize_bucket(bucket: DayBucket) -> dict[str, Any]:
        return {
            "date": bucket.date.isoformat(),
            "weekday": bucket.date.strftime("%a"),
            "isInCurrentPeriod": bucket.is_in_current_period,
            "holiday": bucket.holiday_name,
            "reservations": [_serialize_reservation(record) for record in bucket.reservations],
        }

    @app.after_request
    def add_cors_headers(response: Any) -> Any:
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,PATCH,DELETE,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.errorhandler(ReservationRejected)
    def handle_rejected(error: ReservationRejected) -> Any:
        reason = error.reason.name if error.reason is not None else None
        return jsonify({"ok": False, "reason": reason, "message": str(error)}), 400

    @app.errorhandler(UserInUseError)
    def handle_user_in_use(error: UserInUseError) -> Any:
        return jsonify({"ok": False, "message": str(error)}), 409

    @app.errorhandler(ValueError)
    def handle_invalid_input(error: ValueError) -> Any:
        return jsonify({"ok": False, "message": str(error)}), 400

    @app.errorhandler(BoardBusyError)
    def handle_busy(error: BoardBusyError) -> Any:
        return jsonify({"ok": False, "message": str(error)}), 409

    @app.errorhandler(RecordNotFoundError)
    def handle_not_found(error: RecordNotFoundError) -> Any:
        return jsonify({"ok": False, "message": str(error)}), 404

    @app.errorhandler(StoreError)
    def handle_store_error(error: StoreError) -> Any:
        logger.error("Records service request failed: %s", error)
        return jsonify({"ok": False, "message": STORE_FAILURE_MESSAGE}), 502

    @app.get("/api/users")
    def list_users() -> Any:
        current = _loaded_board()
        return jsonify({"ok": True, "users": [user.to_dict() for user in current.users]})

    @app.post("/api/users")
    def create_user() -> Any:
        payload = _json_body()
        created = _loaded_board().create_user(str(payload.get("name") or ""), str(payload.get("email") or ""))
        return jsonify({"ok": True, "user": created.to_dict()}), 201

    @app.patch("/api/users/<user_id>")
    def update_user(user_id: str) -> Any:
        payload = _json_body()
        updated = _loaded_board().update_user(
            user_id,
            name=_optional_text(payload, "name"),
            email=_optional_text(payload, "email"),
        )
        return jsonify({"ok": True, "user": updated.to_dict()})

    @app.delete("/api/users/<user_id>")
    def delete_user(user_id: str) -> Any:
        _loaded_board().delete_user(user_id)
        return jsonify({"ok": True})

    @app.get("/api/reservations")
    def list_reservations() -> Any:
        current = _loaded_board()
        return jsonify(
            {"ok": True, "reservations": [_serialize_reservation(record) for record in current.sorted_reservations()]}
        )

    @app.post("/api/reservations")
    def create_reservation() -> Any:
        payload = _json_body()
        created = _loaded_board().create_reservation(
            user_id=payload.get("userId"),
            reservation_date=_required_text(payload, "date"),
            start_time=_required_text(payload, "startTime"),
            end_time=_required_text(payload, "endTime"),
            purpose=str(payload.get("purpose") or ""),
        )
        return jsonify({"ok": True, "reservation": _serialize_reservation(created)}), 201

    @app.post("/api/reservations/check")
    def check_reservation() -> Any:
        payload = _json_body()
        candidate = Reservation.create(
            user_id=payload.get("userId"),
            reservation_date=_required_text(payload, "date"),
            start_time=_required_text(payload, "startTime"),
            end_time=_required_text(payload, "endTime"),
            purpose=str(payload.get("purpose") or ""),
        )
        exclude_id = payload.get("excludeId")
        result = _loaded_board().check(candidate, exclude_id=str(exclude_id) if exclude_id else None)
        return jsonify(
            {
                "ok": result.ok,
                "reason": result.reason.name if result.reason is not None else None,
                "message": result.message,
                "conflicts": [_serialize_reservation(record) for record in result.conflicts],
            }
        )

    @app.put("/api/reservations/<reservation_id>")
    def update_reservation(reservation_id: str) -> Any:
        payload = _json_body()
        field_names = {
            "userId": "user_id",
            "date": "date",
            "startTime": "start_time",
            "endTime": "end_time",
            "purpose": "purpose",
        }
        changes = {field: payload[key] for key, field in field_names.items() if key in payload}
        updated = _loaded_board().update_reservation(reservation_id, **changes)
        return jsonify({"ok": True, "reservation": _serialize_reservation(updated)})

    @app.delete("/api/reservations/<reservation_id>")
    def delete_reservation(reservation_id: str) -> Any:
        _loaded_board().delete_reservation(reservation_id)
        return jsonify({"ok": True})

    @app.get("/api/calendar")
    def get_calendar() -> Any:
        reference_date = _parse_date_arg(request.args.get("date"), today())
        view = str(request.args.get("view", Granularity.WEEK.value)).lower()
        try:
            granularity = Granularity(view)
        except ValueError:
            return jsonify({"ok": False, "message": "view must be 'week' or 'month'."}), 400
        pad = str(request.args.get("pad", "0")).lower() in {"1", "true", "yes"}

        buckets = _loaded_board().calendar(reference_date, granularity, pad=pad)
        first, last = period_bounds(reference_date, granularity)
        payload: dict[str, Any] = {
            "ok": True,
            "view": granularity.value,
            "date": reference_date.isoformat(),
            "periodStart": first.isoformat(),
            "periodEnd": last.isoformat(),
            "previous": advance(reference_date, granularity, Direction.BACKWARD).isoformat(),
            "next": advance(reference_date, granularity, Direction.FORWARD).isoformat(),
            "days": [_serialize_bucket(bucket) for bucket in buckets],
        }
        if pad:
            payload["weeks"] = [[bucket.date.isoformat() for bucket in row] for row in weeks(buckets)]
        return jsonify(payload)

    @app.get("/api/meeting-room")
    def get_meeting_room() -> Any:
        room = _loaded_board().meeting_room
        if room is None:
            return jsonify({"ok": False, "message": "No meeting room is configured."}), 404
        return jsonify({"ok": True, "meetingRoom": room.to_dict()})

    @app.get("/api/time-options")
    def get_time_options() -> Any:
        return jsonify({"ok": True, "options": time_options()})

    @app.post("/api/refresh")
    def refresh() -> Any:
        board.refresh()
        return jsonify({"ok": True, "users": len(board.users), "reservations": len(board.reservations)})

    return app


def _json_body() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValueError("Request body must be a JSON object.")
    return payload


def _required_text(payload: dict[str, Any], key: str) -> str:
    value = str(payload.get(key) or "").strip()
    if not value:
        raise ValueError(f"{key} is required.")
    return value


def _optional_text(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    return None if value is None else str(value)


def _parse_date_arg(value: str | None, default: date) -> date:
    if not value:
        return default
    try:
        return date.fromisoformat(value)
    except ValueError as error:
        raise ValueError("date must use the format YYYY-MM-DD.") from error


if __name__ == "__main__":
    from .config import configure_logging

    app_settings = load_settings()
    configure_logging(app_settings.log_level)
    app = create_app(app_settings)
    app.run(host="127.0.0.1", port=5000, debug=False)
