from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Any, Optional

from flask import Flask, jsonify, request

from ..core.exceptions import (
    AuthorizationError,
    BookingConflictError,
    ConflictError,
    DomainError,
    NotFoundError,
    QuotaExceededError,
    StoreUnavailable,
    ValidationError,
)
from .datetime_utils import parse_hhmm, parse_iso_date, to_local_naive

logger = logging.getLogger(__name__)


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def require_field(data: dict, name: str) -> Any:
    value = data.get(name)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"Field '{name}' is required")
    return value


def int_field(data: dict, name: str, default: Optional[int] = None) -> int:
    value = data.get(name, default)
    if value is None:
        raise ValidationError(f"Field '{name}' is required")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Field '{name}' must be an integer")


def optional_int_field(data: dict, name: str) -> Optional[int]:
    value = data.get(name)
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return int_field(data, name)


def date_field(data: dict, name: str) -> date:
    try:
        return parse_iso_date(str(require_field(data, name)))
    except ValueError:
        raise ValidationError(f"Field '{name}' must be YYYY-MM-DD")


def time_field(data: dict, name: str) -> time:
    try:
        return parse_hhmm(str(require_field(data, name)))
    except ValueError:
        raise ValidationError(f"Field '{name}' must be HH:MM")


def datetime_field(data: dict, name: str) -> Optional[datetime]:
    value = data.get(name)
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"Field '{name}' must be an ISO timestamp")
    return to_local_naive(parsed)


def _error(message: str, status: int, **extra):
    body = {"success": False, "message": message}
    body.update(extra)
    return jsonify(body), status


def register_error_handlers(app: Flask) -> None:
    """Map engine exceptions to JSON responses for every controller."""

    @app.errorhandler(ValidationError)
    def _validation(e: ValidationError):
        return _error(str(e), 400)

    @app.errorhandler(AuthorizationError)
    def _forbidden(e: AuthorizationError):
        return _error(str(e), 403)

    @app.errorhandler(NotFoundError)
    def _not_found(e: NotFoundError):
        return _error(str(e), 404)

    @app.errorhandler(BookingConflictError)
    def _booking_conflict(e: BookingConflictError):
        return _error(str(e), 409, conflicts=[r.to_dict() for r in e.conflicts])

    @app.errorhandler(QuotaExceededError)
    def _quota(e: QuotaExceededError):
        return _error(str(e), 409, used_days=e.used, monthly_max=e.maximum)

    @app.errorhandler(ConflictError)
    def _conflict(e: ConflictError):
        return _error(str(e), 409)

    @app.errorhandler(DomainError)
    def _domain(e: DomainError):
        return _error(str(e), 400)

    @app.errorhandler(StoreUnavailable)
    def _unavailable(e: StoreUnavailable):
        logger.warning("Store unavailable while handling %s %s: %s", request.method, request.path, e)
        return _error("Service temporarily unavailable, please try again", 503, retryable=True)
