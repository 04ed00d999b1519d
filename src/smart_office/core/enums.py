from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Employee role used for override/approval permissions."""

    ADMIN = "admin"
    STAFF = "staff"


class WorkMode(str, Enum):
    IN_OFFICE = "in-office"
    WFH = "wfh"
    HYBRID = "hybrid"


class WorkStatus(str, Enum):
    """Status claimed by a check-in and stored on the attendance record."""

    OFFICE = "office"
    WFH = "wfh"
    LEAVE = "leave"


class VerificationMethod(str, Enum):
    GPS = "gps"
    WIFI = "wifi"
    QR_CODE = "qr_code"
    MANUAL = "manual"
    SELF_DECLARED = "self_declared"


class DenialReason(str, Enum):
    OUT_OF_RANGE = "out-of-range"
    NETWORK_MISMATCH = "network-mismatch"
    TOKEN_INVALID = "token-invalid-or-expired"
    MALFORMED_INPUT = "malformed-input"
    OVERRIDE_UNAUTHORIZED = "override-unauthorized"
    MODE_RESTRICTED = "mode-restricted"
    NOT_ENABLED = "not-enabled"
    QUOTA_EXCEEDED = "quota-exceeded"
    APPROVAL_REQUIRED = "approval-required"


class ReservationKind(str, Enum):
    ROOM = "room"
    PARKING = "parking"


class ReservationStatus(str, Enum):
    CONFIRMED = "confirmed"
    RELEASED = "released"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class SpotType(str, Enum):
    CAR = "car"
    BIKE = "bike"


class RequestStatus(str, Enum):
    """WFH request approval flow."""

    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    EXPIRED = "expired"


class Urgency(str, Enum):
    NORMAL = "normal"
    URGENT = "urgent"
    EMERGENCY = "emergency"


class EventKind(str, Enum):
    BOOKING_CONFIRMED = "booking-confirmed"
    BOOKING_CANCELLED = "booking-cancelled"
    RELEASE_WARNING = "release-warning"
    RELEASE_OCCURRED = "release-occurred"
    WFH_QUOTA_NEAR_LIMIT = "wfh-quota-near-limit"
    WFH_REQUEST_DECIDED = "wfh-request-decided"
