"""Core enums used across modules."""

from enum import StrEnum


class RoleEnum(StrEnum):
    """Platform roles."""

    MENTOR = "mentor"
    MENTEE = "mentee"


class SessionStatusEnum(StrEnum):
    """Mentoring session lifecycle status."""

    REQUESTED = "requested"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SessionPaymentStatusEnum(StrEnum):
    """Payment status tracked on the session."""

    PENDING = "pending"
    COMPLETED = "completed"
    REFUNDED = "refunded"


class PaymentStatusEnum(StrEnum):
    """Payment record status."""

    COMPLETED = "completed"
    REFUNDED = "refunded"


class NotificationTypeEnum(StrEnum):
    """Notification categories."""

    REQUEST = "request"
    CONFIRMATION = "confirmation"
    REMINDER = "reminder"
    SUMMARY = "summary"
    FOLLOW_UP = "follow-up"
    CANCELLATION = "cancellation"


class BookingDecisionEnum(StrEnum):
    """Mentor answer to a session request."""

    ACCEPT = "accept"
    DECLINE = "decline"


class VideoCallStatusEnum(StrEnum):
    """Video call status."""

    PENDING = "pending"
    STARTED = "started"
    ENDED = "ended"
