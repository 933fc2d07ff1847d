"""
Booking Errors

Exception taxonomy raised by the scheduling core. Every error carries a
machine-readable ``kind`` and the HTTP-equivalent status the calling layer
should answer with.
"""

from typing import Any, Dict, List, Optional


class BookingError(Exception):
    """Base exception for scheduling core errors."""

    status_code = 400
    default_kind = "booking_error"

    def __init__(self, message: str, kind: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": self.kind,
            "message": self.message,
        }


class ValidationError(BookingError):
    """Missing or malformed request fields, or a forbidden state change."""

    status_code = 400
    default_kind = "validation_error"


class NotFoundError(BookingError):
    """Referenced entity is absent, soft-deleted or inactive."""

    status_code = 404
    default_kind = "not_found"


class ServicesNotFoundError(NotFoundError):
    """Some of the requested services could not be resolved."""

    default_kind = "services_not_found"

    def __init__(self, missing_ids: List[str]):
        super().__init__("One or more services not found or inactive")
        self.missing_ids = list(missing_ids)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["missing_service_ids"] = self.missing_ids
        return data


class TenantMismatchError(BookingError):
    """Entity belongs to a different business."""

    status_code = 403
    default_kind = "tenant_mismatch"


class ConflictError(BookingError):
    """Requested window overlaps an existing booking of the team member."""

    status_code = 409
    default_kind = "conflict"

    def __init__(self, existing: Dict[str, Any], same_client: bool):
        if same_client:
            message = "You already have an appointment booked for this slot"
        else:
            message = "Selected time slot is not available"
        super().__init__(message)
        self.existing = existing
        self.same_client = same_client

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["same_client"] = self.same_client
        data["conflicting_appointment"] = {
            key: str(self.existing.get(key)) if self.existing.get(key) is not None else None
            for key in ("id", "reference", "date", "end_date", "start_time", "end_time")
        }
        return data


class TransactionFailure(BookingError):
    """Storage-layer abort. Nothing was written; the caller may retry."""

    status_code = 503
    default_kind = "transaction_failure"
