"""
API Module Initialization

Exports HTTP routes for use across the application.
"""

from booking_core.api.appointments import (
    booking_error_handler,
    get_actor,
    get_booking_service,
    router as appointments_router,
)

__all__ = [
    "appointments_router",
    "booking_error_handler",
    "get_actor",
    "get_booking_service",
]
