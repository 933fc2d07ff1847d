"""
Pydantic Schemas

Data validation and serialization schemas for booking requests, stored
appointments, and the outcomes returned by the booking orchestrator.
"""

import math
from dataclasses import dataclass, field
from datetime import date as Date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AppointmentStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"


# Statuses that still occupy a team member's calendar
OPEN_STATUSES = (AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value)

# Statuses counted in a client's service history
HISTORY_STATUSES = OPEN_STATUSES + (AppointmentStatus.COMPLETED.value,)

SORT_OPTIONS = ("date", "-date")


class CancelledBy(str, Enum):
    client = "client"
    business = "business"


class CreatedVia(str, Enum):
    business = "business"
    client_booking = "client_booking"


class Actor(BaseModel):
    """Authenticated caller, already validated by the upstream auth layer."""

    user_id: str
    business_id: str


class ServiceSnapshot(BaseModel):
    serviceId: str
    name: str
    duration: int
    price: float


class PackageSnapshot(BaseModel):
    packageId: str
    name: str
    duration: int
    price: float
    services: List[ServiceSnapshot] = []


class AppointmentCreate(BaseModel):
    """
    Booking request.

    Required fields are checked by the orchestrator so that a missing
    field is reported the same way for every caller.
    """

    client_id: Optional[str] = None
    team_member_id: Optional[str] = None
    start_date: Optional[Date] = None
    end_date: Optional[Date] = None
    start_time: Optional[str] = Field(default=None, description="HH:MM, 24-hour")
    end_time: Optional[str] = Field(default=None, description="HH:MM, 24-hour")
    category_id: Optional[str] = None
    service_ids: List[str] = []
    package_id: Optional[str] = None
    discount: float = Field(default=0, ge=0)
    notes: str = ""
    created_via: CreatedVia = CreatedVia.business


class AppointmentUpdate(BaseModel):
    """Partial update; fields left out keep their stored value."""

    client_id: Optional[str] = None
    team_member_id: Optional[str] = None
    start_date: Optional[Date] = None
    end_date: Optional[Date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    category_id: Optional[str] = None
    service_ids: Optional[List[str]] = None
    package_id: Optional[str] = None
    discount: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None


class AppointmentReschedule(BaseModel):
    start_date: Optional[Date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    team_member_id: Optional[str] = None
    requested_by: CancelledBy = CancelledBy.business


class AppointmentCancel(BaseModel):
    reason: Optional[str] = None
    cancelled_by: CancelledBy = CancelledBy.business


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    reference: str
    business_id: str
    client_id: str
    client_name: str
    client_email: str
    client_phone: str
    team_member_id: str
    team_member_name: str
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    date: Date
    end_date: Date
    start_time: str
    end_time: str
    duration: int
    services: List[ServiceSnapshot]
    package: Optional[PackageSnapshot] = None
    total_price: float
    discount: float
    final_price: float
    currency: str
    payment_status: str
    status: AppointmentStatus
    notes: str
    cancellation_reason: str
    cancellation_date: Optional[datetime] = None
    cancelled_by: Optional[CancelledBy] = None
    parent_appointment_id: Optional[str] = None
    is_rescheduled: bool
    created_via: CreatedVia
    created_by: str
    updated_by: str
    created_at: datetime
    updated_at: datetime


class ServiceHistoryAppointment(BaseModel):
    appointment_id: str
    date: Date
    start_time: str
    status: AppointmentStatus
    time_status: str = Field(description="Past or Upcoming")


class ServiceHistoryEntry(BaseModel):
    """How often a client booked one service, newest booking first."""

    service_id: str
    name: str
    count: int
    last_booked: Date
    appointments: List[ServiceHistoryAppointment] = []


# Orchestrator outcomes

@dataclass
class ConflictResult:
    conflict: bool
    existing: Optional[Dict[str, Any]] = None
    same_client: bool = False


@dataclass
class Created:
    appointment: Dict[str, Any]


@dataclass
class Updated:
    appointment: Dict[str, Any]
    changed_fields: List[str] = field(default_factory=list)


@dataclass
class Rescheduled:
    appointment: Dict[str, Any]
    previous: Dict[str, Any]


@dataclass
class Cancelled:
    appointment_id: str
    appointment: Dict[str, Any]


@dataclass
class StatusChanged:
    appointment: Dict[str, Any]
    previous_status: str


@dataclass
class Deleted:
    appointment_id: str


@dataclass
class Page:
    items: List[Any]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "pages": self.pages,
        }
