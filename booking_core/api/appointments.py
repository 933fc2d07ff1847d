"""
Appointment Routes

Thin HTTP layer over the booking service. Authentication happens
upstream; the caller's identity arrives in ``X-User-Id`` and
``X-Business-Id`` headers.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.db.session import get_db_session
from booking_core.errors import BookingError
from booking_core.models.schemas import (
    Actor,
    AppointmentCancel,
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
    AppointmentUpdate,
)
from booking_core.services.booking import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["appointments"])


def get_actor(
    x_user_id: str = Header(...),
    x_business_id: str = Header(...),
) -> Actor:
    return Actor(user_id=x_user_id, business_id=x_business_id)


def get_booking_service(db: AsyncSession = Depends(get_db_session)) -> BookingService:
    return BookingService(db)


def serialize(appointment: Dict[str, Any]) -> Dict[str, Any]:
    return AppointmentResponse.model_validate(appointment).model_dump(mode="json")


def success(message: str, data: Dict[str, Any], status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": True, "message": message, "data": data},
    )


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Map scheduling errors to their HTTP status and a JSON body."""
    logger.warning(f"{request.method} {request.url.path} rejected: {exc.kind} - {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@router.post("", status_code=201)
async def create_appointment(
    payload: AppointmentCreate,
    actor: Actor = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
) -> JSONResponse:
    outcome = await service.create(payload, actor)
    return success(
        "Appointment created successfully",
        {"appointment": serialize(outcome.appointment)},
        status_code=201,
    )


@router.get("")
async def list_appointments(
    client_id: Optional[str] = None,
    team_member_id: Optional[str] = None,
    status: Optional[List[AppointmentStatus]] = Query(None),
    on_date: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort: str = Query("date", pattern="^-?date$"),
    actor: Actor = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
) -> JSONResponse:
    result = await service.list_appointments(
        actor,
        client_id=client_id,
        team_member_id=team_member_id,
        status=status,
        on_date=on_date,
        page=page,
        limit=limit,
        sort=sort,
    )
    return success(
        "Appointments fetched successfully",
        {
            "appointments": [serialize(item) for item in result.items],
            "pagination": result.pagination(),
        },
    )


@router.get("/clients/{client_id}/upcoming")
async def upcoming_client_appointments(
    client_id: str,
    actor: Actor = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
) -> JSONResponse:
    appointments = await service.upcoming_for_client(actor, client_id)
    return success(
        "Client upcoming appointments fetched successfully",
        {"appointments": [serialize(item) for item in appointments], "count": len(appointments)},
    )


@router.get("/clients/{client_id}/services/history")
async def client_service_history(
    client_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    actor: Actor = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
) -> JSONResponse:
    result = await service.client_service_history(actor, client_id, page=page, limit=limit)
    return success(
        "Client service history fetched successfully",
        {
            "services": [entry.model_dump(mode="json") for entry in result.items],
            "pagination": result.pagination(),
        },
    )


@router.get("/{appointment_id}")
async def get_appointment(
    appointment_id: str,
    actor: Actor = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
) -> JSONResponse:
    appointment = await service.get_appointment(appointment_id, actor)
    return success("Appointment fetched successfully", {"appointment": serialize(appointment)})


@router.patch("/{appointment_id}")
async def update_appointment(
    appointment_id: str,
    payload: AppointmentUpdate,
    actor: Actor = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
) -> JSONResponse:
    outcome = await service.update(appointment_id, payload, actor)
    return success(
        "Appointment updated successfully",
        {"appointment": serialize(outcome.appointment), "changed_fields": outcome.changed_fields},
    )


@router.post("/{appointment_id}/reschedule")
async def reschedule_appointment(
    appointment_id: str,
    payload: AppointmentReschedule,
    actor: Actor = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
) -> JSONResponse:
    outcome = await service.reschedule(appointment_id, payload, actor)
    return success(
        "Appointment rescheduled successfully",
        {
            "oldAppointment": serialize(outcome.previous),
            "newAppointment": serialize(outcome.appointment),
        },
    )


@router.post("/{appointment_id}/cancel")
async def cancel_appointment(
    appointment_id: str,
    payload: AppointmentCancel,
    actor: Actor = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
) -> JSONResponse:
    outcome = await service.cancel(appointment_id, payload, actor)
    return success(
        "Appointment cancelled successfully",
        {"appointment": serialize(outcome.appointment)},
    )


@router.patch("/{appointment_id}/status")
async def change_appointment_status(
    appointment_id: str,
    payload: AppointmentStatusUpdate,
    actor: Actor = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
) -> JSONResponse:
    outcome = await service.set_status(appointment_id, payload.status, actor)
    return success(
        f"Appointment status changed from {outcome.previous_status} to {payload.status.value}",
        {"appointment": serialize(outcome.appointment)},
    )


@router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: str,
    actor: Actor = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
) -> JSONResponse:
    outcome = await service.delete(appointment_id, actor)
    return success("Appointment deleted successfully", {"appointmentId": outcome.appointment_id})
