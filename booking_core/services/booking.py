"""
Booking Service

Transactional workflow for creating, updating, rescheduling and cancelling
appointments. Each operation validates, resolves entities, checks the team
member's calendar and writes inside one transaction: either everything is
stored or nothing is.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, Union

from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.config import Settings, settings as default_settings
from booking_core.db.repository import AppointmentRepository
from booking_core.db.session import transaction
from booking_core.db.tables import utcnow
from booking_core.errors import ConflictError, NotFoundError, TransactionFailure, ValidationError
from booking_core.models.schemas import (
    HISTORY_STATUSES,
    OPEN_STATUSES,
    SORT_OPTIONS,
    Actor,
    AppointmentCancel,
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentStatus,
    AppointmentUpdate,
    Cancelled,
    CancelledBy,
    Created,
    Deleted,
    Page,
    Rescheduled,
    ServiceHistoryAppointment,
    ServiceHistoryEntry,
    StatusChanged,
    Updated,
)
from booking_core.scheduling.assembler import (
    assemble,
    generate_reference,
    snapshot_category,
    snapshot_client,
    snapshot_package,
    snapshot_services,
    snapshot_team_member,
)
from booking_core.scheduling.conflicts import ConflictDetector
from booking_core.scheduling.resolver import EntityResolver, compute_totals
from booking_core.scheduling.timeutils import (
    InvalidTimeFormat,
    add_minutes,
    days_rolled,
    from_minutes,
    minutes_between,
    to_minutes,
)

logger = logging.getLogger(__name__)

Listener = Callable[[str, Dict[str, Any]], Awaitable[None]]

# Status changes allowed through set_status; cancellation has its own path.
ALLOWED_TRANSITIONS = {
    AppointmentStatus.PENDING.value: {
        AppointmentStatus.CONFIRMED.value,
        AppointmentStatus.COMPLETED.value,
        AppointmentStatus.NO_SHOW.value,
    },
    AppointmentStatus.CONFIRMED.value: {
        AppointmentStatus.COMPLETED.value,
        AppointmentStatus.NO_SHOW.value,
    },
}

REFERENCE_ATTEMPTS = 5

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# Fields copied from a rescheduled appointment onto its replacement
_CARRIED_OVER = (
    "business_id",
    "client_id",
    "client_name",
    "client_email",
    "client_phone",
    "team_member_id",
    "team_member_name",
    "category_id",
    "category_name",
    "services",
    "package",
    "total_price",
    "discount",
    "final_price",
    "currency",
    "payment_status",
    "notes",
    "created_via",
)


class BookingService:
    """
    Orchestrates booking operations for one business at a time.

    The session passed in is the transaction handle: resolver, detector and
    repositories all run on it, and each operation commits or rolls it back
    as a whole.
    """

    def __init__(
        self,
        db: AsyncSession,
        config: Optional[Settings] = None,
        listeners: Sequence[Listener] = (),
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize BookingService.

        Args:
            db: Async database session
            config: Settings override, defaults to the application settings
            listeners: Async callbacks run after a successful commit
            clock: Source of the current local time
        """
        self.db = db
        self.config = config or default_settings
        self.listeners = list(listeners)
        self.clock = clock

        self.resolver = EntityResolver(db)
        self.detector = ConflictDetector(db)
        self.appointments = AppointmentRepository(db)

    # Validation helpers

    @staticmethod
    def _check_time(value: str, field: str) -> int:
        try:
            return to_minutes(value)
        except InvalidTimeFormat as e:
            raise ValidationError(
                f"{field} must be a 24-hour HH:MM time", kind="invalid_time"
            ) from e

    def _clock_time(self, value: str, field: str) -> str:
        """Validated time in the stored zero-padded ``HH:MM`` form."""
        return from_minutes(self._check_time(value, field))

    def _guard_past(self, start_date: date) -> None:
        if start_date < self.clock().date():
            raise ValidationError("Cannot book appointments for past dates", kind="past_date")

    @staticmethod
    def _check_discount(total_price: float, discount: Optional[float]) -> None:
        if discount and discount > total_price:
            raise ValidationError(
                "Discount cannot exceed the total price", kind="discount_exceeds_price"
            )

    @staticmethod
    def _check_page(page: int, limit: int) -> None:
        if page < 1 or not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(
                f"page must be at least 1 and limit between 1 and {MAX_PAGE_SIZE}",
                kind="invalid_pagination",
            )

    @staticmethod
    def _statuses(
        status: Union[AppointmentStatus, str, Sequence[AppointmentStatus], None],
    ) -> Optional[List[str]]:
        if not status:
            return None
        if isinstance(status, str):
            status = [status]
        return [AppointmentStatus(item).value for item in status]

    def _time_status(self, appointment: Dict[str, Any]) -> str:
        """Past once the appointment's start is behind the clock, else Upcoming."""
        now = self.clock()
        starts = (appointment["date"], appointment["start_time"])
        return "Past" if starts < (now.date(), now.strftime("%H:%M")) else "Upcoming"

    def _window(
        self,
        start_date: date,
        end_date: Optional[date],
        start_time: str,
        end_time: Optional[str],
        duration: int,
    ) -> Tuple[date, str, int]:
        """
        Derive end date, end time and duration of a booking window.

        Without an explicit end time the end is ``start_time + duration``.
        A window that runs past midnight ends on a later day; without an
        explicit end date the earliest valid end day is used.

        Returns:
            (end_date, end_time, duration)
        """
        start_minutes = self._check_time(start_time, "start_time")

        if end_time:
            end_minutes = self._check_time(end_time, "end_time")
            end_time = from_minutes(end_minutes)
            rolled = 1 if end_minutes <= start_minutes else 0
            duration = minutes_between(start_time, end_time)
        else:
            if duration <= 0:
                raise ValidationError(
                    "An end time or a service with a duration is required",
                    kind="missing_end_time",
                )
            end_time = add_minutes(start_time, duration)
            rolled = days_rolled(start_time, duration)

        earliest_end = start_date + timedelta(days=rolled)
        if end_date is None:
            end_date = earliest_end
        elif end_date < start_date:
            raise ValidationError("Start date cannot be after end date", kind="invalid_date_range")
        elif end_date < earliest_end:
            raise ValidationError("End time must be after start time", kind="invalid_time_range")

        if duration < self.config.min_duration_minutes:
            raise ValidationError(
                f"Appointments must last at least {self.config.min_duration_minutes} minutes",
                kind="duration_too_short",
            )
        return end_date, end_time, duration

    async def _load(self, appointment_id: str, business_id: str) -> Dict[str, Any]:
        appointment = await self.appointments.get_for_business(appointment_id, business_id)
        if not appointment:
            raise NotFoundError("Appointment not found", kind="appointment_not_found")
        return appointment

    async def _unique_reference(self, candidate: str) -> str:
        for _ in range(REFERENCE_ATTEMPTS):
            if not await self.appointments.reference_exists(candidate):
                return candidate
            candidate = generate_reference()
        raise TransactionFailure("Could not allocate a booking reference")

    async def _ensure_free(
        self,
        team_member_id: str,
        start_date: date,
        end_date: date,
        start_time: str,
        end_time: str,
        client_id: str,
        exclude_appointment_id: Optional[str] = None,
    ) -> None:
        result = await self.detector.has_conflict(
            team_member_id,
            start_date,
            end_date,
            start_time,
            end_time,
            exclude_appointment_id=exclude_appointment_id,
            client_id=client_id,
        )
        if result.conflict:
            raise ConflictError(result.existing, result.same_client)

    async def _notify(self, event: str, appointment: Dict[str, Any]) -> None:
        for listener in self.listeners:
            try:
                await listener(event, appointment)
            except Exception as e:
                logger.error(
                    f"Listener failed for {event} of appointment {appointment.get('id')}: {e}",
                    exc_info=True,
                )

    # Operations

    async def create(self, request: AppointmentCreate, actor: Actor) -> Created:
        """
        Book a new appointment.

        Args:
            request: Booking request
            actor: Authenticated caller and their business

        Returns:
            Created outcome holding the stored appointment

        Raises:
            ValidationError: missing or malformed fields
            NotFoundError: a referenced entity is missing or inactive
            TenantMismatchError: an entity belongs to another business
            ConflictError: the team member is already booked
            TransactionFailure: the store aborted the write

        Example:
            >>> outcome = await service.create(
            ...     AppointmentCreate(
            ...         client_id=client_id,
            ...         team_member_id=member_id,
            ...         start_date=date(2025, 11, 25),
            ...         start_time="14:30",
            ...         service_ids=[haircut_id],
            ...     ),
            ...     actor,
            ... )
        """
        missing_info = [
            name
            for name, value in (
                ("client", request.client_id),
                ("team member", request.team_member_id),
                ("start date", request.start_date),
                ("start time", request.start_time),
            )
            if not value
        ]
        if not (request.category_id or request.service_ids or request.package_id):
            missing_info.append("category or services")
        if missing_info:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing_info)}", kind="missing_fields"
            )

        start_time = self._clock_time(request.start_time, "start_time")
        self._guard_past(request.start_date)

        async with transaction(self.db):
            resolved = await self.resolver.resolve(
                client_id=request.client_id,
                team_member_id=request.team_member_id,
                category_id=request.category_id,
                service_ids=request.service_ids,
                package_id=request.package_id,
                business_id=actor.business_id,
            )

            end_date, end_time, duration = self._window(
                request.start_date,
                request.end_date,
                start_time,
                request.end_time,
                resolved.total_duration,
            )
            self._check_discount(resolved.total_price, request.discount)

            await self._ensure_free(
                resolved.team_member["id"],
                request.start_date,
                end_date,
                start_time,
                end_time,
                client_id=resolved.client["id"],
            )

            record = assemble(
                resolved.client,
                resolved.team_member,
                resolved.category,
                resolved.services,
                resolved.package,
                business_id=actor.business_id,
                date=request.start_date,
                end_date=end_date,
                start_time=start_time,
                end_time=end_time,
                total_duration=duration,
                total_price=resolved.total_price,
                discount=request.discount,
                actor_user_id=actor.user_id,
                currency=self.config.currency,
                status=self.config.initial_status,
                notes=request.notes,
                created_via=request.created_via.value,
            )
            record["reference"] = await self._unique_reference(record["reference"])
            appointment = await self.appointments.create(record)

        logger.info(
            f"Created appointment {appointment['id']} ({appointment['reference']}) for "
            f"team member {appointment['team_member_id']} on {appointment['date']} "
            f"{appointment['start_time']}-{appointment['end_time']}"
        )
        await self._notify("created", appointment)
        return Created(appointment)

    async def update(
        self,
        appointment_id: str,
        request: AppointmentUpdate,
        actor: Actor,
    ) -> Updated:
        """
        Merge a partial update over a stored appointment.

        Fields left out keep their stored value. When the team member or the
        time window changes the calendar is checked again, ignoring this
        appointment, and the appointment goes back to PENDING.

        Raises:
            NotFoundError: unknown appointment or referenced entity
            ValidationError: closed appointment or invalid fields
            ConflictError: the new window is taken
        """
        business_id = actor.business_id

        async with transaction(self.db):
            existing = await self._load(appointment_id, business_id)
            if existing["status"] not in OPEN_STATUSES:
                raise ValidationError(
                    f"A {existing['status']} appointment can no longer be changed",
                    kind="appointment_closed",
                )

            patch: Dict[str, Any] = {}
            client_id = existing["client_id"]
            team_member_id = existing["team_member_id"]

            if request.client_id and request.client_id != client_id:
                client = await self.resolver.resolve_client(request.client_id, business_id)
                patch.update(snapshot_client(client))
                client_id = client["id"]

            team_member_changed = bool(
                request.team_member_id and request.team_member_id != team_member_id
            )
            if team_member_changed:
                team_member = await self.resolver.resolve_team_member(
                    request.team_member_id, business_id
                )
                patch.update(snapshot_team_member(team_member))
                team_member_id = team_member["id"]

            if request.category_id and request.category_id != existing["category_id"]:
                category = await self.resolver.resolve_category(request.category_id, business_id)
                patch.update(snapshot_category(category))

            total_duration = existing["duration"]
            total_price = existing["total_price"]
            pricing_changed = False

            existing_package_id = (existing["package"] or {}).get("packageId")
            package_changed = bool(
                request.package_id and request.package_id != existing_package_id
            )
            existing_service_ids = [item["serviceId"] for item in existing["services"] or []]
            services_changed = (
                request.service_ids is not None and request.service_ids != existing_service_ids
            )

            if services_changed:
                services = await self.resolver.resolve_services(
                    request.service_ids, business_id
                )
                patch["services"] = snapshot_services(services)
                if existing["package"] is None and not package_changed:
                    total_duration, total_price = compute_totals(services)
                    pricing_changed = True

            if package_changed:
                package = await self.resolver.resolve_package(request.package_id, business_id)
                patch["package"] = snapshot_package(package)
                total_duration, total_price = compute_totals([], package)
                pricing_changed = True

            discount = request.discount if request.discount is not None else existing["discount"]
            if pricing_changed or request.discount is not None:
                self._check_discount(total_price, discount)
                patch["total_price"] = total_price
                patch["discount"] = discount
                patch["final_price"] = total_price - discount

            start_date = request.start_date or existing["date"]
            start_time = (
                self._clock_time(request.start_time, "start_time")
                if request.start_time
                else existing["start_time"]
            )
            requested_end = (
                self._clock_time(request.end_time, "end_time")
                if request.end_time is not None
                else None
            )
            window_changed = (
                start_date != existing["date"]
                or start_time != existing["start_time"]
                or (request.end_date is not None and request.end_date != existing["end_date"])
                or (requested_end is not None and requested_end != existing["end_time"])
                or total_duration != existing["duration"]
            )

            if window_changed:
                if start_date != existing["date"]:
                    self._guard_past(start_date)

                end_time = requested_end
                if end_time is None and not (
                    start_time != existing["start_time"] or total_duration != existing["duration"]
                ):
                    end_time = existing["end_time"]

                end_date, end_time, duration = self._window(
                    start_date, request.end_date, start_time, end_time, total_duration
                )
                patch.update(
                    {
                        "date": start_date,
                        "end_date": end_date,
                        "start_time": start_time,
                        "end_time": end_time,
                        "duration": duration,
                    }
                )

            if team_member_changed or window_changed:
                await self._ensure_free(
                    team_member_id,
                    patch.get("date", existing["date"]),
                    patch.get("end_date", existing["end_date"]),
                    patch.get("start_time", existing["start_time"]),
                    patch.get("end_time", existing["end_time"]),
                    client_id=client_id,
                    exclude_appointment_id=existing["id"],
                )
                patch["status"] = AppointmentStatus.PENDING.value

            if request.notes is not None:
                patch["notes"] = request.notes

            changed_fields = sorted(
                key for key, value in patch.items() if existing.get(key) != value
            )
            patch["updated_by"] = actor.user_id
            appointment = await self.appointments.update_one(existing["id"], patch)

        logger.info(f"Updated appointment {appointment_id}: {', '.join(changed_fields) or 'no changes'}")
        await self._notify("updated", appointment)
        return Updated(appointment, changed_fields)

    async def reschedule(
        self,
        appointment_id: str,
        request: AppointmentReschedule,
        actor: Actor,
    ) -> Rescheduled:
        """
        Move an appointment to a new window as a linked replacement.

        The old appointment is cancelled and flagged as rescheduled; a new
        PENDING appointment copying its snapshots points back at it through
        ``parent_appointment_id``.

        Raises:
            ValidationError: missing date/time, past date, closed appointment
            NotFoundError: unknown appointment or team member
            ConflictError: the new window is taken
        """
        missing_info = [
            name
            for name, value in (
                ("start date", request.start_date),
                ("start time", request.start_time),
            )
            if not value
        ]
        if missing_info:
            raise ValidationError(
                f"Missing required fields for rescheduling: {', '.join(missing_info)}",
                kind="missing_fields",
            )
        start_time = self._clock_time(request.start_time, "start_time")
        self._guard_past(request.start_date)

        async with transaction(self.db):
            existing = await self._load(appointment_id, actor.business_id)
            if existing["status"] not in OPEN_STATUSES:
                raise ValidationError(
                    "Appointment cannot be rescheduled", kind="appointment_closed"
                )

            team_member_fields = {
                "team_member_id": existing["team_member_id"],
                "team_member_name": existing["team_member_name"],
            }
            if request.team_member_id and request.team_member_id != existing["team_member_id"]:
                team_member = await self.resolver.resolve_team_member(
                    request.team_member_id, actor.business_id
                )
                team_member_fields = snapshot_team_member(team_member)

            end_date, end_time, duration = self._window(
                request.start_date,
                None,
                start_time,
                request.end_time,
                existing["duration"],
            )

            await self._ensure_free(
                team_member_fields["team_member_id"],
                request.start_date,
                end_date,
                start_time,
                end_time,
                client_id=existing["client_id"],
                exclude_appointment_id=existing["id"],
            )

            previous = await self.appointments.update_one(
                existing["id"],
                {
                    "status": AppointmentStatus.CANCELLED.value,
                    "cancellation_reason": "Rescheduled",
                    "cancellation_date": utcnow(),
                    "cancelled_by": request.requested_by.value,
                    "is_rescheduled": True,
                    "updated_by": actor.user_id,
                },
            )

            record = {field: existing[field] for field in _CARRIED_OVER}
            record.update(team_member_fields)
            record.update(
                {
                    "reference": await self._unique_reference(generate_reference()),
                    "date": request.start_date,
                    "end_date": end_date,
                    "start_time": start_time,
                    "end_time": end_time,
                    "duration": duration,
                    "status": AppointmentStatus.PENDING.value,
                    "parent_appointment_id": existing["id"],
                    "is_rescheduled": True,
                    "created_by": actor.user_id,
                    "updated_by": actor.user_id,
                }
            )
            appointment = await self.appointments.create(record)

        logger.info(f"Rescheduled appointment {appointment_id} as {appointment['id']}")
        await self._notify("rescheduled", appointment)
        return Rescheduled(appointment, previous)

    async def cancel(
        self,
        appointment_id: str,
        request: AppointmentCancel,
        actor: Actor,
    ) -> Cancelled:
        """
        Cancel an open appointment and free its slot.

        Cancelling twice is rejected with ``kind="already_cancelled"`` and
        changes nothing.
        """
        async with transaction(self.db):
            existing = await self._load(appointment_id, actor.business_id)

            if existing["status"] == AppointmentStatus.CANCELLED.value:
                raise ValidationError(
                    "Appointment has already been cancelled", kind="already_cancelled"
                )
            if existing["status"] not in OPEN_STATUSES:
                raise ValidationError(
                    f"A {existing['status']} appointment cannot be cancelled",
                    kind="invalid_transition",
                )

            reason = request.reason
            if not reason:
                reason = (
                    "Cancelled by client"
                    if request.cancelled_by == CancelledBy.client
                    else "Cancelled by business"
                )

            appointment = await self.appointments.update_one(
                existing["id"],
                {
                    "status": AppointmentStatus.CANCELLED.value,
                    "cancellation_reason": reason,
                    "cancellation_date": utcnow(),
                    "cancelled_by": request.cancelled_by.value,
                    "updated_by": actor.user_id,
                },
            )

        logger.info(f"Cancelled appointment {appointment_id} ({reason})")
        await self._notify("cancelled", appointment)
        return Cancelled(appointment_id, appointment)

    async def set_status(
        self,
        appointment_id: str,
        status: AppointmentStatus,
        actor: Actor,
    ) -> StatusChanged:
        """Confirm, complete or mark an appointment as a no-show."""
        target = AppointmentStatus(status).value
        if target == AppointmentStatus.CANCELLED.value:
            raise ValidationError(
                "Use cancel to cancel an appointment", kind="invalid_transition"
            )

        async with transaction(self.db):
            existing = await self._load(appointment_id, actor.business_id)
            previous_status = existing["status"]
            if target not in ALLOWED_TRANSITIONS.get(previous_status, set()):
                raise ValidationError(
                    f"Cannot change status from {previous_status} to {target}",
                    kind="invalid_transition",
                )
            appointment = await self.appointments.update_one(
                existing["id"], {"status": target, "updated_by": actor.user_id}
            )

        logger.info(f"Appointment {appointment_id} status {previous_status} -> {target}")
        await self._notify("status_changed", appointment)
        return StatusChanged(appointment, previous_status)

    async def delete(self, appointment_id: str, actor: Actor) -> Deleted:
        """Soft-delete an appointment; it drops out of listings and conflict checks."""
        async with transaction(self.db):
            existing = await self._load(appointment_id, actor.business_id)
            await self.appointments.update_one(
                existing["id"], {"is_deleted": True, "updated_by": actor.user_id}
            )

        logger.info(f"Deleted appointment {appointment_id}")
        return Deleted(appointment_id)

    # Queries

    async def get_appointment(self, appointment_id: str, actor: Actor) -> Dict[str, Any]:
        return await self._load(appointment_id, actor.business_id)

    async def list_appointments(
        self,
        actor: Actor,
        client_id: Optional[str] = None,
        team_member_id: Optional[str] = None,
        status: Union[AppointmentStatus, Sequence[AppointmentStatus], None] = None,
        on_date: Optional[date] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        sort: str = "date",
    ) -> Page:
        """
        One page of a business's appointments.

        Args:
            actor: Caller; only their business's appointments are listed
            client_id: Only this client's appointments
            team_member_id: Only this team member's appointments
            status: One status or several
            on_date: Only appointments touching this day
            page: 1-based page number
            limit: Page size, at most MAX_PAGE_SIZE
            sort: ``date`` for oldest first, ``-date`` for newest first

        Returns:
            Page of appointment dicts with the unpaginated total

        Raises:
            ValidationError: bad page, limit or sort
            NotFoundError: unknown client
        """
        self._check_page(page, limit)
        if sort not in SORT_OPTIONS:
            raise ValidationError(
                f"sort must be one of: {', '.join(SORT_OPTIONS)}", kind="invalid_sort"
            )
        if client_id:
            await self.resolver.resolve_client(client_id, actor.business_id)

        filters = dict(
            client_id=client_id,
            team_member_id=team_member_id,
            statuses=self._statuses(status),
            on_date=on_date,
        )
        total = await self.appointments.count_for_business(actor.business_id, **filters)
        items = await self.appointments.list_for_business(
            actor.business_id,
            newest_first=sort == "-date",
            limit=limit,
            offset=(page - 1) * limit,
            **filters,
        )
        return Page(items=items, total=total, page=page, limit=limit)

    async def client_service_history(
        self,
        actor: Actor,
        client_id: str,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Page:
        """
        Services a client has booked, most booked first.

        Cancelled and no-show appointments are left out. Each entry counts
        the appointments that included the service, the latest day it was
        booked for, and those appointments marked Past or Upcoming.
        Ties on count go to the service booked most recently.

        Returns:
            Page of ServiceHistoryEntry
        """
        self._check_page(page, limit)
        await self.resolver.resolve_client(client_id, actor.business_id)

        appointments = await self.appointments.list_for_business(
            actor.business_id, client_id=client_id, statuses=HISTORY_STATUSES
        )

        entries: Dict[str, ServiceHistoryEntry] = {}
        for appointment in appointments:
            booked = ServiceHistoryAppointment(
                appointment_id=appointment["id"],
                date=appointment["date"],
                start_time=appointment["start_time"],
                status=appointment["status"],
                time_status=self._time_status(appointment),
            )
            for item in appointment["services"] or []:
                service_id = item.get("serviceId")
                if not service_id:
                    continue
                entry = entries.get(service_id)
                if entry is None:
                    entry = entries[service_id] = ServiceHistoryEntry(
                        service_id=service_id,
                        name=item.get("name") or "",
                        count=0,
                        last_booked=appointment["date"],
                    )
                entry.count += 1
                entry.last_booked = max(entry.last_booked, appointment["date"])
                entry.appointments.append(booked)

        ranked = sorted(
            entries.values(),
            key=lambda entry: (entry.count, entry.last_booked),
            reverse=True,
        )
        for entry in ranked:
            entry.appointments.sort(key=lambda item: (item.date, item.start_time), reverse=True)

        offset = (page - 1) * limit
        return Page(items=ranked[offset:offset + limit], total=len(ranked), page=page, limit=limit)

    async def upcoming_for_client(self, actor: Actor, client_id: str) -> List[Dict[str, Any]]:
        """Open appointments of a client starting later today or on a later day."""
        now = self.clock()
        return await self.appointments.upcoming_for_client(
            actor.business_id,
            client_id,
            today=now.date(),
            current_time=now.strftime("%H:%M"),
            statuses=OPEN_STATUSES,
        )
