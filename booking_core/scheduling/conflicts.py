"""
Conflict Detection

Decides whether a requested window fits in a team member's calendar.

Rules:
- Only PENDING/CONFIRMED, non-deleted appointments occupy the calendar.
- An existing appointment stored on the requested start day conflicts when
  its ``[start, end)`` minutes intersect the requested ones (touching
  windows are fine).
- An existing appointment inside the requested date range but stored on a
  different day is a conflict regardless of time of day.
- The first conflicting appointment is reported.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.db.repository import AppointmentRepository, TeamMemberRepository
from booking_core.models.schemas import OPEN_STATUSES, ConflictResult
from booking_core.scheduling.timeutils import interval, overlaps

logger = logging.getLogger(__name__)


def _day(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def find_conflict(
    candidates: Iterable[Dict[str, Any]],
    date_start: Union[date, datetime],
    start_time: str,
    end_time: str,
    client_id: Optional[str] = None,
) -> ConflictResult:
    """
    Scan candidate appointments for the first one clashing with the request.

    Args:
        candidates: Appointments whose days touch the requested range
        date_start: Requested start day
        start_time: Requested start, HH:MM
        end_time: Requested end, HH:MM
        client_id: Requesting client, used to flag same-client clashes

    Returns:
        ConflictResult for the first clash, or a no-conflict result
    """
    requested_day = _day(date_start)
    requested = interval(start_time, end_time)

    for existing in candidates:
        if _day(existing["date"]) == requested_day:
            existing_window = interval(existing["start_time"], existing["end_time"])
            if not overlaps(requested, existing_window):
                continue
        return ConflictResult(
            conflict=True,
            existing=existing,
            same_client=bool(client_id) and existing.get("client_id") == client_id,
        )

    return ConflictResult(conflict=False)


class ConflictDetector:
    """Checks a team member's calendar inside the caller's transaction."""

    def __init__(self, db: AsyncSession):
        self.appointments = AppointmentRepository(db)
        self.team_members = TeamMemberRepository(db)

    async def has_conflict(
        self,
        team_member_id: str,
        date_start: date,
        date_end: date,
        start_time: str,
        end_time: str,
        exclude_appointment_id: Optional[str] = None,
        client_id: Optional[str] = None,
    ) -> ConflictResult:
        """
        Check a requested window against the team member's bookings.

        Locks the team member first, so the result holds until the
        surrounding transaction commits or rolls back.

        Args:
            team_member_id: Team member whose calendar is checked
            date_start: First requested day
            date_end: Last requested day
            start_time: Requested start, HH:MM
            end_time: Requested end, HH:MM
            exclude_appointment_id: Appointment being moved, ignored by the check
            client_id: Requesting client

        Returns:
            ConflictResult
        """
        await self.team_members.lock(team_member_id)

        candidates = await self.appointments.find_in_date_range(
            team_member_id,
            _day(date_start),
            _day(date_end),
            OPEN_STATUSES,
            exclude_appointment_id,
        )
        result = find_conflict(candidates, date_start, start_time, end_time, client_id)

        if result.conflict:
            logger.warning(
                f"Conflict for team member {team_member_id} on {date_start} "
                f"{start_time}-{end_time} with appointment {result.existing['id']}"
            )
        return result
