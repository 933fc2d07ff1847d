"""
Database Repository Layer

Implements repository pattern for database operations.
Provides abstraction over SQLAlchemy for cleaner business logic.

Every repository is bound to the caller's session, which is the
transaction handle of the booking operation in progress.
"""

import datetime
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import Table, and_, func, insert, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.db.tables import (
    appointments,
    businesses,
    categories,
    clients,
    new_id,
    packages,
    services,
    team_members,
)

logger = logging.getLogger(__name__)


class DatabaseError(Exception):
    """Custom exception for database operations."""
    pass


class BaseRepository:
    """Base repository with the common find / create / update operations."""

    table: Table

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            session: AsyncSession instance for database operations
        """
        self.session = session

    async def execute_query(self, statement: Any) -> Any:
        """
        Execute a statement safely.

        Args:
            statement: SQLAlchemy Core statement

        Returns:
            Query result

        Raises:
            DatabaseError: If query execution fails
        """
        try:
            return await self.session.execute(statement)
        except SQLAlchemyError as e:
            logger.error(f"Query execution failed on {self.table.name}: {e}")
            raise DatabaseError(f"Database operation failed: {str(e)}") from e

    def _conditions(self, filters: Dict[str, Any]) -> List[Any]:
        conditions = []
        for field, value in filters.items():
            column = self.table.c[field]
            if isinstance(value, (list, tuple, set, frozenset)):
                conditions.append(column.in_(list(value)))
            else:
                conditions.append(column == value)
        return conditions

    @staticmethod
    def _rows(result: Any) -> List[Dict[str, Any]]:
        return [dict(row._mapping) for row in result.fetchall()]

    async def find(
        self,
        order_by: Optional[Sequence[Any]] = None,
        **filters: Any,
    ) -> List[Dict[str, Any]]:
        """
        Find rows matching equality filters.

        A list/tuple/set value turns into an ``IN`` condition.
        """
        query = select(self.table).where(*self._conditions(filters))
        if order_by:
            query = query.order_by(*order_by)
        result = await self.execute_query(query)
        return self._rows(result)

    async def find_one(self, **filters: Any) -> Optional[Dict[str, Any]]:
        """Find the first row matching equality filters, or None."""
        query = select(self.table).where(*self._conditions(filters)).limit(1)
        result = await self.execute_query(query)
        row = result.fetchone()
        return dict(row._mapping) if row else None

    async def create(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a row and return it as stored.

        Raises:
            DatabaseError: If the insert fails
        """
        values = dict(doc)
        values.setdefault("id", new_id())
        await self.execute_query(insert(self.table).values(**values))

        created = await self.find_one(id=values["id"])
        if created is None:
            raise DatabaseError(f"Failed to create {self.table.name} row - no data returned")
        return created

    async def update_one(
        self,
        entity_id: str,
        patch: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        """
        Apply a partial update to one row.

        Returns:
            Updated row, or None if no row has that id
        """
        if not patch:
            return await self.find_one(id=entity_id)

        result = await self.execute_query(
            update(self.table).where(self.table.c.id == entity_id).values(**patch)
        )
        if result.rowcount == 0:
            return None
        return await self.find_one(id=entity_id)


class BusinessRepository(BaseRepository):
    """Repository for business (tenant) profiles."""

    table = businesses

    async def get_active(self, business_id: str) -> Optional[Dict[str, Any]]:
        return await self.find_one(id=business_id, status="active", is_deleted=False)


class ClientRepository(BaseRepository):
    """Repository for the clients of a business."""

    table = clients


class TeamMemberRepository(BaseRepository):
    """Repository for bookable staff."""

    table = team_members

    async def lock(self, team_member_id: str) -> Optional[Dict[str, Any]]:
        """
        Take a row lock on a team member until the transaction ends.

        Concurrent bookings for the same team member queue up here, so the
        conflict check and the appointment write are never interleaved.
        SQLite drops FOR UPDATE; engines built by ``get_engine`` open every
        SQLite transaction with BEGIN IMMEDIATE instead, which takes the
        database-wide write lock (see ``enable_sqlite_write_locking``).
        """
        query = (
            select(self.table)
            .where(self.table.c.id == team_member_id)
            .with_for_update()
        )
        result = await self.execute_query(query)
        row = result.fetchone()
        return dict(row._mapping) if row else None


class CategoryRepository(BaseRepository):
    table = categories


class ServiceRepository(BaseRepository):
    """Repository for services offered by a business."""

    table = services

    async def find_active_by_ids(self, service_ids: Iterable[str]) -> List[Dict[str, Any]]:
        return await self.find(
            id=list(service_ids),
            is_active=True,
            is_deleted=False,
        )

    async def find_global_by_ids(
        self,
        service_ids: Iterable[str],
        business_id: str,
        category_ids: Iterable[str],
    ) -> List[Dict[str, Any]]:
        """Services of the business attached to one of its global categories."""
        return await self.find(
            id=list(service_ids),
            business_id=business_id,
            category_id=list(category_ids),
            is_global_category=True,
            is_active=True,
            is_deleted=False,
        )


class PackageRepository(BaseRepository):
    table = packages


class AppointmentRepository(BaseRepository):
    """Repository for appointment-related database operations."""

    table = appointments

    async def find_in_date_range(
        self,
        team_member_id: str,
        date_start: datetime.date,
        date_end: datetime.date,
        statuses: Sequence[str],
        exclude_appointment_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Get a team member's live appointments whose days touch a date range.

        An appointment matches when its start day falls inside the range,
        its end day falls inside the range, or it spans the whole range.

        Args:
            team_member_id: Team member whose calendar is checked
            date_start: First day of the requested range
            date_end: Last day of the requested range
            statuses: Statuses that still occupy the calendar
            exclude_appointment_id: Appointment ignored by the check

        Returns:
            Matching appointments ordered by date and start time
        """
        t = self.table
        query = select(t).where(
            t.c.team_member_id == team_member_id,
            t.c.status.in_(list(statuses)),
            t.c.is_deleted.is_(False),
            or_(
                and_(t.c.date >= date_start, t.c.date <= date_end),
                and_(t.c.end_date >= date_start, t.c.end_date <= date_end),
                and_(t.c.date <= date_start, t.c.end_date >= date_end),
            ),
        )
        if exclude_appointment_id:
            query = query.where(t.c.id != exclude_appointment_id)
        query = query.order_by(t.c.date, t.c.start_time)

        result = await self.execute_query(query)
        return self._rows(result)

    async def get_for_business(
        self,
        appointment_id: str,
        business_id: str,
    ) -> Optional[Dict[str, Any]]:
        return await self.find_one(
            id=appointment_id,
            business_id=business_id,
            is_deleted=False,
        )

    async def reference_exists(self, reference: str) -> bool:
        return await self.find_one(reference=reference) is not None

    def _listing_conditions(
        self,
        business_id: str,
        client_id: Optional[str] = None,
        team_member_id: Optional[str] = None,
        statuses: Optional[Sequence[str]] = None,
        on_date: Optional[datetime.date] = None,
    ) -> List[Any]:
        t = self.table
        conditions = [t.c.business_id == business_id, t.c.is_deleted.is_(False)]

        if client_id:
            conditions.append(t.c.client_id == client_id)
        if team_member_id:
            conditions.append(t.c.team_member_id == team_member_id)
        if statuses:
            conditions.append(t.c.status.in_(list(statuses)))
        if on_date:
            conditions.extend([t.c.date <= on_date, t.c.end_date >= on_date])
        return conditions

    async def list_for_business(
        self,
        business_id: str,
        client_id: Optional[str] = None,
        team_member_id: Optional[str] = None,
        statuses: Optional[Sequence[str]] = None,
        on_date: Optional[datetime.date] = None,
        newest_first: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """
        List a business's appointments with optional filters.

        Args:
            business_id: Owning business
            client_id: Only this client's appointments
            team_member_id: Only this team member's appointments
            statuses: Only appointments in one of these statuses
            on_date: Only appointments touching this day
            newest_first: Order by date and start time descending
            limit: Page size, None for every row
            offset: Rows skipped before the page

        Returns:
            Appointments ordered by date and start time
        """
        t = self.table
        query = select(t).where(
            *self._listing_conditions(business_id, client_id, team_member_id, statuses, on_date)
        )

        if newest_first:
            query = query.order_by(t.c.date.desc(), t.c.start_time.desc())
        else:
            query = query.order_by(t.c.date, t.c.start_time)
        if limit is not None:
            query = query.limit(limit).offset(offset)

        result = await self.execute_query(query)
        return self._rows(result)

    async def count_for_business(
        self,
        business_id: str,
        client_id: Optional[str] = None,
        team_member_id: Optional[str] = None,
        statuses: Optional[Sequence[str]] = None,
        on_date: Optional[datetime.date] = None,
    ) -> int:
        """Number of appointments ``list_for_business`` would return unpaginated."""
        query = (
            select(func.count())
            .select_from(self.table)
            .where(
                *self._listing_conditions(
                    business_id, client_id, team_member_id, statuses, on_date
                )
            )
        )
        result = await self.execute_query(query)
        return result.scalar_one()

    async def upcoming_for_client(
        self,
        business_id: str,
        client_id: str,
        today: datetime.date,
        current_time: str,
        statuses: Sequence[str],
    ) -> List[Dict[str, Any]]:
        """Open appointments later today or on a future day."""
        t = self.table
        query = (
            select(t)
            .where(
                t.c.business_id == business_id,
                t.c.client_id == client_id,
                t.c.is_deleted.is_(False),
                t.c.status.in_(list(statuses)),
                or_(
                    and_(t.c.date == today, t.c.start_time >= current_time),
                    t.c.date > today,
                ),
            )
            .order_by(t.c.date, t.c.start_time)
        )
        result = await self.execute_query(query)
        return self._rows(result)
