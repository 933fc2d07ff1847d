import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import date, datetime
from types import SimpleNamespace

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from booking_core.config import Settings
from booking_core.db.repository import (
    AppointmentRepository,
    BusinessRepository,
    CategoryRepository,
    ClientRepository,
    PackageRepository,
    ServiceRepository,
    TeamMemberRepository,
)
from booking_core.db.session import enable_sqlite_write_locking
from booking_core.db.tables import metadata
from booking_core.models.schemas import Actor
from booking_core.scheduling.assembler import assemble
from booking_core.services.booking import BookingService

NOW = datetime(2024, 4, 1, 9, 0)
DAY = date(2024, 5, 1)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'booking.db'}",
        connect_args={"timeout": 30},
    )
    enable_sqlite_write_locking(engine)
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def tenant(db):
    businesses = BusinessRepository(db)
    clients = ClientRepository(db)
    team_members = TeamMemberRepository(db)
    services = ServiceRepository(db)

    business = await businesses.create(
        {
            "business_name": "Glow Salon",
            "email": "owner@glow.test",
            "owner_id": "owner-1",
            "selected_categories": [
                {"categoryId": "global-hair", "name": "Hair", "isActive": True},
                {"categoryId": "global-nails", "name": "Nails", "isActive": False},
            ],
        }
    )
    other_business = await businesses.create({"business_name": "Other Spa"})
    business_id = business["id"]

    client = await clients.create(
        {
            "business_id": business_id,
            "name": "Asha Rao",
            "email": "asha@example.com",
            "phone_number": "+919800000001",
        }
    )
    other_client = await clients.create(
        {"business_id": business_id, "name": "Ravi Kumar", "email": "ravi@example.com"}
    )
    foreign_client = await clients.create(
        {"business_id": other_business["id"], "name": "Lena Fox"}
    )

    member = await team_members.create({"business_id": business_id, "name": "Meera"})
    second_member = await team_members.create({"business_id": business_id, "name": "Kabir"})
    inactive_member = await team_members.create(
        {"business_id": business_id, "name": "Sam", "is_active": False}
    )
    foreign_member = await team_members.create(
        {"business_id": other_business["id"], "name": "Nora"}
    )

    category = await CategoryRepository(db).create(
        {"business_id": business_id, "name": "Hair Care"}
    )

    haircut = await services.create(
        {
            "business_id": business_id,
            "category_id": category["id"],
            "category_name": "Hair Care",
            "name": "Haircut",
            "duration": 30,
            "price": 500.0,
        }
    )
    beard = await services.create(
        {
            "business_id": business_id,
            "category_id": category["id"],
            "category_name": "Hair Care",
            "name": "Beard Trim",
            "duration": 15,
            "price": 200.0,
        }
    )
    inactive_service = await services.create(
        {
            "business_id": business_id,
            "category_id": category["id"],
            "name": "Old Perm",
            "duration": 90,
            "price": 1500.0,
            "is_active": False,
        }
    )
    global_service = await services.create(
        {
            "business_id": business_id,
            "category_id": "global-hair",
            "category_name": "Hair",
            "name": "Keratin Treatment",
            "duration": 45,
            "price": 900.0,
            "is_global_category": True,
        }
    )
    hidden_global_service = await services.create(
        {
            "business_id": business_id,
            "category_id": "global-nails",
            "category_name": "Nails",
            "name": "Gel Polish",
            "duration": 20,
            "price": 300.0,
            "is_global_category": True,
        }
    )

    package = await PackageRepository(db).create(
        {
            "business_id": business_id,
            "category_id": category["id"],
            "name": "Bridal Glow",
            "duration": 120,
            "price": 5000.0,
            "final_price": 4500.0,
            "services": [
                {"serviceId": haircut["id"], "name": "Haircut", "duration": 30, "price": 500.0}
            ],
        }
    )

    await db.commit()

    return SimpleNamespace(
        business=business,
        other_business=other_business,
        client=client,
        other_client=other_client,
        foreign_client=foreign_client,
        member=member,
        second_member=second_member,
        inactive_member=inactive_member,
        foreign_member=foreign_member,
        category=category,
        haircut=haircut,
        beard=beard,
        inactive_service=inactive_service,
        global_service=global_service,
        hidden_global_service=hidden_global_service,
        package=package,
    )


@pytest.fixture
def actor(tenant):
    return Actor(user_id="user-1", business_id=tenant.business["id"])


@pytest.fixture
def config():
    return Settings(database_url="sqlite+aiosqlite:///:memory:")


@pytest.fixture
def booking(db, config):
    return BookingService(db, config=config, clock=lambda: NOW)


@pytest.fixture
def make_appointment(db, tenant):
    """Insert an appointment directly, bypassing the booking checks."""

    async def _make(
        start_time,
        end_time,
        on=DAY,
        end_date=None,
        status="CONFIRMED",
        client=None,
        member=None,
    ):
        record = assemble(
            client or tenant.client,
            member or tenant.member,
            tenant.category,
            [tenant.haircut],
            None,
            business_id=tenant.business["id"],
            date=on,
            end_date=end_date or on,
            start_time=start_time,
            end_time=end_time,
            total_duration=30,
            total_price=500.0,
            discount=0,
            actor_user_id="user-1",
            currency="INR",
            status=status,
        )
        appointment = await AppointmentRepository(db).create(record)
        await db.commit()
        return appointment

    return _make
