"""
Database Tables

SQLAlchemy Core table definitions for the booking schema.
Repositories build statements against these tables and return plain dicts.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

metadata = MetaData()


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _timestamps():
    return (
        Column("created_at", DateTime(timezone=True), default=utcnow, nullable=False),
        Column(
            "updated_at",
            DateTime(timezone=True),
            default=utcnow,
            onupdate=utcnow,
            nullable=False,
        ),
    )


businesses = Table(
    "businesses",
    metadata,
    Column("id", String(36), primary_key=True, default=new_id),
    Column("business_name", String(255), nullable=False),
    Column("email", String(255), nullable=False, default=""),
    Column("owner_id", String(36), nullable=True),
    # [{"categoryId": ..., "name": ..., "isActive": bool}, ...]
    Column("selected_categories", JSON, nullable=False, default=list),
    Column("status", String(20), nullable=False, default="active"),
    Column("is_deleted", Boolean, nullable=False, default=False),
    *_timestamps(),
)

clients = Table(
    "clients",
    metadata,
    Column("id", String(36), primary_key=True, default=new_id),
    Column("business_id", String(36), ForeignKey("businesses.id"), nullable=False),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, default=""),
    Column("phone_number", String(50), nullable=False, default=""),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("is_deleted", Boolean, nullable=False, default=False),
    *_timestamps(),
)

team_members = Table(
    "team_members",
    metadata,
    Column("id", String(36), primary_key=True, default=new_id),
    Column("business_id", String(36), ForeignKey("businesses.id"), nullable=False),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, default=""),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("is_deleted", Boolean, nullable=False, default=False),
    *_timestamps(),
)

categories = Table(
    "categories",
    metadata,
    Column("id", String(36), primary_key=True, default=new_id),
    Column("business_id", String(36), ForeignKey("businesses.id"), nullable=False),
    Column("name", String(255), nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("is_deleted", Boolean, nullable=False, default=False),
    *_timestamps(),
)

services = Table(
    "services",
    metadata,
    Column("id", String(36), primary_key=True, default=new_id),
    Column("business_id", String(36), ForeignKey("businesses.id"), nullable=False),
    # Global services point at a category listed in the business's
    # selected_categories rather than a row in ``categories``.
    Column("category_id", String(36), nullable=False),
    Column("category_name", String(255), nullable=False, default=""),
    Column("name", String(255), nullable=False),
    Column("duration", Integer, nullable=False, default=30),
    Column("price", Float, nullable=False, default=0.0),
    Column("is_global_category", Boolean, nullable=False, default=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("is_deleted", Boolean, nullable=False, default=False),
    *_timestamps(),
)

packages = Table(
    "packages",
    metadata,
    Column("id", String(36), primary_key=True, default=new_id),
    Column("business_id", String(36), ForeignKey("businesses.id"), nullable=False),
    Column("category_id", String(36), nullable=True),
    Column("name", String(255), nullable=False),
    Column("duration", Integer, nullable=False),
    Column("price", Float, nullable=False),
    Column("final_price", Float, nullable=False),
    # [{"serviceId", "name", "duration", "price"}, ...]
    Column("services", JSON, nullable=False, default=list),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("is_deleted", Boolean, nullable=False, default=False),
    *_timestamps(),
)

appointments = Table(
    "appointments",
    metadata,
    Column("id", String(36), primary_key=True, default=new_id),
    Column("reference", String(10), nullable=False, unique=True),
    Column("business_id", String(36), ForeignKey("businesses.id"), nullable=False),
    Column("client_id", String(36), ForeignKey("clients.id"), nullable=False),
    Column("client_name", String(255), nullable=False),
    Column("client_email", String(255), nullable=False, default=""),
    Column("client_phone", String(50), nullable=False, default=""),
    Column("team_member_id", String(36), ForeignKey("team_members.id"), nullable=False),
    Column("team_member_name", String(255), nullable=False),
    Column("category_id", String(36), nullable=True),
    Column("category_name", String(255), nullable=True),
    Column("date", Date, nullable=False),
    Column("end_date", Date, nullable=False),
    Column("start_time", String(5), nullable=False),
    Column("end_time", String(5), nullable=False),
    Column("duration", Integer, nullable=False),
    Column("services", JSON, nullable=False, default=list),
    Column("package", JSON, nullable=True),
    Column("total_price", Float, nullable=False),
    Column("discount", Float, nullable=False, default=0.0),
    Column("final_price", Float, nullable=False),
    Column("currency", String(3), nullable=False),
    Column("payment_status", String(20), nullable=False, default="PENDING"),
    Column("status", String(20), nullable=False, default="PENDING"),
    Column("notes", Text, nullable=False, default=""),
    Column("cancellation_reason", Text, nullable=False, default=""),
    Column("cancellation_date", DateTime(timezone=True), nullable=True),
    Column("cancelled_by", String(20), nullable=True),
    Column("parent_appointment_id", String(36), nullable=True),
    Column("is_rescheduled", Boolean, nullable=False, default=False),
    Column("created_via", String(20), nullable=False, default="business"),
    Column("created_by", String(36), nullable=False),
    Column("updated_by", String(36), nullable=False),
    Column("is_deleted", Boolean, nullable=False, default=False),
    *_timestamps(),
    Index("ix_appointments_team_member_dates", "team_member_id", "date", "end_date"),
    Index("ix_appointments_client", "client_id"),
)
