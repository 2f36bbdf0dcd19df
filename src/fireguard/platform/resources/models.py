"""
Metered resource tables.

Fire doors, buildings, users and inspections belong to the inspection
application; the billing engine only counts them and guards their creation
against tenant quotas.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from fireguard.platform.db import Base, StrictTenantMixin, TimestampMixin, generate_id, utcnow


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    INSPECTOR = "INSPECTOR"
    VIEWER = "VIEWER"


class Building(Base, StrictTenantMixin, TimestampMixin):
    """SQLAlchemy table for buildings."""

    __tablename__ = "buildings"

    id: Mapped[str] = mapped_column(String(255), primary_key=True, default=generate_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)

    __table_args__ = (Index("ix_buildings_tenant_created", "tenant_id", "created_at"),)


class FireDoor(Base, StrictTenantMixin, TimestampMixin):
    """SQLAlchemy table for fire doors."""

    __tablename__ = "fire_doors"

    id: Mapped[str] = mapped_column(String(255), primary_key=True, default=generate_id)
    building_id: Mapped[str | None] = mapped_column(
        String(255), ForeignKey("buildings.id", ondelete="SET NULL"), nullable=True
    )
    door_number: Mapped[str] = mapped_column(String(100), nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __table_args__ = (Index("ix_fire_doors_tenant_created", "tenant_id", "created_at"),)


class User(Base, StrictTenantMixin, TimestampMixin):
    """SQLAlchemy table for tenant users (inspectors are users with the INSPECTOR role)."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(255), primary_key=True, default=generate_id)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        SAEnum(UserRole, native_enum=False, length=20), nullable=False, default=UserRole.VIEWER
    )

    __table_args__ = (
        Index("ix_users_tenant_email", "tenant_id", "email", unique=True),
        Index("ix_users_tenant_role", "tenant_id", "role"),
    )


class Inspection(Base, StrictTenantMixin, TimestampMixin):
    """SQLAlchemy table for door inspections."""

    __tablename__ = "inspections"

    id: Mapped[str] = mapped_column(String(255), primary_key=True, default=generate_id)
    door_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("fire_doors.id", ondelete="CASCADE"), nullable=False
    )
    inspector_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    inspection_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (Index("ix_inspections_tenant_date", "tenant_id", "inspection_date"),)


__all__ = ["Building", "FireDoor", "Inspection", "User", "UserRole"]
