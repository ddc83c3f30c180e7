# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Branch-scoped domain records.

Directly scoped records carry school_id and a nullable branch_id.
Fee and StaffAttendance carry only branch_id; their tenant is reached
through Fee.student and StaffAttendance.user.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import (
    Base,
    BranchScopedMixin,
    TimestampMixin,
    new_uuid,
)
from src.infrastructure.database.models.tenant.school import User


class Student(Base, BranchScopedMixin, TimestampMixin):
    __tablename__ = "students"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    fees: Mapped[list["Fee"]] = relationship(back_populates="student")


class Classroom(Base, BranchScopedMixin, TimestampMixin):
    __tablename__ = "classrooms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)


class Admission(Base, BranchScopedMixin, TimestampMixin):
    __tablename__ = "admissions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    student_name: Mapped[str] = mapped_column(String(200), nullable=False)
    parent_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    stage: Mapped[str] = mapped_column(String(30), nullable=False, default="INQUIRY")


class LibraryBook(Base, BranchScopedMixin, TimestampMixin):
    __tablename__ = "library_books"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    isbn: Mapped[str | None] = mapped_column(String(20), nullable=True)


class TransportVehicle(Base, BranchScopedMixin, TimestampMixin):
    __tablename__ = "transport_vehicles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    registration_number: Mapped[str] = mapped_column(String(30), nullable=False)


class TransportRoute(Base, BranchScopedMixin, TimestampMixin):
    __tablename__ = "transport_routes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)


class Fee(Base, TimestampMixin):
    """A fee line for a student; tenant is fee.student.school_id."""

    __tablename__ = "fees"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    student_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    branch_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("branches.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")

    student: Mapped[Student] = relationship(back_populates="fees")


class StaffAttendance(Base, TimestampMixin):
    """A staff attendance mark; tenant is attendance.user.school_id."""

    __tablename__ = "staff_attendance"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    branch_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("branches.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    attendance_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PRESENT")

    user: Mapped[User] = relationship()
