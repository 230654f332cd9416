"""
Organizational units: Company (the tenant), School, Branch.

Each unit has a core table and a 1:1 `*_additional` extension table keyed by
the owner id, so at most one extension row exists per unit.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, id_column


class Company(TimestampMixin, Base):
    """
    Top-level tenant. Every other row carries `company_id`.
    """

    __tablename__ = "companies"

    id: Mapped[str] = id_column()
    name: Mapped[str] = mapped_column(Text, nullable=False)
    code: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="active")
    region: Mapped[Optional[str]] = mapped_column(Text)
    country: Mapped[Optional[str]] = mapped_column(Text)
    address: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    logo: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        CheckConstraint("status IN ('active', 'inactive')", name="chk_company_status"),
    )


class CompanyAdditional(Base):
    """Extension attributes captured by the company wizard."""

    __tablename__ = "companies_additional"

    company_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("companies.id", ondelete="CASCADE"), primary_key=True
    )
    organization_type: Mapped[Optional[str]] = mapped_column(Text)
    fiscal_year_start: Mapped[Optional[int]] = mapped_column(Integer)  # month 1..12
    main_phone: Mapped[Optional[str]] = mapped_column(Text)
    main_email: Mapped[Optional[str]] = mapped_column(Text)
    website: Mapped[Optional[str]] = mapped_column(Text)
    head_office_address: Mapped[Optional[str]] = mapped_column(Text)
    head_office_city: Mapped[Optional[str]] = mapped_column(Text)
    head_office_country: Mapped[Optional[str]] = mapped_column(Text)
    registration_number: Mapped[Optional[str]] = mapped_column(Text)
    tax_id: Mapped[Optional[str]] = mapped_column(Text)
    logo_url: Mapped[Optional[str]] = mapped_column(Text)
    ceo_name: Mapped[Optional[str]] = mapped_column(Text)
    ceo_email: Mapped[Optional[str]] = mapped_column(Text)
    ceo_phone: Mapped[Optional[str]] = mapped_column(Text)


class School(TimestampMixin, Base):
    __tablename__ = "schools"

    id: Mapped[str] = id_column()
    company_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("companies.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    code: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="active")
    address: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    logo: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_school_code"),
        CheckConstraint("status IN ('active', 'inactive')", name="chk_school_status"),
    )


class SchoolAdditional(Base):
    """Extension attributes captured by the school wizard."""

    __tablename__ = "schools_additional"

    school_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("schools.id", ondelete="CASCADE"), primary_key=True
    )
    school_type: Mapped[Optional[str]] = mapped_column(Text)
    curriculum_type: Mapped[Optional[list]] = mapped_column(JSON)
    total_capacity: Mapped[Optional[int]] = mapped_column(Integer)
    student_count: Mapped[Optional[int]] = mapped_column(Integer)
    teachers_count: Mapped[Optional[int]] = mapped_column(Integer)
    active_teachers_count: Mapped[Optional[int]] = mapped_column(Integer)
    principal_name: Mapped[Optional[str]] = mapped_column(Text)
    principal_email: Mapped[Optional[str]] = mapped_column(Text)
    principal_phone: Mapped[Optional[str]] = mapped_column(Text)
    campus_address: Mapped[Optional[str]] = mapped_column(Text)
    campus_city: Mapped[Optional[str]] = mapped_column(Text)
    campus_state: Mapped[Optional[str]] = mapped_column(Text)
    campus_postal_code: Mapped[Optional[str]] = mapped_column(Text)
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)
    established_date: Mapped[Optional[str]] = mapped_column(Text)  # "2001-03-15"
    academic_year_start: Mapped[Optional[int]] = mapped_column(Integer)  # month 1..12
    academic_year_end: Mapped[Optional[int]] = mapped_column(Integer)  # month 1..12
    has_library: Mapped[Optional[bool]] = mapped_column(Boolean)
    has_laboratory: Mapped[Optional[bool]] = mapped_column(Boolean)
    has_sports_facilities: Mapped[Optional[bool]] = mapped_column(Boolean)
    has_cafeteria: Mapped[Optional[bool]] = mapped_column(Boolean)


class Branch(TimestampMixin, Base):
    __tablename__ = "branches"

    id: Mapped[str] = id_column()
    company_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("companies.id"), nullable=False, index=True
    )
    school_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("schools.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    code: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="active")
    address: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_branch_code"),
        CheckConstraint("status IN ('active', 'inactive')", name="chk_branch_status"),
    )


class BranchAdditional(Base):
    """Extension attributes captured by the branch wizard."""

    __tablename__ = "branches_additional"

    branch_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("branches.id", ondelete="CASCADE"), primary_key=True
    )
    student_capacity: Mapped[Optional[int]] = mapped_column(Integer)
    current_students: Mapped[Optional[int]] = mapped_column(Integer)
    student_count: Mapped[Optional[int]] = mapped_column(Integer)
    teachers_count: Mapped[Optional[int]] = mapped_column(Integer)
    active_teachers_count: Mapped[Optional[int]] = mapped_column(Integer)
    branch_head_name: Mapped[Optional[str]] = mapped_column(Text)
    branch_head_email: Mapped[Optional[str]] = mapped_column(Text)
    branch_head_phone: Mapped[Optional[str]] = mapped_column(Text)
    building_name: Mapped[Optional[str]] = mapped_column(Text)
    floor_details: Mapped[Optional[str]] = mapped_column(Text)
    opening_time: Mapped[Optional[str]] = mapped_column(Text)  # "08:00"
    closing_time: Mapped[Optional[str]] = mapped_column(Text)  # "16:30"
    working_days: Mapped[Optional[list]] = mapped_column(JSON)
