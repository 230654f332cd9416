"""
Academic configuration: GradeLevel, AcademicYear, ClassSection and the
grade level / academic year to school junctions.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, id_column


class GradeLevel(TimestampMixin, Base):
    __tablename__ = "grade_levels"

    id: Mapped[str] = id_column()
    company_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("companies.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    code: Mapped[str] = mapped_column(Text, nullable=False)
    grade_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    education_level: Mapped[str] = mapped_column(Text, nullable=False)
    max_students_per_section: Mapped[Optional[int]] = mapped_column(Integer)
    total_sections: Mapped[Optional[int]] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="active")

    __table_args__ = (
        CheckConstraint("grade_order >= 0", name="chk_grade_order_positive"),
        CheckConstraint("status IN ('active', 'inactive')", name="chk_grade_level_status"),
    )


class GradeLevelSchool(Base):
    """Junction: grade level offered at school."""

    __tablename__ = "grade_level_schools"

    grade_level_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("grade_levels.id", ondelete="CASCADE"), primary_key=True
    )
    school_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("schools.id", ondelete="CASCADE"), primary_key=True
    )

    __table_args__ = (Index("ix_grade_level_schools_school", "school_id"),)


class AcademicYear(TimestampMixin, Base):
    __tablename__ = "academic_years"

    id: Mapped[str] = id_column()
    company_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("companies.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_terms: Mapped[Optional[int]] = mapped_column(Integer)
    current_term: Mapped[Optional[int]] = mapped_column(Integer)
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="active")

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="chk_academic_year_dates"),
        CheckConstraint(
            "status IN ('active', 'inactive', 'completed')", name="chk_academic_year_status"
        ),
    )


class AcademicYearSchool(Base):
    """Junction: academic year applies to school."""

    __tablename__ = "academic_year_schools"

    academic_year_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("academic_years.id", ondelete="CASCADE"), primary_key=True
    )
    school_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("schools.id", ondelete="CASCADE"), primary_key=True
    )

    __table_args__ = (Index("ix_academic_year_schools_school", "school_id"),)


class ClassSection(TimestampMixin, Base):
    """
    A class (section) of a grade level in an academic year.

    `current_enrollment <= max_capacity` is only enforced at display time
    (see `occupancy_percent`); over-enrolled sections are stored as-is.
    """

    __tablename__ = "class_sections"

    id: Mapped[str] = id_column()
    company_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("companies.id"), nullable=False, index=True
    )
    grade_level_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("grade_levels.id"), nullable=False, index=True
    )
    academic_year_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("academic_years.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    code: Mapped[str] = mapped_column(Text, nullable=False)
    max_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    current_enrollment: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    class_teacher_name: Mapped[Optional[str]] = mapped_column(Text)
    classroom_number: Mapped[Optional[str]] = mapped_column(Text)
    building: Mapped[Optional[str]] = mapped_column(Text)
    floor: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="active")

    __table_args__ = (
        CheckConstraint("max_capacity >= 1", name="chk_class_section_capacity"),
        CheckConstraint("current_enrollment >= 0", name="chk_class_section_enrollment"),
        CheckConstraint(
            "status IN ('active', 'inactive', 'archived')", name="chk_class_section_status"
        ),
    )
