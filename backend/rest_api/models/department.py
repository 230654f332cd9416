"""
Department model with its school and branch junctions.

Departments form a forest through `parent_department_id`.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, id_column


class Department(TimestampMixin, Base):
    __tablename__ = "departments"

    id: Mapped[str] = id_column()
    company_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("companies.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    code: Mapped[Optional[str]] = mapped_column(Text)
    description: Mapped[Optional[str]] = mapped_column(Text)
    department_type: Mapped[Optional[str]] = mapped_column(Text)
    parent_department_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("departments.id", ondelete="SET NULL"), index=True
    )
    head_of_department: Mapped[Optional[str]] = mapped_column(Text)
    head_email: Mapped[Optional[str]] = mapped_column(Text)
    employee_count: Mapped[Optional[int]] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="active")

    __table_args__ = (
        CheckConstraint("status IN ('active', 'inactive')", name="chk_department_status"),
        CheckConstraint(
            "parent_department_id IS NULL OR parent_department_id <> id",
            name="chk_department_not_own_parent",
        ),
    )


class DepartmentSchool(Base):
    """Junction: department serves school."""

    __tablename__ = "department_schools"

    department_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("departments.id", ondelete="CASCADE"), primary_key=True
    )
    school_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("schools.id", ondelete="CASCADE"), primary_key=True
    )

    __table_args__ = (Index("ix_department_schools_school", "school_id"),)


class DepartmentBranch(Base):
    """Junction: department serves branch."""

    __tablename__ = "department_branches"

    department_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("departments.id", ondelete="CASCADE"), primary_key=True
    )
    branch_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("branches.id", ondelete="CASCADE"), primary_key=True
    )

    __table_args__ = (Index("ix_department_branches_branch", "branch_id"),)
