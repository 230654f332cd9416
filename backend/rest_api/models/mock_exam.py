"""
Mock exam model, its school/branch/grade level junctions and the status
history.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, id_column


class MockExam(TimestampMixin, Base):
    __tablename__ = "mock_exams"

    id: Mapped[str] = id_column()
    company_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("companies.id"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    subject: Mapped[Optional[str]] = mapped_column(Text)
    paper_type: Mapped[Optional[str]] = mapped_column(Text)
    paper_number: Mapped[Optional[int]] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="planned")
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    scheduled_time: Mapped[Optional[time]] = mapped_column(Time)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=120)
    delivery_mode: Mapped[str] = mapped_column(Text, nullable=False, default="In-person")
    exam_window: Mapped[str] = mapped_column(Text, nullable=False, default="Term 1")
    total_marks: Mapped[Optional[int]] = mapped_column(Integer)
    readiness_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    registered_students_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    flagged_students_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ai_proctoring_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    release_analytics: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    allow_retakes: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'planned', 'scheduled', 'materials_ready', 'in_progress', "
            "'grading', 'moderation', 'analytics_released', 'completed', 'cancelled')",
            name="chk_mock_exam_status",
        ),
        CheckConstraint("duration_minutes > 0", name="chk_mock_exam_duration"),
        CheckConstraint("total_marks IS NULL OR total_marks > 0", name="chk_mock_exam_marks"),
        CheckConstraint(
            "readiness_score BETWEEN 0 AND 100", name="chk_mock_exam_readiness"
        ),
    )

    def __repr__(self) -> str:
        return f"<MockExam(id={self.id}, title={self.title!r}, status={self.status})>"


class MockExamSchool(Base):
    """Junction: mock exam sat at school."""

    __tablename__ = "mock_exam_schools"

    mock_exam_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("mock_exams.id", ondelete="CASCADE"), primary_key=True
    )
    school_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("schools.id", ondelete="CASCADE"), primary_key=True
    )

    __table_args__ = (Index("ix_mock_exam_schools_school", "school_id"),)


class MockExamBranch(Base):
    """Junction: mock exam sat at branch."""

    __tablename__ = "mock_exam_branches"

    mock_exam_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("mock_exams.id", ondelete="CASCADE"), primary_key=True
    )
    branch_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("branches.id", ondelete="CASCADE"), primary_key=True
    )

    __table_args__ = (Index("ix_mock_exam_branches_branch", "branch_id"),)


class MockExamGradeLevel(Base):
    """Junction: mock exam taken by grade level."""

    __tablename__ = "mock_exam_grade_levels"

    mock_exam_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("mock_exams.id", ondelete="CASCADE"), primary_key=True
    )
    grade_level_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("grade_levels.id", ondelete="CASCADE"), primary_key=True
    )

    __table_args__ = (Index("ix_mock_exam_grade_levels_grade", "grade_level_id"),)


class MockExamStatusHistory(Base):
    """One row per status transition. Rows are never updated."""

    __tablename__ = "mock_exam_status_history"

    id: Mapped[str] = id_column()
    mock_exam_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("mock_exams.id", ondelete="CASCADE"), nullable=False, index=True
    )
    company_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("companies.id"), nullable=False, index=True
    )
    old_status: Mapped[str] = mapped_column(Text, nullable=False)
    new_status: Mapped[str] = mapped_column(Text, nullable=False)
    change_reason: Mapped[Optional[str]] = mapped_column(Text)
    changed_by: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
