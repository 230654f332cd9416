"""
Mock Exam Service - scheduling and status lifecycle of mock exams.

A mock exam is sat at one or more schools (optionally narrowed to branches
of those schools) by one or more grade levels. Its status moves along
MockExamStatus.TRANSITIONS only through `transition()`, which writes a
history row in the same transaction.

Usage:
    from rest_api.services.domain import MockExamService

    service = MockExamService(db)
    exam = service.create(
        {"title": "Mathematics Paper 1 Mock", "scheduled_date": date(2026, 11, 3),
         "school_ids": ["s1"], "grade_level_ids": ["g12"]},
        company_id, ctx.scope, ctx.user_email,
    )
    service.transition(exam.id, "scheduled", company_id, ctx.scope, ctx.user_email)
"""

from __future__ import annotations

from datetime import date
from typing import Any, Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from rest_api.models import (
    Branch,
    GradeLevel,
    MockExam,
    MockExamBranch,
    MockExamGradeLevel,
    MockExamSchool,
    MockExamStatusHistory,
    School,
)
from rest_api.routers.admin_schemas import (
    MockExamOutput,
    MockExamStatisticsOutput,
    MockExamStatusHistoryOutput,
)
from rest_api.services.base_service import BaseCRUDService
from rest_api.services.crud import EntityOutputBuilder, JunctionReconciler, NameLookup
from rest_api.services.crud.junction import unique_in_order
from rest_api.services.crud.repository import InSpec, JunctionSpec, RangeSpec, Specification
from rest_api.services.domain.references import (
    require_branch_refs,
    require_choice,
    require_school_refs,
)
from rest_api.services.permissions.context import Scope, UNRESTRICTED
from shared.config.constants import (
    CacheNamespace,
    DeliveryMode,
    ExamWindow,
    Limits,
    MockExamStatus,
)
from shared.config.logging import get_logger, mask_email
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import DatabaseError, InvalidStateError, ValidationError

logger = get_logger(__name__)

MOCK_EXAM_SCHOOLS = JunctionReconciler(MockExamSchool, "mock_exam_id", "school_id")
MOCK_EXAM_BRANCHES = JunctionReconciler(MockExamBranch, "mock_exam_id", "branch_id")
MOCK_EXAM_GRADE_LEVELS = JunctionReconciler(MockExamGradeLevel, "mock_exam_id", "grade_level_id")

# Exams in these statuses can no longer be edited
_CLOSED_STATUSES = (MockExamStatus.COMPLETED, MockExamStatus.CANCELLED)


def allowed_transitions(current: str) -> list[str]:
    return list(MockExamStatus.TRANSITIONS.get(current, ()))


class MockExamService(BaseCRUDService[MockExam, MockExamOutput]):
    """
    Service for mock exam scheduling.

    Business rules:
    - At least one school and one grade level; branches must belong to the
      selected schools
    - A new exam cannot be scheduled in the past and starts as draft or planned
    - Status changes only through transition(); cancelling needs a reason
    - Completed and cancelled exams are read-only
    """

    cache_namespace = CacheNamespace.MOCK_EXAMS
    junctions = {
        "school_ids": MOCK_EXAM_SCHOOLS,
        "branch_ids": MOCK_EXAM_BRANCHES,
        "grade_level_ids": MOCK_EXAM_GRADE_LEVELS,
    }
    search_columns = ("title", "subject")

    def __init__(self, db: Session):
        super().__init__(
            db=db,
            model=MockExam,
            output_schema=MockExamOutput,
            entity_name="Mock exam",
        )
        self._builder = EntityOutputBuilder(MockExamOutput)

    def to_outputs(self, entities: Sequence[MockExam]) -> list[MockExamOutput]:
        ids = [e.id for e in entities]
        school_links = MOCK_EXAM_SCHOOLS.current_for(self._db, ids)
        branch_links = MOCK_EXAM_BRANCHES.current_for(self._db, ids)
        grade_links = MOCK_EXAM_GRADE_LEVELS.current_for(self._db, ids)

        schools = NameLookup(self._db, School)
        schools.load(i for linked in school_links.values() for i in linked)
        branches = NameLookup(self._db, Branch)
        branches.load(i for linked in branch_links.values() for i in linked)
        grades = NameLookup(self._db, GradeLevel)
        grades.load(i for linked in grade_links.values() for i in linked)

        return [
            self._builder.build(
                entity,
                allowed_transitions=allowed_transitions(entity.status),
                school_ids=school_links[entity.id],
                school_names=schools.names_for(school_links[entity.id]),
                branch_ids=branch_links[entity.id],
                branch_names=branches.names_for(branch_links[entity.id]),
                grade_level_ids=grade_links[entity.id],
                grade_level_names=grades.names_for(grade_links[entity.id]),
            )
            for entity in entities
        ]

    # =========================================================================
    # Status lifecycle
    # =========================================================================

    def transition(
        self,
        exam_id: str,
        target: str,
        company_id: str,
        scope: Scope = UNRESTRICTED,
        user_email: str | None = None,
        reason: str | None = None,
    ) -> MockExamOutput:
        """
        Move an exam to `target` and record the change.

        Raises:
            ValidationError: unknown status, or cancelling without a reason.
            InvalidStateError: `target` is not reachable from the current status.
        """
        exam = self.require_entity(exam_id, company_id, scope)
        require_choice(target, MockExamStatus.ALL, "status")

        current = exam.status
        if target not in MockExamStatus.TRANSITIONS.get(current, ()):
            sources = [
                status
                for status, targets in MockExamStatus.TRANSITIONS.items()
                if target in targets
            ]
            raise InvalidStateError("Mock exam", current, sources, target=target)

        reason = (reason or "").strip() or None
        if target == MockExamStatus.CANCELLED and reason is None:
            raise ValidationError("A reason is required to cancel a mock exam", field="reason")

        exam.status = target
        exam.touch()
        self._db.add(
            MockExamStatusHistory(
                mock_exam_id=exam.id,
                company_id=company_id,
                old_status=current,
                new_status=target,
                change_reason=reason,
                changed_by=user_email,
            )
        )

        try:
            safe_commit(self._db)
            self._db.refresh(exam)
        except Exception as e:
            self._db.rollback()
            logger.error(
                "Failed to change mock exam status",
                error=str(e),
                entity_id=exam_id,
                company_id=company_id,
            )
            raise DatabaseError("mock exam status change")

        self.invalidate_cache(company_id)
        logger.info(
            "Mock exam status changed",
            entity_id=exam_id,
            company_id=company_id,
            old_status=current,
            new_status=target,
            user_email=mask_email(user_email),
        )
        return self.to_outputs([exam])[0]

    def history(
        self, exam_id: str, company_id: str, scope: Scope = UNRESTRICTED
    ) -> list[MockExamStatusHistoryOutput]:
        """Status changes of one exam, newest first."""
        exam = self.require_entity(exam_id, company_id, scope)
        rows = self._db.scalars(
            select(MockExamStatusHistory)
            .where(
                MockExamStatusHistory.company_id == company_id,
                MockExamStatusHistory.mock_exam_id == exam.id,
            )
            .order_by(MockExamStatusHistory.created_at.desc())
        ).all()
        return [MockExamStatusHistoryOutput.model_validate(row) for row in rows]

    def statistics(
        self,
        company_id: str,
        scope: Scope = UNRESTRICTED,
        today: date | None = None,
    ) -> MockExamStatisticsOutput:
        """Dashboard counters over the exams visible to the caller."""
        today = today or date.today()
        exams = self.find_visible(company_id, scope)
        upcoming = [
            e for e in exams
            if e.scheduled_date >= today and e.status != MockExamStatus.CANCELLED
        ]
        avg_readiness = (
            round(sum(e.readiness_score or 0 for e in exams) / len(exams)) if exams else 0
        )
        return MockExamStatisticsOutput(
            total=len(exams),
            upcoming=len(upcoming),
            total_students=sum(e.registered_students_count or 0 for e in exams),
            total_flagged=sum(e.flagged_students_count or 0 for e in exams),
            ai_enabled=sum(1 for e in exams if e.ai_proctoring_enabled),
            avg_readiness=avg_readiness,
        )

    # =========================================================================
    # Query Hooks
    # =========================================================================

    def _scope_spec(self, scope: Scope) -> Specification | None:
        if scope.school_ids is None:
            return None
        return JunctionSpec(
            MockExam.id, MockExamSchool.mock_exam_id, MockExamSchool.school_id, scope.school_ids
        )

    def _filter_specs(self, filters: dict[str, Any]) -> list[Specification]:
        specs = super()._filter_specs(filters)
        if filters.get("exam_window"):
            specs.append(InSpec(MockExam.exam_window, filters["exam_window"]))
        if filters.get("delivery_mode"):
            specs.append(InSpec(MockExam.delivery_mode, filters["delivery_mode"]))
        if filters.get("school_ids"):
            specs.append(
                JunctionSpec(
                    MockExam.id,
                    MockExamSchool.mock_exam_id,
                    MockExamSchool.school_id,
                    filters["school_ids"],
                )
            )
        if filters.get("branch_ids"):
            specs.append(
                JunctionSpec(
                    MockExam.id,
                    MockExamBranch.mock_exam_id,
                    MockExamBranch.branch_id,
                    filters["branch_ids"],
                )
            )
        if filters.get("grade_level_ids"):
            specs.append(
                JunctionSpec(
                    MockExam.id,
                    MockExamGradeLevel.mock_exam_id,
                    MockExamGradeLevel.grade_level_id,
                    filters["grade_level_ids"],
                )
            )
        if filters.get("date_from") or filters.get("date_to"):
            specs.append(
                RangeSpec(MockExam.scheduled_date, filters.get("date_from"), filters.get("date_to"))
            )
        return specs

    def _order_by(self) -> Any:
        return [MockExam.scheduled_date.desc(), MockExam.title]

    # =========================================================================
    # Validation Hooks
    # =========================================================================

    def _validate_create(self, data: dict[str, Any], company_id: str, scope: Scope) -> None:
        super()._validate_create(data, company_id, scope)
        require_choice(
            data.get("status", MockExamStatus.PLANNED), MockExamStatus.INITIAL, "status"
        )
        self._validate_fields(data)
        self._require_future_date(data.get("scheduled_date"))

        data["school_ids"] = require_school_refs(
            self._db, data.get("school_ids"), company_id, scope
        )
        data["branch_ids"] = require_branch_refs(
            self._db, data.get("branch_ids"), company_id, scope, data["school_ids"]
        )
        data["grade_level_ids"] = self._require_grade_levels(
            data.get("grade_level_ids"), company_id
        )

    def _validate_update(
        self, entity: MockExam, data: dict[str, Any], company_id: str, scope: Scope
    ) -> None:
        super()._validate_update(entity, data, company_id, scope)
        if entity.status in _CLOSED_STATUSES:
            open_statuses = [s for s in MockExamStatus.ALL if s not in _CLOSED_STATUSES]
            raise InvalidStateError("Mock exam", entity.status, open_statuses)
        if "status" in data:
            raise ValidationError(
                "Status changes go through the status transition", field="status"
            )
        self._validate_fields(data)
        # An exam already in the past may keep its date
        if "scheduled_date" in data and data["scheduled_date"] != entity.scheduled_date:
            self._require_future_date(data["scheduled_date"])

        if "school_ids" in data:
            data["school_ids"] = require_school_refs(
                self._db, data["school_ids"], company_id, scope
            )
        if "branch_ids" in data or "school_ids" in data:
            school_ids = data.get("school_ids")
            if school_ids is None:
                school_ids = MOCK_EXAM_SCHOOLS.current(self._db, entity.id)
            branch_ids = data.get("branch_ids")
            if "branch_ids" not in data:
                branch_ids = MOCK_EXAM_BRANCHES.current(self._db, entity.id)
            data["branch_ids"] = require_branch_refs(
                self._db, branch_ids, company_id, scope, school_ids
            )
        if "grade_level_ids" in data:
            data["grade_level_ids"] = self._require_grade_levels(
                data["grade_level_ids"], company_id
            )

    def _validate_fields(self, data: dict[str, Any]) -> None:
        """Checks on plain columns; only the fields present in `data` are checked."""
        if "title" in data:
            title = (data["title"] or "").strip()
            if not title:
                raise ValidationError("Exam title is required", field="title")
            if len(title) < Limits.MIN_EXAM_TITLE_LENGTH:
                raise ValidationError(
                    f"Title should be at least {Limits.MIN_EXAM_TITLE_LENGTH} characters",
                    field="title",
                )
            if len(title) > Limits.MAX_EXAM_TITLE_LENGTH:
                raise ValidationError(
                    f"Title is too long (maximum {Limits.MAX_EXAM_TITLE_LENGTH} characters)",
                    field="title",
                )
            data["title"] = title

        duration = data.get("duration_minutes")
        if duration is not None:
            if duration < Limits.MIN_EXAM_DURATION_MINUTES:
                raise ValidationError(
                    f"Duration must be at least {Limits.MIN_EXAM_DURATION_MINUTES} minutes",
                    field="duration_minutes",
                )
            if duration > Limits.MAX_EXAM_DURATION_MINUTES:
                raise ValidationError(
                    f"Duration cannot exceed {Limits.MAX_EXAM_DURATION_MINUTES} minutes",
                    field="duration_minutes",
                )
        elif "duration_minutes" in data:
            raise ValidationError("Duration is required", field="duration_minutes")

        if "delivery_mode" in data:
            require_choice(data["delivery_mode"], DeliveryMode.ALL, "delivery_mode")
        if "exam_window" in data:
            require_choice(data["exam_window"], ExamWindow.ALL, "exam_window")

    @staticmethod
    def _require_future_date(scheduled: date | None) -> None:
        if scheduled is None:
            raise ValidationError("Scheduled date is required", field="scheduled_date")
        if scheduled < date.today():
            raise ValidationError("Cannot schedule exam in the past", field="scheduled_date")

    def _require_grade_levels(self, grade_level_ids: Any, company_id: str) -> list[str]:
        ids = unique_in_order(grade_level_ids)
        if not ids:
            raise ValidationError(
                "At least one grade level is required", field="grade_level_ids"
            )
        found = set(
            self._db.scalars(
                select(GradeLevel.id).where(
                    GradeLevel.company_id == company_id, GradeLevel.id.in_(ids)
                )
            )
        )
        missing = [grade_id for grade_id in ids if grade_id not in found]
        if missing:
            raise ValidationError(
                f"Unknown grade level ids: {', '.join(missing)}", grade_level_ids=missing
            )
        return ids

    # =========================================================================
    # Lifecycle Hooks
    # =========================================================================

    def _before_delete(self, entity_ids: list[str], company_id: str) -> None:
        self._db.execute(
            delete(MockExamStatusHistory).where(
                MockExamStatusHistory.company_id == company_id,
                MockExamStatusHistory.mock_exam_id.in_(entity_ids),
            )
        )
