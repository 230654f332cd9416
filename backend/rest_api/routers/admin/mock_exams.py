"""
Mock exam scheduling endpoints and the status lifecycle.
"""

from datetime import date

from fastapi import APIRouter

from rest_api.routers.admin._base import (
    Depends, Query, status, Session,
    get_db, PermissionContext,
    get_permission_context, require_config_write,
    split_values, build_filters,
)
from rest_api.routers.admin_schemas import (
    DeleteManyInput,
    DeleteManyOutput,
    MockExamCreate,
    MockExamOutput,
    MockExamStatisticsOutput,
    MockExamStatusHistoryOutput,
    MockExamTransitionInput,
    MockExamUpdate,
)
from rest_api.services.domain import MockExamService


router = APIRouter(tags=["admin-mock-exams"])


@router.get("/mock-exams", response_model=list[MockExamOutput])
def list_mock_exams(
    search: str | None = None,
    status_filter: list[str] | None = Query(default=None, alias="status"),
    exam_window: list[str] | None = Query(default=None),
    delivery_mode: list[str] | None = Query(default=None),
    school_ids: list[str] | None = Query(default=None),
    branch_ids: list[str] | None = Query(default=None),
    grade_level_ids: list[str] | None = Query(default=None),
    date_from: date | None = None,
    date_to: date | None = None,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> list[MockExamOutput]:
    """
    List mock exams, latest scheduled date first.

    Scoped users only see exams sat at one of their schools.
    """
    filters = build_filters(
        search=search,
        status=split_values(status_filter),
        exam_window=split_values(exam_window),
        delivery_mode=split_values(delivery_mode),
        school_ids=split_values(school_ids),
        branch_ids=split_values(branch_ids),
        grade_level_ids=split_values(grade_level_ids),
        date_from=date_from,
        date_to=date_to,
    )
    return MockExamService(db).list_all(ctx.company_id, ctx.scope, filters)


@router.get("/mock-exams/statistics", response_model=MockExamStatisticsOutput)
def get_mock_exam_statistics(
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> MockExamStatisticsOutput:
    return MockExamService(db).statistics(ctx.company_id, ctx.scope)


@router.get("/mock-exams/{exam_id}", response_model=MockExamOutput)
def get_mock_exam(
    exam_id: str,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> MockExamOutput:
    return MockExamService(db).get_by_id(exam_id, ctx.company_id, ctx.scope)


@router.post("/mock-exams", response_model=MockExamOutput, status_code=status.HTTP_201_CREATED)
def create_mock_exam(
    body: MockExamCreate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> MockExamOutput:
    """Schedule a mock exam with its school, branch and grade level links."""
    return MockExamService(db).create(
        body.model_dump(), ctx.company_id, ctx.scope, ctx.user_email
    )


@router.patch("/mock-exams/{exam_id}", response_model=MockExamOutput)
def update_mock_exam(
    exam_id: str,
    body: MockExamUpdate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> MockExamOutput:
    return MockExamService(db).update(
        exam_id, body.model_dump(exclude_unset=True), ctx.company_id, ctx.scope, ctx.user_email
    )


@router.post("/mock-exams/{exam_id}/transition", response_model=MockExamOutput)
def transition_mock_exam(
    exam_id: str,
    body: MockExamTransitionInput,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> MockExamOutput:
    """Move the exam to another status. Cancelling requires a reason."""
    return MockExamService(db).transition(
        exam_id, body.status, ctx.company_id, ctx.scope, ctx.user_email, reason=body.reason
    )


@router.get("/mock-exams/{exam_id}/history", response_model=list[MockExamStatusHistoryOutput])
def get_mock_exam_history(
    exam_id: str,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> list[MockExamStatusHistoryOutput]:
    return MockExamService(db).history(exam_id, ctx.company_id, ctx.scope)


@router.post("/mock-exams/delete", response_model=DeleteManyOutput)
def delete_mock_exams(
    body: DeleteManyInput,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> DeleteManyOutput:
    """Delete several mock exams together with their status history."""
    deleted = MockExamService(db).delete_many(body.ids, ctx.company_id, ctx.scope, ctx.user_email)
    return DeleteManyOutput(deleted=deleted)


@router.delete("/mock-exams/{exam_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_mock_exam(
    exam_id: str,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> None:
    MockExamService(db).delete(exam_id, ctx.company_id, ctx.scope, ctx.user_email)
