"""
Grade level management endpoints.
"""

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
    GradeLevelCreate,
    GradeLevelOutput,
    GradeLevelUpdate,
    StatusToggleOutput,
)
from rest_api.services.domain import GradeLevelService


router = APIRouter(tags=["admin-grade-levels"])


@router.get("/grade-levels", response_model=list[GradeLevelOutput])
def list_grade_levels(
    search: str | None = None,
    status_filter: list[str] | None = Query(default=None, alias="status"),
    education_level: list[str] | None = Query(default=None),
    school_ids: list[str] | None = Query(default=None),
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> list[GradeLevelOutput]:
    """List grade levels ordered by grade order, then name."""
    filters = build_filters(
        search=search,
        status=split_values(status_filter),
        education_level=split_values(education_level),
        school_ids=split_values(school_ids),
    )
    return GradeLevelService(db).list_all(ctx.company_id, ctx.scope, filters)


@router.get("/grade-levels/{grade_level_id}", response_model=GradeLevelOutput)
def get_grade_level(
    grade_level_id: str,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> GradeLevelOutput:
    return GradeLevelService(db).get_by_id(grade_level_id, ctx.company_id, ctx.scope)


@router.post("/grade-levels", response_model=GradeLevelOutput, status_code=status.HTTP_201_CREATED)
def create_grade_level(
    body: GradeLevelCreate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> GradeLevelOutput:
    """Create a grade level offered at one or more schools."""
    return GradeLevelService(db).create(
        body.model_dump(), ctx.company_id, ctx.scope, ctx.user_email
    )


@router.patch("/grade-levels/{grade_level_id}", response_model=GradeLevelOutput)
def update_grade_level(
    grade_level_id: str,
    body: GradeLevelUpdate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> GradeLevelOutput:
    """Update a grade level. `school_ids`, when sent, replaces the whole set."""
    return GradeLevelService(db).update(
        grade_level_id, body.model_dump(exclude_unset=True), ctx.company_id, ctx.scope, ctx.user_email
    )


@router.post("/grade-levels/delete", response_model=DeleteManyOutput)
def delete_grade_levels(
    body: DeleteManyInput,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> DeleteManyOutput:
    """Delete several grade levels. Refused while class sections use them."""
    deleted = GradeLevelService(db).delete_many(body.ids, ctx.company_id, ctx.scope, ctx.user_email)
    return DeleteManyOutput(deleted=deleted)


@router.delete("/grade-levels/{grade_level_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_grade_level(
    grade_level_id: str,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> None:
    GradeLevelService(db).delete(grade_level_id, ctx.company_id, ctx.scope, ctx.user_email)


@router.post("/grade-levels/{grade_level_id}/toggle-status", response_model=StatusToggleOutput)
def toggle_grade_level_status(
    grade_level_id: str,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> StatusToggleOutput:
    level = GradeLevelService(db).toggle_status(grade_level_id, ctx.company_id, ctx.scope)
    return StatusToggleOutput(id=level.id, status=level.status)
