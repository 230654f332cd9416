"""
Academic year management endpoints.
"""

from fastapi import APIRouter

from rest_api.routers.admin._base import (
    Depends, Query, status, Session,
    get_db, PermissionContext,
    get_permission_context, require_config_write,
    split_values, build_filters,
)
from rest_api.routers.admin_schemas import (
    AcademicYearCreate,
    AcademicYearOutput,
    AcademicYearUpdate,
    DeleteManyInput,
    DeleteManyOutput,
    StatusToggleOutput,
)
from rest_api.services.domain import AcademicYearService


router = APIRouter(tags=["admin-academic-years"])


@router.get("/academic-years", response_model=list[AcademicYearOutput])
def list_academic_years(
    search: str | None = None,
    is_current: bool | None = None,
    status_filter: list[str] | None = Query(default=None, alias="status"),
    school_ids: list[str] | None = Query(default=None),
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> list[AcademicYearOutput]:
    """List academic years, most recent start date first."""
    filters = build_filters(
        search=search,
        is_current=is_current,
        status=split_values(status_filter),
        school_ids=split_values(school_ids),
    )
    return AcademicYearService(db).list_all(ctx.company_id, ctx.scope, filters)


@router.get("/academic-years/{academic_year_id}", response_model=AcademicYearOutput)
def get_academic_year(
    academic_year_id: str,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> AcademicYearOutput:
    return AcademicYearService(db).get_by_id(academic_year_id, ctx.company_id, ctx.scope)


@router.post("/academic-years", response_model=AcademicYearOutput, status_code=status.HTTP_201_CREATED)
def create_academic_year(
    body: AcademicYearCreate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> AcademicYearOutput:
    """
    Create an academic year.

    Marking it current clears the flag on other years of the same schools.
    """
    return AcademicYearService(db).create(
        body.model_dump(), ctx.company_id, ctx.scope, ctx.user_email
    )


@router.patch("/academic-years/{academic_year_id}", response_model=AcademicYearOutput)
def update_academic_year(
    academic_year_id: str,
    body: AcademicYearUpdate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> AcademicYearOutput:
    return AcademicYearService(db).update(
        academic_year_id, body.model_dump(exclude_unset=True), ctx.company_id, ctx.scope, ctx.user_email
    )


@router.post("/academic-years/delete", response_model=DeleteManyOutput)
def delete_academic_years(
    body: DeleteManyInput,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> DeleteManyOutput:
    """Delete several academic years. Refused while class sections use them."""
    deleted = AcademicYearService(db).delete_many(body.ids, ctx.company_id, ctx.scope, ctx.user_email)
    return DeleteManyOutput(deleted=deleted)


@router.delete("/academic-years/{academic_year_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_academic_year(
    academic_year_id: str,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> None:
    AcademicYearService(db).delete(academic_year_id, ctx.company_id, ctx.scope, ctx.user_email)


@router.post("/academic-years/{academic_year_id}/toggle-status", response_model=StatusToggleOutput)
def toggle_academic_year_status(
    academic_year_id: str,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> StatusToggleOutput:
    """Flip active/inactive. Completed years cannot be toggled."""
    year = AcademicYearService(db).toggle_status(academic_year_id, ctx.company_id, ctx.scope)
    return StatusToggleOutput(id=year.id, status=year.status)
