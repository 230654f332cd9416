"""
Class section management endpoints.
"""

from fastapi import APIRouter

from rest_api.routers.admin._base import (
    Depends, Query, status, Session,
    get_db, PermissionContext,
    get_permission_context, require_config_write,
    split_values, build_filters,
)
from rest_api.routers.admin_schemas import (
    ClassSectionCreate,
    ClassSectionOutput,
    ClassSectionUpdate,
    DeleteManyInput,
    DeleteManyOutput,
    StatusToggleOutput,
)
from rest_api.services.domain import ClassSectionService


router = APIRouter(tags=["admin-class-sections"])


@router.get("/class-sections", response_model=list[ClassSectionOutput])
def list_class_sections(
    search: str | None = None,
    status_filter: list[str] | None = Query(default=None, alias="status"),
    grade_level_ids: list[str] | None = Query(default=None),
    academic_year_ids: list[str] | None = Query(default=None),
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> list[ClassSectionOutput]:
    """List class sections with grade level, year names and occupancy."""
    filters = build_filters(
        search=search,
        status=split_values(status_filter),
        grade_level_ids=split_values(grade_level_ids),
        academic_year_ids=split_values(academic_year_ids),
    )
    return ClassSectionService(db).list_all(ctx.company_id, ctx.scope, filters)


@router.get("/class-sections/{section_id}", response_model=ClassSectionOutput)
def get_class_section(
    section_id: str,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> ClassSectionOutput:
    return ClassSectionService(db).get_by_id(section_id, ctx.company_id, ctx.scope)


@router.post("/class-sections", response_model=ClassSectionOutput, status_code=status.HTTP_201_CREATED)
def create_class_section(
    body: ClassSectionCreate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> ClassSectionOutput:
    return ClassSectionService(db).create(
        body.model_dump(), ctx.company_id, ctx.scope, ctx.user_email
    )


@router.patch("/class-sections/{section_id}", response_model=ClassSectionOutput)
def update_class_section(
    section_id: str,
    body: ClassSectionUpdate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> ClassSectionOutput:
    return ClassSectionService(db).update(
        section_id, body.model_dump(exclude_unset=True), ctx.company_id, ctx.scope, ctx.user_email
    )


@router.post("/class-sections/delete", response_model=DeleteManyOutput)
def delete_class_sections(
    body: DeleteManyInput,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> DeleteManyOutput:
    deleted = ClassSectionService(db).delete_many(body.ids, ctx.company_id, ctx.scope, ctx.user_email)
    return DeleteManyOutput(deleted=deleted)


@router.delete("/class-sections/{section_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_class_section(
    section_id: str,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> None:
    ClassSectionService(db).delete(section_id, ctx.company_id, ctx.scope, ctx.user_email)


@router.post("/class-sections/{section_id}/toggle-status", response_model=StatusToggleOutput)
def toggle_class_section_status(
    section_id: str,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> StatusToggleOutput:
    """Flip active/inactive. Archived sections cannot be toggled."""
    section = ClassSectionService(db).toggle_status(section_id, ctx.company_id, ctx.scope)
    return StatusToggleOutput(id=section.id, status=section.status)
