"""
Department management endpoints, including the department tree.
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
    DepartmentCreate,
    DepartmentOutput,
    DepartmentTreeOutput,
    DepartmentUpdate,
    StatusToggleOutput,
)
from rest_api.services.domain import DepartmentService


router = APIRouter(tags=["admin-departments"])


@router.get("/departments", response_model=list[DepartmentOutput])
def list_departments(
    search: str | None = None,
    status_filter: list[str] | None = Query(default=None, alias="status"),
    department_type: list[str] | None = Query(default=None),
    school_ids: list[str] | None = Query(default=None),
    branch_ids: list[str] | None = Query(default=None),
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> list[DepartmentOutput]:
    """
    List departments with school, branch and parent names resolved.

    `school_ids` / `branch_ids` match departments linked to at least one of them.
    """
    filters = build_filters(
        search=search,
        status=split_values(status_filter),
        department_type=split_values(department_type),
        school_ids=split_values(school_ids),
        branch_ids=split_values(branch_ids),
    )
    return DepartmentService(db).list_all(ctx.company_id, ctx.scope, filters)


@router.get("/departments/tree", response_model=DepartmentTreeOutput)
def get_department_tree(
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> DepartmentTreeOutput:
    """Departments as a forest following parent_department_id."""
    return DepartmentService(db).tree(ctx.company_id, ctx.scope)


@router.get("/departments/{department_id}", response_model=DepartmentOutput)
def get_department(
    department_id: str,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> DepartmentOutput:
    return DepartmentService(db).get_by_id(department_id, ctx.company_id, ctx.scope)


@router.post("/departments", response_model=DepartmentOutput, status_code=status.HTTP_201_CREATED)
def create_department(
    body: DepartmentCreate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> DepartmentOutput:
    """Create a department and its school/branch links in one transaction."""
    return DepartmentService(db).create(
        body.model_dump(), ctx.company_id, ctx.scope, ctx.user_email
    )


@router.patch("/departments/{department_id}", response_model=DepartmentOutput)
def update_department(
    department_id: str,
    body: DepartmentUpdate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> DepartmentOutput:
    """Update a department. Moving it under one of its descendants is refused."""
    return DepartmentService(db).update(
        department_id, body.model_dump(exclude_unset=True), ctx.company_id, ctx.scope, ctx.user_email
    )


@router.post("/departments/delete", response_model=DeleteManyOutput)
def delete_departments(
    body: DeleteManyInput,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> DeleteManyOutput:
    """Delete several departments; their sub-departments move to the root."""
    deleted = DepartmentService(db).delete_many(body.ids, ctx.company_id, ctx.scope, ctx.user_email)
    return DeleteManyOutput(deleted=deleted)


@router.delete("/departments/{department_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_department(
    department_id: str,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> None:
    DepartmentService(db).delete(department_id, ctx.company_id, ctx.scope, ctx.user_email)


@router.post("/departments/{department_id}/toggle-status", response_model=StatusToggleOutput)
def toggle_department_status(
    department_id: str,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> StatusToggleOutput:
    department = DepartmentService(db).toggle_status(department_id, ctx.company_id, ctx.scope)
    return StatusToggleOutput(id=department.id, status=department.status)
