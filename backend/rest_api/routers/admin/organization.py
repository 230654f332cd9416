"""
Organization endpoints: company, schools, branches, the creation/edit wizard
and the organization chart.
"""

from fastapi import APIRouter, HTTPException

from rest_api.routers.admin._base import (
    Depends, Query, status, Session,
    get_db, PermissionContext,
    get_permission_context, require_config_write, require_unscoped,
    split_values, build_filters,
)
from rest_api.routers.admin_schemas import (
    BranchCreate,
    BranchOutput,
    BranchUpdate,
    CompanyOutput,
    DeleteManyInput,
    DeleteManyOutput,
    OrgChartOutput,
    SchoolCreate,
    SchoolOutput,
    SchoolUpdate,
    StatusToggleOutput,
    WizardRecordOutput,
    WizardStepDefinition,
    WizardStepInput,
    WizardStepResult,
    WizardSubmitInput,
    WizardSubmitOutput,
)
from rest_api.services.domain import (
    BranchService,
    OrganizationWizardService,
    OrgChartService,
    SchoolService,
    get_company,
)
from rest_api.services.domain.wizard_service import steps_for
from rest_api.services.status_toggle import toggle_entity_status
from rest_api.services.wizard import SubmitResult
from shared.infrastructure.cache.read_cache import get_read_cache
from shared.config.constants import CacheNamespace
from shared.utils.exceptions import FormValidationError


router = APIRouter(tags=["admin-organization"])


# =============================================================================
# Company
# =============================================================================


@router.get("/company", response_model=CompanyOutput)
def get_own_company(
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> CompanyOutput:
    return get_company(db, ctx.company_id)


@router.post("/company/toggle-status", response_model=StatusToggleOutput)
def toggle_company_status(
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_unscoped),
) -> StatusToggleOutput:
    new_status = toggle_entity_status(db, "company", ctx.company_id, ctx.company_id)
    get_read_cache().invalidate(CacheNamespace.ORG_CHART, ctx.company_id)
    return StatusToggleOutput(id=ctx.company_id, status=new_status)


# =============================================================================
# Schools
# =============================================================================


@router.get("/schools", response_model=list[SchoolOutput])
def list_schools(
    search: str | None = None,
    status_filter: list[str] | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> list[SchoolOutput]:
    filters = build_filters(search=search, status=split_values(status_filter))
    return SchoolService(db).list_all(ctx.company_id, ctx.scope, filters)


@router.get("/schools/{school_id}", response_model=SchoolOutput)
def get_school(
    school_id: str,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> SchoolOutput:
    return SchoolService(db).get_by_id(school_id, ctx.company_id, ctx.scope)


@router.post("/schools", response_model=SchoolOutput, status_code=status.HTTP_201_CREATED)
def create_school(
    body: SchoolCreate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_unscoped),
) -> SchoolOutput:
    return SchoolService(db).create(body.model_dump(), ctx.company_id, ctx.scope, ctx.user_email)


@router.patch("/schools/{school_id}", response_model=SchoolOutput)
def update_school(
    school_id: str,
    body: SchoolUpdate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> SchoolOutput:
    return SchoolService(db).update(
        school_id, body.model_dump(exclude_unset=True), ctx.company_id, ctx.scope, ctx.user_email
    )


@router.post("/schools/delete", response_model=DeleteManyOutput)
def delete_schools(
    body: DeleteManyInput,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_unscoped),
) -> DeleteManyOutput:
    """Delete several schools. Refused while any of them has branches."""
    deleted = SchoolService(db).delete_many(body.ids, ctx.company_id, ctx.scope, ctx.user_email)
    return DeleteManyOutput(deleted=deleted)


@router.post("/schools/{school_id}/toggle-status", response_model=StatusToggleOutput)
def toggle_school_status(
    school_id: str,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> StatusToggleOutput:
    school = SchoolService(db).toggle_status(school_id, ctx.company_id, ctx.scope)
    return StatusToggleOutput(id=school.id, status=school.status)


# =============================================================================
# Branches
# =============================================================================


@router.get("/branches", response_model=list[BranchOutput])
def list_branches(
    search: str | None = None,
    status_filter: list[str] | None = Query(default=None, alias="status"),
    school_ids: list[str] | None = Query(default=None),
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> list[BranchOutput]:
    filters = build_filters(
        search=search,
        status=split_values(status_filter),
        school_ids=split_values(school_ids),
    )
    return BranchService(db).list_all(ctx.company_id, ctx.scope, filters)


@router.get("/branches/{branch_id}", response_model=BranchOutput)
def get_branch(
    branch_id: str,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> BranchOutput:
    return BranchService(db).get_by_id(branch_id, ctx.company_id, ctx.scope)


@router.post("/branches", response_model=BranchOutput, status_code=status.HTTP_201_CREATED)
def create_branch(
    body: BranchCreate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> BranchOutput:
    return BranchService(db).create(body.model_dump(), ctx.company_id, ctx.scope, ctx.user_email)


@router.patch("/branches/{branch_id}", response_model=BranchOutput)
def update_branch(
    branch_id: str,
    body: BranchUpdate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> BranchOutput:
    return BranchService(db).update(
        branch_id, body.model_dump(exclude_unset=True), ctx.company_id, ctx.scope, ctx.user_email
    )


@router.post("/branches/delete", response_model=DeleteManyOutput)
def delete_branches(
    body: DeleteManyInput,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> DeleteManyOutput:
    deleted = BranchService(db).delete_many(body.ids, ctx.company_id, ctx.scope, ctx.user_email)
    return DeleteManyOutput(deleted=deleted)


@router.post("/branches/{branch_id}/toggle-status", response_model=StatusToggleOutput)
def toggle_branch_status(
    branch_id: str,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_config_write),
) -> StatusToggleOutput:
    branch = BranchService(db).toggle_status(branch_id, ctx.company_id, ctx.scope)
    return StatusToggleOutput(id=branch.id, status=branch.status)


# =============================================================================
# Wizard
# =============================================================================


def _require_wizard_write(ctx: PermissionContext, entity_type: str, creating: bool) -> None:
    if entity_type == "company":
        if creating:
            ctx.require_system_admin()
        else:
            ctx.require_unscoped()
    elif entity_type == "school" and creating:
        ctx.require_unscoped()
    else:
        ctx.require_config_write()


def _raise_for_result(result: SubmitResult) -> None:
    if result.failed_step is not None:
        raise FormValidationError(result.errors, step=result.failed_step)
    raise HTTPException(status_code=result.status_code or 500, detail=result.form_error)


@router.get("/wizard/{entity_type}/steps", response_model=list[WizardStepDefinition])
def get_wizard_steps(
    entity_type: str,
    ctx: PermissionContext = Depends(get_permission_context),
) -> list[WizardStepDefinition]:
    return [
        WizardStepDefinition(index=index, step_id=step.step_id, title=step.title, fields=list(step.fields))
        for index, step in enumerate(steps_for(entity_type))
    ]


@router.post("/wizard/{entity_type}/validate-step", response_model=WizardStepResult)
def validate_wizard_step(
    entity_type: str,
    body: WizardStepInput,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> WizardStepResult:
    """Run one step's validator; field errors come back in the body, not as 422."""
    errors = OrganizationWizardService(db).validate_step(entity_type, body.step, body.record)
    return WizardStepResult(step=body.step, valid=not errors, errors=errors)


@router.post(
    "/wizard/{entity_type}",
    response_model=WizardSubmitOutput,
    status_code=status.HTTP_201_CREATED,
)
def submit_wizard_create(
    entity_type: str,
    body: WizardSubmitInput,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> WizardSubmitOutput:
    """
    Create a company, school or branch from a full wizard record.

    422 with the first failing step when validation fails.
    """
    steps_for(entity_type)
    _require_wizard_write(ctx, entity_type, creating=True)
    result = OrganizationWizardService(db).submit(
        entity_type,
        body.record,
        ctx.company_id,
        ctx.scope,
        parent_id=body.parent_id,
        user_email=ctx.user_email,
    )
    if not result.ok:
        _raise_for_result(result)
    return WizardSubmitOutput(entity_type=entity_type, id=result.entity_id)


@router.put("/wizard/{entity_type}/{entity_id}", response_model=WizardSubmitOutput)
def submit_wizard_edit(
    entity_type: str,
    entity_id: str,
    body: WizardSubmitInput,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> WizardSubmitOutput:
    steps_for(entity_type)
    _require_wizard_write(ctx, entity_type, creating=False)
    result = OrganizationWizardService(db).submit(
        entity_type,
        body.record,
        ctx.company_id,
        ctx.scope,
        entity_id=entity_id,
        parent_id=body.parent_id,
        user_email=ctx.user_email,
    )
    if not result.ok:
        _raise_for_result(result)
    return WizardSubmitOutput(entity_type=entity_type, id=result.entity_id)


@router.get("/wizard/{entity_type}/{entity_id}", response_model=WizardRecordOutput)
def get_wizard_record(
    entity_type: str,
    entity_id: str,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> WizardRecordOutput:
    """Core and extension fields in one record, for pre-populating an edit."""
    record = OrganizationWizardService(db).get_record(entity_type, entity_id, ctx.company_id, ctx.scope)
    return WizardRecordOutput(entity_type=entity_type, id=entity_id, record=record)


# =============================================================================
# Organization Chart
# =============================================================================


@router.get("/organization/chart", response_model=OrgChartOutput)
def get_organization_chart(
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> OrgChartOutput:
    """Company -> schools -> branches, totals and the department forest."""
    return OrgChartService(db).chart(ctx.company_id, ctx.scope)
