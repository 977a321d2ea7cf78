from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from teamclock.db import get_db
from teamclock.errors import get_request_id
from teamclock.models import User
from teamclock.schemas import (
    AssignManagerRequest,
    AssignManagerResponse,
    HierarchyNodeRead,
    HierarchyResponse,
    SecondaryManagerRead,
    SecondaryManagerRemoveRequest,
    SecondaryManagerUpsertRequest,
    SoftDeleteResponse,
    UserRead,
    WorkSettingsUpdateRequest,
)
from teamclock.security import get_current_user
from teamclock.services.team import (
    add_secondary_manager,
    assign_manager,
    get_team_hierarchy,
    remove_secondary_manager,
    update_work_settings,
)

router = APIRouter(tags=["team"])


@router.get("/api/team/hierarchy", response_model=HierarchyResponse)
def team_hierarchy(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> HierarchyResponse:
    project_name, roots = get_team_hierarchy(db, requester=current_user)
    return HierarchyResponse(
        project_id=current_user.project_id,
        project_name=project_name,
        roots=[HierarchyNodeRead.model_validate(node) for node in roots],
    )


@router.patch("/api/team/assign-manager", response_model=AssignManagerResponse)
def team_assign_manager(
    payload: AssignManagerRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AssignManagerResponse:
    employee = assign_manager(
        db,
        current_user=current_user,
        employee_id=payload.employee_id,
        manager_id=payload.manager_id,
        request_id=get_request_id(request),
    )
    message = "Manager removed successfully" if payload.manager_id is None else "Manager assigned successfully"
    return AssignManagerResponse(user=UserRead.model_validate(employee), message=message)


@router.post("/api/team/secondary-managers", response_model=SecondaryManagerRead)
def team_add_secondary_manager(
    payload: SecondaryManagerUpsertRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SecondaryManagerRead:
    relation = add_secondary_manager(
        db,
        current_user=current_user,
        employee_id=payload.employee_id,
        manager_id=payload.manager_id,
        permissions=payload.permissions,
        request_id=get_request_id(request),
    )
    return SecondaryManagerRead.model_validate(relation)


@router.delete("/api/team/secondary-managers", response_model=SoftDeleteResponse)
def team_remove_secondary_manager(
    payload: SecondaryManagerRemoveRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SoftDeleteResponse:
    relation_id = remove_secondary_manager(
        db,
        current_user=current_user,
        employee_id=payload.employee_id,
        manager_id=payload.manager_id,
        request_id=get_request_id(request),
    )
    return SoftDeleteResponse(ok=True, id=relation_id)


@router.patch("/api/team/work-settings", response_model=UserRead)
def team_update_work_settings(
    payload: WorkSettingsUpdateRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserRead:
    user = update_work_settings(
        db,
        current_user=current_user,
        user_id=payload.user_id,
        updates=payload.model_dump(exclude_unset=True, exclude={"user_id"}),
        request_id=get_request_id(request),
    )
    return UserRead.model_validate(user)
