from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.orm import Session

from teamclock.audit import log_audit
from teamclock.errors import ApiError, forbidden
from teamclock.models import SecondaryManager, SecondaryPermission, User
from teamclock.services.access import can_manage_user, check_permission, filter_visible_users
from teamclock.services.assignment import VIOLATION_MESSAGES, validate_manager_assignment
from teamclock.services.directory import (
    get_secondary_relation,
    list_project_users,
    list_secondary_relations,
)
from teamclock.services.hierarchy import HierarchyNode, build_hierarchy_tree

logger = logging.getLogger("teamclock.team")

PERSONAL_WORKSPACE_NAME = "Personal Workspace"


def get_team_hierarchy(db: Session, *, requester: User) -> tuple[str, list[HierarchyNode]]:
    """Forest of the requester's visible users.

    Managers of a visible user that fall outside the requester's scope are
    treated as absent, so such users surface as roots.
    """
    users = list_project_users(db, requester=requester)
    relations = list_secondary_relations(db, manager_id=requester.id)
    visible = filter_visible_users(requester, users, secondary_relations=relations)
    project_name = requester.project.name if requester.project is not None else PERSONAL_WORKSPACE_NAME
    return project_name, build_hierarchy_tree(visible)


def assign_manager(
    db: Session,
    *,
    current_user: User,
    employee_id: int,
    manager_id: int | None,
    request_id: str | None = None,
) -> User:
    users = list_project_users(db, requester=current_user, for_update=True)
    by_id = {user.id: user for user in users}

    def _reject(error: ApiError) -> ApiError:
        log_audit(
            db,
            actor_id=current_user.id,
            action="MANAGER_ASSIGN",
            success=False,
            entity_type="user",
            entity_id=str(employee_id),
            details={"manager_id": manager_id, "code": error.code},
            request_id=request_id,
        )
        return error

    employee = by_id.get(employee_id)
    if employee is None or not can_manage_user(current_user, employee):
        raise _reject(forbidden("You do not have permission to manage this user."))

    proposed_manager = None
    if manager_id is not None:
        proposed_manager = by_id.get(manager_id)
        if proposed_manager is None:
            raise _reject(
                ApiError(
                    status_code=400,
                    code="MANAGER_NOT_IN_PROJECT",
                    message="Manager must be in the same project.",
                )
            )

    violation = validate_manager_assignment(employee, proposed_manager, users)
    if violation is not None:
        logger.info(
            "manager_assignment_rejected",
            extra={"employee_id": employee_id, "manager_id": manager_id, "violation": violation.value},
        )
        raise _reject(ApiError(status_code=400, code=violation.value, message=VIOLATION_MESSAGES[violation]))

    previous_manager_id = employee.manager_id
    employee.manager_id = manager_id
    db.commit()
    db.refresh(employee)

    log_audit(
        db,
        actor_id=current_user.id,
        action="MANAGER_ASSIGN",
        success=True,
        entity_type="user",
        entity_id=str(employee.id),
        details={"previous_manager_id": previous_manager_id, "manager_id": manager_id},
        request_id=request_id,
    )
    return employee


def _load_managed_employee(db: Session, *, current_user: User, employee_id: int) -> tuple[User, dict[int, User]]:
    users = list_project_users(db, requester=current_user)
    by_id = {user.id: user for user in users}
    employee = by_id.get(employee_id)
    if employee is None or not can_manage_user(current_user, employee):
        raise forbidden("You do not have permission to manage this user.")
    return employee, by_id


def add_secondary_manager(
    db: Session,
    *,
    current_user: User,
    employee_id: int,
    manager_id: int,
    permissions: list[SecondaryPermission],
    request_id: str | None = None,
) -> SecondaryManager:
    employee, by_id = _load_managed_employee(db, current_user=current_user, employee_id=employee_id)

    if employee_id == manager_id:
        raise ApiError(
            status_code=400,
            code="SELF_MANAGEMENT",
            message="Cannot assign a user as their own secondary manager.",
        )
    manager = by_id.get(manager_id)
    if manager is None or manager.project_id != employee.project_id:
        raise ApiError(
            status_code=400,
            code="MANAGER_NOT_IN_PROJECT",
            message="Manager must be in the same project.",
        )

    permission_values = sorted({permission.value for permission in permissions})
    relation = get_secondary_relation(db, employee_id=employee_id, manager_id=manager_id)
    created = relation is None
    if relation is None:
        relation = SecondaryManager(employee_id=employee_id, manager_id=manager_id, permissions=permission_values)
        db.add(relation)
    else:
        relation.permissions = permission_values
    db.commit()
    db.refresh(relation)

    log_audit(
        db,
        actor_id=current_user.id,
        action="SECONDARY_MANAGER_ADD" if created else "SECONDARY_MANAGER_UPDATE",
        success=True,
        entity_type="secondary_manager",
        entity_id=str(relation.id),
        details={"employee_id": employee_id, "manager_id": manager_id, "permissions": permission_values},
        request_id=request_id,
    )
    return relation


def remove_secondary_manager(
    db: Session,
    *,
    current_user: User,
    employee_id: int,
    manager_id: int,
    request_id: str | None = None,
) -> int:
    _load_managed_employee(db, current_user=current_user, employee_id=employee_id)

    relation = get_secondary_relation(db, employee_id=employee_id, manager_id=manager_id)
    if relation is None:
        raise ApiError(status_code=404, code="NOT_FOUND", message="Secondary manager relationship not found.")

    relation_id = relation.id
    db.delete(relation)
    db.commit()

    log_audit(
        db,
        actor_id=current_user.id,
        action="SECONDARY_MANAGER_REMOVE",
        success=True,
        entity_type="secondary_manager",
        entity_id=str(relation_id),
        details={"employee_id": employee_id, "manager_id": manager_id},
        request_id=request_id,
    )
    return relation_id


def update_work_settings(
    db: Session,
    *,
    current_user: User,
    user_id: int,
    updates: Mapping[str, Any],
    request_id: str | None = None,
) -> User:
    """Apply ``daily_target`` / ``work_days`` / ``weekly_hours`` changes.

    Only keys present in ``updates`` are written. An empty ``weekly_hours``
    map is stored as null so the user falls back to the legacy model.
    """
    users = list_project_users(db, requester=current_user)
    target = next((user for user in users if user.id == user_id), None)
    if target is None:
        raise forbidden("User is not in your project.")

    relations = list_secondary_relations(db, employee_id=user_id)
    if not check_permission(current_user.id, user_id, SecondaryPermission.EDIT_SETTINGS, users, relations):
        raise forbidden("You do not have permission to edit work settings for this user.")

    if "daily_target" in updates:
        target.daily_target = updates["daily_target"]
    if "work_days" in updates and updates["work_days"] is not None:
        target.work_days = sorted({int(day) for day in updates["work_days"]})
    if "weekly_hours" in updates:
        weekly_hours = updates["weekly_hours"]
        target.weekly_hours = (
            {str(weekday): float(hours) for weekday, hours in weekly_hours.items()} if weekly_hours else None
        )
    db.commit()
    db.refresh(target)

    log_audit(
        db,
        actor_id=current_user.id,
        action="WORK_SETTINGS_UPDATE",
        success=True,
        entity_type="user",
        entity_id=str(user_id),
        details=dict(updates),
        request_id=request_id,
    )
    return target
