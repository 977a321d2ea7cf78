from __future__ import annotations

from collections.abc import Hashable, Iterable, Sequence
from typing import Any

from teamclock.models import SecondaryPermission, UserRole
from teamclock.services.hierarchy import collect_descendants


def coerce_role(value: Any) -> UserRole | None:
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(str(value).upper())
    except ValueError:
        return None


def _relation_permissions(relation: Any) -> set[str]:
    permissions = getattr(relation, "permissions", None) or []
    return {str(getattr(item, "value", item)).upper() for item in permissions}


def _secondary_grants(
    manager_id: Hashable,
    permission: SecondaryPermission,
    relations: Iterable[Any] | None,
) -> set[Hashable]:
    granted: set[Hashable] = set()
    for relation in relations or ():
        if relation.manager_id != manager_id:
            continue
        if permission.value in _relation_permissions(relation):
            granted.add(relation.employee_id)
    return granted


def visible_user_ids(
    requester: Any,
    users: Sequence[Any],
    *,
    secondary_relations: Iterable[Any] | None = None,
) -> set[Hashable]:
    """Ids the requester may view. Anything outside the set is forbidden.

    ADMIN sees every user in ``users``; MANAGER sees itself plus all
    descendants; everyone else sees only itself. Secondary-manager relations
    carrying ``VIEW_TIME`` add their employees on top of that.
    """
    role = coerce_role(requester.role)
    if role == UserRole.ADMIN:
        return {user.id for user in users}

    visible: set[Hashable] = {requester.id}
    if role == UserRole.MANAGER:
        visible |= collect_descendants(requester.id, users)

    known_ids = {user.id for user in users}
    visible |= _secondary_grants(requester.id, SecondaryPermission.VIEW_TIME, secondary_relations) & known_ids
    return visible


def filter_visible_users(
    requester: Any,
    users: Sequence[Any],
    *,
    secondary_relations: Iterable[Any] | None = None,
) -> list[Any]:
    visible = visible_user_ids(requester, users, secondary_relations=secondary_relations)
    return [user for user in users if user.id in visible]


def can_manage_user(current_user: Any, target_user: Any) -> bool:
    """ADMIN manages anyone; a MANAGER manages direct reports only."""
    role = coerce_role(current_user.role)
    if role == UserRole.ADMIN:
        return True
    return role == UserRole.MANAGER and target_user.manager_id == current_user.id


def check_permission(
    actor_id: Hashable,
    target_id: Hashable,
    permission: SecondaryPermission,
    users: Sequence[Any],
    secondary_relations: Iterable[Any] | None = None,
) -> bool:
    actor = next((user for user in users if user.id == actor_id), None)
    if actor is None:
        return False
    if coerce_role(actor.role) == UserRole.ADMIN:
        return True
    if actor_id == target_id:
        return True
    if coerce_role(actor.role) == UserRole.MANAGER and target_id in collect_descendants(actor_id, users):
        return True
    return target_id in _secondary_grants(actor_id, permission, secondary_relations)
