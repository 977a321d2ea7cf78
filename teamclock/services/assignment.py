from __future__ import annotations

import enum
from collections.abc import Hashable, Sequence
from typing import Any

from teamclock.models import UserRole
from teamclock.services.access import coerce_role
from teamclock.services.hierarchy import collect_descendants

LOWEST_TIER_ROLES: frozenset[UserRole] = frozenset({UserRole.EMPLOYEE, UserRole.MEMBER})


class AssignmentViolation(str, enum.Enum):
    SELF_MANAGEMENT = "SELF_MANAGEMENT"
    CIRCULAR_REFERENCE = "CIRCULAR_REFERENCE"
    ADMIN_CANNOT_HAVE_MANAGER = "ADMIN_CANNOT_HAVE_MANAGER"
    MANAGER_ROLE_REQUIRED = "MANAGER_ROLE_REQUIRED"


VIOLATION_MESSAGES: dict[AssignmentViolation, str] = {
    AssignmentViolation.SELF_MANAGEMENT: "A user cannot report to themselves.",
    AssignmentViolation.CIRCULAR_REFERENCE: "This assignment would create a circular reference.",
    AssignmentViolation.ADMIN_CANNOT_HAVE_MANAGER: "Cannot assign a manager to an ADMIN user.",
    AssignmentViolation.MANAGER_ROLE_REQUIRED: "This user's role cannot manage other users.",
}


def would_create_cycle(
    employee_id: Hashable,
    proposed_manager_id: Hashable,
    users: Sequence[Any],
) -> bool:
    if employee_id == proposed_manager_id:
        return True
    return proposed_manager_id in collect_descendants(employee_id, users)


def validate_manager_assignment(
    employee: Any,
    proposed_manager: Any | None,
    users: Sequence[Any],
) -> AssignmentViolation | None:
    """Check a ``manager_id`` change before it is written.

    Returns the first violated rule, or ``None`` when the change may be
    committed. Clearing the manager (``proposed_manager is None``) is always
    structurally valid.
    """
    if proposed_manager is None:
        return None
    if employee.id == proposed_manager.id:
        return AssignmentViolation.SELF_MANAGEMENT
    if coerce_role(employee.role) == UserRole.ADMIN:
        return AssignmentViolation.ADMIN_CANNOT_HAVE_MANAGER
    if coerce_role(proposed_manager.role) in LOWEST_TIER_ROLES:
        return AssignmentViolation.MANAGER_ROLE_REQUIRED
    if would_create_cycle(employee.id, proposed_manager.id, users):
        return AssignmentViolation.CIRCULAR_REFERENCE
    return None
