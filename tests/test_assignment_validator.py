from __future__ import annotations

import unittest

from teamclock.models import User, UserRole
from teamclock.services.assignment import (
    AssignmentViolation,
    validate_manager_assignment,
    would_create_cycle,
)
from teamclock.services.hierarchy import collect_descendants


class AssignmentValidatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.admin = User(id=1, email="a@example.com", role=UserRole.ADMIN, manager_id=None)
        self.lead = User(id=2, email="b@example.com", role=UserRole.MANAGER, manager_id=1)
        self.sub_lead = User(id=3, email="c@example.com", role=UserRole.MANAGER, manager_id=2)
        self.dev = User(id=4, email="d@example.com", role=UserRole.EMPLOYEE, manager_id=3)
        self.member = User(id=5, email="e@example.com", role=UserRole.MEMBER, manager_id=None)
        self.other_lead = User(id=6, email="f@example.com", role=UserRole.MANAGER, manager_id=1)
        self.users = [self.admin, self.lead, self.sub_lead, self.dev, self.member, self.other_lead]

    def test_clearing_manager_is_always_valid(self) -> None:
        self.assertIsNone(validate_manager_assignment(self.dev, None, self.users))
        self.assertIsNone(validate_manager_assignment(self.admin, None, self.users))

    def test_self_management(self) -> None:
        self.assertEqual(
            validate_manager_assignment(self.lead, self.lead, self.users),
            AssignmentViolation.SELF_MANAGEMENT,
        )
        self.assertEqual(
            validate_manager_assignment(self.admin, self.admin, self.users),
            AssignmentViolation.SELF_MANAGEMENT,
        )

    def test_admin_cannot_have_manager(self) -> None:
        self.assertEqual(
            validate_manager_assignment(self.admin, self.lead, self.users),
            AssignmentViolation.ADMIN_CANNOT_HAVE_MANAGER,
        )

    def test_lowest_tier_roles_cannot_manage(self) -> None:
        self.assertEqual(
            validate_manager_assignment(self.other_lead, self.dev, self.users),
            AssignmentViolation.MANAGER_ROLE_REQUIRED,
        )
        self.assertEqual(
            validate_manager_assignment(self.dev, self.member, self.users),
            AssignmentViolation.MANAGER_ROLE_REQUIRED,
        )

    def test_descendant_as_manager_is_circular(self) -> None:
        self.assertEqual(
            validate_manager_assignment(self.lead, self.sub_lead, self.users),
            AssignmentViolation.CIRCULAR_REFERENCE,
        )

    def test_valid_reassignment(self) -> None:
        self.assertIsNone(validate_manager_assignment(self.dev, self.other_lead, self.users))
        self.assertIsNone(validate_manager_assignment(self.sub_lead, self.admin, self.users))

    def test_would_create_cycle(self) -> None:
        self.assertTrue(would_create_cycle(2, 2, self.users))
        self.assertTrue(would_create_cycle(2, 4, self.users))
        self.assertFalse(would_create_cycle(4, 2, self.users))
        self.assertFalse(would_create_cycle(3, 6, self.users))

    def test_accepted_assignment_keeps_forest_acyclic(self) -> None:
        violation = validate_manager_assignment(self.other_lead, self.sub_lead, self.users)
        self.assertIsNone(violation)

        self.other_lead.manager_id = self.sub_lead.id
        for user in self.users:
            if user.manager_id is not None:
                self.assertNotIn(user.manager_id, collect_descendants(user.id, self.users))


if __name__ == "__main__":
    unittest.main()
