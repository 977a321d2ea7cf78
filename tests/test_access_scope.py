from __future__ import annotations

import unittest

from teamclock.models import SecondaryManager, SecondaryPermission, User, UserRole
from teamclock.services.access import (
    can_manage_user,
    check_permission,
    filter_visible_users,
    visible_user_ids,
)


def _team() -> list[User]:
    return [
        User(id=1, email="admin@example.com", role=UserRole.ADMIN, manager_id=None, project_id=1),
        User(id=2, email="lead@example.com", role=UserRole.MANAGER, manager_id=1, project_id=1),
        User(id=3, email="dev@example.com", role=UserRole.EMPLOYEE, manager_id=2, project_id=1),
        User(id=4, email="sub@example.com", role=UserRole.MANAGER, manager_id=2, project_id=1),
        User(id=5, email="intern@example.com", role=UserRole.MEMBER, manager_id=4, project_id=1),
        User(id=6, email="solo@example.com", role=UserRole.EMPLOYEE, manager_id=None, project_id=1),
    ]


class VisibleUserIdsTests(unittest.TestCase):
    def test_admin_sees_everyone(self) -> None:
        users = _team()
        self.assertEqual(visible_user_ids(users[0], users), {1, 2, 3, 4, 5, 6})

    def test_manager_sees_self_and_whole_subtree(self) -> None:
        users = _team()
        self.assertEqual(visible_user_ids(users[1], users), {2, 3, 4, 5})

    def test_employee_and_member_see_only_themselves(self) -> None:
        users = _team()
        self.assertEqual(visible_user_ids(users[2], users), {3})
        self.assertEqual(visible_user_ids(users[4], users), {5})

    def test_manager_without_reports_sees_self(self) -> None:
        users = _team() + [User(id=7, email="new@example.com", role=UserRole.MANAGER, manager_id=1, project_id=1)]
        self.assertEqual(visible_user_ids(users[-1], users), {7})

    def test_view_time_grant_extends_scope(self) -> None:
        users = _team()
        relations = [
            SecondaryManager(employee_id=6, manager_id=3, permissions=[SecondaryPermission.VIEW_TIME.value]),
            SecondaryManager(employee_id=5, manager_id=3, permissions=[SecondaryPermission.EDIT_SETTINGS.value]),
            SecondaryManager(employee_id=99, manager_id=3, permissions=[SecondaryPermission.VIEW_TIME.value]),
        ]

        self.assertEqual(visible_user_ids(users[2], users, secondary_relations=relations), {3, 6})

    def test_filter_keeps_input_order(self) -> None:
        users = _team()
        self.assertEqual([user.id for user in filter_visible_users(users[3], users)], [4, 5])


class ManagePermissionTests(unittest.TestCase):
    def test_can_manage_user(self) -> None:
        users = _team()
        admin, lead, dev, sub, intern, _ = users

        self.assertTrue(can_manage_user(admin, intern))
        self.assertTrue(can_manage_user(lead, dev))
        self.assertFalse(can_manage_user(lead, intern))
        self.assertFalse(can_manage_user(dev, lead))
        self.assertTrue(can_manage_user(sub, intern))

    def test_check_permission(self) -> None:
        users = _team()
        relations = [
            SecondaryManager(employee_id=6, manager_id=3, permissions=[SecondaryPermission.EDIT_SETTINGS.value]),
        ]

        self.assertTrue(check_permission(1, 6, SecondaryPermission.EDIT_SETTINGS, users, relations))
        self.assertTrue(check_permission(3, 3, SecondaryPermission.EDIT_SETTINGS, users, relations))
        self.assertTrue(check_permission(2, 5, SecondaryPermission.EDIT_SETTINGS, users, relations))
        self.assertTrue(check_permission(3, 6, SecondaryPermission.EDIT_SETTINGS, users, relations))
        self.assertFalse(check_permission(3, 6, SecondaryPermission.APPROVE_TIME, users, relations))
        self.assertFalse(check_permission(4, 3, SecondaryPermission.EDIT_SETTINGS, users, relations))
        self.assertFalse(check_permission(42, 3, SecondaryPermission.VIEW_TIME, users, relations))


if __name__ == "__main__":
    unittest.main()
