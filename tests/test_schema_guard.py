from __future__ import annotations

import unittest
from unittest.mock import patch

from teamclock.services.schema_guard import verify_runtime_schema


class _FakeResult:
    def __init__(self, value):
        self._value = value

    def scalar(self):  # type: ignore[no-untyped-def]
        return self._value


class _FakeConnection:
    def __init__(self, version_value):
        self._version_value = version_value

    def __enter__(self):  # type: ignore[no-untyped-def]
        return self

    def __exit__(self, exc_type, exc, tb):  # type: ignore[no-untyped-def]
        return False

    def execute(self, _statement):  # type: ignore[no-untyped-def]
        return _FakeResult(self._version_value)


class _FakeEngine:
    def __init__(self, version_value):
        self._version_value = version_value

    def connect(self):  # type: ignore[no-untyped-def]
        return _FakeConnection(self._version_value)


class _FakeInspector:
    def __init__(self, *, columns_by_table: dict[str, set[str]], enums: list[dict[str, object]] | None):
        self._columns_by_table = columns_by_table
        self._enums = enums

    def get_columns(self, table_name: str):  # type: ignore[no-untyped-def]
        columns = self._columns_by_table[table_name]
        return [{"name": item} for item in columns]

    def get_enums(self):  # type: ignore[no-untyped-def]
        if self._enums is None:
            raise NotImplementedError
        return self._enums


def _complete_columns() -> dict[str, set[str]]:
    return {
        "projects": {"id", "name", "daily_target"},
        "users": {
            "id",
            "email",
            "project_id",
            "role",
            "manager_id",
            "daily_target",
            "work_days",
            "weekly_hours",
            "created_at",
        },
        "secondary_managers": {"id", "employee_id", "manager_id", "permissions"},
        "time_entries": {"id", "user_id", "start_time", "end_time", "is_manual", "description"},
        "time_breaks": {"id", "time_entry_id", "start_time", "end_time", "reason"},
        "workdays": {"id", "user_id", "workday_start_time", "workday_end_time"},
        "alembic_version": {"version_num"},
    }


class SchemaGuardTests(unittest.TestCase):
    def test_verify_runtime_schema_ok_when_required_columns_exist(self) -> None:
        fake_inspector = _FakeInspector(
            columns_by_table=_complete_columns(),
            enums=[{"name": "user_role", "labels": ["ADMIN", "MANAGER", "EMPLOYEE", "MEMBER"]}],
        )
        fake_engine = _FakeEngine("0001_initial")

        with patch("teamclock.services.schema_guard.inspect", return_value=fake_inspector):
            result = verify_runtime_schema(fake_engine)  # type: ignore[arg-type]

        self.assertTrue(result.ok)
        self.assertEqual(result.issues, [])
        self.assertEqual(result.warnings, [])
        self.assertEqual(result.to_dict()["issue_count"], 0)

    def test_verify_runtime_schema_reports_missing_columns(self) -> None:
        columns = _complete_columns()
        columns["users"] = {"id", "email", "project_id", "role", "daily_target", "work_days", "created_at"}
        columns["workdays"] = {"id", "user_id", "workday_start_time"}
        fake_inspector = _FakeInspector(
            columns_by_table=columns,
            enums=[{"name": "user_role", "labels": ["ADMIN", "MANAGER", "EMPLOYEE"]}],
        )
        fake_engine = _FakeEngine("")

        with patch("teamclock.services.schema_guard.inspect", return_value=fake_inspector):
            result = verify_runtime_schema(fake_engine)  # type: ignore[arg-type]

        self.assertFalse(result.ok)
        self.assertIn("MISSING_COLUMNS:users:manager_id,weekly_hours", result.issues)
        self.assertIn("MISSING_COLUMNS:workdays:workday_end_time", result.issues)
        self.assertIn("MISSING_ENUM_VALUES:user_role:MEMBER", result.issues)
        self.assertIn("ALEMBIC_VERSION_EMPTY", result.issues)

    def test_enum_inspection_failure_is_a_warning(self) -> None:
        fake_inspector = _FakeInspector(columns_by_table=_complete_columns(), enums=None)
        fake_engine = _FakeEngine("0001_initial")

        with patch("teamclock.services.schema_guard.inspect", return_value=fake_inspector):
            result = verify_runtime_schema(fake_engine)  # type: ignore[arg-type]

        self.assertTrue(result.ok)
        self.assertEqual(result.warnings, ["ENUM_INSPECTION_FAILED:NotImplementedError", "ENUM_NOT_FOUND:user_role"])


if __name__ == "__main__":
    unittest.main()
