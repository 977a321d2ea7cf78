#!/usr/bin/env python
from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import create_engine, text

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from teamclock.settings import get_settings

EXPECTED_HEAD = "0001_initial"
REQUIRED_TABLES = (
    "projects",
    "users",
    "secondary_managers",
    "time_entries",
    "time_breaks",
    "workdays",
    "audit_logs",
)


def run() -> dict:
    engine = create_engine(get_settings().database_url)
    report: dict = {
        "generated_at_utc": datetime.now(timezone.utc).isoformat(),
        "checks": [],
    }

    def add(name: str, status: str, details: dict) -> None:
        report["checks"].append(
            {
                "name": name,
                "status": status,
                "details": details,
            }
        )

    with engine.connect() as conn:
        tables = set(
            conn.execute(
                text(
                    """
                    select table_name
                    from information_schema.tables
                    where table_schema='public'
                    """
                )
            ).scalars()
        )

        current_versions: list[str] = []
        if "alembic_version" in tables:
            current_versions = [
                row[0]
                for row in conn.execute(text("select version_num from alembic_version")).fetchall()
            ]
        add("alembic_version", "ok" if current_versions else "fail", {"current": current_versions})
        add(
            "migration_up_to_date",
            "ok" if EXPECTED_HEAD in current_versions else "warn",
            {"expected_head": EXPECTED_HEAD, "current": current_versions},
        )

        missing_tables = [table for table in REQUIRED_TABLES if table not in tables]
        add("missing_tables", "fail" if missing_tables else "ok", {"missing": missing_tables})
        if "users" not in tables:
            return report

        # manager edges are expected to form a forest
        cyclic_users = conn.execute(
            text(
                """
                with recursive chain(start_id, current_id, path) as (
                    select id, manager_id, array[id]
                    from users
                    where manager_id is not null and manager_id <> id
                    union all
                    select c.start_id, u.manager_id, c.path || u.id
                    from chain c
                    join users u on u.id = c.current_id
                    where u.manager_id is not null and not u.id = any(c.path)
                )
                select distinct start_id
                from chain
                where current_id = start_id
                order by start_id
                limit 20
                """
            )
        ).fetchall()
        add(
            "manager_cycles",
            "fail" if cyclic_users else "ok",
            {"sample_user_ids": [row[0] for row in cyclic_users]},
        )

        self_managed = conn.execute(
            text("select id from users where manager_id = id limit 20")
        ).fetchall()
        add(
            "self_managed_users",
            "warn" if self_managed else "ok",
            {"sample_user_ids": [row[0] for row in self_managed]},
        )

        cross_project = conn.execute(
            text(
                """
                select u.id
                from users u
                join users m on m.id = u.manager_id
                where u.project_id is distinct from m.project_id
                limit 20
                """
            )
        ).fetchall()
        add(
            "cross_project_manager",
            "warn" if cross_project else "ok",
            {"sample_user_ids": [row[0] for row in cross_project]},
        )

        if "workdays" in tables:
            stale_open_markers = conn.execute(
                text(
                    """
                    select id
                    from workdays
                    where workday_end_time is null
                      and workday_start_time < now() - interval '2 days'
                    limit 20
                    """
                )
            ).fetchall()
            add(
                "stale_open_workdays",
                "warn" if stale_open_markers else "ok",
                {"sample_ids": [row[0] for row in stale_open_markers]},
            )

    return report


if __name__ == "__main__":
    print(json.dumps(run(), ensure_ascii=False, indent=2))
