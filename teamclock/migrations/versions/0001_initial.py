"""Initial team hierarchy and time ledger schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = postgresql.ENUM(
    "ADMIN",
    "MANAGER",
    "EMPLOYEE",
    "MEMBER",
    name="user_role",
    create_type=False,
)
work_mode = postgresql.ENUM(
    "TIME_BASED",
    "OUTPUT_BASED",
    "PROJECT_BASED",
    name="work_mode",
    create_type=False,
)


def upgrade() -> None:
    bind = op.get_bind()
    user_role.create(bind, checkfirst=True)
    work_mode.create(bind, checkfirst=True)

    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("work_mode", work_mode, nullable=False, server_default=sa.text("'TIME_BASED'")),
        sa.Column("daily_target", sa.Float(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("role", user_role, nullable=False, server_default=sa.text("'EMPLOYEE'")),
        sa.Column("manager_id", sa.Integer(), nullable=True),
        sa.Column("daily_target", sa.Float(), nullable=True),
        sa.Column(
            "work_days",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[1, 2, 3, 4, 5]'::jsonb"),
        ),
        sa.Column("weekly_hours", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("work_mode", work_mode, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["manager_id"], ["users.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_project_id", "users", ["project_id"], unique=False)
    op.create_index("ix_users_manager_id", "users", ["manager_id"], unique=False)

    op.create_table(
        "secondary_managers",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("manager_id", sa.Integer(), nullable=False),
        sa.Column(
            "permissions",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.ForeignKeyConstraint(["employee_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["manager_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("employee_id", "manager_id", name="uq_secondary_managers_pair"),
    )
    op.create_index("ix_secondary_managers_employee_id", "secondary_managers", ["employee_id"], unique=False)
    op.create_index("ix_secondary_managers_manager_id", "secondary_managers", ["manager_id"], unique=False)

    op.create_table(
        "time_entries",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_manual", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_time_entries_user_id", "time_entries", ["user_id"], unique=False)
    op.create_index("ix_time_entries_start_time", "time_entries", ["start_time"], unique=False)

    op.create_table(
        "time_breaks",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("time_entry_id", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reason", sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(["time_entry_id"], ["time_entries.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_time_breaks_time_entry_id", "time_breaks", ["time_entry_id"], unique=False)

    op.create_table(
        "workdays",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("workday_start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("workday_end_time", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_workdays_user_id", "workdays", ["user_id"], unique=False)
    op.create_index("ix_workdays_workday_start_time", "workdays", ["workday_start_time"], unique=False)

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "ts_utc",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column("actor_id", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(length=255), nullable=False),
        sa.Column("entity_type", sa.String(length=255), nullable=True),
        sa.Column("entity_id", sa.String(length=255), nullable=True),
        sa.Column("success", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "details",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
    )
    op.create_index("ix_audit_logs_ts_utc", "audit_logs", ["ts_utc"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_audit_logs_ts_utc", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_workdays_workday_start_time", table_name="workdays")
    op.drop_index("ix_workdays_user_id", table_name="workdays")
    op.drop_table("workdays")
    op.drop_index("ix_time_breaks_time_entry_id", table_name="time_breaks")
    op.drop_table("time_breaks")
    op.drop_index("ix_time_entries_start_time", table_name="time_entries")
    op.drop_index("ix_time_entries_user_id", table_name="time_entries")
    op.drop_table("time_entries")
    op.drop_index("ix_secondary_managers_manager_id", table_name="secondary_managers")
    op.drop_index("ix_secondary_managers_employee_id", table_name="secondary_managers")
    op.drop_table("secondary_managers")
    op.drop_index("ix_users_manager_id", table_name="users")
    op.drop_index("ix_users_project_id", table_name="users")
    op.drop_table("users")
    op.drop_table("projects")

    bind = op.get_bind()
    work_mode.drop(bind, checkfirst=True)
    user_role.drop(bind, checkfirst=True)
