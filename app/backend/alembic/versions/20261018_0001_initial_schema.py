"""initial schema

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("role_name", sa.String(length=255), nullable=False, unique=True),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password", sa.String(length=255), nullable=False),
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.id"), nullable=False),
        sa.Column("privacy_accepted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("working_hours_weekly", sa.Integer(), nullable=False, server_default="0"),
    )

    op.create_table(
        "priority",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("priority_name", sa.String(length=255), nullable=False, unique=True),
    )

    op.create_table(
        "status",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("status_name", sa.String(length=255), nullable=False, unique=True),
    )

    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("created_by_admin_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("supervisor_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("non_working", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_projects_archived", "projects", ["archived"])

    op.create_table(
        "project_visibility",
        sa.Column(
            "project_id",
            sa.Integer(),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            primary_key=True,
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
            nullable=False,
        ),
    )
    op.create_index("ix_project_visibility_user_id", "project_visibility", ["user_id"])

    op.create_table(
        "work_packages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column(
            "project_id",
            sa.Integer(),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.CheckConstraint("start_date <= end_date", name="ck_work_packages_window_ordered"),
    )
    op.create_index("ix_work_packages_project_id", "work_packages", ["project_id"])

    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column(
            "work_package_id",
            sa.Integer(),
            sa.ForeignKey("work_packages.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("effort_hours", sa.Integer(), nullable=False),
        sa.Column("duration_hours", sa.Integer(), nullable=False),
        sa.Column("deadline", sa.Date(), nullable=False),
        sa.Column("priority_id", sa.Integer(), sa.ForeignKey("priority.id"), nullable=False),
        sa.Column("status_id", sa.Integer(), sa.ForeignKey("status.id"), nullable=False),
    )
    op.create_index("ix_tasks_work_package_id", "tasks", ["work_package_id"])

    op.create_table(
        "task_assignments",
        sa.Column(
            "task_id",
            sa.Integer(),
            sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            primary_key=True,
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
            nullable=False,
        ),
        sa.Column("effort_hypothetic", sa.Integer(), nullable=False),
        sa.Column("effort_consumed", sa.Integer(), nullable=False, server_default="0"),
        sa.CheckConstraint("effort_hypothetic >= 0", name="ck_task_assignments_hypothetic_non_negative"),
    )
    op.create_index("ix_task_assignments_user_id", "task_assignments", ["user_id"])

    op.create_table(
        "time_entries",
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), primary_key=True, nullable=False),
        sa.Column("task_id", sa.Integer(), sa.ForeignKey("tasks.id"), primary_key=True, nullable=False),
        sa.Column("entry_date", sa.Date(), primary_key=True, nullable=False),
        sa.Column("hours", sa.Numeric(4, 1), nullable=False),
        sa.CheckConstraint("hours > 0", name="ck_time_entries_hours_positive"),
    )
    op.create_index("ix_time_entries_user_date", "time_entries", ["user_id", "entry_date"])


def downgrade() -> None:
    op.drop_index("ix_time_entries_user_date", table_name="time_entries")
    op.drop_table("time_entries")

    op.drop_index("ix_task_assignments_user_id", table_name="task_assignments")
    op.drop_table("task_assignments")

    op.drop_index("ix_tasks_work_package_id", table_name="tasks")
    op.drop_table("tasks")

    op.drop_index("ix_work_packages_project_id", table_name="work_packages")
    op.drop_table("work_packages")

    op.drop_index("ix_project_visibility_user_id", table_name="project_visibility")
    op.drop_table("project_visibility")

    op.drop_index("ix_projects_archived", table_name="projects")
    op.drop_table("projects")

    op.drop_table("status")
    op.drop_table("priority")
    op.drop_table("users")
    op.drop_table("roles")
