"""ORM entities for the WBS time ledger schema."""

from __future__ import annotations

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from wbsledger.db.base import Base

ROLE_RESEARCHER = "Researcher"
ROLE_SUPERVISOR = "Supervisor"
ROLE_ADMINISTRATOR = "Administrator"


class Role(Base):
    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    role_name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    role_id: Mapped[int] = mapped_column(Integer, ForeignKey("roles.id"), nullable=False)
    privacy_accepted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    working_hours_weekly: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Priority(Base):
    __tablename__ = "priority"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    priority_name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)


class Status(Base):
    __tablename__ = "status"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    status_name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)


class Project(Base):
    __tablename__ = "projects"
    __table_args__ = (Index("ix_projects_archived", "archived"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_by_admin_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    supervisor_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Set only by reference-data seeding for the shared time-off catalogue.
    non_working: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class ProjectVisibility(Base):
    __tablename__ = "project_visibility"
    __table_args__ = (Index("ix_project_visibility_user_id", "user_id"),)

    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)


class WorkPackage(Base):
    __tablename__ = "work_packages"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_work_packages_window_ordered"),
        Index("ix_work_packages_project_id", "project_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (Index("ix_tasks_work_package_id", "work_package_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    work_package_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("work_packages.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    effort_hours: Mapped[int] = mapped_column(Integer, nullable=False)
    duration_hours: Mapped[int] = mapped_column(Integer, nullable=False)
    deadline: Mapped[date] = mapped_column(Date, nullable=False)
    priority_id: Mapped[int] = mapped_column(Integer, ForeignKey("priority.id"), nullable=False)
    status_id: Mapped[int] = mapped_column(Integer, ForeignKey("status.id"), nullable=False)


class TaskAssignment(Base):
    __tablename__ = "task_assignments"
    __table_args__ = (
        CheckConstraint("effort_hypothetic >= 0", name="ck_task_assignments_hypothetic_non_negative"),
        Index("ix_task_assignments_user_id", "user_id"),
    )

    task_id: Mapped[int] = mapped_column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    effort_hypothetic: Mapped[int] = mapped_column(Integer, nullable=False)
    # Denormalized cache of hours logged in time_entries; see EffortLedger.
    effort_consumed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class TimeEntry(Base):
    __tablename__ = "time_entries"
    __table_args__ = (
        CheckConstraint("hours > 0", name="ck_time_entries_hours_positive"),
        Index("ix_time_entries_user_date", "user_id", "entry_date"),
    )

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), primary_key=True)
    task_id: Mapped[int] = mapped_column(Integer, ForeignKey("tasks.id"), primary_key=True)
    entry_date: Mapped[date] = mapped_column(Date, primary_key=True)
    hours: Mapped[Decimal] = mapped_column(Numeric(4, 1), nullable=False)
