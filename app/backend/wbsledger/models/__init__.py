"""ORM model package."""

from wbsledger.models.entities import (
    Priority,
    Project,
    ProjectVisibility,
    Role,
    Status,
    Task,
    TaskAssignment,
    TimeEntry,
    User,
    WorkPackage,
)

__all__ = [
    "Priority",
    "Project",
    "ProjectVisibility",
    "Role",
    "Status",
    "Task",
    "TaskAssignment",
    "TimeEntry",
    "User",
    "WorkPackage",
]
