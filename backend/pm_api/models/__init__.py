from pm_api.models.enums import *  # noqa: F403
from pm_api.models.projects import Project
from pm_api.models.resources import Resource, ResourceAssignment
from pm_api.models.tasks import Task, TaskDependency

__all__ = [
    "Project",
    "Resource",
    "ResourceAssignment",
    "Task",
    "TaskDependency",
]
