from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from sqlalchemy.orm import Session

from pm_api.models import Project, Resource, ResourceAssignment, Task, TaskDependency
from pm_api.models.enums import ProjectStatus, TaskStatus
from pm_api.services.import_errors import ImportStage, PersistenceFailure
from pm_api.services.import_reconcile import (
    ReconciledProject,
    ResolvedAssignment,
    ResolvedDependency,
    ResolvedResource,
    ResolvedTask,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportSummary:
    project_id: str
    project_name: str
    task_count: int
    resource_count: int
    resources_reused: int = 0
    dependency_count: int = 0
    assignment_count: int = 0
    warnings: list[str] = field(default_factory=list)


class ImportStore(Protocol):
    """The create/find/transaction surface the orchestrator depends on."""

    def find_resource(self, resource_id: str) -> object | None: ...

    def add_project(self, reconciled: ReconciledProject) -> None: ...

    def add_resource(self, resource: ResolvedResource) -> None: ...

    def add_task(self, project_id: str, task: ResolvedTask) -> None: ...

    def set_task_parent(self, task_id: str, parent_id: str) -> None: ...

    def add_dependency(self, dependency: ResolvedDependency) -> None: ...

    def add_assignment(self, assignment: ResolvedAssignment) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


class SqlAlchemyImportStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def find_resource(self, resource_id: str) -> Resource | None:
        return self.session.get(Resource, resource_id)

    def add_project(self, reconciled: ReconciledProject) -> None:
        self._add(
            Project(
                id=reconciled.id,
                name=reconciled.name,
                start_date=reconciled.start,
                end_date=reconciled.finish,
                status=ProjectStatus.PLANNED,
            )
        )

    def add_resource(self, resource: ResolvedResource) -> None:
        record = resource.record
        self._add(
            Resource(
                id=resource.id,
                name=record.name,
                type=record.type,
                capacity=record.capacity,
                cost_per_hour=record.standard_rate,
                email=record.email,
            )
        )

    def add_task(self, project_id: str, task: ResolvedTask) -> None:
        record = task.record
        self._add(
            Task(
                id=task.id,
                project_id=project_id,
                name=record.name,
                description=record.notes or "",
                start_date=record.start,
                end_date=record.finish,
                duration=record.duration_hours,
                progress=record.percent_complete,
                priority=record.priority_band,
                status=TaskStatus.NOT_STARTED,
            )
        )

    def set_task_parent(self, task_id: str, parent_id: str) -> None:
        task = self.session.get(Task, task_id)
        if task is None:
            raise LookupError(f"Task {task_id} was not created in this import")
        task.parent_task_id = parent_id
        self.session.flush()

    def add_dependency(self, dependency: ResolvedDependency) -> None:
        self._add(
            TaskDependency(
                predecessor_id=dependency.predecessor_id,
                successor_id=dependency.successor_id,
                type=dependency.type,
                lag=dependency.lag_hours,
            )
        )

    def add_assignment(self, assignment: ResolvedAssignment) -> None:
        self._add(
            ResourceAssignment(
                task_id=assignment.task_id,
                resource_id=assignment.resource_id,
                units=assignment.units,
                start_date=assignment.start,
                end_date=assignment.finish,
                work_hours=assignment.work_hours,
            )
        )

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    def _add(self, instance: object) -> None:
        self.session.add(instance)
        self.session.flush()


def persist_import(store: ImportStore, reconciled: ReconciledProject) -> ImportSummary:
    """Create every entity of one import, then commit once.

    Any failure rolls back the whole import and is re-raised as
    :class:`PersistenceFailure`.
    """
    try:
        store.add_project(reconciled)

        reused = 0
        for resource in reconciled.resources:
            if store.find_resource(resource.id) is not None:
                logger.info("Resource %s already exists; reusing it", resource.id)
                reused += 1
                continue
            store.add_resource(resource)

        for task in reconciled.tasks:
            store.add_task(reconciled.id, task)
        for task in reconciled.tasks:
            if task.parent_id is not None:
                store.set_task_parent(task.id, task.parent_id)

        for dependency in reconciled.dependencies:
            store.add_dependency(dependency)
        for assignment in reconciled.assignments:
            store.add_assignment(assignment)

        store.commit()
    except Exception as exc:
        logger.error("Rolling back import of project %r: %s", reconciled.name, exc)
        store.rollback()
        raise PersistenceFailure(
            f"Failed to import project: {exc}", stage=ImportStage.ROLLED_BACK
        ) from exc

    return ImportSummary(
        project_id=reconciled.id,
        project_name=reconciled.name,
        task_count=len(reconciled.tasks),
        resource_count=len(reconciled.resources),
        resources_reused=reused,
        dependency_count=len(reconciled.dependencies),
        assignment_count=len(reconciled.assignments),
        warnings=reconciled.warnings,
    )
