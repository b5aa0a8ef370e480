from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from pm_api.models.enums import DependencyType
from pm_api.services.import_errors import UnresolvedReference
from pm_api.services.msproject_xml import (
    AssignmentRecord,
    DependencyRecord,
    ParsedProject,
    ResourceRecord,
    TaskRecord,
)

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def new_identifier() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class ResolvedTask:
    id: str
    record: TaskRecord
    parent_id: str | None = None


@dataclass(frozen=True)
class ResolvedResource:
    id: str
    record: ResourceRecord


@dataclass(frozen=True)
class ResolvedDependency:
    predecessor_id: str
    successor_id: str
    type: DependencyType
    lag_hours: int


@dataclass(frozen=True)
class ResolvedAssignment:
    task_id: str
    resource_id: str
    units: float
    work_hours: float
    start: datetime | None
    finish: datetime | None


@dataclass(frozen=True)
class ReconciledProject:
    id: str
    name: str
    start: datetime | None
    finish: datetime | None
    tasks: list[ResolvedTask] = field(default_factory=list)
    resources: list[ResolvedResource] = field(default_factory=list)
    dependencies: list[ResolvedDependency] = field(default_factory=list)
    assignments: list[ResolvedAssignment] = field(default_factory=list)
    unresolved: list[UnresolvedReference] = field(default_factory=list)
    hierarchy_warnings: list[str] = field(default_factory=list)

    @property
    def warnings(self) -> list[str]:
        return [ref.describe() for ref in self.unresolved] + list(self.hierarchy_warnings)


def parent_outline_number(outline_number: str | None) -> str | None:
    """``"1.2.3"`` -> ``"1.2"``; top-level or missing numbers have no parent."""
    if not outline_number:
        return None
    parts = outline_number.split(".")
    if len(parts) < 2:
        return None
    return ".".join(parts[:-1])


def reconcile(
    parsed: ParsedProject, id_factory: IdFactory = new_identifier
) -> ReconciledProject:
    """Assign internal identifiers and resolve every cross-reference.

    Lookup tables live only for the duration of this call. Tasks and
    resources without an external UID still get internal ids but are never
    reachable from dependencies or assignments.
    """
    project_id = id_factory()

    task_ids = [id_factory() for _ in parsed.tasks]
    task_lookup: dict[str, str] = {}
    for record, task_id in zip(parsed.tasks, task_ids):
        if record.uid is not None:
            task_lookup[record.uid] = task_id

    resources: list[ResolvedResource] = []
    resource_lookup: dict[str, str] = {}
    for record in parsed.resources:
        resource_id = record.uid if record.uid is not None else id_factory()
        resources.append(ResolvedResource(id=resource_id, record=record))
        if record.uid is not None:
            resource_lookup[record.uid] = resource_id

    parents, hierarchy_warnings = _resolve_parents(parsed.tasks, task_ids)
    tasks = [
        ResolvedTask(id=task_id, record=record, parent_id=parents.get(task_id))
        for record, task_id in zip(parsed.tasks, task_ids)
    ]

    unresolved: list[UnresolvedReference] = []
    dependencies = []
    for dep in parsed.dependencies:
        resolved = _resolve_dependency(dep, task_lookup)
        if isinstance(resolved, UnresolvedReference):
            unresolved.append(resolved)
            continue
        dependencies.append(resolved)

    assignments = []
    for assignment in parsed.assignments:
        resolved = _resolve_assignment(assignment, task_lookup, resource_lookup)
        if isinstance(resolved, UnresolvedReference):
            unresolved.append(resolved)
            continue
        assignments.append(resolved)

    for ref in unresolved:
        logger.warning(ref.describe())

    return ReconciledProject(
        id=project_id,
        name=parsed.name,
        start=parsed.start,
        finish=parsed.finish,
        tasks=tasks,
        resources=resources,
        dependencies=dependencies,
        assignments=assignments,
        unresolved=unresolved,
        hierarchy_warnings=hierarchy_warnings,
    )


def _resolve_parents(
    records: list[TaskRecord],
    task_ids: list[str],
    parent_number: Callable[[str | None], str | None] = parent_outline_number,
) -> tuple[dict[str, str], list[str]]:
    """Map child task id -> parent task id.

    Truncated outline numbers are always shorter than the child's, so the
    ancestor check only rejects links when ``parent_number`` does not
    shorten its input.
    """
    parents: dict[str, str] = {}
    warnings: list[str] = []
    for index, record in enumerate(records):
        if record.outline_level <= 1:
            continue
        candidate = parent_number(record.outline_number)
        if candidate is None:
            continue
        parent_index = next(
            (
                other
                for other, other_record in enumerate(records)
                if other != index and other_record.outline_number == candidate
            ),
            None,
        )
        if parent_index is None:
            continue
        child_id = task_ids[index]
        parent_id = task_ids[parent_index]
        if _is_ancestor(child_id, parent_id, parents):
            message = (
                f"Skipped parent link for task {record.name!r} "
                f"({record.outline_number}): it would create a cycle."
            )
            logger.warning(message)
            warnings.append(message)
            continue
        parents[child_id] = parent_id
    return parents, warnings


def _is_ancestor(candidate: str, task_id: str, parents: dict[str, str]) -> bool:
    """True when ``candidate`` is ``task_id`` or one of its ancestors."""
    seen: set[str] = set()
    current: str | None = task_id
    while current is not None and current not in seen:
        if current == candidate:
            return True
        seen.add(current)
        current = parents.get(current)
    return False


def _resolve_dependency(
    dep: DependencyRecord, task_lookup: dict[str, str]
) -> ResolvedDependency | UnresolvedReference:
    predecessor_id = task_lookup.get(dep.predecessor_uid) if dep.predecessor_uid else None
    successor_id = task_lookup.get(dep.successor_uid) if dep.successor_uid else None
    if predecessor_id is None or successor_id is None:
        return UnresolvedReference(
            kind="dependency",
            source=dep.predecessor_uid,
            target=dep.successor_uid,
            missing="predecessor" if predecessor_id is None else "successor",
        )
    return ResolvedDependency(
        predecessor_id=predecessor_id,
        successor_id=successor_id,
        type=dep.type,
        lag_hours=dep.lag_hours,
    )


def _resolve_assignment(
    assignment: AssignmentRecord,
    task_lookup: dict[str, str],
    resource_lookup: dict[str, str],
) -> ResolvedAssignment | UnresolvedReference:
    task_id = task_lookup.get(assignment.task_uid) if assignment.task_uid else None
    resource_id = (
        resource_lookup.get(assignment.resource_uid) if assignment.resource_uid else None
    )
    if task_id is None or resource_id is None:
        return UnresolvedReference(
            kind="assignment",
            source=assignment.task_uid,
            target=assignment.resource_uid,
            missing="task" if task_id is None else "resource",
        )
    return ResolvedAssignment(
        task_id=task_id,
        resource_id=resource_id,
        units=assignment.units,
        work_hours=assignment.work_hours,
        start=assignment.start,
        finish=assignment.finish,
    )
