"""Decode Microsoft Project XML (MSPDI) into typed import records.

The mapper is permissive about field presence: every optional field has a
documented default and only an undecodable document or a missing
``<Project>`` root raises :class:`MalformedDocument`.
"""

from __future__ import annotations

import logging
import math
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import datetime

from pm_api.models.enums import DependencyType, ResourceType, TaskPriority
from pm_api.services.import_errors import MalformedDocument

logger = logging.getLogger(__name__)

ROOT_TAG = "Project"
DEFAULT_PROJECT_NAME = "Untitled imported project"
HOURS_PER_DAY = 8
DEFAULT_PRIORITY = 500
LOW_PRIORITY_MAX = 300
HIGH_PRIORITY_MIN = 700

RESOURCE_TYPES = {
    0: ResourceType.MATERIAL,
    1: ResourceType.WORK,
    2: ResourceType.COST,
}

DEPENDENCY_TYPES = {
    0: DependencyType.FINISH_TO_FINISH,
    1: DependencyType.FINISH_TO_START,
    2: DependencyType.START_TO_FINISH,
    3: DependencyType.START_TO_START,
}

# LagFormat codes: 3/4 days and elapsed days, 5/6 hours and elapsed hours.
# Everything else is read as minutes.
DAY_LAG_FORMATS = {3, 4}
HOUR_LAG_FORMATS = {5, 6}

ISO_DURATION = re.compile(
    r"^(?P<sign>-)?P(?:(?P<days>\d+(?:\.\d+)?)D)?"
    r"(?:T(?:(?P<hours>\d+(?:\.\d+)?)H)?(?:(?P<minutes>\d+(?:\.\d+)?)M)?"
    r"(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$"
)


@dataclass(frozen=True)
class TaskRecord:
    uid: str | None
    name: str
    notes: str | None = None
    start: datetime | None = None
    finish: datetime | None = None
    duration_hours: int = 0
    percent_complete: int = 0
    priority: int = DEFAULT_PRIORITY
    outline_level: int = 1
    outline_number: str | None = None
    wbs: str | None = None
    summary: bool = False
    milestone: bool = False

    @property
    def priority_band(self) -> TaskPriority:
        return priority_band(self.priority)


@dataclass(frozen=True)
class ResourceRecord:
    uid: str | None
    name: str
    type: ResourceType = ResourceType.WORK
    capacity: float = 100.0
    standard_rate: float = 0.0
    overtime_rate: float = 0.0
    email: str | None = None
    initials: str | None = None
    group: str | None = None


@dataclass(frozen=True)
class AssignmentRecord:
    uid: str | None
    task_uid: str | None
    resource_uid: str | None
    units: float = 100.0
    work_hours: float = 0.0
    start: datetime | None = None
    finish: datetime | None = None
    cost: float = 0.0


@dataclass(frozen=True)
class DependencyRecord:
    predecessor_uid: str | None
    successor_uid: str | None
    type: DependencyType = DependencyType.FINISH_TO_START
    lag_hours: int = 0


@dataclass(frozen=True)
class ParsedProject:
    name: str
    start: datetime | None = None
    finish: datetime | None = None
    tasks: list[TaskRecord] = field(default_factory=list)
    resources: list[ResourceRecord] = field(default_factory=list)
    assignments: list[AssignmentRecord] = field(default_factory=list)
    dependencies: list[DependencyRecord] = field(default_factory=list)


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def priority_band(value: int) -> TaskPriority:
    if value <= LOW_PRIORITY_MAX:
        return TaskPriority.LOW
    if value >= HIGH_PRIORITY_MIN:
        return TaskPriority.HIGH
    return TaskPriority.MEDIUM


def resource_type(code: str | None) -> ResourceType:
    return RESOURCE_TYPES.get(_parse_int(code), ResourceType.WORK)


def dependency_type(code: str | None) -> DependencyType:
    return DEPENDENCY_TYPES.get(_parse_int(code), DependencyType.FINISH_TO_START)


def lag_to_hours(value: str | None, lag_format: str | None) -> int:
    lag = _parse_int(value)
    if not lag:
        return 0
    fmt = _parse_int(lag_format)
    if fmt in DAY_LAG_FORMATS:
        hours = lag * HOURS_PER_DAY
    elif fmt in HOUR_LAG_FORMATS:
        hours = lag
    else:
        hours = lag / 60
    return round_half_up(hours)


def parse_project_xml(data: bytes | str) -> ParsedProject:
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise MalformedDocument(f"Project XML could not be decoded: {exc}") from exc
    if _local_name(root.tag) != ROOT_TAG:
        raise MalformedDocument(
            f"Expected <{ROOT_TAG}> root element, found <{_local_name(root.tag)}>."
        )

    name = _text(root, "Name") or _text(root, "Title")
    if not name:
        logger.warning("Project has neither Name nor Title; using placeholder name")
        name = DEFAULT_PROJECT_NAME

    task_elements = _collection(root, "Tasks", "Task")
    tasks = [_map_task(el) for el in task_elements]
    resources = [_map_resource(el) for el in _collection(root, "Resources", "Resource")]
    assignments = [
        _map_assignment(el) for el in _collection(root, "Assignments", "Assignment")
    ]
    dependencies = [
        dependency
        for el, task in zip(task_elements, tasks)
        for dependency in _map_predecessor_links(el, task)
    ]

    parsed = ParsedProject(
        name=name,
        start=_parse_datetime(_text(root, "StartDate")),
        finish=_parse_datetime(_text(root, "FinishDate")),
        tasks=tasks,
        resources=resources,
        assignments=assignments,
        dependencies=dependencies,
    )
    logger.info(
        "Parsed project %r: %d tasks, %d resources, %d assignments, %d dependencies",
        parsed.name,
        len(tasks),
        len(resources),
        len(assignments),
        len(dependencies),
    )
    return parsed


def _map_task(el: ET.Element) -> TaskRecord:
    uid = _parse_identifier(_text(el, "UID"))
    name = _text(el, "Name") or ""
    if uid is None:
        logger.warning("Task %r has no valid UID; it cannot be referenced", name)
    percent = _parse_int(_text(el, "PercentComplete")) or 0
    priority = _parse_int(_text(el, "Priority"))
    outline_level = _parse_int(_text(el, "OutlineLevel"))
    return TaskRecord(
        uid=uid,
        name=name,
        notes=_text(el, "Notes"),
        start=_parse_datetime(_text(el, "Start")),
        finish=_parse_datetime(_text(el, "Finish")),
        duration_hours=round_half_up(_duration_hours(_text(el, "Duration"))),
        percent_complete=min(max(percent, 0), 100),
        priority=DEFAULT_PRIORITY if priority is None else priority,
        outline_level=1 if outline_level is None else outline_level,
        outline_number=_text(el, "OutlineNumber"),
        wbs=_text(el, "WBS"),
        summary=_parse_bool(_text(el, "Summary")),
        milestone=_parse_bool(_text(el, "Milestone")),
    )


def _map_resource(el: ET.Element) -> ResourceRecord:
    uid = _parse_identifier(_text(el, "UID"))
    name = _text(el, "Name") or ""
    if uid is None:
        logger.warning("Resource %r has no valid UID; it cannot be referenced", name)
    return ResourceRecord(
        uid=uid,
        name=name,
        type=resource_type(_text(el, "Type")),
        capacity=_parse_float(_text(el, "MaxUnits"), 100.0),
        standard_rate=_parse_float(_text(el, "StandardRate"), 0.0),
        overtime_rate=_parse_float(_text(el, "OvertimeRate"), 0.0),
        email=_text(el, "EmailAddress"),
        initials=_text(el, "Initials"),
        group=_text(el, "Group"),
    )


def _map_assignment(el: ET.Element) -> AssignmentRecord:
    return AssignmentRecord(
        uid=_parse_identifier(_text(el, "UID")),
        task_uid=_parse_identifier(_text(el, "TaskUID")),
        resource_uid=_parse_identifier(_text(el, "ResourceUID")),
        units=_parse_float(_text(el, "Units"), 100.0),
        work_hours=_work_hours(_text(el, "Work")),
        start=_parse_datetime(_text(el, "Start")),
        finish=_parse_datetime(_text(el, "Finish")),
        cost=_parse_float(_text(el, "Cost"), 0.0),
    )


def _map_predecessor_links(el: ET.Element, task: TaskRecord) -> list[DependencyRecord]:
    return [
        DependencyRecord(
            predecessor_uid=_parse_identifier(_text(link, "PredecessorUID")),
            successor_uid=task.uid,
            type=dependency_type(_text(link, "Type")),
            lag_hours=lag_to_hours(_text(link, "LinkLag"), _text(link, "LagFormat")),
        )
        for link in _children(el, "PredecessorLink")
    ]


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children(el: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in el if _local_name(child.tag) == name]


def _collection(root: ET.Element, container: str, item: str) -> list[ET.Element]:
    items: list[ET.Element] = []
    for holder in _children(root, container):
        items.extend(_children(holder, item))
    return items


def _text(el: ET.Element, name: str) -> str | None:
    for child in _children(el, name):
        value = (child.text or "").strip()
        return value or None
    return None


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return int(float(value))
    except (ValueError, OverflowError):
        return None


def _parse_identifier(value: str | None) -> str | None:
    parsed = _parse_int(value)
    return None if parsed is None else str(parsed)


def _parse_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if math.isfinite(parsed) else default


def _parse_bool(value: str | None) -> bool:
    return (value or "").lower() in {"1", "true"}


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _iso_duration_hours(value: str) -> float | None:
    match = ISO_DURATION.match(value)
    if not match or value in {"P", "PT", "-P", "-PT"}:
        return None
    parts = {
        key: float(raw or 0)
        for key, raw in match.groupdict().items()
        if key != "sign"
    }
    hours = (
        parts["days"] * HOURS_PER_DAY
        + parts["hours"]
        + parts["minutes"] / 60
        + parts["seconds"] / 3600
    )
    return -hours if match.group("sign") else hours


def _duration_hours(value: str | None) -> float:
    """Numbers are days; ISO-8601 durations (``PT16H0M0S``) are already hours."""
    if value is None:
        return 0.0
    iso = _iso_duration_hours(value)
    if iso is not None:
        return iso
    return _parse_float(value, 0.0) * HOURS_PER_DAY


def _work_hours(value: str | None) -> float:
    if value is None:
        return 0.0
    iso = _iso_duration_hours(value)
    if iso is not None:
        return iso
    return _parse_float(value, 0.0)
