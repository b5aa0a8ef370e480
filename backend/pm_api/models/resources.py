from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Enum, Float, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from pm_api.db.base import Base
from pm_api.models.enums import ResourceType


class Resource(Base):
    __tablename__ = "resources"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    type: Mapped[ResourceType] = mapped_column(
        Enum(ResourceType), default=ResourceType.WORK
    )
    capacity: Mapped[float] = mapped_column(Float, default=100)
    cost_per_hour: Mapped[float] = mapped_column(Numeric(10, 2), default=0)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)


class ResourceAssignment(Base):
    __tablename__ = "resource_assignments"

    id: Mapped[int] = mapped_column(primary_key=True)
    task_id: Mapped[str] = mapped_column(ForeignKey("tasks.id"), index=True)
    resource_id: Mapped[str] = mapped_column(ForeignKey("resources.id"), index=True)
    units: Mapped[float] = mapped_column(Float, default=100)
    start_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    work_hours: Mapped[float] = mapped_column(Float, default=0)
