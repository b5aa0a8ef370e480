from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ImportSummaryRead(BaseModel):
    project_id: str
    project_name: str
    task_count: int
    resource_count: int
    resources_reused: int = 0
    dependency_count: int = 0
    assignment_count: int = 0
    warnings: list[str] = []

    model_config = ConfigDict(from_attributes=True)


class ImportResponse(BaseModel):
    status: str = "success"
    message: str = "Project imported successfully"
    project: ImportSummaryRead
