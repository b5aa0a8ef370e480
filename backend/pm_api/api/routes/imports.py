from __future__ import annotations

import time
from pathlib import Path

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from pm_api.api.deps import get_db
from pm_api.core.config import settings
from pm_api.schemas.imports import ImportResponse, ImportSummaryRead
from pm_api.services.import_errors import (
    MalformedDocument,
    ProjectImportError,
    UnsupportedFormat,
    UploadTooLarge,
)
from pm_api.services.import_persistence import SqlAlchemyImportStore
from pm_api.services.project_import import check_upload, import_project_file

router = APIRouter()

ERROR_STATUS: dict[type[ProjectImportError], int] = {
    UnsupportedFormat: 400,
    UploadTooLarge: 413,
    MalformedDocument: 422,
}


def _http_error(exc: ProjectImportError) -> HTTPException:
    for error_type, code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return HTTPException(status_code=code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _store_upload(filename: str, content: bytes) -> Path:
    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    path = upload_dir / f"{int(time.time() * 1000)}-{Path(filename).name}"
    path.write_bytes(content)
    return path


@router.post("/msproject", response_model=ImportResponse, status_code=status.HTTP_201_CREATED)
def import_msproject(
    project_file: UploadFile = File(..., alias="projectFile"),
    db: Session = Depends(get_db),
) -> ImportResponse:
    filename = project_file.filename or ""
    try:
        check_upload(filename)
        content = project_file.file.read(settings.max_upload_bytes + 1)
        check_upload(filename, len(content))
        summary = import_project_file(
            _store_upload(filename, content),
            store=SqlAlchemyImportStore(db),
            filename=filename,
        )
    except ProjectImportError as exc:
        raise _http_error(exc) from exc
    return ImportResponse(project=ImportSummaryRead.model_validate(summary))
