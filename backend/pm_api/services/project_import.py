"""End-to-end MS Project import: format check, conversion, parse, persist.

One call runs one import as a linear sequence of stages. Temporary files
created while converting are removed on every exit path.
"""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from pm_api.core.config import settings
from pm_api.services.import_errors import (
    ImportStage,
    ProjectImportError,
    UnsupportedFormat,
    UploadTooLarge,
)
from pm_api.services.import_persistence import ImportStore, ImportSummary, persist_import
from pm_api.services.import_reconcile import IdFactory, new_identifier, reconcile
from pm_api.services.mpp_converter import convert_to_xml
from pm_api.services.msproject_xml import parse_project_xml

logger = logging.getLogger(__name__)

CONVERTED_EXTENSIONS = {".mpp", ".mppx"}
XML_EXTENSIONS = {".xml", ".mpx"}
ACCEPTED_EXTENSIONS = CONVERTED_EXTENSIONS | XML_EXTENSIONS

Converter = Callable[[Path], bytes]


@dataclass
class ImportRun:
    filename: str
    stage: ImportStage = ImportStage.RECEIVED

    def advance(self, stage: ImportStage) -> None:
        logger.info("Import of %s: %s -> %s", self.filename, self.stage.value, stage.value)
        self.stage = stage


def check_upload(filename: str, size: int | None = None, max_bytes: int | None = None) -> str:
    """Validate an upload against the accepted formats and size bound.

    Returns the lower-cased extension.
    """
    extension = Path(filename).suffix.lower()
    if extension not in ACCEPTED_EXTENSIONS:
        accepted = ", ".join(sorted(ACCEPTED_EXTENSIONS))
        raise UnsupportedFormat(
            f"Unsupported file format {extension or '(none)'!r}. "
            f"Upload one of: {accepted}."
        )
    limit = settings.max_upload_bytes if max_bytes is None else max_bytes
    if size is not None and size > limit:
        raise UploadTooLarge(f"Upload is {size} bytes; the limit is {limit} bytes.")
    return extension


def import_project_file(
    path: str | Path,
    *,
    store: ImportStore,
    filename: str | None = None,
    converter: Converter = convert_to_xml,
    remove_upload: bool | None = None,
    id_factory: IdFactory = new_identifier,
) -> ImportSummary:
    source = Path(path)
    run = ImportRun(filename=filename or source.name)
    if remove_upload is None:
        remove_upload = settings.remove_uploads_after_import

    temp_xml: Path | None = None
    try:
        extension = check_upload(run.filename)
        xml_path = source
        if extension in CONVERTED_EXTENSIONS:
            run.advance(ImportStage.CONVERTING)
            temp_xml = _write_temp_xml(converter(source))
            xml_path = temp_xml
            run.advance(ImportStage.CONVERTED)

        run.advance(ImportStage.PARSING)
        try:
            data = xml_path.read_bytes()
        except OSError as exc:
            raise ProjectImportError(
                f"Could not read {run.filename}: {exc}", stage=ImportStage.PARSE_FAILED
            ) from exc
        parsed = parse_project_xml(data)
        run.advance(ImportStage.PARSED)

        run.advance(ImportStage.RECONCILING)
        reconciled = reconcile(parsed, id_factory)

        run.advance(ImportStage.PERSISTING)
        summary = persist_import(store, reconciled)
        run.advance(ImportStage.COMMITTED)
        return summary
    except ProjectImportError as exc:
        run.advance(exc.stage)
        logger.error("Import of %s failed: %s", run.filename, exc)
        raise
    finally:
        if temp_xml is not None:
            _remove(temp_xml)
        if remove_upload:
            _remove(source)


def _write_temp_xml(data: bytes) -> Path:
    with tempfile.NamedTemporaryFile(
        "wb",
        prefix="mpxj_converted_",
        suffix=".xml",
        delete=False,
    ) as handle:
        handle.write(data)
    return Path(handle.name)


def _remove(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not delete %s: %s", path, exc)
    else:
        logger.debug("Deleted %s", path)
