from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ImportStage(str, Enum):
    RECEIVED = "received"
    CONVERTING = "converting"
    CONVERTED = "converted"
    CONVERSION_FAILED = "conversion_failed"
    PARSING = "parsing"
    PARSED = "parsed"
    PARSE_FAILED = "parse_failed"
    RECONCILING = "reconciling"
    PERSISTING = "persisting"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class ProjectImportError(Exception):
    """Base class for stage-fatal import failures."""

    stage: ImportStage = ImportStage.RECEIVED

    def __init__(self, message: str, *, stage: ImportStage | None = None) -> None:
        super().__init__(message)
        self.message = message
        if stage is not None:
            self.stage = stage


class UnsupportedFormat(ProjectImportError):
    pass


class UploadTooLarge(ProjectImportError):
    pass


class ConversionError(ProjectImportError):
    stage = ImportStage.CONVERSION_FAILED


class ConverterUnavailable(ConversionError):
    pass


class ConverterFailed(ConversionError):
    def __init__(self, message: str, *, returncode: int, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class EmptyConversionOutput(ConversionError):
    pass


class ConverterTimeout(ConversionError):
    pass


class MalformedDocument(ProjectImportError):
    stage = ImportStage.PARSE_FAILED


class PersistenceFailure(ProjectImportError):
    stage = ImportStage.ROLLED_BACK


@dataclass(frozen=True)
class UnresolvedReference:
    """A dependency or assignment dropped because an endpoint did not resolve."""

    kind: str
    source: str | None
    target: str | None
    missing: str

    def describe(self) -> str:
        if self.kind == "dependency":
            return (
                f"Skipped dependency {self.source} -> {self.target}: "
                f"{self.missing} task not found."
            )
        return (
            f"Skipped assignment of resource {self.target} to task {self.source}: "
            f"{self.missing} not found."
        )
