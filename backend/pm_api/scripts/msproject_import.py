from __future__ import annotations

import argparse
import sys
from functools import partial
from pathlib import Path

from pm_api.core.config import settings
from pm_api.core.logging_setup import setup_logging
from pm_api.db.session import SessionLocal
from pm_api.services.import_errors import ProjectImportError
from pm_api.services.import_persistence import ImportSummary, SqlAlchemyImportStore
from pm_api.services.mpp_converter import convert_to_xml
from pm_api.services.project_import import import_project_file


def format_summary(summary: ImportSummary) -> str:
    output = [
        f"Imported project '{summary.project_name}' ({summary.project_id})",
        f"Tasks: {summary.task_count}",
        f"Resources: {summary.resource_count} ({summary.resources_reused} reused)",
        f"Dependencies: {summary.dependency_count}",
        f"Assignments: {summary.assignment_count}",
    ]
    if summary.warnings:
        output.append("")
        output.append("Warnings:")
        output.extend(f"- {warning}" for warning in summary.warnings)
    return "\n".join(output)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Import an MS Project file (.xml, .mpx, .mpp, .mppx) into the database."
    )
    parser.add_argument("path", type=Path, help="Path to the project file.")
    parser.add_argument(
        "--remove-source",
        action="store_true",
        help="Delete the source file once the import finishes.",
    )
    parser.add_argument(
        "--converter-timeout",
        type=float,
        default=settings.mpp_converter_timeout_seconds,
        help="Seconds to wait for the MPP converter (default: %(default)s).",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL.")
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    with SessionLocal() as session:
        try:
            summary = import_project_file(
                args.path,
                store=SqlAlchemyImportStore(session),
                converter=partial(convert_to_xml, timeout=args.converter_timeout),
                remove_upload=args.remove_source,
            )
        except ProjectImportError as exc:
            print(f"Import failed ({exc.stage.value}): {exc}", file=sys.stderr)
            return 1
    print(format_summary(summary))
    return 0


if __name__ == "__main__":
    sys.exit(main())
