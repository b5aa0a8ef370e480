from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Sequence
from pathlib import Path

from pm_api.core.config import settings
from pm_api.services.import_errors import (
    ConverterFailed,
    ConverterTimeout,
    ConverterUnavailable,
    EmptyConversionOutput,
)

logger = logging.getLogger(__name__)


def converter_command() -> list[str]:
    return shlex.split(settings.mpp_converter_command)


def convert_to_xml(
    input_path: str | Path,
    *,
    command: Sequence[str] | None = None,
    cwd: str | Path | None = None,
    timeout: float | None = None,
) -> bytes:
    """Run the external MPP converter and return the XML it writes to stdout.

    The absolute input path is appended as the last argument. Stdout is
    returned undecoded so the document's own encoding declaration applies.
    A run that exits 0 without output is treated as a failure.
    """
    cmd = list(command if command is not None else converter_command())
    if not cmd:
        raise ConverterUnavailable("No MPP converter command is configured.")
    cmd.append(str(Path(input_path).resolve()))
    if cwd is None and command is None:
        cwd = settings.mpp_converter_dir
    if cwd is not None and not Path(cwd).is_dir():
        cwd = None
    if timeout is None:
        timeout = settings.mpp_converter_timeout_seconds

    logger.info("Running MPP converter: %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd is not None else None,
            check=False,
            capture_output=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise ConverterTimeout(
            f"MPP converter did not finish within {timeout:g}s and was terminated."
        ) from exc
    except OSError as exc:
        raise ConverterUnavailable(f"Failed to start MPP converter: {exc}") from exc

    stderr = (result.stderr or b"").decode("utf-8", errors="replace").strip()
    if result.returncode != 0:
        logger.error("MPP converter exited with code %s: %s", result.returncode, stderr)
        raise ConverterFailed(
            f"MPP converter exited with code {result.returncode}. "
            f"Error: {stderr or 'Unknown converter error'}",
            returncode=result.returncode,
            stderr=stderr,
        )
    if not (result.stdout or b"").strip():
        raise EmptyConversionOutput(
            "MPP converter exited successfully but produced no output. "
            f"Stderr: {stderr or 'None'}"
        )
    logger.info("MPP converter produced %d bytes of XML", len(result.stdout))
    return result.stdout
