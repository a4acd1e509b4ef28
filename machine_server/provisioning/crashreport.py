"""Crash reports correlating a creation failure with backend diagnostics."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

LogLocator = Callable[[Path, str], Path]

# Backends known to write a log file under the per-host directory.
DRIVER_LOG_LOCATORS: dict[str, LogLocator] = {
    "virtualbox": lambda machines_dir, name: machines_dir / name / name / "Logs" / "VBox.log",
}


@dataclass(frozen=True, slots=True)
class CrashReport:
    cause: BaseException
    command: str
    context: str
    driver_name: str
    log_file_path: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "cause": str(self.cause),
            "cause_type": type(self.cause).__name__,
            "command": self.command,
            "context": self.context,
            "driver_name": self.driver_name,
            "log_file_path": self.log_file_path,
        }


def candidate_log_path(*, driver_name: str, machines_dir: Path, host_name: str) -> str:
    locator = DRIVER_LOG_LOCATORS.get(driver_name)
    if locator is None:
        return ""
    return str(locator(machines_dir, host_name))


def build_crash_report(
    *,
    cause: BaseException,
    command: str,
    context: str,
    driver_name: str,
    candidate_log_path: str,
) -> CrashReport:
    log_file_path = ""
    if candidate_log_path and Path(candidate_log_path).is_file():
        log_file_path = candidate_log_path

    return CrashReport(
        cause=cause,
        command=command,
        context=context,
        driver_name=driver_name,
        log_file_path=log_file_path,
    )
