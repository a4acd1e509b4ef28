"""Host creation workflow and failure reporting."""

from machine_server.provisioning.crashreport import (
    CrashReport,
    build_crash_report,
    candidate_log_path,
)
from machine_server.provisioning.service import (
    CreationState,
    HostCreator,
    create_host_creator,
)

__all__ = [
    "CrashReport",
    "CreationState",
    "HostCreator",
    "build_crash_report",
    "candidate_log_path",
    "create_host_creator",
]
