"""Host creation failure taxonomy."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from machine_server.provisioning.crashreport import CrashReport


class HostCreationError(Exception):
    """Base exception for classified host creation failures."""

    error_code = "host_creation_error"
    retryable = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.state: str | None = None


class InvalidIdentityError(HostCreationError):
    error_code = "invalid_identity"

    def __init__(self, name: str) -> None:
        super().__init__(
            f"invalid host name {name!r}: names must start with a letter or digit "
            "and contain only letters, digits, '-' and '.'"
        )
        self.name = name


class HostAlreadyExistsError(HostCreationError):
    error_code = "host_already_exists"

    def __init__(self, name: str) -> None:
        super().__init__(f"host already exists: {name!r}")
        self.name = name


class UnknownDriverError(HostCreationError):
    error_code = "unknown_driver"

    def __init__(self, driver_name: str) -> None:
        super().__init__(f"driver {driver_name!r} is not registered")
        self.driver_name = driver_name


class MalformedConfigError(HostCreationError):
    error_code = "malformed_config"


class ConfigRejectedError(HostCreationError):
    error_code = "config_rejected"


class CreationFailedError(HostCreationError):
    error_code = "creation_failed"

    def __init__(self, crash_report: CrashReport) -> None:
        super().__init__(
            f"error creating machine with driver {crash_report.driver_name!r}: "
            f"{crash_report.cause}"
        )
        self.crash_report = crash_report


class PersistFailedError(HostCreationError):
    """The backend created the host but the record was not saved."""

    error_code = "persist_failed"
    orphaned = True

    def __init__(self, name: str, cause: BaseException) -> None:
        super().__init__(
            f"host {name!r} was created by its driver but could not be saved; "
            f"the backend resource may be orphaned: {cause}"
        )
        self.name = name
        self.cause = cause


class StoreUnavailableError(HostCreationError):
    error_code = "store_unavailable"
    retryable = True


class CreationCancelledError(HostCreationError):
    error_code = "cancelled"
    retryable = True
