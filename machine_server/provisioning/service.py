"""Host creation workflow."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from enum import StrEnum
from pathlib import Path

from machine_server.config import AppSettings, SSHClientType
from machine_server.context import CreationContext
from machine_server.drivers.base import DriverError, encode_base_config
from machine_server.drivers.flags import DriverOptions
from machine_server.drivers.registry import DriverRegistry
from machine_server.errors import (
    ConfigRejectedError,
    CreationCancelledError,
    CreationFailedError,
    HostAlreadyExistsError,
    HostCreationError,
    InvalidIdentityError,
    PersistFailedError,
)
from machine_server.hosts.host import Host
from machine_server.hosts.identity import validate_host_name
from machine_server.hosts.options import HostRequest, build_host_options
from machine_server.provisioning.crashreport import build_crash_report, candidate_log_path
from machine_server.repositories.errors import RepositoryError
from machine_server.store import HostStore

logger = logging.getLogger(__name__)

NameValidator = Callable[[str], bool]

CRASH_REPORT_COMMAND = "Create"
CRASH_REPORT_CONTEXT = "api.performCreate"


class CreationState(StrEnum):
    VALIDATING = "validating"
    RESOLVING_DRIVER = "resolving_driver"
    BUILDING_OPTIONS = "building_options"
    CHECKING_EXISTENCE = "checking_existence"
    CONFIGURING_DRIVER = "configuring_driver"
    CREATING = "creating"
    REPORTING_FAILURE = "reporting_failure"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


class HostCreator:
    """Runs one host creation request from validation to persistence.

    Each call to ``create`` either returns the persisted host or raises exactly
    one ``HostCreationError`` subclass whose ``state`` names the step that
    failed. Nothing is retried; a host is saved only after its driver
    reported a successful creation.
    """

    def __init__(
        self,
        *,
        registry: DriverRegistry,
        store: HostStore,
        cert_dir: Path,
        ssh_client_type: SSHClientType = SSHClientType.EXTERNAL,
        name_validator: NameValidator = validate_host_name,
        crash_log_grace_seconds: float = 2.0,
    ) -> None:
        self._registry = registry
        self._store = store
        self._cert_dir = cert_dir
        self._ssh_client_type = ssh_client_type
        self._name_validator = name_validator
        self._crash_log_grace_seconds = crash_log_grace_seconds

    def create(self, request: HostRequest, *, context: CreationContext | None = None) -> Host:
        run_context = context or CreationContext.background()
        try:
            return self._run(request, run_context, _StateTracker(request.name))
        except HostCreationError as exc:
            logger.warning(
                "host %s: %s -> %s (%s): %s",
                request.name,
                exc.state,
                CreationState.FAILED.value,
                exc.error_code,
                exc,
            )
            raise

    def _run(self, request: HostRequest, context: CreationContext, tracker: _StateTracker) -> Host:
        with tracker.enter(CreationState.VALIDATING):
            context.raise_if_done()
            if not self._name_validator(request.name):
                raise InvalidIdentityError(request.name)

        with tracker.enter(CreationState.RESOLVING_DRIVER):
            host = self._registry.resolve(
                request.driver_name,
                encode_base_config(machine_name=request.name, store_path=request.store_path),
            )
            host.ssh_client_type = self._ssh_client_type

        with tracker.enter(CreationState.BUILDING_OPTIONS):
            host.host_options = build_host_options(
                request,
                cert_dir=self._cert_dir,
                machines_dir=self._store.machines_dir(),
            )

        with tracker.enter(CreationState.CHECKING_EXISTENCE):
            if self._store.exists(host.name, context=context):
                raise HostAlreadyExistsError(host.name)

        with tracker.enter(CreationState.CONFIGURING_DRIVER):
            context.raise_if_done()
            try:
                flags = DriverOptions.from_schema(
                    host.driver.get_create_flags(),
                    request.driver_options,
                )
                host.driver.set_config_from_flags(flags)
            except DriverError as exc:
                raise ConfigRejectedError(
                    f"error setting machine configuration from flags provided: {exc}"
                ) from exc

        with tracker.enter(CreationState.CREATING):
            context.raise_if_done()
            creation_error = self._create(host, context)

        if creation_error is not None:
            with tracker.enter(CreationState.REPORTING_FAILURE):
                self._report_failure(host, creation_error, context)

        with tracker.enter(CreationState.PERSISTING):
            try:
                self._store.save(host, context=context)
            except (HostCreationError, RepositoryError) as exc:
                raise PersistFailedError(host.name, exc) from exc

        tracker.finish()
        logger.info("host %s: created with driver %s", host.name, host.driver_name)
        return host

    def _create(self, host: Host, context: CreationContext) -> Exception | None:
        try:
            host.driver.create(context=context)
        except CreationCancelledError:
            raise
        # Drivers are third-party plugins; any failure they raise is a backend error.
        except Exception as exc:
            if context.done:
                raise CreationCancelledError(
                    f"host creation was interrupted: {exc}"
                ) from exc
            return exc
        return None

    def _report_failure(
        self,
        host: Host,
        cause: Exception,
        context: CreationContext,
    ) -> None:
        # Let the backend flush its logs before looking for them.
        context.wait(self._crash_log_grace_seconds)
        report = build_crash_report(
            cause=cause,
            command=CRASH_REPORT_COMMAND,
            context=CRASH_REPORT_CONTEXT,
            driver_name=host.driver_name,
            candidate_log_path=candidate_log_path(
                driver_name=host.driver_name,
                machines_dir=self._store.machines_dir(),
                host_name=host.name,
            ),
        )
        raise CreationFailedError(report) from cause


class _StateTracker:
    def __init__(self, host_name: str) -> None:
        self._host_name = host_name
        self.state = CreationState.VALIDATING

    @contextmanager
    def enter(self, state: CreationState) -> Iterator[None]:
        self._transition(state)
        try:
            yield
        except HostCreationError as exc:
            if exc.state is None:
                exc.state = state.value
            raise

    def finish(self) -> None:
        self._transition(CreationState.DONE)

    def _transition(self, state: CreationState) -> None:
        if state is not self.state:
            logger.debug("host %s: %s -> %s", self._host_name, self.state.value, state.value)
        self.state = state


def create_host_creator(
    *,
    settings: AppSettings,
    registry: DriverRegistry,
    store: HostStore,
) -> HostCreator:
    return HostCreator(
        registry=registry,
        store=store,
        cert_dir=settings.certs_dir,
        ssh_client_type=settings.ssh_client_type,
        crash_log_grace_seconds=settings.crash_log_grace_seconds,
    )
