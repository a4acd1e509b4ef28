from __future__ import annotations

from collections.abc import Callable, Generator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from machine_server.config import AppSettings
from machine_server.context import CreationContext
from machine_server.db import models as _models  # noqa: F401
from machine_server.db.base import Base
from machine_server.drivers.base import BaseDriverConfig, DriverFlag, FlagKind
from machine_server.drivers.flags import DriverOptions
from machine_server.drivers.registry import DriverRegistry
from machine_server.hosts.host import Host
from machine_server.provisioning.service import HostCreator
from machine_server.store import SqlHostStore


@dataclass(slots=True)
class DriverBehavior:
    config_error: Exception | None = None
    create_error: Exception | None = None
    on_create: Callable[[CreationContext], None] | None = None
    flags: list[DriverFlag] = field(
        default_factory=lambda: [
            DriverFlag(name="memory", kind=FlagKind.INT, default=1024),
            DriverFlag(name="boot2docker_url", kind=FlagKind.STRING),
            DriverFlag(name="share_folders", kind=FlagKind.STRING_SLICE),
            DriverFlag(name="no_share", kind=FlagKind.BOOL),
        ]
    )
    drivers: list[StubDriver] = field(default_factory=list)

    @property
    def set_config_calls(self) -> int:
        return sum(len(driver.config_calls) for driver in self.drivers)

    @property
    def create_calls(self) -> int:
        return sum(driver.create_calls for driver in self.drivers)


class StubDriver:
    driver_name = "virtualbox"

    def __init__(self, config: BaseDriverConfig, behavior: DriverBehavior) -> None:
        self.machine_name = config.machine_name
        self.store_path = config.store_path
        self.memory = 0
        self.config_calls: list[DriverOptions] = []
        self.create_calls = 0
        self._behavior = behavior

    def get_machine_name(self) -> str:
        return self.machine_name

    def get_create_flags(self) -> list[DriverFlag]:
        return list(self._behavior.flags)

    def set_config_from_flags(self, flags: DriverOptions) -> None:
        self.config_calls.append(flags)
        if self._behavior.config_error is not None:
            raise self._behavior.config_error
        self.memory = flags.get_int("memory")

    def create(self, *, context: CreationContext) -> None:
        self.create_calls += 1
        if self._behavior.on_create is not None:
            self._behavior.on_create(context)
        if self._behavior.create_error is not None:
            raise self._behavior.create_error

    def to_config(self) -> dict[str, Any]:
        return {
            "machine_name": self.machine_name,
            "store_path": self.store_path,
            "memory": self.memory,
        }


@dataclass(slots=True)
class RecordingStore:
    inner: SqlHostStore
    exists_result: bool | None = None
    exists_error: Exception | None = None
    save_error: Exception | None = None
    exists_calls: list[str] = field(default_factory=list)
    saved_hosts: list[Host] = field(default_factory=list)

    def machines_dir(self) -> Path:
        return self.inner.machines_dir()

    def exists(self, name: str, *, context: CreationContext) -> bool:
        self.exists_calls.append(name)
        if self.exists_error is not None:
            raise self.exists_error
        if self.exists_result is not None:
            return self.exists_result
        return self.inner.exists(name, context=context)

    def save(self, host: Host, *, context: CreationContext) -> None:
        self.saved_hosts.append(host)
        if self.save_error is not None:
            raise self.save_error
        self.inner.save(host, context=context)


@pytest.fixture()
def db_engine() -> Generator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(db_engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=db_engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )


@pytest.fixture()
def storage_path(tmp_path: Path) -> Path:
    path = tmp_path / "machine"
    path.mkdir()
    return path


@pytest.fixture()
def machines_dir(storage_path: Path) -> Path:
    return storage_path / "machines"


@pytest.fixture()
def cert_dir(storage_path: Path) -> Path:
    return storage_path / "certs"


@pytest.fixture()
def app_settings(storage_path: Path) -> AppSettings:
    return AppSettings(
        app_env="test",
        storage_path=str(storage_path),
        database_url="sqlite+pysqlite:///:memory:",
        log_level="DEBUG",
        create_timeout_seconds=30.0,
        crash_log_grace_seconds=0.0,
    )


@pytest.fixture()
def driver_behavior() -> DriverBehavior:
    return DriverBehavior()


@pytest.fixture()
def stub_driver_factory(driver_behavior: DriverBehavior) -> Callable[[BaseDriverConfig], StubDriver]:
    def factory(config: BaseDriverConfig) -> StubDriver:
        driver = StubDriver(config, driver_behavior)
        driver_behavior.drivers.append(driver)
        return driver

    return factory


@pytest.fixture()
def driver_registry(
    stub_driver_factory: Callable[[BaseDriverConfig], StubDriver],
) -> DriverRegistry:
    registry = DriverRegistry()
    registry.register("virtualbox", stub_driver_factory)
    return registry


@pytest.fixture()
def sql_host_store(session_factory: sessionmaker[Session], machines_dir: Path) -> SqlHostStore:
    return SqlHostStore(session_factory=session_factory, machines_dir=machines_dir)


@pytest.fixture()
def host_store(sql_host_store: SqlHostStore) -> RecordingStore:
    return RecordingStore(inner=sql_host_store)


@pytest.fixture()
def host_creator(
    driver_registry: DriverRegistry,
    host_store: RecordingStore,
    cert_dir: Path,
) -> HostCreator:
    return HostCreator(
        registry=driver_registry,
        store=host_store,
        cert_dir=cert_dir,
        crash_log_grace_seconds=0.0,
    )
