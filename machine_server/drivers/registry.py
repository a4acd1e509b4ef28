"""Driver name resolution into hosts bound to a concrete driver."""

from __future__ import annotations

from collections.abc import Callable, Mapping

from machine_server.drivers.base import BaseDriverConfig, Driver, decode_base_config
from machine_server.drivers.none import NoneDriver
from machine_server.errors import UnknownDriverError
from machine_server.hosts.host import Host

DriverFactory = Callable[[BaseDriverConfig], Driver]

BUILTIN_DRIVERS: dict[str, DriverFactory] = {
    NoneDriver.driver_name: NoneDriver.from_base_config,  # type: ignore[dict-item]
}


class DriverRegistry:
    def __init__(self, factories: Mapping[str, DriverFactory] | None = None) -> None:
        self._factories: dict[str, DriverFactory] = {}
        for driver_name, factory in (factories or {}).items():
            self.register(driver_name, factory)

    def register(self, driver_name: str, factory: DriverFactory) -> None:
        normalized = driver_name.strip().lower()
        if not normalized:
            raise ValueError("driver name must not be empty")
        if normalized in self._factories:
            raise ValueError(f"driver {normalized!r} is already registered")
        self._factories[normalized] = factory

    def driver_names(self) -> tuple[str, ...]:
        return tuple(sorted(self._factories))

    def resolve(self, driver_name: str, base_config: bytes) -> Host:
        normalized = driver_name.strip().lower()
        factory = self._factories.get(normalized)
        if factory is None:
            raise UnknownDriverError(driver_name)

        config = decode_base_config(base_config)
        driver = factory(config)
        return Host(
            name=driver.get_machine_name(),
            driver_name=normalized,
            driver=driver,
        )


def create_driver_registry() -> DriverRegistry:
    return DriverRegistry(BUILTIN_DRIVERS)
