"""Provisioning drivers."""

from machine_server.drivers.base import (
    BaseDriver,
    BaseDriverConfig,
    Driver,
    DriverConfigError,
    DriverError,
    DriverFlag,
    DriverOptionError,
    FlagKind,
    decode_base_config,
    encode_base_config,
)
from machine_server.drivers.flags import DriverOptions
from machine_server.drivers.registry import DriverRegistry, create_driver_registry

__all__ = [
    "BaseDriver",
    "BaseDriverConfig",
    "Driver",
    "DriverConfigError",
    "DriverError",
    "DriverFlag",
    "DriverOptionError",
    "DriverOptions",
    "DriverRegistry",
    "FlagKind",
    "create_driver_registry",
    "decode_base_config",
    "encode_base_config",
]
