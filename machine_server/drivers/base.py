"""Driver capability interface, base driver fields and driver errors."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar, Protocol

from machine_server.errors import MalformedConfigError

if TYPE_CHECKING:
    from machine_server.context import CreationContext
    from machine_server.drivers.flags import DriverOptions


class FlagKind(StrEnum):
    STRING = "string"
    STRING_SLICE = "string_slice"
    INT = "int"
    BOOL = "bool"


@dataclass(frozen=True, slots=True)
class DriverFlag:
    name: str
    kind: FlagKind
    default: str | int | bool | tuple[str, ...] | None = None
    usage: str = ""


class Driver(Protocol):
    driver_name: str

    def get_machine_name(self) -> str:
        """Return the machine name the driver was constructed for."""

    def get_create_flags(self) -> list[DriverFlag]:
        """Return the schema of parameters accepted by ``set_config_from_flags``."""

    def set_config_from_flags(self, flags: DriverOptions) -> None:
        """Apply caller parameters; raise DriverError to reject them."""

    def create(self, *, context: CreationContext) -> None:
        """Provision the compute instance on the backend."""

    def to_config(self) -> dict[str, Any]:
        """Return the JSON-serializable driver state persisted with the host."""


class DriverError(Exception):
    """Base exception raised by drivers."""

    error_code = "driver_error"


class DriverConfigError(DriverError):
    error_code = "driver_config_error"


class DriverOptionError(DriverError):
    """Raised when caller-supplied driver options do not match the flag schema."""

    error_code = "driver_option_error"


@dataclass(frozen=True, slots=True)
class BaseDriverConfig:
    machine_name: str
    store_path: str


def encode_base_config(*, machine_name: str, store_path: str) -> bytes:
    return json.dumps({"machine_name": machine_name, "store_path": store_path}).encode("utf-8")


def decode_base_config(raw: bytes) -> BaseDriverConfig:
    try:
        data = json.loads(raw)
    except (UnicodeDecodeError, ValueError) as exc:
        raise MalformedConfigError(f"driver base config is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise MalformedConfigError("driver base config must be a JSON object")

    machine_name = data.get("machine_name")
    store_path = data.get("store_path")
    if not isinstance(machine_name, str) or not isinstance(store_path, str):
        raise MalformedConfigError(
            "driver base config requires string fields machine_name and store_path"
        )
    return BaseDriverConfig(machine_name=machine_name, store_path=store_path)


@dataclass(slots=True)
class BaseDriver:
    """Fields shared by every driver; concrete drivers extend this dataclass."""

    driver_name: ClassVar[str] = ""

    machine_name: str
    store_path: str
    ip_address: str = ""
    ssh_user: str = "root"
    ssh_port: int = 22
    ssh_key_path: str = ""

    @classmethod
    def from_base_config(cls, config: BaseDriverConfig) -> BaseDriver:
        return cls(machine_name=config.machine_name, store_path=config.store_path)

    def get_machine_name(self) -> str:
        return self.machine_name

    def to_config(self) -> dict[str, Any]:
        return asdict(self)
