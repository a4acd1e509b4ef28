"""Host record bound to a provisioning driver."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from machine_server.config import SSHClientType
from machine_server.hosts.options import HostOptions

if TYPE_CHECKING:
    from machine_server.drivers.base import Driver

HOST_CONFIG_VERSION = 3


@dataclass(slots=True)
class Host:
    name: str
    driver_name: str
    driver: Driver
    host_options: HostOptions | None = None
    config_version: int = HOST_CONFIG_VERSION
    ssh_client_type: SSHClientType = SSHClientType.EXTERNAL

    def to_document(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "driver_name": self.driver_name,
            "config_version": self.config_version,
            "ssh_client_type": self.ssh_client_type.value,
            "driver_config": self.driver.to_config(),
            "host_options": self.host_options.to_dict() if self.host_options else {},
        }
