"""Host identity, options and record types."""

from machine_server.hosts.host import HOST_CONFIG_VERSION, Host
from machine_server.hosts.identity import validate_host_name, validate_swarm_discovery
from machine_server.hosts.options import (
    AuthOptions,
    CertPaths,
    EngineOptions,
    HostOptions,
    HostRequest,
    SwarmOptions,
    build_host_options,
)

__all__ = [
    "AuthOptions",
    "CertPaths",
    "EngineOptions",
    "HOST_CONFIG_VERSION",
    "Host",
    "HostOptions",
    "HostRequest",
    "SwarmOptions",
    "build_host_options",
    "validate_host_name",
    "validate_swarm_discovery",
]
