"""Host creation request and the options bundle attached to each host."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_ENGINE_INSTALL_URL = "https://get.docker.com"


@dataclass(frozen=True, slots=True)
class AuthOptions:
    cert_dir: str
    ca_cert_path: str
    ca_private_key_path: str
    client_cert_path: str
    client_key_path: str
    server_cert_path: str
    server_key_path: str
    store_path: str
    server_cert_sans: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class EngineOptions:
    arbitrary_flags: tuple[str, ...] = ()
    env: tuple[str, ...] = ()
    insecure_registry: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()
    registry_mirror: tuple[str, ...] = ()
    storage_driver: str = ""
    install_url: str = DEFAULT_ENGINE_INSTALL_URL
    tls_verify: bool = True


@dataclass(frozen=True, slots=True)
class SwarmOptions:
    is_swarm: bool = False
    master: bool = False
    discovery: str = ""
    image: str = ""
    host: str = ""
    strategy: str = ""
    address: str = ""
    arbitrary_flags: tuple[str, ...] = ()
    is_experimental: bool = False


@dataclass(frozen=True, slots=True)
class HostOptions:
    auth_options: AuthOptions
    engine_options: EngineOptions
    swarm_options: SwarmOptions

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class CertPaths:
    ca: str = "ca.pem"
    ca_key: str = "ca-key.pem"
    client: str = "cert.pem"
    client_key: str = "key.pem"
    server: str | None = None
    server_key: str | None = None


@dataclass(frozen=True, slots=True)
class HostRequest:
    name: str
    driver_name: str
    store_path: str
    cert_paths: CertPaths = field(default_factory=CertPaths)
    server_cert_sans: tuple[str, ...] = ()
    engine: EngineOptions = field(default_factory=EngineOptions)
    swarm: SwarmOptions = field(default_factory=SwarmOptions)
    driver_options: Mapping[str, Any] = field(default_factory=dict)


def build_host_options(
    request: HostRequest,
    *,
    cert_dir: Path,
    machines_dir: Path,
) -> HostOptions:
    """Assemble the options bundle for ``request``.

    Relative certificate paths are resolved under ``cert_dir``. Server
    certificate paths default to the host's own directory under
    ``machines_dir``. Engine and swarm options pass through untouched.
    """
    certs = request.cert_paths
    host_dir = machines_dir / request.name
    server_cert = certs.server or str(host_dir / "server.pem")
    server_key = certs.server_key or str(host_dir / "server-key.pem")

    return HostOptions(
        auth_options=AuthOptions(
            cert_dir=str(cert_dir),
            ca_cert_path=_resolve_cert_path(cert_dir, certs.ca),
            ca_private_key_path=_resolve_cert_path(cert_dir, certs.ca_key),
            client_cert_path=_resolve_cert_path(cert_dir, certs.client),
            client_key_path=_resolve_cert_path(cert_dir, certs.client_key),
            server_cert_path=_resolve_cert_path(cert_dir, server_cert),
            server_key_path=_resolve_cert_path(cert_dir, server_key),
            store_path=request.store_path,
            server_cert_sans=tuple(request.server_cert_sans),
        ),
        engine_options=request.engine,
        swarm_options=request.swarm,
    )


def _resolve_cert_path(cert_dir: Path, value: str) -> str:
    path = Path(value)
    if path.is_absolute():
        return str(path)
    return str(cert_dir / path)
