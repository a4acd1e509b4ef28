"""Machine creation and inspection APIs."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator

from machine_server.config import AppSettings
from machine_server.context import CreationContext
from machine_server.db.models import MachineHost
from machine_server.dependencies import get_app_settings, get_host_creator, get_host_store
from machine_server.errors import (
    CreationFailedError,
    HostAlreadyExistsError,
    HostCreationError,
    PersistFailedError,
    StoreUnavailableError,
)
from machine_server.hosts.host import Host
from machine_server.hosts.identity import validate_swarm_discovery
from machine_server.hosts.options import (
    DEFAULT_ENGINE_INSTALL_URL,
    CertPaths,
    EngineOptions,
    HostRequest,
    SwarmOptions,
)
from machine_server.provisioning.service import HostCreator
from machine_server.store import SqlHostStore

router = APIRouter(tags=["machines"])
SettingsDep = Annotated[AppSettings, Depends(get_app_settings)]
HostCreatorDep = Annotated[HostCreator, Depends(get_host_creator)]
HostStoreDep = Annotated[SqlHostStore, Depends(get_host_store)]

ERROR_STATUS_CODES: dict[str, int] = {
    "invalid_identity": 400,
    "unknown_driver": 400,
    "malformed_config": 400,
    "host_already_exists": 409,
    "config_rejected": 422,
    "creation_failed": 502,
    "persist_failed": 500,
    "store_unavailable": 503,
    "cancelled": 504,
}


class CertPathsPayload(BaseModel):
    ca: str = "ca.pem"
    ca_key: str = "ca-key.pem"
    client: str = "cert.pem"
    client_key: str = "key.pem"
    server: str | None = None
    server_key: str | None = None


class EnginePayload(BaseModel):
    arbitrary_flags: list[str] = Field(default_factory=list)
    env: list[str] = Field(default_factory=list)
    insecure_registry: list[str] = Field(default_factory=list)
    labels: list[str] = Field(default_factory=list)
    registry_mirror: list[str] = Field(default_factory=list)
    storage_driver: str = ""
    install_url: str = DEFAULT_ENGINE_INSTALL_URL
    tls_verify: bool = True


class SwarmPayload(BaseModel):
    is_swarm: bool = False
    master: bool = False
    discovery: str = ""
    image: str = ""
    host: str = ""
    strategy: str = ""
    address: str = ""
    arbitrary_flags: list[str] = Field(default_factory=list)
    is_experimental: bool = False

    @field_validator("discovery")
    @classmethod
    def _validate_discovery(cls, value: str) -> str:
        normalized = value.strip()
        validate_swarm_discovery(normalized)
        return normalized


class CreateMachinePayload(BaseModel):
    name: str
    driver_name: str = Field(min_length=1)
    store_path: str | None = None
    cert_paths: CertPathsPayload = Field(default_factory=CertPathsPayload)
    server_cert_sans: list[str] = Field(default_factory=list)
    engine: EnginePayload = Field(default_factory=EnginePayload)
    swarm: SwarmPayload = Field(default_factory=SwarmPayload)
    driver_options: dict[str, str | int | bool | list[str]] = Field(default_factory=dict)

    @field_validator("driver_name")
    @classmethod
    def _normalize_driver_name(cls, value: str) -> str:
        return value.strip().lower()

    def to_host_request(self, *, default_store_path: str) -> HostRequest:
        return HostRequest(
            name=self.name,
            driver_name=self.driver_name,
            store_path=self.store_path or default_store_path,
            cert_paths=CertPaths(**self.cert_paths.model_dump()),
            server_cert_sans=tuple(self.server_cert_sans),
            engine=EngineOptions(
                arbitrary_flags=tuple(self.engine.arbitrary_flags),
                env=tuple(self.engine.env),
                insecure_registry=tuple(self.engine.insecure_registry),
                labels=tuple(self.engine.labels),
                registry_mirror=tuple(self.engine.registry_mirror),
                storage_driver=self.engine.storage_driver,
                install_url=self.engine.install_url,
                tls_verify=self.engine.tls_verify,
            ),
            swarm=SwarmOptions(
                is_swarm=self.swarm.is_swarm,
                master=self.swarm.master,
                discovery=self.swarm.discovery,
                image=self.swarm.image,
                host=self.swarm.host,
                strategy=self.swarm.strategy,
                address=self.swarm.address,
                arbitrary_flags=tuple(self.swarm.arbitrary_flags),
                is_experimental=self.swarm.is_experimental,
            ),
            driver_options=dict(self.driver_options),
        )


@router.post("/create", name="create_machine")
@router.post("/api/v1/machines", name="api_create_machine")
def api_create_machine(
    payload: CreateMachinePayload,
    settings: SettingsDep,
    host_creator: HostCreatorDep,
) -> JSONResponse:
    host_request = payload.to_host_request(default_store_path=settings.storage_path)
    context = CreationContext(timeout_seconds=settings.create_timeout_seconds)
    try:
        host = host_creator.create(host_request, context=context)
    except HostCreationError as exc:
        return _host_creation_error_response(exc)

    return _success_response({"machine": _serialize_host(host)}, status_code=201)


@router.get("/api/v1/machines", name="api_list_machines")
def api_list_machines(host_store: HostStoreDep) -> JSONResponse:
    try:
        rows = host_store.list_hosts()
    except StoreUnavailableError as exc:
        return _host_creation_error_response(exc)
    return _success_response({"machines": [_serialize_machine_row(row) for row in rows]})


@router.get("/api/v1/machines/{name}", name="api_machine_detail")
def api_machine_detail(name: str, host_store: HostStoreDep) -> JSONResponse:
    try:
        row = host_store.get(name)
    except StoreUnavailableError as exc:
        return _host_creation_error_response(exc)
    if row is None:
        return _error_response(
            status_code=404,
            code="machine_not_found",
            message="Machine not found.",
            details={"name": name},
        )
    return _success_response({"machine": _serialize_machine_row(row)})


def _host_creation_error_response(exc: HostCreationError) -> JSONResponse:
    details: dict[str, Any] = {"state": exc.state, "retryable": exc.retryable}
    if isinstance(exc, HostAlreadyExistsError):
        details["name"] = exc.name
    if isinstance(exc, CreationFailedError):
        details["crash_report"] = exc.crash_report.to_dict()
    if isinstance(exc, PersistFailedError):
        details["name"] = exc.name
        details["orphaned"] = exc.orphaned
    return _error_response(
        status_code=ERROR_STATUS_CODES.get(exc.error_code, 500),
        code=exc.error_code,
        message=str(exc),
        details=details,
    )


def _success_response(data: dict[str, Any], *, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"data": data})


def _error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
            }
        },
    )


def _serialize_host(host: Host) -> dict[str, Any]:
    return host.to_document()


def _serialize_machine_row(row: MachineHost) -> dict[str, Any]:
    return {
        "id": str(row.id),
        "name": row.name,
        "driver_name": row.driver_name,
        "config_version": row.config_version,
        "ssh_client_type": row.ssh_client_type,
        "driver_config": row.driver_config,
        "host_options": row.host_options,
        "created_at": _iso_datetime(row.created_at),
        "updated_at": _iso_datetime(row.updated_at),
    }


def _iso_datetime(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC).isoformat()
    return value.astimezone(UTC).isoformat()
