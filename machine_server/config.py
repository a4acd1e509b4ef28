"""Application configuration loading."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import StrEnum
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

import yaml

DEFAULT_RUNTIME_CONFIG_PATH = "runtime-config.yaml"
RUNTIME_CONFIG_PATH_ENV = "MACHINE_SERVER_CONFIG"
STORAGE_PATH_ENV = "MACHINE_STORAGE_PATH"
DATABASE_URL_ENV = "DATABASE_URL"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class SSHClientType(StrEnum):
    EXTERNAL = "external"
    NATIVE = "native"


def default_storage_path() -> str:
    return os.environ.get(STORAGE_PATH_ENV) or str(Path.home() / ".docker" / "machine")


def default_database_url(storage_path: str) -> str:
    return os.environ.get(DATABASE_URL_ENV) or f"sqlite:///{Path(storage_path) / 'machines.db'}"


@dataclass(frozen=True, slots=True)
class AppSettings:
    app_env: str
    storage_path: str
    database_url: str
    log_level: str = "INFO"
    ssh_client_type: SSHClientType = SSHClientType.EXTERNAL
    create_timeout_seconds: float = 600.0
    crash_log_grace_seconds: float = 2.0
    runtime_config_path: str = DEFAULT_RUNTIME_CONFIG_PATH

    @property
    def certs_dir(self) -> Path:
        return Path(self.storage_path) / "certs"

    @property
    def machines_dir(self) -> Path:
        return Path(self.storage_path) / "machines"

    @classmethod
    def from_yaml(cls, runtime_config_path: str = DEFAULT_RUNTIME_CONFIG_PATH) -> AppSettings:
        normalized_path = runtime_config_path.strip() or DEFAULT_RUNTIME_CONFIG_PATH
        config = _load_runtime_config(normalized_path)

        app_cfg = cast(dict[str, Any], config.get("app", {}))
        storage_cfg = cast(dict[str, Any], config.get("storage", {}))
        ssh_cfg = cast(dict[str, Any], config.get("ssh", {}))
        create_cfg = cast(dict[str, Any], config.get("create", {}))

        storage_path = str(storage_cfg.get("path") or default_storage_path())
        return cls(
            app_env=str(app_cfg.get("env", "development")).lower(),
            storage_path=storage_path,
            database_url=str(
                storage_cfg.get("database_url") or default_database_url(storage_path)
            ),
            log_level=_resolve_log_level(app_cfg.get("log_level", "INFO")),
            ssh_client_type=_resolve_ssh_client_type(
                ssh_cfg.get("client_type", SSHClientType.EXTERNAL.value)
            ),
            create_timeout_seconds=max(
                1.0, float(create_cfg.get("timeout_seconds", 600.0))
            ),
            crash_log_grace_seconds=max(
                0.0, float(create_cfg.get("crash_log_grace_seconds", 2.0))
            ),
            runtime_config_path=normalized_path,
        )


def _load_runtime_config(runtime_config_path: str) -> dict[str, Any]:
    path = Path(runtime_config_path)
    if not path.exists() or not path.is_file():
        return {}

    parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    if isinstance(parsed, dict):
        return parsed
    return {}


def _resolve_ssh_client_type(value: Any) -> SSHClientType:
    normalized = str(value).strip().lower()
    try:
        return SSHClientType(normalized)
    except ValueError:
        raise ValueError(
            f"unsupported ssh.client_type in runtime config: {normalized!r}; "
            f"expected one of {[item.value for item in SSHClientType]!r}"
        ) from None


def _resolve_log_level(value: Any) -> str:
    normalized = str(value).strip().upper()
    if normalized not in LOG_LEVELS:
        raise ValueError(
            f"unsupported app.log_level in runtime config: {normalized!r}; "
            f"expected one of {list(LOG_LEVELS)!r}"
        )
    return normalized


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings.from_yaml(
        os.environ.get(RUNTIME_CONFIG_PATH_ENV, DEFAULT_RUNTIME_CONFIG_PATH)
    )
