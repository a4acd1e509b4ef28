"""Repositories for persisted machine hosts."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from machine_server.db.models import MachineHost


class MachineHostRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_name(self, name: str) -> MachineHost | None:
        statement = select(MachineHost).where(MachineHost.name == name)
        return self._session.execute(statement).scalar_one_or_none()

    def exists(self, name: str) -> bool:
        statement = select(func.count()).select_from(MachineHost).where(MachineHost.name == name)
        return self._session.execute(statement).scalar_one() > 0

    def list_all(self) -> list[MachineHost]:
        statement = select(MachineHost).order_by(MachineHost.name.asc())
        return list(self._session.execute(statement).scalars())

    def add(self, document: Mapping[str, Any]) -> MachineHost:
        row = MachineHost(
            name=document["name"],
            driver_name=document["driver_name"],
            config_version=document["config_version"],
            ssh_client_type=document["ssh_client_type"],
            driver_config=dict(document["driver_config"]),
            host_options=dict(document["host_options"]),
        )
        self._session.add(row)
        self._session.flush()
        return row
