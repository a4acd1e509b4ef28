"""Durable host store consulted and written by the creation workflow."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from machine_server.context import CreationContext
from machine_server.db.models import MachineHost
from machine_server.errors import StoreUnavailableError
from machine_server.hosts.host import Host
from machine_server.repositories.errors import DuplicateHostError
from machine_server.repositories.hosts import MachineHostRepository

logger = logging.getLogger(__name__)


class HostStore(Protocol):
    def exists(self, name: str, *, context: CreationContext) -> bool:
        """Return True when a host record named ``name`` is stored."""

    def save(self, host: Host, *, context: CreationContext) -> None:
        """Persist ``host``; fail atomically when the name is already taken."""

    def machines_dir(self) -> Path:
        """Return the directory holding per-host backend artifacts."""


class SqlHostStore:
    def __init__(self, *, session_factory: sessionmaker[Session], machines_dir: Path) -> None:
        self._session_factory = session_factory
        self._machines_dir = machines_dir

    def machines_dir(self) -> Path:
        return self._machines_dir

    def exists(self, name: str, *, context: CreationContext) -> bool:
        context.raise_if_done()
        try:
            with self._session_factory() as session:
                return MachineHostRepository(session).exists(name)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"error checking if host exists: {exc}") from exc

    def save(self, host: Host, *, context: CreationContext) -> None:
        context.raise_if_done()
        document = host.to_document()
        try:
            with self._session_factory() as session:
                try:
                    MachineHostRepository(session).add(document)
                    session.commit()
                except IntegrityError as exc:
                    session.rollback()
                    raise DuplicateHostError(host.name) from exc
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"error attempting to save store: {exc}") from exc
        logger.debug("saved host %s to store", host.name)

    def get(self, name: str) -> MachineHost | None:
        try:
            with self._session_factory() as session:
                return MachineHostRepository(session).get_by_name(name)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"error loading host {name!r}: {exc}") from exc

    def list_hosts(self) -> list[MachineHost]:
        try:
            with self._session_factory() as session:
                return MachineHostRepository(session).list_all()
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"error listing hosts: {exc}") from exc
