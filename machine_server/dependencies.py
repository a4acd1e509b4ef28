"""Common FastAPI dependencies."""

from __future__ import annotations

from typing import cast

from fastapi import Request
from sqlalchemy.orm import Session, sessionmaker

from machine_server.config import AppSettings
from machine_server.drivers.registry import DriverRegistry
from machine_server.provisioning.service import HostCreator, create_host_creator
from machine_server.store import SqlHostStore


def get_app_settings(request: Request) -> AppSettings:
    return cast(AppSettings, request.app.state.settings)


def get_driver_registry(request: Request) -> DriverRegistry:
    return cast(DriverRegistry, request.app.state.driver_registry)


def get_host_store(request: Request) -> SqlHostStore:
    settings = get_app_settings(request)
    session_factory = cast(sessionmaker[Session], request.app.state.session_maker)
    return SqlHostStore(session_factory=session_factory, machines_dir=settings.machines_dir)


def get_host_creator(request: Request) -> HostCreator:
    return create_host_creator(
        settings=get_app_settings(request),
        registry=get_driver_registry(request),
        store=get_host_store(request),
    )
