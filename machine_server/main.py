from __future__ import annotations

from fastapi import FastAPI

from machine_server.config import AppSettings, get_settings
from machine_server.db.session import create_app_engine, create_session_factory
from machine_server.drivers.registry import create_driver_registry
from machine_server.routes.machines import router as machines_router


def create_app(settings: AppSettings | None = None) -> FastAPI:
    app_settings = settings or get_settings()
    app = FastAPI(title="Machine Server", version="0.1.0")
    app.state.settings = app_settings
    app.state.session_maker = create_session_factory(create_app_engine(app_settings.database_url))
    app.state.driver_registry = create_driver_registry()

    app.include_router(machines_router)

    @app.get("/", tags=["system"], name="root")
    async def root() -> dict[str, object]:
        return {
            "service": "machine-server",
            "status": "ok",
            "drivers": list(app.state.driver_registry.driver_names()),
        }

    @app.get("/healthz", tags=["system"])
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return app
