"""Alembic environment for the machine store."""

from __future__ import annotations

from logging.config import fileConfig

from sqlalchemy import Engine, pool
from sqlalchemy.engine import Connection

from alembic import context
from machine_server.config import get_settings
from machine_server.db import models as _models  # noqa: F401
from machine_server.db.base import Base
from machine_server.db.session import create_app_engine

config = context.config

if config.config_file_name:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def _database_url() -> str:
    # An explicit url wins; otherwise resolve it exactly as the server does.
    return config.get_main_option("sqlalchemy.url") or get_settings().database_url


def run_migrations_offline() -> None:
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine: Engine = create_app_engine(_database_url(), poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            _configure_context(connection)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


def _configure_context(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=connection.dialect.name == "sqlite",
    )


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
