"""Server CLI for serving the API and managing machines locally."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from typing import Any

from sqlalchemy.orm import Session, sessionmaker

from machine_server.config import AppSettings, get_settings
from machine_server.context import CreationContext
from machine_server.db.session import create_app_engine, create_session_factory
from machine_server.drivers.registry import DriverRegistry, create_driver_registry
from machine_server.errors import CreationFailedError, HostCreationError
from machine_server.hosts.identity import validate_swarm_discovery
from machine_server.hosts.options import CertPaths, EngineOptions, HostRequest, SwarmOptions
from machine_server.provisioning.service import create_host_creator
from machine_server.store import SqlHostStore

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class CliValidationError(ValueError):
    """Raised when CLI input validation fails."""


def main(
    argv: Sequence[str] | None = None,
    *,
    settings: AppSettings | None = None,
    session_factory: sessionmaker[Session] | None = None,
    registry: DriverRegistry | None = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        app_settings = settings or get_settings()
        logging.basicConfig(level=app_settings.log_level, format=LOG_FORMAT)

        if args.command == "serve":
            return _serve(app_settings, host=args.host, port=args.port)

        if args.command == "migrate":
            return _migrate(app_settings)

        factory = session_factory or create_session_factory(
            create_app_engine(app_settings.database_url)
        )
        store = SqlHostStore(session_factory=factory, machines_dir=app_settings.machines_dir)

        if args.command == "ls":
            for row in store.list_hosts():
                print(f"{row.name}\t{row.driver_name}")
            return 0

        if args.command == "create":
            host_creator = create_host_creator(
                settings=app_settings,
                registry=registry or create_driver_registry(),
                store=store,
            )
            host = host_creator.create(
                _host_request_from_args(args, default_store_path=app_settings.storage_path),
                context=CreationContext(timeout_seconds=app_settings.create_timeout_seconds),
            )
            print(f"created machine {host.name} with driver {host.driver_name}")
            return 0

        raise CliValidationError(f"unsupported command: {args.command}")
    except CreationFailedError as exc:
        print(f"error: {exc}", file=sys.stderr)
        if exc.crash_report.log_file_path:
            print(
                f"check the driver log for details: {exc.crash_report.log_file_path}",
                file=sys.stderr,
            )
        return 1
    except HostCreationError as exc:
        print(f"error ({exc.error_code}): {exc}", file=sys.stderr)
        return 1
    except (CliValidationError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


def _serve(settings: AppSettings, *, host: str, port: int) -> int:
    import uvicorn

    from machine_server.main import create_app

    uvicorn.run(create_app(settings), host=host, port=port, log_level=settings.log_level.lower())
    return 0


def _migrate(settings: AppSettings) -> int:
    from alembic import command
    from alembic.config import Config

    config = Config()
    config.set_main_option("script_location", "machine_server:migrations")
    config.set_main_option("sqlalchemy.url", settings.database_url)
    command.upgrade(config, "head")
    print("machine store schema is up to date")
    return 0


def _host_request_from_args(args: argparse.Namespace, *, default_store_path: str) -> HostRequest:
    validate_swarm_discovery(args.swarm_discovery)
    return HostRequest(
        name=args.name,
        driver_name=args.driver,
        store_path=args.store_path or default_store_path,
        cert_paths=CertPaths(
            ca=args.tls_ca_cert,
            ca_key=args.tls_ca_key,
            client=args.tls_client_cert,
            client_key=args.tls_client_key,
            server=args.tls_server_cert,
            server_key=args.tls_server_key,
        ),
        server_cert_sans=tuple(args.tls_san),
        engine=EngineOptions(
            arbitrary_flags=tuple(args.engine_opt),
            env=tuple(args.engine_env),
            insecure_registry=tuple(args.engine_insecure_registry),
            labels=tuple(args.engine_label),
            registry_mirror=tuple(args.engine_registry_mirror),
            storage_driver=args.engine_storage_driver,
            install_url=args.engine_install_url,
            tls_verify=not args.engine_no_tls_verify,
        ),
        swarm=SwarmOptions(
            is_swarm=args.swarm,
            master=args.swarm_master,
            discovery=args.swarm_discovery,
            image=args.swarm_image,
            host=args.swarm_host,
            strategy=args.swarm_strategy,
            address=args.swarm_addr,
            arbitrary_flags=tuple(args.swarm_opt),
            is_experimental=args.swarm_experimental,
        ),
        driver_options=_parse_driver_options(args.driver_opt),
    )


def _parse_driver_options(items: Sequence[str]) -> dict[str, Any]:
    options: dict[str, Any] = {}
    for item in items:
        key, separator, value = item.partition("=")
        key = key.strip()
        if not separator or not key:
            raise CliValidationError(f"driver option must look like key=value, got {item!r}")
        existing = options.get(key)
        if existing is None:
            options[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            options[key] = [existing, value]
    return options


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="machine-server")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="run the machine creation HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    subparsers.add_parser("migrate", help="upgrade the machine store schema")
    subparsers.add_parser("ls", help="list stored machines")

    create_parser = subparsers.add_parser("create", help="create a machine")
    create_parser.add_argument("name")
    create_parser.add_argument("-d", "--driver", required=True)
    create_parser.add_argument("--store-path")
    create_parser.add_argument(
        "-o",
        "--driver-opt",
        action="append",
        default=[],
        help="driver parameter as key=value; repeat a key to pass a list",
    )
    cert_defaults = CertPaths()
    create_parser.add_argument("--tls-ca-cert", default=cert_defaults.ca)
    create_parser.add_argument("--tls-ca-key", default=cert_defaults.ca_key)
    create_parser.add_argument("--tls-client-cert", default=cert_defaults.client)
    create_parser.add_argument("--tls-client-key", default=cert_defaults.client_key)
    create_parser.add_argument("--tls-server-cert")
    create_parser.add_argument("--tls-server-key")
    create_parser.add_argument("--tls-san", action="append", default=[])
    create_parser.add_argument("--engine-opt", action="append", default=[])
    create_parser.add_argument("--engine-env", action="append", default=[])
    create_parser.add_argument("--engine-insecure-registry", action="append", default=[])
    create_parser.add_argument("--engine-label", action="append", default=[])
    create_parser.add_argument("--engine-registry-mirror", action="append", default=[])
    create_parser.add_argument("--engine-storage-driver", default="")
    create_parser.add_argument("--engine-install-url", default=EngineOptions().install_url)
    create_parser.add_argument("--engine-no-tls-verify", action="store_true")
    create_parser.add_argument("--swarm", action="store_true")
    create_parser.add_argument("--swarm-master", action="store_true")
    create_parser.add_argument("--swarm-discovery", default="")
    create_parser.add_argument("--swarm-image", default="")
    create_parser.add_argument("--swarm-host", default="")
    create_parser.add_argument("--swarm-strategy", default="")
    create_parser.add_argument("--swarm-addr", default="")
    create_parser.add_argument("--swarm-opt", action="append", default=[])
    create_parser.add_argument("--swarm-experimental", action="store_true")

    return parser


if __name__ == "__main__":
    raise SystemExit(main())
