from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import Session, sessionmaker

from machine_server.cli import main as machine_cli
from machine_server.config import AppSettings
from machine_server.drivers.registry import DriverRegistry
from machine_server.repositories.hosts import MachineHostRepository


def _run(
    argv: list[str],
    *,
    app_settings: AppSettings,
    session_factory: sessionmaker[Session],
    driver_registry: DriverRegistry,
) -> int:
    return machine_cli.main(
        argv,
        settings=app_settings,
        session_factory=session_factory,
        registry=driver_registry,
    )


def test_cli_create_persists_machine(
    app_settings: AppSettings,
    session_factory: sessionmaker[Session],
    driver_registry: DriverRegistry,
    driver_behavior,
    capsys: pytest.CaptureFixture[str],
) -> None:
    exit_code = _run(
        [
            "create",
            "dev1",
            "--driver",
            "virtualbox",
            "-o",
            "memory=2048",
            "-o",
            "share_folders=/src",
            "-o",
            "share_folders=/data",
            "--engine-label",
            "env=dev",
            "--swarm",
            "--swarm-discovery",
            "token://abc",
        ],
        app_settings=app_settings,
        session_factory=session_factory,
        driver_registry=driver_registry,
    )

    assert exit_code == 0
    assert "created machine dev1 with driver virtualbox" in capsys.readouterr().out
    driver = driver_behavior.drivers[0]
    assert driver.memory == 2048
    assert driver.config_calls[0].get_string_slice("share_folders") == ["/src", "/data"]

    with session_factory() as session:
        row = MachineHostRepository(session).get_by_name("dev1")
    assert row is not None
    assert row.host_options["engine_options"]["labels"] == ["env=dev"]
    assert row.host_options["swarm_options"]["discovery"] == "token://abc"
    assert row.host_options["auth_options"]["store_path"] == app_settings.storage_path


def test_cli_ls_lists_created_machines(
    app_settings: AppSettings,
    session_factory: sessionmaker[Session],
    driver_registry: DriverRegistry,
    capsys: pytest.CaptureFixture[str],
) -> None:
    for name in ("web1", "db1"):
        _run(
            ["create", name, "-d", "virtualbox"],
            app_settings=app_settings,
            session_factory=session_factory,
            driver_registry=driver_registry,
        )
    capsys.readouterr()

    exit_code = _run(
        ["ls"],
        app_settings=app_settings,
        session_factory=session_factory,
        driver_registry=driver_registry,
    )

    assert exit_code == 0
    assert capsys.readouterr().out.splitlines() == ["db1\tvirtualbox", "web1\tvirtualbox"]


def test_cli_create_existing_machine_fails(
    app_settings: AppSettings,
    session_factory: sessionmaker[Session],
    driver_registry: DriverRegistry,
    capsys: pytest.CaptureFixture[str],
) -> None:
    argv = ["create", "dev1", "-d", "virtualbox"]
    _run(argv, app_settings=app_settings, session_factory=session_factory, driver_registry=driver_registry)

    exit_code = _run(
        argv,
        app_settings=app_settings,
        session_factory=session_factory,
        driver_registry=driver_registry,
    )

    assert exit_code == 1
    assert "error (host_already_exists)" in capsys.readouterr().err


def test_cli_creation_failure_points_at_driver_log(
    app_settings: AppSettings,
    session_factory: sessionmaker[Session],
    driver_registry: DriverRegistry,
    driver_behavior,
    machines_dir: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    log_path = machines_dir / "dev1" / "dev1" / "Logs" / "VBox.log"
    log_path.parent.mkdir(parents=True)
    log_path.write_text("VM aborted\n", encoding="utf-8")
    driver_behavior.create_error = RuntimeError("VBoxManage exited with status 1")

    exit_code = _run(
        ["create", "dev1", "-d", "virtualbox"],
        app_settings=app_settings,
        session_factory=session_factory,
        driver_registry=driver_registry,
    )

    assert exit_code == 1
    err = capsys.readouterr().err
    assert "VBoxManage exited with status 1" in err
    assert f"check the driver log for details: {log_path}" in err


@pytest.mark.parametrize(
    "extra_args",
    [
        ["-o", "memory"],
        ["-o", "=2048"],
        ["--swarm-discovery", "abc123"],
    ],
)
def test_cli_rejects_malformed_input(
    app_settings: AppSettings,
    session_factory: sessionmaker[Session],
    driver_registry: DriverRegistry,
    driver_behavior,
    extra_args: list[str],
) -> None:
    exit_code = _run(
        ["create", "dev1", "-d", "virtualbox", *extra_args],
        app_settings=app_settings,
        session_factory=session_factory,
        driver_registry=driver_registry,
    )

    assert exit_code == 2
    assert driver_behavior.drivers == []


def test_cli_create_passes_cert_paths_and_swarm_options(
    app_settings: AppSettings,
    session_factory: sessionmaker[Session],
    driver_registry: DriverRegistry,
) -> None:
    exit_code = _run(
        [
            "create",
            "dev1",
            "-d",
            "virtualbox",
            "--tls-ca-cert",
            "/etc/machine/ca.pem",
            "--tls-client-key",
            "client/key.pem",
            "--tls-server-cert",
            "/etc/machine/dev1.pem",
            "--swarm",
            "--swarm-image",
            "swarm:1.2",
            "--swarm-strategy",
            "binpack",
            "--swarm-opt",
            "heartbeat=5s",
            "--swarm-experimental",
        ],
        app_settings=app_settings,
        session_factory=session_factory,
        driver_registry=driver_registry,
    )

    assert exit_code == 0
    with session_factory() as session:
        row = MachineHostRepository(session).get_by_name("dev1")
    assert row is not None
    auth = row.host_options["auth_options"]
    assert auth["ca_cert_path"] == "/etc/machine/ca.pem"
    assert auth["client_key_path"] == str(app_settings.certs_dir / "client" / "key.pem")
    assert auth["server_cert_path"] == "/etc/machine/dev1.pem"
    assert auth["server_key_path"] == str(app_settings.machines_dir / "dev1" / "server-key.pem")
    swarm = row.host_options["swarm_options"]
    assert swarm["image"] == "swarm:1.2"
    assert swarm["strategy"] == "binpack"
    assert swarm["arbitrary_flags"] == ["heartbeat=5s"]
    assert swarm["is_experimental"] is True


def test_cli_migrate_upgrades_configured_database(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    target_db = tmp_path / "store" / "machines.db"
    other_db = tmp_path / "elsewhere.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{other_db}")
    settings = AppSettings(
        app_env="test",
        storage_path=str(tmp_path / "store"),
        database_url=f"sqlite:///{target_db}",
    )

    exit_code = machine_cli.main(["migrate"], settings=settings)

    assert exit_code == 0
    assert "machine store schema is up to date" in capsys.readouterr().out
    engine = create_engine(f"sqlite:///{target_db}")
    try:
        assert "machine_host" in inspect(engine).get_table_names()
    finally:
        engine.dispose()
    assert not other_db.exists()
