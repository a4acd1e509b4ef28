from __future__ import annotations

from pathlib import Path

from machine_server.provisioning.crashreport import build_crash_report, candidate_log_path


def test_virtualbox_log_lives_under_nested_host_directory(tmp_path: Path) -> None:
    path = candidate_log_path(driver_name="virtualbox", machines_dir=tmp_path, host_name="dev1")

    assert path == str(tmp_path / "dev1" / "dev1" / "Logs" / "VBox.log")


def test_drivers_without_known_log_have_no_candidate(tmp_path: Path) -> None:
    assert candidate_log_path(driver_name="none", machines_dir=tmp_path, host_name="dev1") == ""


def test_existing_log_is_kept_in_report(tmp_path: Path) -> None:
    log_file = tmp_path / "VBox.log"
    log_file.write_text("boom\n", encoding="utf-8")
    cause = RuntimeError("disk full")

    report = build_crash_report(
        cause=cause,
        command="Create",
        context="api.performCreate",
        driver_name="virtualbox",
        candidate_log_path=str(log_file),
    )

    assert report.cause is cause
    assert report.log_file_path == str(log_file)
    assert report.to_dict() == {
        "cause": "disk full",
        "cause_type": "RuntimeError",
        "command": "Create",
        "context": "api.performCreate",
        "driver_name": "virtualbox",
        "log_file_path": str(log_file),
    }


def test_missing_log_leaves_path_empty(tmp_path: Path) -> None:
    report = build_crash_report(
        cause=RuntimeError("disk full"),
        command="Create",
        context="api.performCreate",
        driver_name="virtualbox",
        candidate_log_path=str(tmp_path / "missing" / "VBox.log"),
    )

    assert report.log_file_path == ""


def test_directory_is_not_treated_as_log_file(tmp_path: Path) -> None:
    report = build_crash_report(
        cause=RuntimeError("disk full"),
        command="Create",
        context="api.performCreate",
        driver_name="virtualbox",
        candidate_log_path=str(tmp_path),
    )

    assert report.log_file_path == ""
