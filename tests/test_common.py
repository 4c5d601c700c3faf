"""Tests for common.py — logging, transaction log, status lines and command checks."""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from unittest.mock import patch

from devstore.common import TransactionLog, check_command, console, init_logging, print_error
from devstore.services.provisioner import StepResult, StepStatus


def test_transaction_log_lifecycle(tmp_path: Path) -> None:
    txlog = TransactionLog("unit", log_dir=tmp_path)
    txlog.step("1-a", "First")
    txlog.step("2-b", "Second")
    txlog.step_update("done", "ok")
    txlog.finalize("success", "all good")

    data = json.loads(txlog.path.read_text())
    assert data["operation"] == "unit"
    assert data["status"] == "success"
    assert data["message"] == "all good"
    # Opening a new step closes the previous one
    assert [s["status"] for s in data["steps"]] == ["done", "done"]
    assert data["steps"][1]["detail"] == "ok"


def test_finalize_failed_closes_open_step_as_failed(tmp_path: Path) -> None:
    txlog = TransactionLog("unit", log_dir=tmp_path)
    txlog.step("1-a", "First")
    txlog.finalize("failed", "boom")
    data = json.loads(txlog.path.read_text())
    assert data["steps"][0]["status"] == "failed"


def test_init_logging_creates_file(tmp_path: Path) -> None:
    log_file = init_logging("unit", log_dir=tmp_path / "logs")
    assert log_file.parent == tmp_path / "logs"
    assert log_file.name.startswith("unit-")
    assert log_file.exists()


def test_check_command_found() -> None:
    with patch("devstore.common.subprocess.run") as mock_run:
        assert check_command("az") is True
    mock_run.assert_called_once_with(["which", "az"], capture_output=True, check=True)


def test_check_command_missing() -> None:
    err = subprocess.CalledProcessError(1, ["which", "az"])
    with patch("devstore.common.subprocess.run", side_effect=err):
        assert check_command("az") is False


class TestInitLogging:
    def _file_handlers(self) -> list[logging.FileHandler]:
        return [h for h in logging.getLogger("devstore").handlers if isinstance(h, logging.FileHandler)]

    def test_repeated_calls_keep_one_file_handler(self, tmp_path: Path) -> None:
        first = init_logging("unit", log_dir=tmp_path / "a")
        second = init_logging("unit", log_dir=tmp_path / "b")

        handlers = self._file_handlers()
        assert len(handlers) == 1
        assert Path(handlers[0].baseFilename) == second
        assert first != second

    def test_earlier_handler_is_closed(self, tmp_path: Path) -> None:
        init_logging("unit", log_dir=tmp_path / "a")
        old = self._file_handlers()[0]
        with patch.object(old, "close", wraps=old.close) as mock_close:
            init_logging("unit", log_dir=tmp_path / "b")
        mock_close.assert_called_once()

    def test_module_loggers_reach_the_file(self, tmp_path: Path) -> None:
        log_file = init_logging("unit", log_dir=tmp_path)
        logging.getLogger("devstore.services.provisioner").info("Created container dev-temp")
        self._file_handlers()[0].flush()
        assert "Created container dev-temp" in log_file.read_text(encoding="utf-8")


class TestTransactionLogResources:
    def test_record_attaches_to_current_step(self, tmp_path: Path) -> None:
        txlog = TransactionLog("unit", log_dir=tmp_path)
        txlog.step("5-containers", "Blob containers")
        txlog.record(StepResult("container", "dev-uploads", StepStatus.CREATED))
        txlog.record(StepResult("container", "dev-temp", StepStatus.EXISTS))
        txlog.finalize("success")

        data = json.loads(txlog.path.read_text(encoding="utf-8"))
        assert data["steps"][0]["resources"] == [
            {"name": "dev-uploads", "status": "created"},
            {"name": "dev-temp", "status": "exists"},
        ]
        assert data["created"] == ["dev-uploads"]

    def test_record_without_open_step_is_ignored(self, tmp_path: Path) -> None:
        txlog = TransactionLog("unit", log_dir=tmp_path)
        txlog.record(StepResult("container", "dev-temp", StepStatus.CREATED))
        assert txlog.created() == []

    def test_non_ascii_message_kept_verbatim(self, tmp_path: Path) -> None:
        txlog = TransactionLog("unit", log_dir=tmp_path)
        txlog.finalize("failed", "Ressource déjà utilisée")
        assert "déjà" in txlog.path.read_text(encoding="utf-8")


def test_status_lines_do_not_interpret_markup() -> None:
    with console.capture() as captured:
        print_error("stderr: [bold]AuthorizationFailed[/bold]")
    assert "[bold]AuthorizationFailed[/bold]" in captured.get()
