"""Shared utilities — console status lines, file logging, JSON run log.

Providers and services should import from here, not duplicate these functions.
"""

from __future__ import annotations

import json
import logging
import subprocess
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

if TYPE_CHECKING:
    from .services.provisioner import StepResult

console = Console()

# Shared by the text log and the JSON run log of one invocation
TIMESTAMP = datetime.now().strftime("%Y-%m-%d-%H%M%S")

# ---------------------------------------------------------------------------
# Status lines
# ---------------------------------------------------------------------------

# kind -> (rich style, marker)
_STATUS_STYLES: dict[str, tuple[str, str]] = {
    "step": ("bold cyan", "▶"),
    "info": ("blue", "ℹ"),
    "success": ("bold green", "✔"),
    "warning": ("bold yellow", "⚠"),
    "error": ("bold red", "✖"),
}


def _status(kind: str, msg: str) -> None:
    # Messages carry resource names and az stderr, never markup
    style, marker = _STATUS_STYLES[kind]
    console.print(f"[{style}]{marker} {escape(msg)}[/{style}]", highlight=False)


def print_header(title: str) -> None:
    console.print()
    console.print(Panel(f"[bold]{escape(title)}[/bold]", border_style="blue", expand=True))
    console.print()


def print_step(msg: str) -> None:
    _status("step", msg)


def print_info(msg: str) -> None:
    _status("info", msg)


def print_success(msg: str) -> None:
    _status("success", msg)


def print_warning(msg: str) -> None:
    _status("warning", msg)


def print_error(msg: str) -> None:
    _status("error", msg)


def print_detail(msg: str) -> None:
    console.print(f"  {escape(msg)}", highlight=False)


def die(msg: str, code: int = 1) -> None:
    print_error(msg)
    sys.exit(code)


# ---------------------------------------------------------------------------
# File-based logging
# ---------------------------------------------------------------------------


def init_logging(prefix: str = "devstore", log_dir: Optional[Path] = None) -> Path:
    """Point the ``devstore`` logger at a fresh timestamped file.

    Any file handler left by an earlier call is closed first, so one process
    only ever writes to the log of its latest run.
    """
    if log_dir is None:
        from .config import settings
        log_dir = settings.log_dir

    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{prefix}-{TIMESTAMP}.log"

    root = logging.getLogger("devstore")
    root.setLevel(logging.DEBUG)
    for handler in [h for h in root.handlers if isinstance(h, logging.FileHandler)]:
        root.removeHandler(handler)
        handler.close()

    fh = logging.FileHandler(log_file, encoding="utf-8")
    fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root.addHandler(fh)
    return log_file


# ---------------------------------------------------------------------------
# JSON run log
# ---------------------------------------------------------------------------


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class TransactionLog:
    """JSON record of one provisioning run.

    Each pipeline step gets an entry; the resources it checked are recorded
    under it with their outcome (``exists``, ``created``, ``updated``,
    ``skipped``), so the file answers "what did this run change?".
    """

    def __init__(self, operation: str, log_dir: Optional[Path] = None):
        self.operation = operation
        if log_dir is None:
            from .config import settings
            log_dir = settings.log_dir
        log_dir.mkdir(parents=True, exist_ok=True)
        self.path = log_dir / f"{operation}-{TIMESTAMP}.json"
        self._data: dict[str, Any] = {
            "operation": operation,
            "started_at": _now(),
            "status": "in_progress",
            "steps": [],
        }
        self._current_step: Optional[dict[str, Any]] = None
        self._flush()

    def step(self, step_id: str, description: str) -> None:
        self._close_current_step("done")
        self._current_step = {
            "id": step_id,
            "description": description,
            "status": "in_progress",
            "started_at": _now(),
            "resources": [],
        }
        self._data["steps"].append(self._current_step)
        self._flush()

    def record(self, result: StepResult) -> None:
        """Attach one resource outcome to the current step."""
        if self._current_step is None:
            return
        self._current_step["resources"].append(
            {"name": result.resource, "status": result.status.value}
        )
        self._flush()

    def step_update(self, status: str = "done", detail: str = "") -> None:
        if self._current_step:
            self._current_step["status"] = status
            if detail:
                self._current_step["detail"] = detail
            self._current_step["ended_at"] = _now()
        self._flush()

    def created(self) -> list[str]:
        return [
            r["name"]
            for s in self._data["steps"]
            for r in s["resources"]
            if r["status"] == "created"
        ]

    def finalize(self, status: str = "success", message: str = "") -> None:
        # A step still open at this point shares the run's outcome
        self._close_current_step("done" if status == "success" else status)
        self._data["status"] = status
        self._data["ended_at"] = _now()
        self._data["created"] = self.created()
        if message:
            self._data["message"] = message
        self._flush()

    def _close_current_step(self, default_status: str) -> None:
        if self._current_step and self._current_step["status"] == "in_progress":
            self._current_step["status"] = default_status
            self._current_step["ended_at"] = _now()

    def _flush(self) -> None:
        self.path.write_text(
            json.dumps(self._data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )


# ---------------------------------------------------------------------------
# Dependency checking
# ---------------------------------------------------------------------------


def check_command(cmd: str) -> bool:
    """Return True if *cmd* is available on PATH."""
    try:
        subprocess.run(["which", cmd], capture_output=True, check=True)
        return True
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False
