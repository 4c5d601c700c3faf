"""Azure provider adapter — drives the ``az`` command-line tool.

Docs: https://learn.microsoft.com/en-us/cli/azure/

Existence checks follow the ``show`` convention: a non-zero exit means the
resource is absent. Everything else that fails raises :class:`AzureCliError`.
"""

from __future__ import annotations

import json
import logging
import subprocess
from typing import Any, Optional

from ..common import check_command
from .base import CloudAdapter

logger = logging.getLogger(__name__)

# Argument values that must never reach a log line or an error message
SENSITIVE_FLAGS = {"--connection-string", "--account-key", "--sas-token"}

# Exit code used by shells for "command not found"
COMMAND_NOT_FOUND = 127


class AzureCliError(Exception):
    """Raised when an ``az`` invocation exits non-zero."""

    def __init__(self, command: list[str], returncode: int, stderr: str = ""):
        self.command = redact(command)
        self.returncode = returncode
        self.stderr = stderr.strip()
        msg = f"'{' '.join(self.command)}' exited with code {returncode}"
        if self.stderr:
            msg += f": {self.stderr}"
        super().__init__(msg)


def redact(command: list[str]) -> list[str]:
    """Return a copy of *command* with secret-bearing values masked."""
    out: list[str] = []
    mask_next = False
    for arg in command:
        if mask_next:
            out.append("***")
            mask_next = False
            continue
        out.append(arg)
        if arg in SENSITIVE_FLAGS:
            mask_next = True
    return out


class AzureCliAdapter(CloudAdapter):
    """Azure backend implemented on top of the Azure CLI."""

    def __init__(self, az_command: str = "az") -> None:
        self.az_command = az_command

    @property
    def provider_type(self) -> str:
        return "azure-cli"

    # ── Session ───────────────────────────────────────────────────────────

    def is_available(self) -> bool:
        return check_command(self.az_command)

    def current_account(self) -> Optional[dict[str, Any]]:
        """Return ``az account show`` output, or None when not signed in."""
        result = self._run(["account", "show", "--output", "json"])
        if result.returncode != 0:
            logger.info("No active Azure session")
            return None
        try:
            return json.loads(result.stdout or "{}")
        except json.JSONDecodeError:
            return {}

    # ── Resource groups ───────────────────────────────────────────────────

    def resource_group_exists(self, name: str) -> bool:
        return self._succeeds(["group", "show", "--name", name])

    def create_resource_group(self, name: str, location: str) -> None:
        self._check([
            "group", "create",
            "--name", name,
            "--location", location,
            "--output", "none",
        ])

    # ── Storage accounts ──────────────────────────────────────────────────

    def storage_account_exists(self, name: str, resource_group: str) -> bool:
        return self._succeeds([
            "storage", "account", "show",
            "--name", name,
            "--resource-group", resource_group,
        ])

    def create_storage_account(
        self,
        name: str,
        resource_group: str,
        location: str,
        sku: str,
        kind: str,
        access_tier: str,
    ) -> None:
        self._check([
            "storage", "account", "create",
            "--name", name,
            "--resource-group", resource_group,
            "--location", location,
            "--sku", sku,
            "--kind", kind,
            "--access-tier", access_tier,
            "--output", "none",
        ])

    def get_connection_string(self, account_name: str, resource_group: str) -> str:
        result = self._check([
            "storage", "account", "show-connection-string",
            "--name", account_name,
            "--resource-group", resource_group,
            "--query", "connectionString",
            "--output", "tsv",
        ])
        return result.stdout.strip()

    # ── Blob containers ───────────────────────────────────────────────────

    def container_exists(self, name: str, connection_string: str) -> bool:
        return self._succeeds([
            "storage", "container", "show",
            "--name", name,
            "--connection-string", connection_string,
        ])

    def create_container(self, name: str, connection_string: str) -> None:
        self._check([
            "storage", "container", "create",
            "--name", name,
            "--connection-string", connection_string,
            "--public-access", "off",
            "--output", "none",
        ])

    # ── Internal helpers ──────────────────────────────────────────────────

    def _run(self, args: list[str]) -> subprocess.CompletedProcess:
        """Invoke ``az`` with *args*. Never raises on a non-zero exit."""
        command = [self.az_command, *args, "--only-show-errors"]
        logger.debug("Running: %s", " ".join(redact(command)))
        try:
            result = subprocess.run(command, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise AzureCliError(command, COMMAND_NOT_FOUND, str(e)) from e
        logger.debug("Exit code %d", result.returncode)
        return result

    def _succeeds(self, args: list[str]) -> bool:
        return self._run(args).returncode == 0

    def _check(self, args: list[str]) -> subprocess.CompletedProcess:
        result = self._run(args)
        if result.returncode != 0:
            err = AzureCliError([self.az_command, *args], result.returncode, result.stderr or "")
            logger.error("%s", err)
            raise err
        return result
