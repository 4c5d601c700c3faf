"""Provisioner — ensures the dev container's Azure storage exists.

Pipeline (strictly sequential, fail-fast):

    check prerequisite -> check authentication -> ensure resource group
      -> ensure storage account -> ensure containers -> patch app settings

Every create is preceded by an existence check, so re-running against
unchanged cloud state issues no create calls at all. Nothing is ever deleted.
Errors are raised, not handled: the caller decides which ones are fatal.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Optional

from ..common import TransactionLog, print_info, print_step, print_success
from ..config import ProvisionConfig
from ..providers.base import CloudAdapter
from .appsettings import PatchOutcome, patch_appsettings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ProvisionError(Exception):
    """Base class for provisioning failures."""
    pass


class PrerequisiteError(ProvisionError):
    """The cloud CLI is not installed or not on PATH."""
    pass


class NotAuthenticatedError(ProvisionError):
    """No active cloud session. Recoverable: provisioning is simply skipped."""

    def __init__(self, msg: str = "Not logged in to Azure", hint: str = "az login"):
        super().__init__(msg)
        self.hint = hint


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class StepStatus(str, Enum):
    EXISTS = "exists"
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"


@dataclass
class StepResult:
    step: str
    resource: str
    status: StepStatus


@dataclass
class ProvisionResult:
    config: ProvisionConfig
    account: dict[str, Any] = field(default_factory=dict)
    steps: list[StepResult] = field(default_factory=list)

    @property
    def created(self) -> list[str]:
        return [s.resource for s in self.steps if s.status == StepStatus.CREATED]

    @property
    def settings_updated(self) -> bool:
        return any(
            s.step == "patch-config" and s.status == StepStatus.UPDATED for s in self.steps
        )


@contextmanager
def _tracked(
    txlog: Optional[TransactionLog], step_id: str, description: str
) -> Iterator[list[StepResult]]:
    """Record one pipeline step in *txlog* (if any), marking it failed on error.

    The body appends its results to the yielded list; they are written under
    the step once it completes.
    """
    done: list[StepResult] = []
    if txlog is None:
        yield done
        return
    txlog.step(step_id, description)
    try:
        yield done
    except Exception as e:
        status = "skipped" if isinstance(e, NotAuthenticatedError) else "failed"
        txlog.step_update(status, str(e))
        raise
    for step_result in done:
        txlog.record(step_result)
    txlog.step_update("done")


# ---------------------------------------------------------------------------
# Provisioner
# ---------------------------------------------------------------------------


class Provisioner:
    """Idempotently provisions the resources described by a ProvisionConfig."""

    def __init__(self, adapter: CloudAdapter, config: Optional[ProvisionConfig] = None):
        self.adapter = adapter
        self.config = config or ProvisionConfig()

    # -- Checks ------------------------------------------------------------

    def check_prerequisite(self) -> None:
        print_step("Checking for Azure CLI...")
        if not self.adapter.is_available():
            raise PrerequisiteError(
                "Azure CLI not found. Make sure it's installed in the dev container."
            )
        logger.info("Cloud CLI available (%s)", self.adapter.provider_type)

    def check_authentication(self) -> dict[str, Any]:
        print_step("Checking Azure login...")
        account = self.adapter.current_account()
        if account is None:
            raise NotAuthenticatedError(
                "Not logged in to Azure. Azure Storage will not be available."
            )
        name = account.get("name", "")
        if name:
            print_info(f"Using subscription '{name}'")
        logger.info("Authenticated, subscription=%s", name or "<unknown>")
        return account

    # -- Ensure steps ------------------------------------------------------

    def ensure_resource_group(self, name: str, location: str) -> StepResult:
        if self.adapter.resource_group_exists(name):
            print_info(f"Resource group '{name}' already exists")
            return StepResult("resource-group", name, StepStatus.EXISTS)

        print_info(f"Creating resource group '{name}'...")
        self.adapter.create_resource_group(name, location)
        print_success("Resource group created")
        logger.info("Created resource group %s in %s", name, location)
        return StepResult("resource-group", name, StepStatus.CREATED)

    def ensure_storage_account(
        self,
        name: str,
        resource_group: str,
        location: str,
        sku: str,
        kind: str,
        access_tier: str,
    ) -> StepResult:
        if self.adapter.storage_account_exists(name, resource_group):
            print_info(f"Storage account '{name}' already exists")
            return StepResult("storage-account", name, StepStatus.EXISTS)

        print_info(f"Creating storage account '{name}'...")
        self.adapter.create_storage_account(
            name, resource_group, location, sku, kind, access_tier
        )
        print_success("Storage account created")
        logger.info(
            "Created storage account %s (sku=%s, kind=%s, tier=%s)", name, sku, kind, access_tier
        )
        return StepResult("storage-account", name, StepStatus.CREATED)

    def ensure_containers(
        self, account_name: str, resource_group: str, names: tuple[str, ...] | list[str]
    ) -> list[StepResult]:
        """Check and create each container independently; the first failure aborts."""
        connection_string = self.adapter.get_connection_string(account_name, resource_group)
        results: list[StepResult] = []
        for name in names:
            if self.adapter.container_exists(name, connection_string):
                print_info(f"Container '{name}' already exists")
                results.append(StepResult("container", name, StepStatus.EXISTS))
                continue
            print_info(f"Creating container '{name}'...")
            self.adapter.create_container(name, connection_string)
            logger.info("Created container %s in %s", name, account_name)
            results.append(StepResult("container", name, StepStatus.CREATED))
        return results

    def patch_configuration(
        self, file_path: Path, section_key: str, connection_string: str
    ) -> StepResult:
        outcome = patch_appsettings(file_path, section_key, connection_string)
        if outcome is PatchOutcome.MISSING:
            return StepResult("patch-config", str(file_path), StepStatus.SKIPPED)
        if outcome is PatchOutcome.ADDED:
            print_success("Configuration updated")
            return StepResult("patch-config", str(file_path), StepStatus.UPDATED)

        print_info(f"{section_key} configuration already exists in {file_path.name}")
        return StepResult("patch-config", str(file_path), StepStatus.EXISTS)

    # -- Pipeline ----------------------------------------------------------

    def run(self, txlog: Optional[TransactionLog] = None) -> ProvisionResult:
        cfg = self.config
        result = ProvisionResult(config=cfg)

        with _tracked(txlog, "1-prerequisite", "Azure CLI available"):
            self.check_prerequisite()

        with _tracked(txlog, "2-login", "Azure session active"):
            result.account = self.check_authentication()

        with _tracked(txlog, "3-resource-group", f"Resource group {cfg.resource_group}") as done:
            done.append(self.ensure_resource_group(cfg.resource_group, cfg.location))
        result.steps.extend(done)

        with _tracked(txlog, "4-storage-account", f"Storage account {cfg.storage_account}") as done:
            done.append(
                self.ensure_storage_account(
                    cfg.storage_account,
                    cfg.resource_group,
                    cfg.location,
                    cfg.sku,
                    cfg.kind,
                    cfg.access_tier,
                )
            )
        result.steps.extend(done)

        with _tracked(txlog, "5-containers", f"Blob containers {', '.join(cfg.containers)}") as done:
            done.extend(
                self.ensure_containers(cfg.storage_account, cfg.resource_group, cfg.containers)
            )
        result.steps.extend(done)

        with _tracked(txlog, "6-appsettings", f"App settings {cfg.appsettings_path}") as done:
            connection_string = self.adapter.get_connection_string(
                cfg.storage_account, cfg.resource_group
            )
            done.append(
                self.patch_configuration(
                    cfg.appsettings_path, cfg.settings_section, connection_string
                )
            )
        result.steps.extend(done)

        return result
