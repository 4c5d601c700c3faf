# devstore CLI — main entry point
"""devstore CLI — provision the dev container's Azure storage from the terminal."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from ..common import (
    TransactionLog,
    console,
    die,
    init_logging,
    print_detail,
    print_error,
    print_header,
    print_info,
    print_success,
    print_warning,
)
from ..config import ProvisionConfig, settings
from ..providers.azure_cli import AzureCliError
from ..providers.base import CloudAdapter
from ..services.appsettings import AppSettingsError, load_appsettings
from ..services.provisioner import (
    NotAuthenticatedError,
    PrerequisiteError,
    ProvisionResult,
    Provisioner,
)


logger = logging.getLogger(__name__)


def _make_adapter() -> CloudAdapter:
    from ..providers.azure_cli import AzureCliAdapter
    return AzureCliAdapter(az_command=settings.az_command)


def _build_config(appsettings: Optional[Path]) -> ProvisionConfig:
    if appsettings is None:
        return ProvisionConfig()
    return ProvisionConfig(appsettings_path=appsettings)


@click.group()
@click.version_option(version=settings.app_version, prog_name="devstore")
def cli():
    """devstore — Azure storage for the dev container, set up idempotently."""
    pass


@cli.command()
@click.option(
    "--appsettings",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Settings JSON file to receive the connection string.",
)
def provision(appsettings: Optional[Path]):
    """Create the resource group, storage account and containers if missing.

    \b
    Safe to re-run: existing resources are detected and left untouched.
    Exits 0 without changes when not signed in to Azure.
    """
    cfg = _build_config(appsettings)

    print_header("Azure Dev Container Storage Setup")
    print_info("Starting idempotent Azure resource setup...")

    log_file = init_logging("provision")
    txlog = TransactionLog("provision-storage")
    logger.info("Provisioning %s in %s (%s)", cfg.storage_account, cfg.resource_group, cfg.location)

    code = run_provisioning(Provisioner(_make_adapter(), cfg), txlog)
    print_detail(f"Log file: {log_file}")
    print_detail(f"JSON log: {txlog.path}")
    sys.exit(code)


def run_provisioning(provisioner: Provisioner, txlog: Optional[TransactionLog] = None) -> int:
    """Run the pipeline and map its outcome to a process exit code.

    Only a missing session is tolerated; every other failure stops the run
    where it happened and nothing already created is rolled back.
    """
    try:
        result = provisioner.run(txlog)
    except PrerequisiteError as e:
        _finalize(txlog, "failed", str(e))
        print_error(str(e))
        return 1
    except NotAuthenticatedError as e:
        _finalize(txlog, "skipped", str(e))
        print_warning(str(e))
        print_info(f"To enable Azure Storage, run: {e.hint}")
        print_info("Azure Storage is not available (not logged in)")
        return 0
    except AzureCliError as e:
        _finalize(txlog, "failed", str(e))
        print_error(str(e))
        return e.returncode or 1
    except AppSettingsError as e:
        _finalize(txlog, "failed", str(e))
        print_error(str(e))
        return 1

    _finalize(txlog, "success", "Azure resources are ready")
    _print_summary(result)
    return 0


def _finalize(txlog: Optional[TransactionLog], status: str, message: str) -> None:
    logger.info("Run finished: %s %s", status, message)
    if txlog is not None:
        txlog.finalize(status, message)


def _print_summary(result: ProvisionResult) -> None:
    cfg = result.config
    print_success("Azure resources are ready!")
    print_info(f"Storage Account: {cfg.storage_account}")
    print_info(f"Resource Group: {cfg.resource_group}")
    print_info(f"Containers: {', '.join(cfg.containers)}")
    if result.created:
        print_detail(f"Created this run: {', '.join(result.created)}")
    console.print()
    print_info("To cleanup all resources later:")
    console.print(cfg.cleanup_command, highlight=False)


@cli.command()
@click.option(
    "--appsettings",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Settings JSON file to inspect.",
)
def status(appsettings: Optional[Path]):
    """Show which resources exist, without creating anything."""
    from rich.table import Table

    cfg = _build_config(appsettings)
    adapter = _make_adapter()

    console.print(f"[bold blue]devstore[/] v{settings.app_version}")
    if not adapter.is_available():
        die("Azure CLI not found. Make sure it's installed in the dev container.")

    account = adapter.current_account()
    if account is None:
        print_warning("Not logged in to Azure. Run: az login")
        return
    print_info(f"Subscription: {account.get('name', '<unknown>')}")

    def mark(present: bool) -> str:
        return "[green]✔[/green]" if present else "[red]✖[/red]"

    table = Table(title="Dev Container Storage")
    table.add_column("Type", style="cyan")
    table.add_column("Name")
    table.add_column("Exists")

    try:
        group_ok = adapter.resource_group_exists(cfg.resource_group)
        account_ok = group_ok and adapter.storage_account_exists(
            cfg.storage_account, cfg.resource_group
        )
        containers = {name: False for name in cfg.containers}
        if account_ok:
            conn = adapter.get_connection_string(cfg.storage_account, cfg.resource_group)
            containers = {name: adapter.container_exists(name, conn) for name in cfg.containers}
    except AzureCliError as e:
        die(str(e), e.returncode or 1)

    table.add_row("resource group", cfg.resource_group, mark(group_ok))
    table.add_row("storage account", cfg.storage_account, mark(account_ok))
    for name, present in containers.items():
        table.add_row("container", name, mark(present))

    try:
        configured = cfg.settings_section in load_appsettings(cfg.appsettings_path)
        table.add_row("app settings", cfg.settings_section, mark(configured))
    except FileNotFoundError:
        table.add_row("app settings", cfg.settings_section, "[dim]no file[/dim]")
    except AppSettingsError as e:
        die(str(e))

    console.print(table)


if __name__ == "__main__":
    cli()
