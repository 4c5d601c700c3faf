"""devstore configuration — fixed resource constants and ambient settings.

Resource names are deliberately not read from the environment: they live in
:class:`ProvisionConfig`, an immutable value passed into the provisioner.
Only tool-level paths and the CLI executable come from :class:`Settings`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic_settings import BaseSettings

from . import __version__

# ---------------------------------------------------------------------------
# Fixed resource constants
# ---------------------------------------------------------------------------

RESOURCE_GROUP_NAME = "rg-devcontainer-dev"
STORAGE_ACCOUNT_NAME = "stdevcontainer001"  # globally unique
LOCATION = "eastus"
SKU = "Standard_LRS"
STORAGE_KIND = "StorageV2"
ACCESS_TIER = "Hot"
CONTAINER_NAMES: tuple[str, ...] = ("dev-uploads", "dev-temp", "dev-logs")

APPSETTINGS_PATH = Path("/workspaces/DevContainer/HelloWorldApi/appsettings.Development.json")
SETTINGS_SECTION = "AzureStorage"


@dataclass(frozen=True)
class ProvisionConfig:
    """Everything the provisioner needs to know about the target resources."""

    resource_group: str = RESOURCE_GROUP_NAME
    storage_account: str = STORAGE_ACCOUNT_NAME
    location: str = LOCATION
    sku: str = SKU
    kind: str = STORAGE_KIND
    access_tier: str = ACCESS_TIER
    containers: tuple[str, ...] = CONTAINER_NAMES

    # Local application settings file
    appsettings_path: Path = APPSETTINGS_PATH
    settings_section: str = SETTINGS_SECTION

    @property
    def cleanup_command(self) -> str:
        return f"az group delete --name {self.resource_group} --yes --no-wait"


class Settings(BaseSettings):
    """Tool settings — populated from env vars or .env file."""

    app_name: str = "devstore"
    app_version: str = __version__

    # Cloud CLI executable
    az_command: str = "az"

    # Paths
    local_dir: Path = Path(".devstore")

    model_config = {"env_prefix": "DEVSTORE_", "env_file": ".env", "extra": "ignore"}

    @property
    def log_dir(self) -> Path:
        return self.local_dir / "logs"


settings = Settings()
