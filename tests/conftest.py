"""Shared pytest fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import pytest

from devstore.config import ProvisionConfig, settings
from devstore.providers.azure_cli import AzureCliError
from devstore.providers.base import CloudAdapter


class FakeAzure(CloudAdapter):
    """In-memory Azure double that records every call it receives."""

    def __init__(self, available: bool = True, signed_in: bool = True) -> None:
        self.available = available
        self.signed_in = signed_in
        self.groups: set[str] = set()
        self.accounts: set[tuple[str, str]] = set()
        self.containers: set[str] = set()
        self.connection_string = "DefaultEndpointsProtocol=https;AccountName=fake;AccountKey=k1"
        self.fail_on_create: set[str] = set()
        self.calls: list[tuple[Any, ...]] = []

    @property
    def provider_type(self) -> str:
        return "fake"

    @property
    def creates(self) -> list[tuple[Any, ...]]:
        return [c for c in self.calls if c[0].startswith("create_")]

    def is_available(self) -> bool:
        self.calls.append(("is_available",))
        return self.available

    def current_account(self) -> Optional[dict[str, Any]]:
        self.calls.append(("current_account",))
        return {"name": "Dev Subscription"} if self.signed_in else None

    def resource_group_exists(self, name: str) -> bool:
        self.calls.append(("resource_group_exists", name))
        return name in self.groups

    def create_resource_group(self, name: str, location: str) -> None:
        self.calls.append(("create_resource_group", name, location))
        self._maybe_fail(name)
        self.groups.add(name)

    def storage_account_exists(self, name: str, resource_group: str) -> bool:
        self.calls.append(("storage_account_exists", name, resource_group))
        return (name, resource_group) in self.accounts

    def create_storage_account(self, name, resource_group, location, sku, kind, access_tier) -> None:
        self.calls.append(("create_storage_account", name, resource_group, location, sku, kind, access_tier))
        self._maybe_fail(name)
        self.accounts.add((name, resource_group))

    def get_connection_string(self, account_name: str, resource_group: str) -> str:
        self.calls.append(("get_connection_string", account_name, resource_group))
        return self.connection_string

    def container_exists(self, name: str, connection_string: str) -> bool:
        self.calls.append(("container_exists", name))
        return name in self.containers

    def create_container(self, name: str, connection_string: str) -> None:
        self.calls.append(("create_container", name))
        self._maybe_fail(name)
        self.containers.add(name)

    def _maybe_fail(self, name: str) -> None:
        if name in self.fail_on_create:
            raise AzureCliError(["az", "create", name], 3, "AuthorizationFailed")


@pytest.fixture
def fake_azure() -> FakeAzure:
    return FakeAzure()


@pytest.fixture
def appsettings_file(tmp_path: Path) -> Path:
    """A settings file without the storage section."""
    path = tmp_path / "appsettings.Development.json"
    path.write_text(json.dumps({"Logging": {"LogLevel": {"Default": "Information"}}}, indent=2))
    return path


@pytest.fixture
def provision_config(appsettings_file: Path) -> ProvisionConfig:
    return ProvisionConfig(appsettings_path=appsettings_file)


@pytest.fixture(autouse=True)
def isolated_local_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep log files produced by commands inside the test's tmp dir."""
    local = tmp_path / ".devstore"
    monkeypatch.setattr(settings, "local_dir", local)
    return local
