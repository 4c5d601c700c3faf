"""Tests for config.py — fixed constants and environment settings."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from devstore.config import CONTAINER_NAMES, ProvisionConfig, Settings


def test_defaults() -> None:
    cfg = ProvisionConfig()
    assert cfg.resource_group == "rg-devcontainer-dev"
    assert cfg.storage_account == "stdevcontainer001"
    assert cfg.location == "eastus"
    assert cfg.sku == "Standard_LRS"
    assert cfg.kind == "StorageV2"
    assert cfg.access_tier == "Hot"
    assert cfg.containers == CONTAINER_NAMES == ("dev-uploads", "dev-temp", "dev-logs")
    assert cfg.settings_section == "AzureStorage"


def test_is_immutable() -> None:
    cfg = ProvisionConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.resource_group = "other"  # type: ignore[misc]


def test_cleanup_command() -> None:
    cfg = ProvisionConfig(resource_group="rg-x")
    assert cfg.cleanup_command == "az group delete --name rg-x --yes --no-wait"


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DEVSTORE_AZ_COMMAND", "/opt/az/bin/az")
    monkeypatch.setenv("DEVSTORE_LOCAL_DIR", str(tmp_path))
    s = Settings()
    assert s.az_command == "/opt/az/bin/az"
    assert s.log_dir == tmp_path / "logs"


def test_resource_names_not_read_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEVSTORE_RESOURCE_GROUP", "rg-from-env")
    assert ProvisionConfig().resource_group == "rg-devcontainer-dev"
