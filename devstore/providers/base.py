"""Abstract base class for the cloud backend the provisioner talks to."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional


class CloudAdapter(ABC):
    """Narrow interface over the cloud provider's tooling.

    Each resource kind is exposed as an existence query plus a create call.
    The check-then-create sequencing belongs to the provisioner, so adapters
    never decide whether something should be created.
    """

    @property
    @abstractmethod
    def provider_type(self) -> str:
        """Return the provider type identifier (e.g. 'azure-cli')."""
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Return True if the underlying tooling can be invoked at all."""
        ...

    @abstractmethod
    def current_account(self) -> Optional[dict[str, Any]]:
        """Return the signed-in account, or None when there is no session."""
        ...

    # -- Resource groups ---------------------------------------------------

    @abstractmethod
    def resource_group_exists(self, name: str) -> bool:
        ...

    @abstractmethod
    def create_resource_group(self, name: str, location: str) -> None:
        ...

    # -- Storage accounts --------------------------------------------------

    @abstractmethod
    def storage_account_exists(self, name: str, resource_group: str) -> bool:
        ...

    @abstractmethod
    def create_storage_account(
        self,
        name: str,
        resource_group: str,
        location: str,
        sku: str,
        kind: str,
        access_tier: str,
    ) -> None:
        ...

    @abstractmethod
    def get_connection_string(self, account_name: str, resource_group: str) -> str:
        """Fetch the account's connection string. Never cached."""
        ...

    # -- Blob containers ---------------------------------------------------

    @abstractmethod
    def container_exists(self, name: str, connection_string: str) -> bool:
        ...

    @abstractmethod
    def create_container(self, name: str, connection_string: str) -> None:
        """Create a private blob container."""
        ...
