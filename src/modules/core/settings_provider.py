"""Read-only settings collaborator.

Driver display names, vehicles and the cake catalog are deployment
configuration, not domain constants.  Services receive an
``ISettingsProvider`` so tests can swap in fixed values.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from django.conf import settings

CATALOG_KEYS = ("shapes", "flavors", "sizes")


class ISettingsProvider(ABC):
    @abstractmethod
    def driver_settings(self) -> Dict[str, Dict[str, str]]:
        """Mapping ``driver_type -> {"name": ..., "vehicle": ...}``."""

    @abstractmethod
    def cake_catalog(self) -> Dict[str, List[str]]:
        """Mapping ``shapes | flavors | sizes -> allowed values``."""

    def driver_display_name(self, driver_type: str) -> Optional[str]:
        entry = self.driver_settings().get(driver_type)
        return entry.get("name") if entry else None

    def driver_vehicle(self, driver_type: str) -> str:
        entry = self.driver_settings().get(driver_type) or {}
        return entry.get("vehicle", "")


class DjangoSettingsProvider(ISettingsProvider):
    """Reads ``DELIVERY_DRIVERS`` and ``CAKE_CATALOG`` from Django settings."""

    def driver_settings(self) -> Dict[str, Dict[str, str]]:
        return dict(getattr(settings, "DELIVERY_DRIVERS", {}))

    def cake_catalog(self) -> Dict[str, List[str]]:
        catalog: Dict[str, Any] = getattr(settings, "CAKE_CATALOG", {})
        return {key: list(catalog.get(key, [])) for key in CATALOG_KEYS}


class StaticSettingsProvider(ISettingsProvider):
    """In-memory provider for tests and scripts."""

    def __init__(
        self,
        drivers: Optional[Dict[str, Dict[str, str]]] = None,
        catalog: Optional[Dict[str, List[str]]] = None,
    ) -> None:
        self._drivers = drivers or {}
        self._catalog = catalog or {}

    def driver_settings(self) -> Dict[str, Dict[str, str]]:
        return dict(self._drivers)

    def cake_catalog(self) -> Dict[str, List[str]]:
        return {key: list(self._catalog.get(key, [])) for key in CATALOG_KEYS}
