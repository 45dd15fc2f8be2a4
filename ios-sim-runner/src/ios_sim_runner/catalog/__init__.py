"""Static iOS device model catalog."""

from __future__ import annotations

from ios_sim_runner.catalog.device_catalog import (
    DEFAULT_DEVICE_TYPE,
    CatalogValidationError,
    DeviceCatalog,
    DeviceModel,
    DeviceNotFoundError,
    default_catalog,
)

__all__ = [
    "DEFAULT_DEVICE_TYPE",
    "CatalogValidationError",
    "DeviceCatalog",
    "DeviceModel",
    "DeviceNotFoundError",
    "default_catalog",
]
