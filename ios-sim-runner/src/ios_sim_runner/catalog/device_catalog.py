"""iOS device model catalog.

The catalog is a declarative table (`device_models.yaml`) loaded once and
validated against `schemas/device_catalog.schema.json`. Each model has an
identifier (e.g. `IPHONE_6`), a display name, an optional simulator screen size
and the hardware product types (`iphone7,2`) reported by real devices.

Two lookups are exposed and they fail differently on purpose:
  * `resolve_by_identifier` raises `DeviceNotFoundError`
  * `display_name_for_product_type` returns `"<token> unknown model"`
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional

import yaml
from jsonschema import Draft202012Validator

SIMULATOR_DEVICE_TYPE_PREFIX = "com.apple.CoreSimulator.SimDeviceType."
DEFAULT_DEVICE_TYPE = "IPHONE_6"

_IDENTIFIER_ALIASES: dict[str, str] = {
    "IDEVICE": "IDEVICE_GENERIC",
    "IPAD_PRO": "IPAD_PRO_12_9",
}


class DeviceNotFoundError(LookupError):
    """Raised when no catalog identifier matches a requested device type."""


class CatalogValidationError(RuntimeError):
    pass


@dataclass(frozen=True)
class DeviceModel:
    identifier: str
    name: str
    screen_width_px: int = 0
    screen_height_px: int = 0
    product_types: frozenset[str] = frozenset()
    product_type_display_name: Optional[str] = None

    @property
    def simulator_capable(self) -> bool:
        """0x0 marks a model that only exists as real hardware."""
        return self.screen_width_px > 0 and self.screen_height_px > 0


def _catalog_path() -> Path:
    return Path(__file__).resolve().parent / "device_models.yaml"


def _schema_path() -> Path:
    # ios_sim_runner/catalog/* → ios_sim_runner/schemas/device_catalog.schema.json
    return Path(__file__).resolve().parents[1] / "schemas" / "device_catalog.schema.json"


@lru_cache(maxsize=1)
def _load_schema() -> dict[str, Any]:
    schema_path = _schema_path()
    data = json.loads(schema_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise CatalogValidationError(f"schema must be an object: {schema_path}")
    Draft202012Validator.check_schema(data)
    return data


def _validate_catalog_document(doc: Any, *, where: Path) -> None:
    validator = Draft202012Validator(_load_schema())
    errors = sorted(validator.iter_errors(doc), key=lambda err: list(err.path))
    if not errors:
        return

    msgs: list[str] = []
    for err in errors[:20]:
        loc = "/".join(str(p) for p in err.path)
        suffix = f":{loc}" if loc else ""
        msgs.append(f"- {where}{suffix}: {err.message}")
    if len(errors) > 20:
        msgs.append(f"... ({len(errors)-20} more)")
    raise CatalogValidationError("device catalog validation failed:\n" + "\n".join(msgs))


def _model_from_entry(entry: Mapping[str, Any]) -> DeviceModel:
    screen = entry.get("screen") or {}
    return DeviceModel(
        identifier=str(entry["id"]),
        name=str(entry["name"]),
        screen_width_px=int(screen.get("width", 0)),
        screen_height_px=int(screen.get("height", 0)),
        product_types=frozenset(str(t) for t in entry.get("product_types") or ()),
        product_type_display_name=entry.get("product_type_display_name"),
    )


class DeviceCatalog:
    """Immutable identifier → `DeviceModel` mapping."""

    def __init__(self, models: Mapping[str, DeviceModel]) -> None:
        self._models: Mapping[str, DeviceModel] = MappingProxyType(dict(models))

    @classmethod
    def from_yaml(cls, path: Path) -> "DeviceCatalog":
        if not path.exists():
            raise FileNotFoundError(path)
        doc = yaml.safe_load(path.read_text(encoding="utf-8"))
        _validate_catalog_document(doc, where=path)

        models: Dict[str, DeviceModel] = {}
        for entry in doc["models"]:
            model = _model_from_entry(entry)
            if model.identifier in models:
                raise CatalogValidationError(
                    f"duplicate device identifier in {path}: {model.identifier}"
                )
            models[model.identifier] = model
        return cls(models)

    @property
    def models(self) -> Mapping[str, DeviceModel]:
        return self._models

    def __iter__(self) -> Iterator[DeviceModel]:
        return iter(self._models.values())

    def __len__(self) -> int:
        return len(self._models)

    def resolve_by_identifier(self, name: str) -> DeviceModel:
        """Resolve a device type such as `iphone 6` or `IPAD_PRO`.

        Matching is case-insensitive; spaces count as underscores. The bare
        `IDEVICE` and `IPAD_PRO` families resolve to their generic and
        12.9-inch variants.
        """

        key = str(name).replace(" ", "_").upper()
        key = _IDENTIFIER_ALIASES.get(key, key)
        model = self._models.get(key)
        if model is None:
            raise DeviceNotFoundError(f"No device found for simulatorType: {key}")
        return model

    def display_name_for_product_type(self, product_type: str) -> str:
        for model in self._models.values():
            if product_type in model.product_types:
                return model.product_type_display_name or model.name
        return f"{product_type} unknown model"

    @staticmethod
    def simulator_type_id(model: DeviceModel) -> str:
        return SIMULATOR_DEVICE_TYPE_PREFIX + model.name.replace(" ", "-")


@lru_cache(maxsize=1)
def default_catalog() -> DeviceCatalog:
    return DeviceCatalog.from_yaml(_catalog_path())
