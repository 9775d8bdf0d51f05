"""Shipment payload loading."""

from typing import Any

from pydantic.alias_generators import to_camel

from hazmat_contracts import ShipmentData
from hazmat_storage import SettingsStore


def apply_defaults(payload: dict[str, Any], defaults: dict[str, str]) -> dict[str, Any]:
    """Fill missing or blank fields from stored defaults.

    ``payload`` may use field names or camelCase aliases; defaults are keyed
    by field name. Values the user supplied always win.
    """
    merged = dict(payload)
    for field, value in defaults.items():
        alias = to_camel(field)
        if merged.get(field) or merged.get(alias):
            continue
        merged.pop(field, None)
        merged[alias] = value
    return merged


async def load_shipment(payload: dict[str, Any]) -> ShipmentData:
    """Validate a shipment payload after applying stored defaults.

    Raises:
        pydantic.ValidationError: If the shipment is invalid
    """
    defaults = await SettingsStore.get_shipment_defaults()
    return ShipmentData.model_validate(apply_defaults(payload, defaults))
