"""SettingsStore - persisted user configuration as a JSON key-value table.

Holds the AI credential, per-task model selection, the knowledge server
list, validation check toggles and shipment form defaults. Values are read
fresh on every call.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import ValidationError

from hazmat_common import StorageError, get_logger
from hazmat_common.config import get_settings
from hazmat_contracts import VALIDATION_CHECKS, KnowledgeServerConfig

from hazmat_storage.connection import get_connection

logger = get_logger(__name__)

API_KEY = "gemini_api_key"
LEGACY_MODEL_KEY = "gemini_model"
SERVERS_KEY = "mcp_servers"
RULES_KEY = "validation_rules"

# Shipment field -> settings key
SHIPMENT_DEFAULT_KEYS: dict[str, str] = {
    "signatory_name": "default_signatory_name",
    "signatory_title": "default_signatory_title",
    "signatory_place": "default_signatory_place",
    "emergency_phone": "default_emergency_phone",
    "offeror_name": "default_offeror_name",
}


class ModelTask(str, Enum):
    """Tasks that can each use a different model."""

    VALIDATION = "validation"
    SUGGESTIONS = "suggestions"
    OCR = "ocr"
    EXTRACTION = "extraction"

    @property
    def settings_key(self) -> str:
        return f"gemini_model_{self.value}"


def default_model(task: ModelTask) -> str:
    settings = get_settings()
    return {
        ModelTask.VALIDATION: settings.validation_model,
        ModelTask.SUGGESTIONS: settings.suggestion_model,
        ModelTask.OCR: settings.ocr_model,
        ModelTask.EXTRACTION: settings.extraction_model,
    }[task]


class SettingsStore:
    """Storage operations for persisted settings.

    All operations use the global connection.
    """

    @staticmethod
    async def get(key: str, default: Any = None) -> Any:
        """Get a setting value, or ``default`` if unset."""
        conn = await get_connection()

        try:
            async with conn.execute(
                "SELECT value FROM settings WHERE key = ?", (key,)
            ) as cursor:
                row = await cursor.fetchone()
        except Exception as e:
            logger.error("setting_get_failed", key=key, error=str(e))
            raise StorageError(f"Failed to read setting '{key}': {e}") from e

        if row is None:
            return default

        try:
            return json.loads(row["value"])
        except json.JSONDecodeError:
            logger.warning("setting_value_corrupt", key=key)
            return default

    @staticmethod
    async def set(key: str, value: Any) -> None:
        """Set a setting value (any JSON-serializable value)."""
        conn = await get_connection()
        now = datetime.now(timezone.utc).isoformat()

        try:
            await conn.execute(
                """
                INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                               updated_at = excluded.updated_at
                """,
                (key, json.dumps(value), now),
            )
            await conn.commit()
        except Exception as e:
            logger.error("setting_set_failed", key=key, error=str(e))
            raise StorageError(f"Failed to write setting '{key}': {e}") from e

        logger.debug("setting_saved", key=key)

    @staticmethod
    async def delete(*keys: str) -> None:
        """Delete one or more settings. Missing keys are ignored."""
        conn = await get_connection()

        try:
            await conn.executemany(
                "DELETE FROM settings WHERE key = ?", [(key,) for key in keys]
            )
            await conn.commit()
        except Exception as e:
            logger.error("setting_delete_failed", keys=list(keys), error=str(e))
            raise StorageError(f"Failed to delete settings: {e}") from e

    # -- AI credential and models ---------------------------------------

    @staticmethod
    async def get_api_key() -> Optional[str]:
        key = await SettingsStore.get(API_KEY)
        return key or None

    @staticmethod
    async def set_api_key(api_key: str) -> None:
        await SettingsStore.set(API_KEY, api_key.strip())

    @staticmethod
    async def get_model(task: ModelTask) -> str:
        """Model id for a task.

        Falls back to the legacy single-model key for validation, then to the
        configured default.
        """
        model_id = await SettingsStore.get(task.settings_key)
        if not model_id and task == ModelTask.VALIDATION:
            model_id = await SettingsStore.get(LEGACY_MODEL_KEY)
        return model_id or default_model(task)

    @staticmethod
    async def set_model(task: ModelTask, model_id: str) -> None:
        await SettingsStore.set(task.settings_key, model_id)

    @staticmethod
    async def clear_ai_config() -> None:
        """Remove the credential and every model selection."""
        await SettingsStore.delete(
            API_KEY, LEGACY_MODEL_KEY, *(task.settings_key for task in ModelTask)
        )
        logger.info("ai_config_cleared")

    # -- Knowledge servers ----------------------------------------------

    @staticmethod
    async def get_servers() -> list[KnowledgeServerConfig]:
        """Configured knowledge servers, in configuration order.

        Malformed entries are skipped with a warning.
        """
        raw = await SettingsStore.get(SERVERS_KEY, [])
        if not isinstance(raw, list):
            logger.warning("servers_setting_not_a_list")
            return []

        servers = []
        for entry in raw:
            try:
                servers.append(KnowledgeServerConfig.model_validate(entry))
            except ValidationError as e:
                logger.warning("server_config_invalid", entry=entry, error=str(e))
        return servers

    @staticmethod
    async def save_servers(servers: list[KnowledgeServerConfig]) -> None:
        await SettingsStore.set(SERVERS_KEY, [s.model_dump() for s in servers])

    @staticmethod
    async def add_server(server: KnowledgeServerConfig) -> None:
        """Append a server.

        Raises:
            StorageError: If a server with the same name exists
        """
        servers = await SettingsStore.get_servers()
        if any(s.name == server.name for s in servers):
            raise StorageError(f"Server '{server.name}' already exists")
        servers.append(server)
        await SettingsStore.save_servers(servers)
        logger.info("server_added", name=server.name, url=server.url)

    @staticmethod
    async def remove_server(name: str) -> bool:
        servers = await SettingsStore.get_servers()
        remaining = [s for s in servers if s.name != name]
        if len(remaining) == len(servers):
            return False
        await SettingsStore.save_servers(remaining)
        logger.info("server_removed", name=name)
        return True

    @staticmethod
    async def update_server(name: str, **changes: Any) -> bool:
        """Update fields (``enabled``, ``weight``, ``url``) of a named server.

        Returns:
            False if no server has that name
        """
        servers = await SettingsStore.get_servers()
        for index, server in enumerate(servers):
            if server.name == name:
                servers[index] = KnowledgeServerConfig.model_validate(
                    {**server.model_dump(), **changes}
                )
                await SettingsStore.save_servers(servers)
                logger.info("server_updated", name=name, changes=changes)
                return True
        return False

    @staticmethod
    async def set_server_enabled(name: str, enabled: bool) -> bool:
        return await SettingsStore.update_server(name, enabled=enabled)

    # -- Validation checks ----------------------------------------------

    @staticmethod
    async def get_rule_toggles() -> dict[str, bool]:
        """Check toggles; checks never toggled are enabled."""
        stored = await SettingsStore.get(RULES_KEY, {})
        if not isinstance(stored, dict):
            stored = {}
        return {
            check_id: bool(stored.get(check_id, True)) for check_id in VALIDATION_CHECKS
        }

    @staticmethod
    async def set_rule_toggle(check_id: str, enabled: bool) -> None:
        """Enable or disable one analysis check.

        Raises:
            ValueError: If the check id is unknown
        """
        if check_id not in VALIDATION_CHECKS:
            raise ValueError(
                f"Unknown check '{check_id}'. Valid: {', '.join(VALIDATION_CHECKS)}"
            )
        toggles = await SettingsStore.get_rule_toggles()
        toggles[check_id] = enabled
        await SettingsStore.set(RULES_KEY, toggles)

    # -- Shipment defaults ----------------------------------------------

    @staticmethod
    async def get_shipment_defaults() -> dict[str, str]:
        """Stored shipment defaults keyed by shipment field name."""
        defaults = {}
        for field, key in SHIPMENT_DEFAULT_KEYS.items():
            value = await SettingsStore.get(key)
            if value:
                defaults[field] = value
        return defaults

    @staticmethod
    async def set_shipment_default(field: str, value: str) -> None:
        """Store a default for a shipment field.

        Raises:
            ValueError: If the field has no default slot
        """
        if field not in SHIPMENT_DEFAULT_KEYS:
            raise ValueError(
                f"No default for '{field}'. Valid: {', '.join(SHIPMENT_DEFAULT_KEYS)}"
            )
        await SettingsStore.set(SHIPMENT_DEFAULT_KEYS[field], value)
