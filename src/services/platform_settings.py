"""Admin platform settings with an audit trail of every change."""

from typing import Any, Optional
from pydantic import ValidationError

from src.models.principal import Principal
from src.models.settings import AuditEntry, PlatformSettings
from src.services.auth import require_admin
from src.services.revalidation import ADMIN_PATH, Revalidator
from src.services.supabase_client import execute
from src.utils.errors import InvalidInputError, MalformedRecordError, SupabaseError
from src.utils.ids import generate_document_id
from src.utils.logging import get_structured_logger, mask_user_id
from src.utils.timestamps import to_datetime, to_store, utc_now

logger = get_structured_logger(__name__)

ADMIN_CONFIG_TABLE = "admin_config"
AUDIT_LOGS_TABLE = "audit_logs"
SETTINGS_KEY = "settings"
ADMIN_SETTINGS_PATH = "/admin/settings"

_METADATA_FIELDS = {"updated_at", "updated_by"}


def to_platform_settings(row: dict[str, Any]) -> PlatformSettings:
    data = {k: v for k, v in row.items() if k != "id"}
    try:
        data["updated_at"] = to_datetime(data.get("updated_at"))
        return PlatformSettings.model_validate(data)
    except (ValidationError, ValueError) as e:
        raise MalformedRecordError(f"Malformed platform settings: {e}") from e


async def get_platform_settings(client: Any, principal: Optional[Principal]) -> PlatformSettings:
    """Stored settings, or the defaults when none were ever saved."""
    require_admin(principal)
    rows = execute(
        client.table(ADMIN_CONFIG_TABLE).select("*").eq("id", SETTINGS_KEY).limit(1),
        "get platform settings",
    )
    if not rows:
        return PlatformSettings()
    return to_platform_settings(rows[0])


def diff_settings(current: PlatformSettings, updated: PlatformSettings) -> dict[str, dict]:
    """Changed fields as ``{field: {"old": ..., "new": ...}}``."""
    before = current.model_dump(mode="json", exclude=_METADATA_FIELDS)
    after = updated.model_dump(mode="json", exclude=_METADATA_FIELDS)
    return {
        field: {"old": before.get(field), "new": value}
        for field, value in after.items()
        if before.get(field) != value
    }


def record_audit(
    client: Any,
    admin_id: str,
    action: str,
    entity_type: str,
    changes: dict[str, dict],
    entity_id: Optional[str] = None,
) -> Optional[AuditEntry]:
    """Write an audit entry. A failed write is logged; the change it describes stays applied."""
    entry = AuditEntry(
        id=generate_document_id(),
        admin_id=admin_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        changes=changes,
        timestamp=utc_now(),
    )
    row = entry.model_dump(mode="json")
    row["timestamp"] = to_store(entry.timestamp)
    try:
        execute(client.table(AUDIT_LOGS_TABLE).insert(row), "write audit entry")
    except SupabaseError as e:
        logger.warning(
            "Failed to write audit entry",
            entity_type=entity_type,
            admin=mask_user_id(admin_id),
            error=str(e)
        )
        return None
    return entry


async def update_platform_settings(
    client: Any,
    principal: Optional[Principal],
    changes: dict[str, Any],
    revalidator: Revalidator,
) -> PlatformSettings:
    """Merge ``changes`` into the stored settings and validate the result as a whole.

    Fields left out keep their current value. Only fields whose value actually
    changed are written to the audit log.
    """
    principal = require_admin(principal)
    editable = set(PlatformSettings.model_fields) - _METADATA_FIELDS
    unknown = sorted(set(changes) - editable)
    if unknown:
        raise InvalidInputError(f"Unknown or read-only settings: {', '.join(unknown)}")

    current = await get_platform_settings(client, principal)
    merged = {**current.model_dump(exclude=_METADATA_FIELDS), **changes}
    updated = PlatformSettings.model_validate({
        **merged,
        "updated_at": utc_now(),
        "updated_by": principal.uid,
    })

    row = updated.model_dump(mode="json")
    row["id"] = SETTINGS_KEY
    row["updated_at"] = to_store(updated.updated_at)
    execute(client.table(ADMIN_CONFIG_TABLE).upsert(row), "save platform settings")

    diff = diff_settings(current, updated)
    if diff:
        record_audit(client, principal.uid, "UPDATE", "platform_settings", diff, entity_id=SETTINGS_KEY)
    logger.info("Platform settings updated", changed=sorted(diff), admin=mask_user_id(principal.uid))

    await revalidator.revalidate(ADMIN_PATH, ADMIN_SETTINGS_PATH)
    return updated


async def list_audit_entries(client: Any, principal: Optional[Principal], limit: int = 50) -> list[AuditEntry]:
    """Most recent audit entries first."""
    require_admin(principal)
    rows = execute(
        client.table(AUDIT_LOGS_TABLE).select("*").order("timestamp", desc=True).limit(limit),
        "list audit entries",
    )
    entries = []
    for row in rows:
        try:
            entries.append(AuditEntry.model_validate({**row, "timestamp": to_datetime(row.get("timestamp"))}))
        except (ValidationError, ValueError) as e:
            logger.error("Skipping malformed audit entry", entry_id=row.get("id"), error=str(e))
    return entries
