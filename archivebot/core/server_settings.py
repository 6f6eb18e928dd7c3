from __future__ import annotations

"""Per-server settings: defaults, validation and updates.

Stored values are nullable; an unset value falls back to :data:`DEFAULTS`
when it is read, never when it is stored.
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict

from archivebot.core.errors import InvalidSetting
from archivebot.core.models import RetryPolicy, ServerConfig
from archivebot.infra.repositories.base import AbstractRepository
from archivebot.settings import settings

MIN_RETRY_ATTEMPTS = 0
MAX_RETRY_ATTEMPTS = 5
ALLOWED_REMOVE_RETRY_DELAYS = (0, 10, 30, 90, 120, 300)

DEFAULTS: Dict[str, Any] = {
    "archive_enabled": True,
    "always_snapshot_first": False,
    "show_details": True,
    "remove_retry": True,
    "retry_attempts": 1,
    "remove_retries_delay": 30,
    "utc_offset": 4,
    "utc_sign": "-",
}


def resolve(config: ServerConfig | None, name: str) -> Any:
    """Stored value of *name*, or its default when unset."""
    value = getattr(config, name, None) if config is not None else None
    return DEFAULTS[name] if value is None else value


def retry_policy(config: ServerConfig | None) -> RetryPolicy:
    attempts = int(resolve(config, "retry_attempts"))
    return RetryPolicy(
        attempts=min(max(attempts, MIN_RETRY_ATTEMPTS), MAX_RETRY_ATTEMPTS),
        always_snapshot_first=bool(resolve(config, "always_snapshot_first")),
    )


def is_administrator(user_id: str | None) -> bool:
    return bool(user_id) and user_id in settings.administrator_ids


# ---------------------------------------------------------------------------
# Settings table
# ---------------------------------------------------------------------------
class SettingKind(str, enum.Enum):
    enabled = "enabled"
    always_snapshot_first = "alwayssnapshotfirst"
    show_details = "showdetails"
    remove_retry = "removeretry"
    retry_attempts = "retries"
    remove_retry_after = "removeretryafter"
    utc_offset = "utcoffset"
    utc_sign = "utcsign"


@dataclass(frozen=True)
class SettingSpec:
    column: str
    label: str
    parse: Callable[[str, Any], Any]


def _parse_bool(name: str, raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    value = str(raw).strip().lower()
    if value in {"true", "1", "yes", "on", "enabled"}:
        return True
    if value in {"false", "0", "no", "off", "disabled"}:
        return False
    raise InvalidSetting(name, raw, "expected a boolean")


def _int_in(allowed) -> Callable[[str, Any], int]:  # noqa: ANN001
    def parse(name: str, raw: Any) -> int:
        try:
            value = int(raw)
        except (TypeError, ValueError) as exc:
            raise InvalidSetting(name, raw, "expected an integer") from exc
        if value not in allowed:
            raise InvalidSetting(name, raw, f"must be one of {sorted(allowed)}")
        return value

    return parse


def _parse_sign(name: str, raw: Any) -> str:
    if raw not in {"+", "-"}:
        raise InvalidSetting(name, raw, "must be '+' or '-'")
    return raw


SETTINGS: Dict[SettingKind, SettingSpec] = {
    SettingKind.enabled: SettingSpec("archive_enabled", "Bot enabled", _parse_bool),
    SettingKind.always_snapshot_first: SettingSpec(
        "always_snapshot_first", "Archive the page first (slower)", _parse_bool
    ),
    SettingKind.show_details: SettingSpec("show_details", "Show extra details", _parse_bool),
    SettingKind.remove_retry: SettingSpec("remove_retry", "Remove the retry button automatically", _parse_bool),
    SettingKind.retry_attempts: SettingSpec(
        "retry_attempts",
        "Number of attempts to archive a URL",
        _int_in(range(MIN_RETRY_ATTEMPTS, MAX_RETRY_ATTEMPTS + 1)),
    ),
    SettingKind.remove_retry_after: SettingSpec(
        "remove_retries_delay", "Seconds to wait to remove retry button", _int_in(ALLOWED_REMOVE_RETRY_DELAYS)
    ),
    SettingKind.utc_offset: SettingSpec("utc_offset", "UTC Offset", _int_in(range(0, 15))),
    SettingKind.utc_sign: SettingSpec("utc_sign", "UTC Sign (Negative if west of Greenwich)", _parse_sign),
}


def get_or_default(repo: AbstractRepository, server_id: str, name: str = "") -> ServerConfig:
    """Stored config for *server_id*, or an unsaved one with every value unset."""
    return repo.get_server_config(server_id) or ServerConfig(server_id=server_id, name=name)


def apply_setting(repo: AbstractRepository, server_id: str, kind: SettingKind, raw_value: Any) -> ServerConfig:
    spec = SETTINGS[kind]
    value = spec.parse(kind.value, raw_value)
    config = get_or_default(repo, server_id)
    setattr(config, spec.column, value)
    config.updated_at = datetime.now(timezone.utc)
    repo.save_server_config(config)
    return config


def describe(config: ServerConfig | None) -> Dict[str, Any]:
    """Resolved value of every setting, keyed by setting name."""
    return {kind.value: resolve(config, spec.column) for kind, spec in SETTINGS.items()}
