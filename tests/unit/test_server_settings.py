from __future__ import annotations

import pytest

from archivebot.core import server_settings
from archivebot.core.errors import InvalidSetting
from archivebot.core.models import ServerConfig
from archivebot.core.server_settings import SettingKind


def test_unset_values_fall_back_to_defaults():
    described = server_settings.describe(None)
    assert described == {
        "enabled": True,
        "alwayssnapshotfirst": False,
        "showdetails": True,
        "removeretry": True,
        "retries": 1,
        "removeretryafter": 30,
        "utcoffset": 4,
        "utcsign": "-",
    }


def test_stored_false_is_not_replaced_by_default():
    config = ServerConfig(server_id="s1", archive_enabled=False, show_details=False)
    assert server_settings.resolve(config, "archive_enabled") is False
    assert server_settings.resolve(config, "show_details") is False


def test_retry_policy_is_clamped():
    assert server_settings.retry_policy(ServerConfig(server_id="s", retry_attempts=9)).attempts == 5
    assert server_settings.retry_policy(ServerConfig(server_id="s", retry_attempts=-2)).attempts == 0
    policy = server_settings.retry_policy(ServerConfig(server_id="s", always_snapshot_first=True))
    assert policy.attempts == 1
    assert policy.always_snapshot_first


@pytest.mark.parametrize(
    "kind, raw, column, expected",
    [
        (SettingKind.enabled, "false", "archive_enabled", False),
        (SettingKind.always_snapshot_first, True, "always_snapshot_first", True),
        (SettingKind.retry_attempts, "3", "retry_attempts", 3),
        (SettingKind.remove_retry_after, 90, "remove_retries_delay", 90),
        (SettingKind.utc_offset, "0", "utc_offset", 0),
        (SettingKind.utc_sign, "+", "utc_sign", "+"),
    ],
)
def test_apply_setting(memory_repo, kind, raw, column, expected):
    server_settings.apply_setting(memory_repo, "s1", kind, raw)
    assert getattr(memory_repo.get_server_config("s1"), column) == expected


@pytest.mark.parametrize(
    "kind, raw",
    [
        (SettingKind.retry_attempts, 6),
        (SettingKind.retry_attempts, "many"),
        (SettingKind.remove_retry_after, 45),
        (SettingKind.utc_sign, "*"),
        (SettingKind.show_details, "maybe"),
    ],
)
def test_invalid_values_are_rejected(memory_repo, kind, raw):
    with pytest.raises(InvalidSetting):
        server_settings.apply_setting(memory_repo, "s1", kind, raw)
    assert memory_repo.get_server_config("s1") is None


def test_apply_setting_keeps_other_values(memory_repo):
    server_settings.apply_setting(memory_repo, "s1", SettingKind.retry_attempts, 2)
    server_settings.apply_setting(memory_repo, "s1", SettingKind.show_details, "off")

    described = server_settings.describe(memory_repo.get_server_config("s1"))
    assert described["retries"] == 2
    assert described["showdetails"] is False
    assert memory_repo.count_server_configs() == 1


def test_is_administrator():
    assert server_settings.is_administrator("admin-1")
    assert not server_settings.is_administrator("someone")
    assert not server_settings.is_administrator("")
