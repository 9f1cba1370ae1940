from __future__ import annotations

import json
from pathlib import Path

from utils.config import ConfigManager, GuildConfig


def test_missing_config_file_is_created_with_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    manager = ConfigManager(config_path=str(path))

    assert path.exists()
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["global"]["instruction_cache_size"] == 50
    assert data["global"]["opposed_cache_size"] == 50
    assert data["guilds"] == {}
    assert manager.global_config.dm_fallback_reply is True


def test_guild_config_round_trip(tmp_path: Path) -> None:
    path = str(tmp_path / "config.json")
    manager = ConfigManager(config_path=path)
    manager.set_guild_config(
        42, GuildConfig(dice_channels=[7], crit_success_channel=8, coc_skill_divisor_hard=3)
    )

    reloaded = ConfigManager(config_path=path).get_guild_config(42)
    assert reloaded.dice_channels == [7]
    assert reloaded.crit_success_channel == 8
    assert reloaded.crit_fail_channel is None
    assert reloaded.coc_skill_divisor_hard == 3
    assert reloaded.coc_critical_fail == 100


def test_unknown_guild_and_direct_message_get_defaults(tmp_path: Path) -> None:
    manager = ConfigManager(config_path=str(tmp_path / "config.json"))
    assert manager.get_guild_config(1) == GuildConfig()
    assert manager.get_guild_config(None) == GuildConfig()


def test_is_listening() -> None:
    assert GuildConfig().is_listening(123) is True
    config = GuildConfig(dice_channels=[1, 2])
    assert config.is_listening(2) is True
    assert config.is_listening(3) is False


def test_global_settings_loaded_from_file(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"global": {"opposed_cache_size": 10, "dm_fallback_reply": False}}),
        encoding="utf-8",
    )
    manager = ConfigManager(config_path=str(path))
    assert manager.global_config.opposed_cache_size == 10
    assert manager.global_config.instruction_cache_size == 50
    assert manager.global_config.dm_fallback_reply is False
