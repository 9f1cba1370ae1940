import json
import os
from typing import Dict, List, Optional
from dataclasses import dataclass, asdict, field


@dataclass
class GlobalConfig:
    """全局配置"""
    instruction_cache_size: int = 50
    opposed_cache_size: int = 50
    max_rolls: int = 1000
    dm_fallback_reply: bool = True


@dataclass
class GuildConfig:
    """公會配置"""
    dice_channels: List[int] = field(default_factory=list)  # 為空時監聽所有頻道
    crit_success_channel: Optional[int] = None
    crit_fail_channel: Optional[int] = None

    # CoC 规则配置
    coc_critical_success: int = 1
    coc_critical_fail: int = 100
    coc_fumble_skill_threshold: int = 50
    coc_skill_divisor_hard: int = 2
    coc_skill_divisor_extreme: int = 5

    def is_listening(self, channel_id: int) -> bool:
        """檢查是否在此頻道響應骰子指令"""
        return not self.dice_channels or channel_id in self.dice_channels


class ConfigManager:
    """配置管理器"""
    def __init__(self, config_path: str = "config.json"):
        self.config_path = config_path
        self.global_config = GlobalConfig()
        self.guild_configs: Dict[int, GuildConfig] = {}
        self.load_config()

    def load_config(self):
        """加載配置"""
        if os.path.exists(self.config_path):
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)

            # 加載全局配置
            global_data = data.get('global', {})
            self.global_config = GlobalConfig(
                instruction_cache_size=global_data.get('instruction_cache_size', 50),
                opposed_cache_size=global_data.get('opposed_cache_size', 50),
                max_rolls=global_data.get('max_rolls', 1000),
                dm_fallback_reply=global_data.get('dm_fallback_reply', True)
            )

            # 加載公會配置
            guild_data = data.get('guilds', {})
            for guild_id, cfg in guild_data.items():
                self.guild_configs[int(guild_id)] = GuildConfig(
                    dice_channels=list(cfg.get('dice_channels', [])),
                    crit_success_channel=cfg.get('crit_success_channel'),
                    crit_fail_channel=cfg.get('crit_fail_channel'),
                    coc_critical_success=cfg.get('coc_critical_success', 1),
                    coc_critical_fail=cfg.get('coc_critical_fail', 100),
                    coc_fumble_skill_threshold=cfg.get('coc_fumble_skill_threshold', 50),
                    coc_skill_divisor_hard=cfg.get('coc_skill_divisor_hard', 2),
                    coc_skill_divisor_extreme=cfg.get('coc_skill_divisor_extreme', 5)
                )
        else:
            # 如果配置文件不存在，創建默認配置
            self.save_config()

    def save_config(self):
        """保存配置"""
        data = {
            'global': asdict(self.global_config),
            'guilds': {str(guild_id): asdict(config)
                       for guild_id, config in self.guild_configs.items()}
        }

        with open(self.config_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

    def get_guild_config(self, guild_id: Optional[int]) -> GuildConfig:
        """獲取公會配置，私信或未設定時返回默認配置"""
        if guild_id is None:
            return GuildConfig()
        return self.guild_configs.get(guild_id, GuildConfig())

    def set_guild_config(self, guild_id: int, config: GuildConfig):
        """設置公會配置"""
        self.guild_configs[guild_id] = config
        self.save_config()
