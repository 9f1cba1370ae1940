import re
from enum import Enum
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional, Sequence, Tuple

from models.types import (
    DecisionResult, OpposedOutcome, RollRecord, SkillEntry, SuccessLevel
)
from utils.config import GuildConfig


# 每組第一個為標準名稱
SKILL_ALIAS_GROUPS = (
    ('力量', 'str', 'STR'),
    ('敏捷', 'dex', 'DEX'),
    ('意志', 'pow', 'POW'),
    ('体质', 'con', 'CON'),
    ('外貌', 'app', 'APP'),
    ('教育', 'edu', 'EDU'),
    ('体型', 'siz', 'SIZ', 'size', 'SIZE', '体格'),
    ('智力', '灵感', 'int', 'INT'),
    ('生命', 'hp', 'HP'),
    ('理智', 'san', 'sc', 'SC', 'SAN'),
    ('魔法', 'mp', 'MP'),
    ('幸运', 'luck', 'luk', 'LUK'),
    ('年龄', 'age', 'AGE'),
    ('侦查', '侦察'),
    ('信用', '信誉', '信用评级'),
    ('克苏鲁', '克苏鲁神话'),
    ('计算机', '计算机使用', '电脑'),
    ('图书馆', '图书馆使用'),
)

# 直接對比屬性值的特殊檢定
SANITY_CHECKS = ('理智', 'sc', 'SC')
LUCK_CHECKS = ('幸运',)
HUNCH_CHECKS = ('灵感',)

DIFFICULTY_PATTERN = re.compile(r"(困难|极难|极限)")

OpposedRule = Callable[[RollRecord, RollRecord], OpposedOutcome]


class Difficulty(Enum):
    REGULAR = "regular"
    HARD = "hard"
    EXTREME = "extreme"


def build_alias_map(groups: Iterable[Sequence[str]]) -> Mapping[str, str]:
    """建立 別名 -> 標準名稱 的只讀映射"""
    return MappingProxyType({alias: group[0] for group in groups for alias in group})


DEFAULT_SKILL_ALIASES = build_alias_map(SKILL_ALIAS_GROUPS)


def canonical_skill_name(name: str, aliases: Mapping[str, str] = DEFAULT_SKILL_ALIASES) -> str:
    name = name.strip()
    return aliases.get(name, name)


def split_difficulty(descriptor: str) -> Tuple[str, Difficulty]:
    """
    從描述中拆出難度，"困难侦察" -> ("侦察", Difficulty.HARD)
    極難優先於困難
    """
    words = DIFFICULTY_PATTERN.findall(descriptor)
    name = DIFFICULTY_PATTERN.sub('', descriptor).strip()
    if '极难' in words or '极限' in words:
        return name, Difficulty.EXTREME
    if '困难' in words:
        return name, Difficulty.HARD
    return name, Difficulty.REGULAR


def apply_difficulty(value: int, difficulty: Difficulty, rules: Optional[GuildConfig] = None) -> int:
    """困難取一半，極難取五分之一，向下取整"""
    rules = rules or GuildConfig()
    if difficulty is Difficulty.EXTREME:
        return value // rules.coc_skill_divisor_extreme
    if difficulty is Difficulty.HARD:
        return value // rules.coc_skill_divisor_hard
    return value


def resolve_skill_entry(card, descriptor: str,
                        aliases: Mapping[str, str] = DEFAULT_SKILL_ALIASES,
                        rules: Optional[GuildConfig] = None) -> Optional[SkillEntry]:
    """
    在人物卡中查找描述對應的技能值，找不到時返回 None
    """
    skill = descriptor.strip()
    if not skill or card is None:
        return None

    # 先判斷幾個特殊的
    if skill in SANITY_CHECKS:
        return _attribute_entry('理智', card.san)
    if skill in LUCK_CHECKS:
        return _attribute_entry('幸运', card.luck)
    if skill in HUNCH_CHECKS:
        return _attribute_entry('灵感', card.props.get('智力'))

    # 判斷難度等級
    name, difficulty = split_difficulty(skill)
    name = canonical_skill_name(name, aliases)
    target = card.get_value(name)
    if not target:
        # 沒有技能，技能值為 0 也視為沒有
        return None

    return SkillEntry(name=name, base_value=target, value=apply_difficulty(target, difficulty, rules))


def _attribute_entry(name: str, value: Optional[int]) -> Optional[SkillEntry]:
    if value is None:
        return None
    return SkillEntry(name=name, base_value=value, value=value)


def decide(entry: SkillEntry, roll: int, rules: Optional[GuildConfig] = None) -> DecisionResult:
    """
    根據CoC 7e規則判定成功等級

    1 為大成功；技能值低於 50 時 96-100 為大失敗，否則只有 100 為大失敗；
    其餘情況與（套用難度後的）技能值比較。
    """
    rules = rules or GuildConfig()

    if roll == rules.coc_critical_success:
        return DecisionResult(True, SuccessLevel.BEST, "大成功")

    if is_critical_failure(roll, entry.base_value, rules):
        return DecisionResult(False, SuccessLevel.WORST, "大失败")

    if roll <= entry.value:
        return DecisionResult(True, SuccessLevel.REGULAR_SUCCESS, f"≤ {entry.value} 成功")
    return DecisionResult(False, SuccessLevel.FAIL, f"> {entry.value} 失败")


def is_critical_failure(roll: int, base_value: int, rules: GuildConfig) -> bool:
    """
    根據CoC 7e規則檢查是否為大失敗
    """
    if base_value < rules.coc_fumble_skill_threshold:
        # 對於低於50%的技能，96-100是大失敗
        return roll > 95
    # 對於50%或更高的技能，只有100是大失敗
    return roll == rules.coc_critical_fail


def compare_opposed(current: RollRecord, previous: RollRecord) -> OpposedOutcome:
    """
    默認的對抗規則：成功等級高者勝；
    等級相同時，比較 (技能值 - 擲骰結果)，差值大者勝；仍相同為平手
    """
    current_level = current.decision.level.value
    previous_level = previous.decision.level.value
    if current_level != previous_level:
        return OpposedOutcome.WIN if current_level > previous_level else OpposedOutcome.LOSE

    current_margin = current.skill.value - current.total
    previous_margin = previous.skill.value - previous.total
    if current_margin == previous_margin:
        return OpposedOutcome.DRAW
    return OpposedOutcome.WIN if current_margin > previous_margin else OpposedOutcome.LOSE
