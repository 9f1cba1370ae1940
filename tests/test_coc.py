from __future__ import annotations

import pytest

from models.database import Card
from models.types import (
    DecisionResult, OpposedOutcome, RollKind, RollRecord, SkillEntry, SuccessLevel
)
from utils.coc import (
    DEFAULT_SKILL_ALIASES, Difficulty, apply_difficulty, build_alias_map,
    canonical_skill_name, compare_opposed, decide, resolve_skill_entry, split_difficulty
)
from utils.config import GuildConfig


def entry(base: int, value: int | None = None) -> SkillEntry:
    return SkillEntry(name="侦查", base_value=base, value=base if value is None else value)


def test_one_is_always_critical_success() -> None:
    result = decide(entry(40), 1)
    assert result == DecisionResult(True, SuccessLevel.BEST, "大成功")
    assert decide(entry(5, 1), 1).level is SuccessLevel.BEST


def test_low_skill_fumbles_above_95() -> None:
    assert decide(entry(40), 96).level is SuccessLevel.WORST
    assert decide(entry(40), 96).success is False
    assert decide(entry(40), 95).level is SuccessLevel.FAIL


def test_high_skill_only_fumbles_on_100() -> None:
    result = decide(entry(60), 96)
    assert result.level is SuccessLevel.FAIL
    assert result.description == "> 60 失败"
    assert decide(entry(99), 96).level is SuccessLevel.REGULAR_SUCCESS
    assert decide(entry(60), 100) == DecisionResult(False, SuccessLevel.WORST, "大失败")


def test_regular_comparison() -> None:
    assert decide(entry(60), 60) == DecisionResult(True, SuccessLevel.REGULAR_SUCCESS, "≤ 60 成功")
    assert decide(entry(60), 61) == DecisionResult(False, SuccessLevel.FAIL, "> 60 失败")


def test_fumble_band_uses_base_value_not_adjusted_value() -> None:
    # 困難 60 -> 30，但大失敗範圍仍按 60 判斷
    assert decide(entry(60, 30), 97).level is SuccessLevel.FAIL
    assert decide(entry(60, 30), 30).level is SuccessLevel.REGULAR_SUCCESS


def test_rules_thresholds_are_configurable() -> None:
    rules = GuildConfig(coc_fumble_skill_threshold=70)
    assert decide(entry(60), 97, rules).level is SuccessLevel.WORST


@pytest.mark.parametrize(
    "descriptor, expected",
    [
        ("侦察", ("侦察", Difficulty.REGULAR)),
        ("困难侦察", ("侦察", Difficulty.HARD)),
        ("极难 侦察", ("侦察", Difficulty.EXTREME)),
        ("极限侦察", ("侦察", Difficulty.EXTREME)),
    ],
)
def test_split_difficulty(descriptor: str, expected: tuple) -> None:
    assert split_difficulty(descriptor) == expected


def test_apply_difficulty_floors() -> None:
    assert apply_difficulty(55, Difficulty.REGULAR) == 55
    assert apply_difficulty(55, Difficulty.HARD) == 27
    assert apply_difficulty(55, Difficulty.EXTREME) == 11


def test_alias_map_is_read_only() -> None:
    aliases = build_alias_map([("理智", "san", "SAN")])
    assert aliases["san"] == "理智"
    with pytest.raises(TypeError):
        aliases["foo"] = "bar"  # type: ignore[index]


def test_canonical_skill_name() -> None:
    assert canonical_skill_name("侦察") == "侦查"
    assert canonical_skill_name(" STR ") == "力量"
    assert canonical_skill_name("潜行") == "潜行"


def make_card() -> Card:
    return Card(
        channel_id="c1",
        user_id="u1",
        name="Harvey",
        san=55,
        luck=45,
        props={"智力": 70, "力量": 50},
        skills={"侦查": 60, "潜行": 0},
    )


def test_resolve_skill_entry_with_alias_and_difficulty() -> None:
    card = make_card()
    assert resolve_skill_entry(card, " 侦察") == SkillEntry("侦查", 60, 60)
    assert resolve_skill_entry(card, "困难侦察") == SkillEntry("侦查", 60, 30)
    assert resolve_skill_entry(card, "极难str") == SkillEntry("力量", 50, 10)


def test_resolve_special_checks() -> None:
    card = make_card()
    assert resolve_skill_entry(card, "sc") == SkillEntry("理智", 55, 55)
    assert resolve_skill_entry(card, "理智") == SkillEntry("理智", 55, 55)
    assert resolve_skill_entry(card, "幸运") == SkillEntry("幸运", 45, 45)
    assert resolve_skill_entry(card, "灵感") == SkillEntry("灵感", 70, 70)


def test_resolve_missing_skill_returns_none() -> None:
    card = make_card()
    assert resolve_skill_entry(card, "") is None
    assert resolve_skill_entry(card, "驾驶") is None
    assert resolve_skill_entry(card, "潜行") is None
    assert resolve_skill_entry(None, "侦察") is None
    card.san = None
    assert resolve_skill_entry(card, "sc") is None


def record(level: SuccessLevel, value: int, total: int) -> RollRecord:
    return RollRecord(
        kind=RollKind.SKILL_CHECK,
        expression="d%",
        descriptor="侦察",
        rolls=[total],
        total=total,
        output=f"1d100 ({total}) = {total}",
        user_id="u",
        username="u",
        skill=SkillEntry("侦查", value, value),
        decision=DecisionResult(level is not SuccessLevel.FAIL, level, ""),
    )


def test_opposed_higher_level_wins() -> None:
    assert compare_opposed(
        record(SuccessLevel.BEST, 40, 1), record(SuccessLevel.REGULAR_SUCCESS, 90, 10)
    ) is OpposedOutcome.WIN
    assert compare_opposed(
        record(SuccessLevel.FAIL, 40, 50), record(SuccessLevel.REGULAR_SUCCESS, 40, 40)
    ) is OpposedOutcome.LOSE


def test_opposed_tie_broken_by_margin() -> None:
    assert compare_opposed(
        record(SuccessLevel.REGULAR_SUCCESS, 60, 20), record(SuccessLevel.REGULAR_SUCCESS, 50, 30)
    ) is OpposedOutcome.WIN
    assert compare_opposed(
        record(SuccessLevel.REGULAR_SUCCESS, 60, 40), record(SuccessLevel.REGULAR_SUCCESS, 50, 10)
    ) is OpposedOutcome.LOSE
    assert compare_opposed(
        record(SuccessLevel.FAIL, 50, 70), record(SuccessLevel.FAIL, 40, 60)
    ) is OpposedOutcome.DRAW


def test_default_aliases_cover_sanity_shorthand() -> None:
    assert DEFAULT_SKILL_ALIASES["sc"] == "理智"
    assert DEFAULT_SKILL_ALIASES["灵感"] == "智力"
