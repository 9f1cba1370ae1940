from typing import Callable, Mapping, Optional

from models.types import (
    OpposedOutcome, OpposedResult, RollContext, RollKind, RollRecord
)
from utils.coc import DEFAULT_SKILL_ALIASES, OpposedRule, compare_opposed, decide, resolve_skill_entry
from utils.config import GuildConfig
from utils.dice import DiceEvaluator
from utils.logger import get_logger
from utils.parser import parse_full_exp, split_hidden


logger = get_logger()

OPPOSED_OUTCOME_TEXT = {
    OpposedOutcome.WIN: "胜利",
    OpposedOutcome.LOSE: "失败",
    OpposedOutcome.DRAW: "平手",
}


class DiceRoller:
    """
    擲骰流程：解析指令 -> 擲骰 -> 查人物卡 -> 判定成功 -> 對抗 -> 組裝結果

    人物卡的讀取和保存由外部提供:
        card_lookup(channel_id, user_id) -> Card | None
        notify_card_dirty(card)
    """

    def __init__(self,
                 evaluator: Optional[DiceEvaluator] = None,
                 card_lookup: Optional[Callable] = None,
                 notify_card_dirty: Optional[Callable] = None,
                 opposed_cache=None,
                 aliases: Mapping[str, str] = DEFAULT_SKILL_ALIASES,
                 opposed_rule: OpposedRule = compare_opposed):
        self.evaluator = evaluator or DiceEvaluator()
        self.card_lookup = card_lookup
        self.notify_card_dirty = notify_card_dirty
        self.opposed_cache = opposed_cache
        self.aliases = aliases
        self.opposed_rule = opposed_rule

    def roll(self, full_exp: str, context: RollContext,
             rules: Optional[GuildConfig] = None) -> Optional[RollRecord]:
        """投骰，表達式不合法時返回 None"""
        full_exp = (full_exp or "").strip()
        if not full_exp:
            return None
        rules = rules or GuildConfig()

        hidden, full_exp = split_hidden(full_exp)
        parsed = parse_full_exp(full_exp)
        logger.debug(f"[Dice] 原始指令：{full_exp} 解析指令：{parsed.expression} 描述：{parsed.descriptor}")

        try:
            evaluated = self.evaluator.evaluate(parsed.expression)
        except ValueError as e:
            # 表達式不合法，無視之
            logger.debug(f"[Dice] 忽略指令 {full_exp}: {e}")
            return None

        # 判斷成功等級，私信場景沒有人物卡
        card = self._find_card(context)
        skill = None
        if card is not None and not evaluated.is_pool:
            skill = resolve_skill_entry(card, parsed.descriptor, self.aliases, rules)
        decision = decide(skill, evaluated.total, rules) if skill else None

        record = RollRecord(
            kind=RollKind.SKILL_CHECK if decision else RollKind.PLAIN,
            expression=parsed.expression,
            descriptor=parsed.descriptor,
            rolls=evaluated.rolls,
            total=evaluated.total,
            output=evaluated.output,
            user_id=context.user_id,
            username=context.username or context.user_id,
            skill=skill,
            decision=decision,
            hidden=hidden,
            eligible_for_opposed_roll=decision is not None and not hidden
        )

        previous = self._find_opposed(context)
        if previous is not None and decision is not None and previous.decision is not None:
            record.kind = RollKind.OPPOSED
            record.opposed = OpposedResult(
                outcome=self.opposed_rule(record, previous),
                opponent=previous.username
            )

        record.text = render_record(record)
        record.public_text = f"{record.username} 🎲 进行了一次暗骰" if hidden else record.text

        # 技能成功時記錄下來，方便自動高亮
        if decision is not None and decision.success:
            card.last_success_skill = skill.name
            if self.notify_card_dirty:
                self.notify_card_dirty(card)

        return record

    def _find_card(self, context: RollContext):
        if context.channel_id is None or self.card_lookup is None:
            return None
        return self.card_lookup(context.channel_id, context.user_id)

    def _find_opposed(self, context: RollContext) -> Optional[RollRecord]:
        if context.reply_to_message_id is None or self.opposed_cache is None:
            return None
        return self.opposed_cache.get(str(context.reply_to_message_id))


def render_record(record: RollRecord) -> str:
    """格式化擲骰結果"""
    parts = [record.username, "🎲"]
    if record.descriptor.strip():
        parts.append(record.descriptor.strip())
    parts.append(record.output)
    if record.decision:
        parts.append(record.decision.description)
    text = " ".join(parts)

    if record.opposed:
        text += f"\n对抗 {record.opposed.opponent}：{OPPOSED_OUTCOME_TEXT[record.opposed.outcome]}"
    return text
