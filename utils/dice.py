import re
from typing import List

import d20

from models.types import EvaluatedRoll


PERCENTILE_PATTERN = re.compile(r"d%")
# 4d10!>=9>=8: 4 個 d10，>=9 加骰，>=8 計為成功
DICE_POOL_PATTERN = re.compile(r"^(\d+)d10!>=(\d+)>=(\d+)$")


class DiceEvaluationError(ValueError):
    """無效的骰子表達式"""


class DiceEvaluator:
    """
    骰子表達式計算器，基於 d20 庫

    支援 d20 的全部語法，另外接受:
        d%              -> d100
        NdM!>=X>=Y      -> 骰池，>=X 加骰，統計 >=Y 的骰子個數
    """

    def __init__(self, max_rolls: int = 1000):
        self.roller = d20.Roller(d20.RollContext(max_rolls=max_rolls))
        self.stringifier = d20.MarkdownStringifier()

    def evaluate(self, expression: str) -> EvaluatedRoll:
        """擲骰並返回結果，表達式不合法時拋出 DiceEvaluationError"""
        expression = expression.strip()
        if not expression:
            raise DiceEvaluationError("骰子表達式為空")

        # d20 的結果在讀取 total 時才計算，除零等錯誤會在這裡拋出
        try:
            pool = DICE_POOL_PATTERN.match(expression)
            if pool:
                return self._evaluate_pool(expression, int(pool.group(1)), int(pool.group(2)), int(pool.group(3)))

            result = self.roller.roll(PERCENTILE_PATTERN.sub("d100", expression), stringifier=self.stringifier)
            return EvaluatedRoll(
                expression=expression,
                total=int(result.total),
                rolls=collect_dice(result.expr),
                output=result.result
            )
        except d20.RollError as e:
            raise DiceEvaluationError(f"無效的骰子表達式 {expression}: {e}") from e

    def _evaluate_pool(self, expression: str, count: int, explode_at: int, success_at: int) -> EvaluatedRoll:
        result = self.roller.roll(f"{count}d10e>{max(explode_at - 1, 0)}", stringifier=self.stringifier)
        rolls = collect_dice(result.expr)
        successes = sum(1 for value in rolls if value >= success_at)
        return EvaluatedRoll(
            expression=expression,
            total=successes,
            rolls=rolls,
            output=f"{self.stringifier.stringify(result.expr.roll)} = {successes} 成功",
            is_pool=True
        )


def collect_dice(node) -> List[int]:
    """收集表達式中所有保留的骰子點數"""
    if isinstance(node, d20.Dice):
        return [die.number for die in node.values if die.kept]

    values = []
    for child in node.children:
        values.extend(collect_dice(child))
    return values
