from __future__ import annotations

import pytest

from utils.dice import DiceEvaluationError, DiceEvaluator


def test_percentile_roll_in_range() -> None:
    evaluator = DiceEvaluator()
    for _ in range(50):
        result = evaluator.evaluate("d%")
        assert 1 <= result.total <= 100
        assert result.rolls == [result.total]
        assert result.expression == "d%"
        assert result.is_pool is False


def test_bonus_dice_keep_one() -> None:
    result = DiceEvaluator().evaluate("3d%kh1")
    assert 1 <= result.total <= 100
    assert result.rolls == [result.total]


def test_plain_expression_with_modifier() -> None:
    result = DiceEvaluator().evaluate("2d6+3")
    assert len(result.rolls) == 2
    assert result.total == sum(result.rolls) + 3
    assert "2d6" in result.output


def test_dice_pool_counts_successes() -> None:
    evaluator = DiceEvaluator()
    for _ in range(20):
        result = evaluator.evaluate("4d10!>=9>=8")
        assert result.is_pool is True
        assert len(result.rolls) >= 4
        assert all(1 <= value <= 10 for value in result.rolls)
        assert result.total == sum(1 for value in result.rolls if value >= 8)
        assert result.output.endswith(f"= {result.total} 成功")


@pytest.mark.parametrize("expression", ["", "hello", "侦察", "1/0", "1d6%0", "1d6/0"])
def test_invalid_expression_raises(expression: str) -> None:
    with pytest.raises(DiceEvaluationError):
        DiceEvaluator().evaluate(expression)


def test_evaluation_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        DiceEvaluator().evaluate("oll")


def test_too_many_rolls_is_rejected() -> None:
    with pytest.raises(DiceEvaluationError):
        DiceEvaluator(max_rolls=10).evaluate("20d6")
