from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


class SuccessLevel(Enum):
    """成功等級，數值越大結果越好"""
    WORST = 0            # 大失敗
    FAIL = 1             # 失敗
    REGULAR_SUCCESS = 2  # 成功
    BEST = 3             # 大成功


class RollKind(Enum):
    """擲骰類型"""
    PLAIN = "plain"
    SKILL_CHECK = "skill_check"
    OPPOSED = "opposed"


class OpposedOutcome(Enum):
    """對抗結果（以後擲者的角度）"""
    WIN = "win"
    LOSE = "lose"
    DRAW = "draw"


@dataclass(frozen=True)
class ParsedExpression:
    """解析後的指令：骰子表達式 + 描述"""
    expression: str
    descriptor: str = ""


@dataclass(frozen=True)
class SkillEntry:
    """人物卡中的技能值"""
    name: str
    base_value: int  # 原始技能值，只用於判斷大失敗範圍
    value: int       # 套用困難/極難之後的技能值


@dataclass(frozen=True)
class DecisionResult:
    """成功判定結果"""
    success: bool
    level: SuccessLevel
    description: str


@dataclass(frozen=True)
class OpposedResult:
    """對抗骰結果"""
    outcome: OpposedOutcome
    opponent: str


@dataclass(frozen=True)
class RollContext:
    """擲骰上下文，沒有 channel_id 表示私信"""
    user_id: str
    channel_id: Optional[str] = None
    username: Optional[str] = None
    reply_to_message_id: Optional[str] = None


@dataclass
class EvaluatedRoll:
    """骰子表達式的計算結果"""
    expression: str
    total: int
    rolls: List[int]
    output: str
    is_pool: bool = False


@dataclass
class RollRecord:
    """一次完整擲骰的結果"""
    kind: RollKind
    expression: str
    descriptor: str
    rolls: List[int]
    total: int
    output: str
    user_id: str
    username: str
    skill: Optional[SkillEntry] = None
    decision: Optional[DecisionResult] = None
    opposed: Optional[OpposedResult] = None
    hidden: bool = False
    eligible_for_opposed_roll: bool = False
    text: str = ""         # 完整結果（暗骰時私信給擲骰者）
    public_text: str = ""  # 頻道中顯示的內容


class _Unresolved:
    """尚未解析指令的標記"""

    def __repr__(self):
        return "UNRESOLVED"


UNRESOLVED = _Unresolved()


@dataclass
class MessageCacheEntry:
    """
    消息緩存
    instruction: UNRESOLVED 表示未解析，None 表示解析了但沒有指令（或非文本消息）
    """
    text: Optional[str] = None
    instruction: Union[str, None, _Unresolved] = field(default=UNRESOLVED)

    def resolve_instruction(self, detect) -> Optional[str]:
        """第一次使用時解析指令，之後直接返回結果"""
        if self.instruction is UNRESOLVED:
            self.instruction = detect(self.text or "")
        return self.instruction
