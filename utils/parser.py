import re
from typing import Optional, Tuple

from models.types import ParsedExpression


COMMAND_MARKERS = ('.', '。', '．')
HIDDEN_MARKER = 'rh'

# 按第一個中文或空白分割指令和描述
SPLIT_PATTERN = re.compile(
    r"[\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff\U00020000-\U0003134f\s]"
)
BONUS_PENALTY_PATTERN = re.compile(r"^r([bp])(\d+)?$")
DICE_POOL_PATTERN = re.compile(r"^w{1,2}(\d+)a?(\d+)?$")

DIFFICULTY_KEYWORDS = ('困难', '极难', '极限')
SKILL_KEYWORDS = (
    '力量', '体质', '体型', '敏捷', '外貌', '智力', '灵感', '意志', '教育', '理智',
    '幸运', '会计', '人类学', '估价', '考古学', '魅惑', '攀爬', '计算机', '信用',
    '克苏鲁神话', '乔装', '闪避', '驾驶', '电气维修', '电子学', '话术', '格斗',
    '射击', '急救', '历史', '恐吓', '跳跃', '母语', '法律', '图书馆', '聆听',
    '锁匠', '机械维修', '医学', '博物学', '领航', '神秘学', '重型机械', '说服',
    '精神分析', '心理学', '骑术', '妙手', '侦查', '侦察', '潜行', '游泳', '投掷',
    '追踪', 'sc', 'SC'
)
INSTRUCTION_PATTERN = re.compile("|".join(map(re.escape, SKILL_KEYWORDS)))
DIFFICULTY_PATTERN = re.compile("|".join(DIFFICULTY_KEYWORDS))

HTML_ENTITY_PATTERN = re.compile(r"&lt;|&gt;|&amp;")
HTML_ENTITIES = {'&lt;': '<', '&gt;': '>', '&amp;': '&'}


def unescape_html(text: str) -> str:
    """還原 &lt; &gt; &amp; 三種轉義字符"""
    return HTML_ENTITY_PATTERN.sub(lambda m: HTML_ENTITIES[m.group(0)], text)


def extract_command(content: Optional[str], bot_user_id=None) -> Optional[str]:
    """
    從消息中提取指令體，非指令消息返回 None
    例如 ".d100 困难侦察" -> "d100 困难侦察"
    """
    content = (content or "").strip()
    if not content:
        return None

    full_exp = ""
    mentions = (f"<@{bot_user_id}>", f"<@!{bot_user_id}>") if bot_user_id else ()
    for mention in mentions:
        if content.startswith(mention):
            full_exp = content[len(mention):].strip()
            break
    else:
        if content.startswith(COMMAND_MARKERS):
            full_exp = content[1:].strip()

    if not full_exp:
        return None
    # 轉義要放在去掉 at 之後，否則會破壞 mention 和 emoji
    return unescape_html(full_exp)


def split_hidden(full_exp: str) -> Tuple[bool, str]:
    """檢查暗骰標記，"rh 侦察" -> (True, "r 侦察")"""
    if full_exp.startswith(HIDDEN_MARKER):
        return True, "r" + full_exp[len(HIDDEN_MARKER):]
    return False, full_exp


def parse_full_exp(full_exp: str) -> ParsedExpression:
    """
    將指令解析為 [骰子表達式, 描述]

    支援的簡寫:
        sc / SC            -> d% (理智檢定)
        d / r / rd / ra    -> d%
        rb2 / rp           -> 獎勵骰 / 懲罰骰
        ww4a9              -> 4 個 d10，>=9 加骰，>=8 計為成功
        rd20               -> d20
    """
    if full_exp in ('sc', 'SC'):
        return ParsedExpression('d%', 'sc')

    match = SPLIT_PATTERN.search(full_exp)
    if match:
        exp, desc = full_exp[:match.start()], full_exp[match.start():]
    else:
        exp, desc = full_exp, ""

    if not exp:
        # 以中文或空白開頭，沒有可用的表達式
        return ParsedExpression(full_exp)

    # 默認骰，固定為 d100
    if exp in ('d', 'r', 'rd'):
        return ParsedExpression('d%', desc)

    # coc 技能骰
    if exp == 'ra':
        return ParsedExpression('d%', desc)

    # rb 獎勵骰取最高、rp 懲罰骰取最低
    bonus_penalty = BONUS_PENALTY_PATTERN.match(exp)
    if bonus_penalty:
        keep = 'h' if bonus_penalty.group(1) == 'b' else 'l'
        count = int(bonus_penalty.group(2) or '1')  # 默認一個獎勵/懲罰骰
        return ParsedExpression(f"{count + 1}d%k{keep}1", desc)

    # ww3a9: 3d10，>=9 加骰，計算 >=8 的骰子個數
    pool = DICE_POOL_PATTERN.match(exp)
    if pool:
        dice_count = int(pool.group(1))
        explode_at = int(pool.group(2) or '10')  # 默認達到 10 加骰
        return ParsedExpression(f"{dice_count}d10!>={explode_at}>=8", desc)

    # 'rd100' => 'd100'
    if exp.startswith('r'):
        return ParsedExpression(exp[1:], desc)

    return ParsedExpression(exp, desc)


def detect_instruction(text: str) -> Optional[str]:
    """判斷文本中有沒有技能關鍵字，返回 "難度+技能" 或 None"""
    skill_match = INSTRUCTION_PATTERN.search(text)
    if not skill_match:
        return None
    difficulty_match = DIFFICULTY_PATTERN.search(text)
    difficulty = difficulty_match.group(0) if difficulty_match else ""
    return difficulty + skill_match.group(0)
