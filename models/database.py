import json
import sqlite3
from typing import Dict, List, Mapping, Optional
from dataclasses import dataclass, field


# 人物卡基礎屬性，其餘數值都記為技能
CHARACTERISTICS = ('力量', '体质', '体型', '敏捷', '外貌', '智力', '意志', '教育', '生命', '魔法', '年龄')


@dataclass
class Card:
    channel_id: str
    user_id: str
    name: str
    san: Optional[int] = None
    luck: Optional[int] = None
    props: Dict[str, int] = field(default_factory=dict)
    skills: Dict[str, int] = field(default_factory=dict)
    last_success_skill: Optional[str] = None

    def get_value(self, name: str) -> Optional[int]:
        """按標準名稱取數值"""
        if name == '理智':
            return self.san
        if name == '幸运':
            return self.luck
        if name in self.props:
            return self.props[name]
        return self.skills.get(name)

    def set_value(self, name: str, value: int, aliases: Mapping[str, str]) -> str:
        """設置數值，返回標準名稱"""
        name = aliases.get(name.strip(), name.strip())
        if name == '理智':
            self.san = value
        elif name == '幸运':
            self.luck = value
        elif name in CHARACTERISTICS:
            self.props[name] = value
        else:
            self.skills[name] = value
        return name


class CardsDB:
    """人物卡數據庫類"""
    def __init__(self, db_path: str = "cards.db"):
        self.db_path = db_path
        self.init_db()

    def init_db(self):
        """初始化數據庫"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        # 創建人物卡表
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS cards (
                channel_id TEXT NOT NULL,
                user_id TEXT NOT NULL,
                name TEXT NOT NULL,
                san INTEGER,
                luck INTEGER,
                props TEXT NOT NULL DEFAULT '{}',
                skills TEXT NOT NULL DEFAULT '{}',
                last_success_skill TEXT,
                UNIQUE(channel_id, user_id)
            )
        ''')

        # 檢查並升級表結構
        cursor.execute("PRAGMA table_info(cards)")
        columns = [column[1] for column in cursor.fetchall()]

        # 添加缺少的欄位
        if 'last_success_skill' not in columns:
            cursor.execute("ALTER TABLE cards ADD COLUMN last_success_skill TEXT")

        conn.commit()
        conn.close()

    def save_card(self, card: Card):
        """添加或更新人物卡"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        cursor.execute('''
            INSERT INTO cards (channel_id, user_id, name, san, luck, props, skills, last_success_skill)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(channel_id, user_id)
            DO UPDATE SET name=excluded.name, san=excluded.san, luck=excluded.luck,
                          props=excluded.props, skills=excluded.skills,
                          last_success_skill=excluded.last_success_skill
        ''', (str(card.channel_id), str(card.user_id), card.name, card.san, card.luck,
              json.dumps(card.props, ensure_ascii=False),
              json.dumps(card.skills, ensure_ascii=False),
              card.last_success_skill))

        conn.commit()
        conn.close()

    def get_card(self, channel_id: str, user_id: str) -> Optional[Card]:
        """查找用戶在頻道中的人物卡"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        cursor.execute('''
            SELECT channel_id, user_id, name, san, luck, props, skills, last_success_skill
            FROM cards
            WHERE channel_id = ? AND user_id = ?
        ''', (str(channel_id), str(user_id)))

        row = cursor.fetchone()
        conn.close()

        return self._row_to_card(row) if row else None

    def delete_card(self, channel_id: str, user_id: str) -> bool:
        """刪除人物卡"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        cursor.execute('''
            DELETE FROM cards
            WHERE channel_id = ? AND user_id = ?
        ''', (str(channel_id), str(user_id)))
        deleted = cursor.rowcount > 0

        conn.commit()
        conn.close()
        return deleted

    def get_all_cards_in_channel(self, channel_id: str) -> List[Card]:
        """獲取頻道中的所有人物卡"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        cursor.execute('''
            SELECT channel_id, user_id, name, san, luck, props, skills, last_success_skill
            FROM cards
            WHERE channel_id = ?
            ORDER BY name
        ''', (str(channel_id),))

        rows = cursor.fetchall()
        conn.close()

        return [self._row_to_card(row) for row in rows]

    @staticmethod
    def _row_to_card(row) -> Card:
        return Card(
            channel_id=row[0],
            user_id=row[1],
            name=row[2],
            san=row[3],
            luck=row[4],
            props=json.loads(row[5]),
            skills=json.loads(row[6]),
            last_success_skill=row[7]
        )
