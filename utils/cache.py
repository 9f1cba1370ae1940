import asyncio
from collections import OrderedDict
from typing import Awaitable, Callable, Dict, Optional

from models.types import MessageCacheEntry, RollRecord
from utils.logger import get_logger
from utils.parser import detect_instruction


logger = get_logger()

# (channel_id, message_id) -> 消息文本，非文本消息返回 None
FetchText = Callable[[str, str], Awaitable[Optional[str]]]


class LRUCache:
    """固定容量的 LRU 緩存"""

    def __init__(self, max_size: int = 50):
        if max_size < 1:
            raise ValueError("緩存容量必須至少為1")
        self.max_size = max_size
        self._data: "OrderedDict[str, object]" = OrderedDict()

    def get(self, key: str, default=None):
        if key not in self._data:
            return default
        self._data.move_to_end(key)
        return self._data[key]

    def set(self, key: str, value):
        self._data[key] = value
        self._data.move_to_end(key)
        while len(self._data) > self.max_size:
            self._data.popitem(last=False)

    def pop(self, key: str, default=None):
        return self._data.pop(key, default)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


class InstructionCache:
    """
    表情快速投骰用的消息緩存

    未命中時向平台拉取原始消息，同一條消息同時只會有一個請求；
    消息中的指令在第一次使用時解析並記錄下來。
    """

    def __init__(self, fetch_text: FetchText, detect=detect_instruction, max_size: int = 50):
        self.fetch_text = fetch_text
        self.detect = detect
        self.entries = LRUCache(max_size)
        self._in_flight: Dict[str, "asyncio.Task[MessageCacheEntry]"] = {}
        self._lock = asyncio.Lock()

    @staticmethod
    def make_key(channel_id, message_id) -> str:
        return f"{channel_id}-{message_id}"

    async def fetch(self, key: str) -> Optional[MessageCacheEntry]:
        """獲取消息緩存，拉取失敗時返回 None"""
        async with self._lock:
            entry = self.entries.get(key)
            if entry is not None:
                return entry
            task = self._in_flight.get(key)
            if task is None:
                task = asyncio.ensure_future(self._load(key))
                self._in_flight[key] = task

        try:
            return await task
        except Exception as e:
            logger.error(f"[Dice] 獲取原始消息失敗 {key}: {e}")
            return None

    async def instruction_for(self, key: str) -> Optional[str]:
        """返回消息中包含的指令，沒有則返回 None"""
        entry = await self.fetch(key)
        if entry is None:
            return None
        return entry.resolve_instruction(self.detect)

    async def _load(self, key: str) -> MessageCacheEntry:
        channel_id, message_id = key.split('-', 1)
        try:
            text = await self.fetch_text(channel_id, message_id)
            text = text.strip() if text else None
            # 非文本消息就直接記錄為 None
            entry = MessageCacheEntry(text=text) if text else MessageCacheEntry(text=None, instruction=None)
            self.entries.set(key, entry)
            return entry
        finally:
            self._in_flight.pop(key, None)


class OpposedRollCache(LRUCache):
    """對抗骰緩存，key 為結果消息的 id"""

    def remember(self, message_id: str, record: RollRecord) -> bool:
        """只記錄可以被對抗的擲骰"""
        if not record.eligible_for_opposed_roll:
            return False
        self.set(str(message_id), record)
        return True
