import discord
from discord.ext import commands
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from utils.config import ConfigManager
from utils.logger import get_logger
from models.database import CardsDB


logger = get_logger()


class DiceBot:
    """COC 骰子機器人類"""
    def __init__(self):
        # 遍歷查找環境變量和數據庫文件
        root_dir = self.find_project_root()

        # 查找環境變量文件
        env_file = self.find_env_file(root_dir)
        if env_file:
            load_dotenv(dotenv_path=env_file)

        # 從環境變量獲取token
        token = os.getenv("DISCORD_TOKEN")
        if not token:
            logger.error("未找到 DISCORD_TOKEN 環境變量，請在項目根目錄的 .env 文件中添加 DISCORD_TOKEN=your_token_here")
            raise ValueError("未找到 DISCORD_TOKEN 環境變量")

        self.token = token

        self.config_manager = ConfigManager(config_path=str(root_dir / "config.json"))
        self.cards_db = CardsDB(db_path=str(root_dir / "cards.db"))

        # 設置機器人
        intents = discord.Intents.default()
        intents.message_content = True  # 需要讀取消息內容
        intents.guilds = True  # 需要訪問服務器信息
        intents.members = True  # 表情事件需要成員暱稱

        self.bot = commands.Bot(
            command_prefix="!",
            intents=intents,
            description="COC 骰子機器人",
            help_command=None
        )

        self.setup_events()

    def find_project_root(self) -> Path:
        """查找項目根目錄"""
        current_path = Path(__file__).resolve()

        # 搜索包含 .git 目錄或 pyproject.toml 的父目錄
        for parent in current_path.parents:
            if (parent / '.git').exists() or (parent / 'pyproject.toml').exists():
                return parent

        return current_path.parent

    def find_env_file(self, root_dir: Path) -> Optional[Path]:
        """查找環境變量文件"""
        env_file = root_dir / ".env"
        if env_file.is_file():
            logger.info(f"找到環境變量文件: {env_file}")
            return env_file

        logger.warning(f"在 {root_dir} 中未找到 .env 文件，將只使用系統環境變量")
        return None

    def setup_events(self):
        """設置事件處理器"""
        @self.bot.event
        async def on_ready():
            logger.info(f'{self.bot.user} 已經上線!')
            logger.info(f'已連接到 {len(self.bot.guilds)} 個服務器')

            # 同步應用命令
            try:
                await self.bot.tree.sync()
                logger.info("應用命令已同步")
            except discord.HTTPException as e:
                logger.error(f"同步應用命令時出錯: {e}")

        @self.bot.event
        async def on_guild_join(guild):
            """當機器人加入服務器時的處理"""
            logger.info(f'加入了服務器: {guild.name} (ID: {guild.id})')

    async def add_cogs(self):
        """添加Cog模塊"""
        from cogs import card_cog, config_cog, dice_cog, help_cog

        # 各 Cog 的 setup 從 bot 上取得共用的配置和人物卡庫
        self.bot.config_manager = self.config_manager
        self.bot.cards_db = self.cards_db

        for module in (dice_cog, card_cog, config_cog, help_cog):
            await module.setup(self.bot)

    async def start(self):
        """啟動機器人"""
        await self.add_cogs()
        await self.bot.start(self.token)

    async def close(self):
        """關閉機器人"""
        if not self.bot.is_closed():
            await self.bot.close()
