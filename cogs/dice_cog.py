import discord
from discord.ext import commands
from functools import partial
from typing import Optional

from models.types import RollContext, RollRecord, SuccessLevel
from utils.cache import InstructionCache, OpposedRollCache
from utils.dice import DiceEvaluator
from utils.logger import get_logger
from utils.parser import extract_command
from utils.roller import DiceRoller


logger = get_logger()


class DiceCog(commands.Cog, name="Dice"):
    """骰子相關指令"""
    def __init__(self, bot, config_manager, cards_db):
        self.bot = bot
        self.config_manager = config_manager
        self.cards_db = cards_db

        global_config = config_manager.global_config
        self.opposed_cache = OpposedRollCache(global_config.opposed_cache_size)
        self.instruction_cache = InstructionCache(
            self.fetch_message_text,
            max_size=global_config.instruction_cache_size
        )
        self.roller = DiceRoller(
            evaluator=DiceEvaluator(max_rolls=global_config.max_rolls),
            card_lookup=cards_db.get_card,
            notify_card_dirty=cards_db.save_card,
            opposed_cache=self.opposed_cache
        )

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        """處理子頻道骰子指令和私信"""
        if message.author.bot:
            return

        if message.guild is None:
            await self.handle_direct_message(message)
            return

        rules = self.config_manager.get_guild_config(message.guild.id)
        if not rules.is_listening(message.channel.id):
            return

        # 提取出指令體，無視非指令消息
        full_exp = extract_command(message.content, self.bot.user.id if self.bot.user else None)
        if not full_exp:
            return

        reply_to = message.reference.message_id if message.reference else None
        context = RollContext(
            user_id=str(message.author.id),
            channel_id=str(message.channel.id),
            username=message.author.display_name,
            reply_to_message_id=str(reply_to) if reply_to else None
        )
        record = self.roller.roll(full_exp, context, rules)
        if record:
            send = partial(message.channel.send, reference=message)
            await self.send_roll(send, record, message.author, message.guild)

    async def handle_direct_message(self, message: discord.Message):
        """處理私信，私信沒有人物卡"""
        full_exp = extract_command(message.content)
        record = None
        if full_exp:
            context = RollContext(user_id=str(message.author.id), username=message.author.display_name)
            record = self.roller.roll(full_exp, context)

        if record:
            reply = record.text
        elif self.config_manager.global_config.dm_fallback_reply:
            # 私信至少給個回復
            reply = f"{self.bot.user.display_name if self.bot.user else ''}在的说"
        else:
            return

        try:
            await message.channel.send(reply, reference=message)
            logger.info(f"[Dice] 發送成功 {reply}")
        except discord.HTTPException as e:
            logger.error(f"[Dice] 私信發送失敗: {e}")

    @commands.Cog.listener()
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent):
        """處理表情快速投骰"""
        if payload.guild_id is None:
            return
        if self.bot.user and payload.user_id == self.bot.user.id:
            return

        rules = self.config_manager.get_guild_config(payload.guild_id)
        if not rules.is_listening(payload.channel_id):
            return

        # 獲取原始消息中的指令
        key = InstructionCache.make_key(payload.channel_id, payload.message_id)
        instruction = await self.instruction_cache.instruction_for(key)
        if not instruction:
            return

        channel = self.bot.get_channel(payload.channel_id)
        if channel is None:
            return

        username = payload.member.display_name if payload.member else None
        context = RollContext(
            user_id=str(payload.user_id),
            channel_id=str(payload.channel_id),
            username=username
        )
        record = self.roller.roll(f"d% {instruction}", context, rules)
        if record:
            author = payload.member or self.bot.get_user(payload.user_id)
            reference = discord.MessageReference(
                message_id=payload.message_id,
                channel_id=payload.channel_id,
                fail_if_not_exists=False
            )
            await self.send_roll(partial(channel.send, reference=reference), record, author, channel.guild)

    @commands.hybrid_command(name="roll", description="擲骰子，例如 d100 侦察、rb2 图书馆、ww4a9")
    async def roll_command(self, ctx, *, expression: str):
        """擲骰子"""
        rules = self.config_manager.get_guild_config(ctx.guild.id if ctx.guild else None)
        context = RollContext(
            user_id=str(ctx.author.id),
            channel_id=str(ctx.channel.id) if ctx.guild else None,
            username=ctx.author.display_name
        )
        record = self.roller.roll(expression, context, rules)

        if record is None:
            embed = discord.Embed(
                title="擲骰錯誤",
                description=f"無效的骰子表達式: `{expression}`",
                color=0xff0000
            )
            await ctx.send(embed=embed, ephemeral=True)
            return

        if record.hidden and ctx.interaction:
            # 斜線指令的暗骰直接用僅自己可見的回復
            await ctx.send(record.text, ephemeral=True)
            await ctx.channel.send(record.public_text)
            return

        await self.send_roll(ctx.send, record, ctx.author, ctx.guild)

    async def fetch_message_text(self, channel_id: str, message_id: str) -> Optional[str]:
        """從 Discord 獲取原始消息文本"""
        channel = self.bot.get_channel(int(channel_id))
        if channel is None:
            channel = await self.bot.fetch_channel(int(channel_id))
        message = await channel.fetch_message(int(message_id))
        return message.content

    async def send_roll(self, send, record: RollRecord, author, guild: Optional[discord.Guild] = None):
        """發送擲骰結果，暗骰時結果私信給擲骰者"""
        try:
            sent = await send(record.public_text)
            logger.info(f"[Dice] 發送成功 {record.public_text}")
            if record.hidden and author is not None:
                await author.send(record.text)
        except discord.HTTPException as e:
            logger.error(f"[Dice] 發送失敗: {e}")
            return

        # 記錄可以被對抗的擲骰
        if sent is not None:
            self.opposed_cache.remember(str(sent.id), record)

        if guild is not None and not record.hidden:
            await self.log_critical(guild, record)

    async def log_critical(self, guild: discord.Guild, record: RollRecord):
        """大成功/大失敗紀錄到指定頻道"""
        if record.decision is None:
            return
        rules = self.config_manager.get_guild_config(guild.id)
        if record.decision.level is SuccessLevel.BEST:
            channel_id = rules.crit_success_channel
        elif record.decision.level is SuccessLevel.WORST:
            channel_id = rules.crit_fail_channel
        else:
            return
        if not channel_id:
            return

        log_channel = guild.get_channel(channel_id)
        if log_channel is None:
            return
        try:
            await log_channel.send(record.text)
        except discord.HTTPException as e:
            logger.error(f"[Dice] 紀錄頻道發送失敗: {e}")


async def setup(bot):
    """設置Cog"""
    await bot.add_cog(DiceCog(bot, bot.config_manager, bot.cards_db))
