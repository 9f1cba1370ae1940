import discord
from discord.ext import commands
from typing import Optional

from models.database import Card
from utils.coc import DEFAULT_SKILL_ALIASES


class CardCog(commands.Cog, name="Card"):
    """人物卡相關指令"""
    def __init__(self, bot, config_manager, cards_db):
        self.bot = bot
        self.config_manager = config_manager
        self.cards_db = cards_db

    @commands.hybrid_command(name="card", description="人物卡指令")
    async def card_command(self, ctx, action: str,
                           name: Optional[str] = None,
                           value: Optional[int] = None):
        """人物卡指令"""
        if not ctx.guild:
            embed = discord.Embed(
                title="錯誤",
                description="此指令僅能在服務器中使用",
                color=0xff0000
            )
            await ctx.send(embed=embed)
            return

        action = action.lower()
        channel_id = str(ctx.channel.id)
        user_id = str(ctx.author.id)
        card = self.cards_db.get_card(channel_id, user_id)

        if action == "set":
            if not name or value is None:
                embed = discord.Embed(
                    title="錯誤",
                    description="設置數值時需要提供名稱和數值",
                    color=0xff0000
                )
                await ctx.send(embed=embed)
                return

            if card is None:
                card = Card(channel_id=channel_id, user_id=user_id, name=ctx.author.display_name)
            canonical = card.set_value(name, value, DEFAULT_SKILL_ALIASES)
            self.cards_db.save_card(card)

            embed = discord.Embed(
                title="人物卡已更新",
                description=f"`{card.name}` 的 {canonical} 設為 {value}",
                color=0x2ecc71
            )
            await ctx.send(embed=embed)

        elif action == "name":
            if not name:
                await ctx.send("請提供人物卡名稱")
                return

            if card is None:
                card = Card(channel_id=channel_id, user_id=user_id, name=name)
            card.name = name
            self.cards_db.save_card(card)
            await ctx.send(f"人物卡名稱已設為 `{name}`")

        elif action == "show":
            if card:
                await ctx.send(embed=card_embed(card))
            else:
                embed = discord.Embed(
                    title="人物卡",
                    description=f"找不到 {ctx.author.mention} 在此頻道的人物卡",
                    color=0xf39c12
                )
                await ctx.send(embed=embed)

        elif action == "delete":
            if not card:
                embed = discord.Embed(
                    title="錯誤",
                    description="此頻道中沒有你的人物卡，無法刪除",
                    color=0xff0000
                )
                await ctx.send(embed=embed)
                return

            # 創建確認按鈕
            view = CardDeleteView(ctx.author.id, channel_id, ctx.author.mention, card.name, self.cards_db)
            embed = discord.Embed(
                title="確認刪除人物卡",
                description=f"目標人物卡：`{card.name}`\n擁有者：{ctx.author.mention}",
                color=0xe74c3c
            )
            await ctx.send(embed=embed, view=view)

        else:
            embed = discord.Embed(
                title="錯誤",
                description="操作必須是 'set', 'name', 'show', 或 'delete'",
                color=0xff0000
            )
            await ctx.send(embed=embed)


def card_embed(card: Card) -> discord.Embed:
    """人物卡展示"""
    embed = discord.Embed(title=f"人物卡：<{card.name}>", color=0x7289da)
    embed.add_field(name="理智", value=str(card.san) if card.san is not None else "-", inline=True)
    embed.add_field(name="幸运", value=str(card.luck) if card.luck is not None else "-", inline=True)
    if card.props:
        embed.add_field(
            name="屬性",
            value=" ".join(f"{k}{v}" for k, v in card.props.items()),
            inline=False
        )
    if card.skills:
        embed.add_field(
            name="技能",
            value=" ".join(f"{k}{v}" for k, v in sorted(card.skills.items())),
            inline=False
        )
    if card.last_success_skill:
        embed.set_footer(text=f"最近成功的技能：{card.last_success_skill}")
    return embed


class CardDeleteView(discord.ui.View):
    """人物卡刪除確認視圖"""
    def __init__(self, author_id: int, channel_id: str, author_mention: str,
                 card_name: str, cards_db):
        super().__init__(timeout=30)
        self.author_id = author_id
        self.channel_id = channel_id
        self.author_mention = author_mention
        self.card_name = card_name
        self.cards_db = cards_db

    @discord.ui.button(label="確認刪除", style=discord.ButtonStyle.danger, emoji="🗑️")
    async def confirm_delete(self, interaction: discord.Interaction, button: discord.ui.Button):
        if interaction.user.id != self.author_id:
            await interaction.response.send_message("只有執行此操作的用戶可以確認。", ephemeral=True)
            return

        self.cards_db.delete_card(self.channel_id, str(self.author_id))

        embed = discord.Embed(
            title="人物卡已刪除",
            description=f"{self.author_mention} 刪除了人物卡 `{self.card_name}`",
            color=0x2ecc71
        )
        await interaction.response.edit_message(embed=embed, view=None)

    @discord.ui.button(label="取消", style=discord.ButtonStyle.secondary)
    async def cancel_delete(self, interaction: discord.Interaction, button: discord.ui.Button):
        if interaction.user.id != self.author_id:
            await interaction.response.send_message("只有執行此操作的用戶可以取消。", ephemeral=True)
            return

        embed = discord.Embed(
            title="操作已取消",
            description=f"{self.author_mention} 取消了刪除操作",
            color=0xf39c12
        )
        await interaction.response.edit_message(embed=embed, view=None)


async def setup(bot):
    """設置Cog"""
    await bot.add_cog(CardCog(bot, bot.config_manager, bot.cards_db))
