import discord
from discord.ext import commands


HELP_TEXT = (
    "**擲骰（以 `.` / `。` 開頭，或 @機器人）**\n"
    "`.d` `.r` `.rd` `.ra`：擲 d100，後面可接技能名，例如 `.ra 困难侦察`。\n"
    "`.sc`：理智檢定。`.d 幸运`、`.d 灵感` 直接對比屬性值。\n"
    "`.rb2 图书馆` / `.rp 聆听`：獎勵骰取最高 / 懲罰骰取最低，預設一個。\n"
    "`.ww4a9 意志`：4 個 d10，>=9 加骰，統計 >=8 的個數。\n"
    "`.rd20+3`：任意骰子表達式。\n"
    "`.rh 侦察`：暗骰，結果私信給自己。\n"
    "回復別人的檢定結果再擲骰即為對抗骰。\n"
    "對含有技能名的消息加表情，可以快速擲一次該技能。\n\n"

    "**人物卡（每個頻道一張）**\n"
    "`/card set <名稱> <數值>`：設置屬性或技能，支援 str/san 等別名。\n"
    "`/card name <名稱>`、`/card show`、`/card delete`。\n\n"

    "**設定**\n"
    "`/dice_channel <add|remove|clear> [頻道]`：響應骰子指令的頻道，留空則所有頻道。\n"
    "`/crit <success|fail> [頻道]`：設定大成功/大失敗紀錄頻道，留空則清除設定。"
)


class HelpCog(commands.Cog, name="Help"):
    """幫助相關指令"""
    def __init__(self, bot, config_manager):
        self.bot = bot
        self.config_manager = config_manager

    @commands.hybrid_command(name="help", description="顯示指令說明")
    async def help_command(self, ctx):
        """顯示幫助信息"""
        embed = discord.Embed(
            title="COC Dice Bot 指令說明",
            description="支援 `.` 擲骰指令，以及 `/roll`、`/card`、`/dice_channel`、`/crit`。",
            color=0x1abc9c
        )

        view = HelpView()
        await ctx.send(embed=embed, view=view)


class HelpView(discord.ui.View):
    """幫助視圖"""
    def __init__(self):
        super().__init__(timeout=120)  # 2分鐘後超時

    @discord.ui.button(label="查看詳細說明", style=discord.ButtonStyle.green, emoji="ℹ️")
    async def show_help(self, interaction: discord.Interaction, button: discord.ui.Button):
        details_embed = discord.Embed(
            title="指令詳細說明",
            description=HELP_TEXT,
            color=0x1abc9c
        )
        await interaction.response.send_message(embed=details_embed, ephemeral=True)


async def setup(bot):
    """設置Cog"""
    await bot.add_cog(HelpCog(bot, bot.config_manager))
