import discord
from discord.ext import commands
from typing import Optional


class ConfigCog(commands.Cog, name="Config"):
    """頻道設定相關指令"""
    def __init__(self, bot, config_manager):
        self.bot = bot
        self.config_manager = config_manager

    @commands.hybrid_command(name="dice_channel", description="設定響應骰子指令的頻道")
    async def dice_channel(self, ctx, action: str, channel: Optional[discord.TextChannel] = None):
        """設定響應骰子指令的頻道，列表為空時響應所有頻道"""
        if not ctx.guild:
            await ctx.send("此指令只能在服務器中使用")
            return

        action = action.lower()
        if action not in ["add", "remove", "clear"]:
            await ctx.send("操作參數必須是 'add'、'remove' 或 'clear'")
            return

        guild_config = self.config_manager.get_guild_config(ctx.guild.id)

        if action == "clear":
            guild_config.dice_channels = []
            self.config_manager.set_guild_config(ctx.guild.id, guild_config)
            await ctx.send("已清除頻道設定，所有頻道都會響應骰子指令")
            return

        target = channel or ctx.channel
        if action == "add":
            if target.id not in guild_config.dice_channels:
                guild_config.dice_channels.append(target.id)
            description = f"{target.mention} 將響應骰子指令"
        else:  # remove
            if target.id in guild_config.dice_channels:
                guild_config.dice_channels.remove(target.id)
            description = f"{target.mention} 已移出骰子頻道列表"

        self.config_manager.set_guild_config(ctx.guild.id, guild_config)
        await ctx.send(description)

    @commands.hybrid_command(name="crit", description="設定大成功/大失敗紀錄頻道")
    async def crit(self, ctx, kind: str, channel: Optional[discord.TextChannel] = None):
        """設定大成功/大失敗紀錄頻道"""
        if not ctx.guild:
            embed = discord.Embed(
                title="錯誤",
                description="此指令僅能在服務器中使用",
                color=0xff0000
            )
            await ctx.send(embed=embed)
            return

        if kind.lower() not in ["success", "fail"]:
            embed = discord.Embed(
                title="錯誤",
                description="紀錄類型必須是 'success' 或 'fail'",
                color=0xff0000
            )
            await ctx.send(embed=embed)
            return

        guild_config = self.config_manager.get_guild_config(ctx.guild.id)

        if kind.lower() == "success":
            guild_config.crit_success_channel = channel.id if channel else None
            field_name = "大成功"
        else:  # fail
            guild_config.crit_fail_channel = channel.id if channel else None
            field_name = "大失敗"

        self.config_manager.set_guild_config(ctx.guild.id, guild_config)

        if channel:
            description = f"已設定{field_name}紀錄頻道為 {channel.mention}"
        else:
            description = f"已清除{field_name}紀錄頻道設定"

        embed = discord.Embed(
            title="紀錄頻道已更新",
            description=description,
            color=0x7289da
        )
        await ctx.send(embed=embed)


async def setup(bot):
    """設置Cog"""
    await bot.add_cog(ConfigCog(bot, bot.config_manager))
