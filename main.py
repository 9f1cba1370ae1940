#!/usr/bin/env python3
"""
COC Dice Bot
以 . 指令擲骰並按人物卡判定成功的Discord機器人
"""

import asyncio
import os
import sys
from dotenv import load_dotenv

# 加載環境變量
load_dotenv()

# 確保路徑正確
sys.path.insert(0, os.path.dirname(__file__))

from bot import DiceBot
from utils.logger import get_logger


async def run(bot: DiceBot):
    """運行機器人，結束時關閉連接"""
    try:
        await bot.start()
    finally:
        await bot.close()


def main():
    """主函數"""
    logger = get_logger()

    logger.info("正在啟動 COC Dice Bot...")

    # 創建並啟動機器人（機器人會自己查找環境變量）
    try:
        bot = DiceBot()
    except ValueError as e:
        logger.error(f"錯誤：{e}")
        sys.exit(1)

    try:
        asyncio.run(run(bot))
    except KeyboardInterrupt:
        logger.info("收到中斷信號，正在關閉機器人...")
    except Exception as e:
        logger.error(f"機器人運行時出現錯誤: {e}")
    finally:
        logger.info("機器人已關閉")


if __name__ == "__main__":
    main()
