"""
纯 Telegram 模式

    - client: Telegram Bot API 异步客户端 (aiohttp)
    - headless: 无界面处理自动请求
"""

from .client import TelegramBot
from .headless import handle_telegram_only_request

__all__ = ["TelegramBot", "handle_telegram_only_request"]
