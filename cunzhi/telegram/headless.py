"""
纯 Telegram 模式

当 telegram_config.enabled 与 hide_frontend_popup 同时开启时，自动请求不启动界面，
而是通过 Telegram 与用户交互：

    请求文件 ──▶ sendMessage (预定义选项作为回复键盘)
                      │
                      ▼
              getUpdates 长轮询，等待目标会话的下一条文本消息
                      │
                      ▼
          文本等于某个选项 → selected_options；否则 → user_input
                      │
                      ▼
                 McpResponse (source=telegram)

任何失败 (配置不完整、请求文件错误、网络/API 错误、等待超时) 均抛出 TelegramError，
由调用方以退出码 1 结束进程。
"""

import asyncio
import logging
from typing import Any

from ..config.settings import TelegramConfig
from ..mcp.types import McpResponse, PopupRequest, build_send_response, load_popup_request
from ..models.errors import McpRequestError, TelegramError
from .client import TelegramBot


RESPONSE_SOURCE = "telegram"


def build_message_text(request: PopupRequest) -> str:
    lines = [request.message]
    if request.predefined_options:
        lines.append("")
        lines.append("可选项:")
        lines.extend(f"• {option}" for option in request.predefined_options)
    lines.append("")
    lines.append("直接回复消息即可作答")
    return "\n".join(lines)


def build_reply_markup(request: PopupRequest) -> dict[str, Any] | None:
    if not request.predefined_options:
        return None
    return {
        "keyboard": [[{"text": option}] for option in request.predefined_options],
        "one_time_keyboard": True,
        "resize_keyboard": True,
    }


def parse_reply(request: PopupRequest, text: str) -> McpResponse:
    """把用户回复映射为弹窗响应"""
    options = request.predefined_options or []
    if text in options:
        return build_send_response(
            None, [text], request_id=request.id, source=RESPONSE_SOURCE
        )
    return build_send_response(text, request_id=request.id, source=RESPONSE_SOURCE)


async def _skip_pending_updates(bot: TelegramBot) -> int | None:
    """
    丢弃请求发出前积压的更新，返回下一次轮询使用的 offset

    getUpdates 单次最多返回 100 条，按 offset 翻页直到取空。
    """
    offset = None
    while True:
        updates = await bot.get_updates(offset=offset, timeout=0)
        if not updates:
            return offset
        offset = max(update["update_id"] for update in updates) + 1


async def wait_for_reply(
    bot: TelegramBot,
    chat_id: str,
    request: PopupRequest,
    offset: int | None = None,
    poll_timeout: int = 30,
) -> McpResponse:
    """轮询直到目标会话发来一条文本消息"""
    while True:
        updates = await bot.get_updates(offset=offset, timeout=poll_timeout)
        for update in updates:
            offset = update["update_id"] + 1
            message = update.get("message") or {}
            if str(message.get("chat", {}).get("id")) != str(chat_id):
                continue
            text = message.get("text")
            if text:
                return parse_reply(request, text)


async def handle_telegram_only_request(
    request_file: str,
    config: TelegramConfig,
    bot: TelegramBot | None = None,
    poll_timeout: int = 30,
    max_wait: float | None = None,
) -> McpResponse:
    """
    以纯 Telegram 模式处理一次自动请求

    Args:
        request_file: 弹窗请求 JSON 文件路径
        config: Telegram 配置 (需要 bot_token 与 chat_id)
        bot: 可注入的 Bot 客户端，默认按配置创建
        poll_timeout: 单次长轮询秒数
        max_wait: 等待用户回复的总时长上限 (秒)，None 表示一直等待

    Raises:
        TelegramError: 任何处理失败
    """
    if not config.bot_token or not config.chat_id:
        raise TelegramError("Telegram 配置不完整: 需要 bot_token 和 chat_id")

    try:
        request = load_popup_request(request_file)
    except McpRequestError as e:
        raise TelegramError(f"无法读取请求: {e}") from e

    bot = bot or TelegramBot(config.bot_token, config.api_base_url)
    try:
        offset = await _skip_pending_updates(bot)
        await bot.send_message(
            config.chat_id,
            build_message_text(request),
            reply_markup=build_reply_markup(request),
        )
        logging.info(f"已通过 Telegram 发送请求: {request.id}")

        try:
            response = await asyncio.wait_for(
                wait_for_reply(bot, config.chat_id, request, offset, poll_timeout),
                timeout=max_wait,
            )
        except asyncio.TimeoutError as e:
            raise TelegramError(f"等待 Telegram 回复超时 ({max_wait}s)") from e

        await bot.send_message(
            config.chat_id, "✅ 回复已发送", reply_markup={"remove_keyboard": True}
        )
        return response
    finally:
        await bot.close()
