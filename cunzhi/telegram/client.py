"""
Telegram Bot API 异步客户端

仅实现纯 Telegram 模式需要的两个方法，使用 aiohttp 直接调用 Bot API。

API 端点:
    POST {api_base_url}/bot{token}/sendMessage
    POST {api_base_url}/bot{token}/getUpdates

错误处理:
    - 网络错误 / 超时 → TelegramError
    - 响应 ok=false → TelegramError(error_code=响应中的 error_code)
"""

import asyncio
import logging
from typing import Any

import aiohttp

from ..config.settings import DEFAULT_TELEGRAM_API_BASE_URL
from ..models.errors import TelegramError


class TelegramBot:
    """
    Telegram Bot API 客户端

    Attributes:
        bot_token: Bot Token
        api_base_url: Bot API 根地址 (可指向自建 Bot API 服务)
        request_timeout: 单次 HTTP 请求超时 (秒)，需大于长轮询超时
    """

    def __init__(
        self,
        bot_token: str,
        api_base_url: str = DEFAULT_TELEGRAM_API_BASE_URL,
        request_timeout: float = 60,
    ):
        self.bot_token = bot_token
        self.api_base_url = api_base_url.rstrip("/")
        self.request_timeout = request_timeout

        self._session: aiohttp.ClientSession | None = None
        self._logger = logging.getLogger("telegram.client")

    # ==================== 生命周期 ====================

    async def _get_session(self) -> aiohttp.ClientSession:
        """获取或创建 HTTP 会话"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.request_timeout),
            )
        return self._session

    async def close(self) -> None:
        """关闭 HTTP 会话"""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    # ==================== 底层请求 ====================

    def _method_url(self, method: str) -> str:
        return f"{self.api_base_url}/bot{self.bot_token}/{method}"

    async def _call(self, method: str, payload: dict[str, Any]) -> Any:
        session = await self._get_session()
        try:
            async with session.post(self._method_url(method), json=payload) as resp:
                body = await resp.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise TelegramError(f"Telegram 请求超时: {method}") from e
        except aiohttp.ClientError as e:
            raise TelegramError(f"Telegram 请求失败: {method}: {e}") from e

        if not isinstance(body, dict) or not body.get("ok"):
            description = body.get("description", "未知错误") if isinstance(body, dict) else body
            error_code = body.get("error_code") if isinstance(body, dict) else None
            raise TelegramError(
                f"Telegram API 错误 ({method}): {description}", error_code=error_code
            )
        return body.get("result")

    # ==================== Bot API ====================

    async def send_message(
        self,
        chat_id: str,
        text: str,
        reply_markup: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        return await self._call("sendMessage", payload)

    async def get_updates(
        self, offset: int | None = None, timeout: int = 30
    ) -> list[dict[str, Any]]:
        """长轮询获取更新 (timeout 为服务端挂起秒数)"""
        payload: dict[str, Any] = {"timeout": timeout, "allowed_updates": ["message"]}
        if offset is not None:
            payload["offset"] = offset
        return await self._call("getUpdates", payload) or []
