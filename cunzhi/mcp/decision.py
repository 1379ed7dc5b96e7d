"""
弹窗决策提供者

控制服务器的 /api/mcp/popup 与 /api/mcp/response 两个端点不持有弹窗状态机，
而是委托给 DecisionProvider。具体实现由运行模式决定：

    ┌───────────────────────────────┬─────────────────────────────────────┐
    │ 实现                           │ 行为                                │
    ├───────────────────────────────┼─────────────────────────────────────┤
    │ FixedDecisionProvider (Web)   │ 立即返回"继续"决策；提交的响应仅记录 │
    │ InteractiveDecisionProvider   │ 挂起直到界面提交匹配的响应           │
    │ (桌面)                         │                                     │
    └───────────────────────────────┴─────────────────────────────────────┘
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import ValidationError

from .types import (
    CONTINUE_TEXT,
    McpResponse,
    PopupRequest,
    build_continue_response,
)


class DecisionProvider(ABC):
    """弹窗决策能力"""

    @abstractmethod
    async def decide(self, request: PopupRequest) -> McpResponse:
        """为弹窗请求给出决策"""

    @abstractmethod
    async def submit(self, payload: Any) -> bool:
        """
        接收界面提交的响应

        Returns:
            bool: 是否有挂起的请求因此完成
        """

    def pending(self) -> list[PopupRequest]:
        """当前挂起的请求"""
        return []


class FixedDecisionProvider(DecisionProvider):
    """Web 模式：不等待用户输入，直接返回固定的"继续"决策"""

    def __init__(self, text: str = CONTINUE_TEXT):
        self.text = text

    async def decide(self, request: PopupRequest) -> McpResponse:
        logging.info(f"收到MCP弹窗请求: {request.message}")
        return build_continue_response(request.id, self.text)

    async def submit(self, payload: Any) -> bool:
        logging.info(f"收到MCP响应: {payload}")
        return False


class InteractiveDecisionProvider(DecisionProvider):
    """
    桌面模式：每个请求挂起一个 Future，界面通过 submit 提交响应后完成

    submit 按 metadata.request_id 匹配挂起请求；未携带 request_id 时，
    完成最早的挂起请求。
    """

    def __init__(self):
        self._pending: dict[str, tuple[PopupRequest, asyncio.Future]] = {}

    def open(self, request: PopupRequest) -> asyncio.Future:
        """登记请求并返回等待响应的 Future (须在事件循环内调用)"""
        if request.id in self._pending:
            return self._pending[request.id][1]
        future = asyncio.get_running_loop().create_future()
        self._pending[request.id] = (request, future)
        return future

    async def decide(self, request: PopupRequest) -> McpResponse:
        future = self.open(request)
        logging.info(f"等待用户处理弹窗请求: {request.id}")
        try:
            return await future
        finally:
            self._pending.pop(request.id, None)

    async def submit(self, payload: Any) -> bool:
        try:
            response = McpResponse.model_validate(payload)
        except ValidationError as e:
            logging.warning(f"忽略无法解析的MCP响应: {e}")
            return False

        request_id = response.metadata.request_id
        if request_id is None:
            request_id = next(
                (rid for rid, (_, f) in self._pending.items() if not f.done()), None
            )

        entry = self._pending.get(request_id) if request_id else None
        if entry is None:
            logging.warning(f"MCP响应没有对应的挂起请求: {request_id}")
            return False

        future = entry[1]
        if future.done():
            return False
        if response.metadata.request_id is None:
            response.metadata.request_id = request_id
        future.set_result(response)
        return True

    def pending(self) -> list[PopupRequest]:
        return [request for request, f in self._pending.values() if not f.done()]
