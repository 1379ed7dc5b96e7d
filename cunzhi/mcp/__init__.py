"""
MCP 弹窗协议模块

    - types: 请求/响应模型与构造函数
    - decision: 决策提供者 (Web 固定决策 / 桌面交互决策)
"""

from .decision import DecisionProvider, FixedDecisionProvider, InteractiveDecisionProvider
from .types import (
    McpResponse,
    PopupRequest,
    build_continue_response,
    build_send_response,
    load_popup_request,
)

__all__ = [
    "DecisionProvider",
    "FixedDecisionProvider",
    "InteractiveDecisionProvider",
    "McpResponse",
    "PopupRequest",
    "build_continue_response",
    "build_send_response",
    "load_popup_request",
]
