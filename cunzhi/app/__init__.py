"""
运行模式

    - modes: 根据命令行参数与环境变量选择唯一的运行模式
    - runner: 执行选出的模式 (帮助/版本/桌面/自动请求/Web 服务器)
    - desktop: 桌面界面 (本地控制服务器 + 浏览器)
"""

from .modes import (
    AutomatedRequestMode,
    DesktopMode,
    HelpMode,
    OperatingMode,
    ServerMode,
    VersionMode,
    select_mode,
)
from .runner import HELP_TEXT, ModeRunner, RequestRoute, resolve_automated_request

__all__ = [
    "AutomatedRequestMode",
    "DesktopMode",
    "HelpMode",
    "OperatingMode",
    "ServerMode",
    "VersionMode",
    "select_mode",
    "HELP_TEXT",
    "ModeRunner",
    "RequestRoute",
    "resolve_automated_request",
]
