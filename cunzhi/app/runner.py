"""
运行模式执行

ModeRunner 接收 select_mode() 选出的模式并执行，返回进程退出码。
外部协作方 (桌面界面、Web 服务器、纯 Telegram 处理、Telegram 配置加载) 均可注入，
便于独立测试。

自动请求的路径选择 (resolve_automated_request):
    ┌──────────────────────────────────────────┬──────────────────────────┐
    │ Telegram 配置                             │ 路径                     │
    ├──────────────────────────────────────────┼──────────────────────────┤
    │ 加载失败                                  │ 界面 (记录 warning)       │
    │ enabled 且 hide_frontend_popup            │ 纯 Telegram              │
    │ 其他                                      │ 界面                     │
    └──────────────────────────────────────────┴──────────────────────────┘

    纯 Telegram 路径处理失败时不回退到界面 (用户已明确隐藏界面)，记录 error 并返回 1。
"""

import asyncio
import logging
import sys
from enum import Enum
from typing import Callable, TextIO

from .. import APP_NAME, __version__
from ..config import TelegramConfig, load_telegram_config
from ..control.server import run_control_server
from ..models.errors import ConfigError, CunzhiError
from ..telegram import handle_telegram_only_request
from .desktop import run_desktop_ui
from .modes import (
    AutomatedRequestMode,
    DesktopMode,
    HelpMode,
    OperatingMode,
    ServerMode,
    VersionMode,
)


HELP_TEXT = f"""{APP_NAME} - 智能代码审查工具

用法:
  cunzhi                          启动桌面界面
  cunzhi --mcp-request <文件>     处理 MCP 请求
  cunzhi --help                   显示此帮助信息
  cunzhi --version                显示版本信息

环境变量:
  CUNZHI_MODE=desktop             启动桌面界面 (默认)
  CUNZHI_MODE=web                 启动Web界面
  CUNZHI_WEB_PORT=8080            指定Web端口 (默认3000)
  CUNZHI_CONFIG_PATH=<文件>       指定配置文件路径
  CUNZHI_LOG_LEVEL=debug          日志级别 (默认info)
  CUNZHI_LOG_FORMAT=json          日志格式 text/json (默认text)
  CUNZHI_LOG_FILE=<文件>          日志写入文件 (默认输出到stderr)

示例:
  cunzhi                                          # 桌面模式
  CUNZHI_MODE=web cunzhi                          # Web模式，端口3000
  CUNZHI_MODE=web CUNZHI_WEB_PORT=8080 cunzhi     # Web模式，端口8080"""


def format_version() -> str:
    return f"{APP_NAME} v{__version__}"


class RequestRoute(str, Enum):
    """自动请求的处理路径"""

    HEADLESS = "headless"
    UI = "ui"


def resolve_automated_request(
    load_config: Callable[[], TelegramConfig] = load_telegram_config,
) -> tuple[RequestRoute, TelegramConfig | None]:
    """
    决定自动请求走纯 Telegram 路径还是界面路径

    Returns:
        (路径, 已加载的 Telegram 配置；加载失败时为 None)
    """
    try:
        config = load_config()
    except ConfigError as e:
        logging.warning(f"加载Telegram配置失败: {e}，使用默认GUI模式")
        return RequestRoute.UI, None

    if config.enabled and config.hide_frontend_popup:
        return RequestRoute.HEADLESS, config
    return RequestRoute.UI, config


class ModeRunner:
    """执行单个运行模式"""

    def __init__(
        self,
        desktop_runner: Callable[[str | None], int] = run_desktop_ui,
        server_runner: Callable[[int], None] = run_control_server,
        headless_handler=handle_telegram_only_request,
        telegram_config_loader: Callable[[], TelegramConfig] = load_telegram_config,
        out: TextIO | None = None,
    ):
        self.desktop_runner = desktop_runner
        self.server_runner = server_runner
        self.headless_handler = headless_handler
        self.telegram_config_loader = telegram_config_loader
        self.out = out

    def _print(self, text: str) -> None:
        print(text, file=self.out or sys.stdout, flush=True)

    def run(self, mode: OperatingMode) -> int:
        if isinstance(mode, HelpMode):
            self._print(HELP_TEXT)
            return 0
        if isinstance(mode, VersionMode):
            self._print(format_version())
            return 0
        if isinstance(mode, DesktopMode):
            return self.desktop_runner(None)
        if isinstance(mode, ServerMode):
            return self.run_server(mode.port)
        if isinstance(mode, AutomatedRequestMode):
            return self.run_automated_request(mode.request_file)
        raise TypeError(f"未知的运行模式: {mode!r}")

    def run_server(self, port: int) -> int:
        logging.info(f"启动Web服务器模式，端口: {port}")
        try:
            self.server_runner(port)
        except OSError as e:
            logging.error(f"Web服务器启动失败: {e}")
            return 1
        return 0

    def run_automated_request(self, request_file: str) -> int:
        route, config = resolve_automated_request(self.telegram_config_loader)
        if route is RequestRoute.UI:
            return self.desktop_runner(request_file)

        try:
            response = asyncio.run(self.headless_handler(request_file, config))
        except CunzhiError as e:
            logging.error(f"处理Telegram请求失败: {e}")
            return 1

        self._print(response.model_dump_json())
        return 0
