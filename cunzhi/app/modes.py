"""
运行模式选择

进程启动时根据命令行参数与环境变量选出唯一的运行模式，之后不再重新计算。
选出的模式作为显式的值传给 ModeRunner，而不是保存在全局状态中。

选择顺序 (先匹配先生效):
    1. 环境变量 CUNZHI_MODE (不区分大小写)
         desktop → 继续按命令行参数选择
         web     → ServerMode(port)，端口取 CUNZHI_WEB_PORT，缺失或非法时为 3000
         其他值  → UsageError
    2. 命令行参数 (不含程序名)
         无参数                          → DesktopMode
         --help / -h                     → HelpMode
         --version / -v                  → VersionMode
         --mcp-request <文件> [...]      → AutomatedRequestMode(文件)
         其他形态                        → UsageError (附帮助信息)
"""

from dataclasses import dataclass
from typing import Mapping, Sequence, Union

from ..models.errors import UsageError


MODE_ENV = "CUNZHI_MODE"
WEB_PORT_ENV = "CUNZHI_WEB_PORT"
DEFAULT_WEB_PORT = 3000

HELP_FLAGS = ("--help", "-h")
VERSION_FLAGS = ("--version", "-v")
MCP_REQUEST_FLAG = "--mcp-request"


@dataclass(frozen=True)
class DesktopMode:
    pass


@dataclass(frozen=True)
class HelpMode:
    pass


@dataclass(frozen=True)
class VersionMode:
    pass


@dataclass(frozen=True)
class AutomatedRequestMode:
    request_file: str


@dataclass(frozen=True)
class ServerMode:
    port: int = DEFAULT_WEB_PORT


OperatingMode = Union[DesktopMode, HelpMode, VersionMode, AutomatedRequestMode, ServerMode]


def parse_web_port(value: str | None) -> int:
    """解析端口，缺失、非数字或超出 0-65535 时返回默认端口"""
    if value is None or not (value.isascii() and value.isdigit()):
        return DEFAULT_WEB_PORT
    port = int(value)
    if port > 65535:
        return DEFAULT_WEB_PORT
    return port


def select_mode(args: Sequence[str], environ: Mapping[str, str]) -> OperatingMode:
    """
    选择运行模式

    Args:
        args: 命令行参数 (不含程序名)
        environ: 进程环境变量

    Returns:
        OperatingMode: 唯一的运行模式

    Raises:
        UsageError: CUNZHI_MODE 取值无效，或命令行参数形态不合法
    """
    if MODE_ENV in environ:
        mode = environ[MODE_ENV]
        normalized = mode.lower()
        if normalized == "web":
            return ServerMode(parse_web_port(environ.get(WEB_PORT_ENV)))
        if normalized != "desktop":
            raise UsageError(f"无效的 {MODE_ENV} 值: {mode}，支持的值: desktop, web")

    if len(args) == 0:
        return DesktopMode()

    if len(args) == 1:
        if args[0] in HELP_FLAGS:
            return HelpMode()
        if args[0] in VERSION_FLAGS:
            return VersionMode()
        raise UsageError(f"未知参数: {args[0]}", show_help=True)

    if args[0] == MCP_REQUEST_FLAG:
        return AutomatedRequestMode(args[1])
    raise UsageError("无效的命令行参数", show_help=True)
