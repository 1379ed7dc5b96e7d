"""
异常定义

本模块定义寸止的异常层次结构，对应控制面的错误分类与处理策略。

错误分类:
    ┌──────────────────┬─────────────────────────────────────────────────┐
    │ 异常              │ 处理策略                                        │
    ├──────────────────┼─────────────────────────────────────────────────┤
    │ UsageError       │ 命令行/环境变量用法错误，打印诊断后退出码 1       │
    │ ConfigError      │ 配置加载失败，记录 warning 并回退到默认配置       │
    │ ConfigPersistError│ 配置保存失败，向 HTTP 调用方返回 500，进程继续   │
    │ McpRequestError  │ 弹窗请求文件无法读取或格式错误                   │
    │ TelegramError    │ 纯 Telegram 模式处理失败，进程退出码 1           │
    └──────────────────┴─────────────────────────────────────────────────┘

异常层次结构:
    Exception
    └── CunzhiError (基础异常)
        ├── UsageError
        ├── ConfigError
        │   └── ConfigPersistError
        ├── McpRequestError
        └── TelegramError

使用示例:
    from cunzhi.models.errors import ConfigError

    try:
        config = load_app_config()
    except ConfigError as e:
        logging.warning(f"加载配置失败，使用默认配置: {e}")
"""

from typing import Any


class CunzhiError(Exception):
    """
    寸止基础异常类

    Attributes:
        message: 错误消息文本
        details: 附加的错误详情字典 (可选)
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | 详情: {self.details}"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


class UsageError(CunzhiError):
    """
    用法错误

    命令行参数形态不合法，或 CUNZHI_MODE 取值无效时抛出。
    这是模式选择中唯一不可恢复的路径。

    Attributes:
        show_help: 是否需要在诊断信息之后打印帮助文本
    """

    def __init__(
        self,
        message: str,
        show_help: bool = False,
        details: dict[str, Any] | None = None,
    ):
        self.show_help = show_help
        super().__init__(message, details)


class ConfigError(CunzhiError):
    """
    配置加载错误

    常见场景:
        - 配置文件无法读取
        - YAML 语法错误
        - 根节点不是字典
        - 字段类型不正确
    """

    pass


class ConfigPersistError(ConfigError):
    """配置保存失败 (写入临时文件、备份或替换失败)"""

    pass


class McpRequestError(CunzhiError):
    """弹窗请求文件不存在、无法读取或内容不合法"""

    pass


class TelegramError(CunzhiError):
    """
    Telegram 传输错误

    Attributes:
        error_code: Bot API 返回的 error_code (如适用)
    """

    def __init__(
        self,
        message: str,
        error_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.error_code = error_code
        super().__init__(message, details)
