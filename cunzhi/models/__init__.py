"""
异常定义模块

异常层次结构:
    Exception
    └── CunzhiError (基础异常)
        ├── UsageError (用法错误)
        ├── ConfigError (配置加载错误)
        │   └── ConfigPersistError (配置保存错误)
        ├── McpRequestError (弹窗请求错误)
        └── TelegramError (Telegram 传输错误)
"""

from .errors import (
    CunzhiError,
    UsageError,
    ConfigError,
    ConfigPersistError,
    McpRequestError,
    TelegramError,
)

__all__ = [
    "CunzhiError",
    "UsageError",
    "ConfigError",
    "ConfigPersistError",
    "McpRequestError",
    "TelegramError",
]
