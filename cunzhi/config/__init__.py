"""
配置管理模块

导出清单:
    模型:
        AppConfig / UiConfig / AudioConfig / TelegramConfig
    函数 (来自 settings.py):
        get_config_path() -> Path
        load_app_config(config_path) -> AppConfig
        load_telegram_config(config_path) -> TelegramConfig
        save_app_config(config, config_path) -> Path
        init_logging(log_config) -> None
    类 (来自 store.py):
        ConfigStore: 互斥访问的共享配置，修改后立即落盘

使用示例:
    from cunzhi.config import ConfigStore, init_logging

    init_logging({"level": "info"})
    store = ConfigStore.load()
    await store.set_theme("light")
"""

from .settings import (
    AppConfig,
    UiConfig,
    AudioConfig,
    TelegramConfig,
    get_config_path,
    load_app_config,
    load_telegram_config,
    save_app_config,
    init_logging,
)
from .store import ConfigStore

__all__ = [
    "AppConfig",
    "UiConfig",
    "AudioConfig",
    "TelegramConfig",
    "get_config_path",
    "load_app_config",
    "load_telegram_config",
    "save_app_config",
    "init_logging",
    "ConfigStore",
]
