"""
配置管理模块

本模块提供寸止的配置模型与持久化功能，包括：
- AppConfig 配置聚合模型 (pydantic)
- 配置文件定位、加载与原子保存 (YAML)
- 日志系统初始化

配置文件结构:
    ┌─────────────────────────────────────────────────────────────────┐
    │                     config.yaml                                  │
    ├─────────────────────────────────────────────────────────────────┤
    │ ui_config:                                                       │
    │   theme: dark                    # 主题标识                      │
    │   always_on_top: true            # 窗口置顶                      │
    │                                                                  │
    │ audio_config:                                                    │
    │   notification_enabled: true     # 提示音开关                    │
    │   custom_url: ""                 # 自定义提示音 URL              │
    │                                                                  │
    │ telegram_config:                                                 │
    │   enabled: false                 # 启用 Telegram 通知            │
    │   bot_token: ""                  # Bot Token                     │
    │   chat_id: ""                    # 目标会话 ID                   │
    │   hide_frontend_popup: false     # 隐藏前端弹窗 (纯 Telegram 模式) │
    │   api_base_url: https://api.telegram.org                         │
    └─────────────────────────────────────────────────────────────────┘

配置文件位置 (优先级从高到低):
    1. 环境变量 CUNZHI_CONFIG_PATH
    2. Windows: %APPDATA%/cunzhi/config.yaml
    3. $XDG_CONFIG_HOME/cunzhi/config.yaml
    4. ~/.config/cunzhi/config.yaml

加载规则:
    - 文件不存在: 返回全默认配置 (不视为错误)
    - 读取失败 / YAML 错误 / 根节点非字典 / 字段校验失败: 抛出 ConfigError
    - 未知字段被忽略，便于新旧版本共存

保存规则:
    - 先备份旧文件到 {path}.bak (仅保留最近一份)
    - 写入临时文件后 os.replace，避免部分写入
    - 任何失败抛出 ConfigPersistError

使用示例:
    config = load_app_config()
    config.ui_config.theme = "light"
    save_app_config(config)
"""

import logging
import os
import shutil
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..models.errors import ConfigError, ConfigPersistError


CONFIG_PATH_ENV = "CUNZHI_CONFIG_PATH"
CONFIG_DIR_NAME = "cunzhi"
CONFIG_FILE_NAME = "config.yaml"
DEFAULT_TELEGRAM_API_BASE_URL = "https://api.telegram.org"


# ========== 配置模型 ==========


class UiConfig(BaseModel):
    """界面偏好"""

    model_config = ConfigDict(extra="ignore")

    theme: str = "dark"
    always_on_top: bool = True


class AudioConfig(BaseModel):
    """提示音偏好"""

    model_config = ConfigDict(extra="ignore")

    notification_enabled: bool = True
    custom_url: str = ""


class TelegramConfig(BaseModel):
    """
    Telegram 通知配置

    enabled 与 hide_frontend_popup 同时为 True 时，自动请求以纯 Telegram
    模式处理，不启动任何界面。
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    enabled: bool = False
    bot_token: str = ""
    chat_id: str = ""
    hide_frontend_popup: bool = False
    api_base_url: str = DEFAULT_TELEGRAM_API_BASE_URL


class AppConfig(BaseModel):
    """
    应用配置聚合

    各子配置相互独立，且每个字段都有默认值，保证配置缺失或损坏时不会阻塞启动。
    """

    model_config = ConfigDict(extra="ignore")

    ui_config: UiConfig = Field(default_factory=UiConfig)
    audio_config: AudioConfig = Field(default_factory=AudioConfig)
    telegram_config: TelegramConfig = Field(default_factory=TelegramConfig)


# ========== 路径解析 ==========


def get_config_path() -> Path:
    """获取配置文件路径 (环境变量覆盖 > 平台配置目录)"""
    override = os.environ.get(CONFIG_PATH_ENV, "").strip()
    if override:
        return Path(override).expanduser()

    if sys.platform == "win32" and os.environ.get("APPDATA"):
        base = Path(os.environ["APPDATA"])
    elif os.environ.get("XDG_CONFIG_HOME"):
        base = Path(os.environ["XDG_CONFIG_HOME"])
    else:
        base = Path.home() / ".config"
    return base / CONFIG_DIR_NAME / CONFIG_FILE_NAME


# ========== 加载 / 保存 ==========


def _read_raw_config(config_path: Path) -> dict[str, Any] | None:
    """读取并解析 YAML，文件不存在时返回 None"""
    if not config_path.exists():
        return None

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML 解析错误: {e}", details={"path": str(config_path)}) from e
    except OSError as e:
        raise ConfigError(f"读取配置文件失败: {e}", details={"path": str(config_path)}) from e

    if not isinstance(raw, dict):
        raise ConfigError(
            "配置文件格式错误: 根节点必须是字典", details={"path": str(config_path)}
        )
    return raw


def load_app_config(config_path: str | Path | None = None) -> AppConfig:
    """
    加载完整的应用配置

    Args:
        config_path: 配置文件路径，默认使用 get_config_path()

    Returns:
        AppConfig: 配置文件不存在时返回全默认配置

    Raises:
        ConfigError: 文件无法读取或内容不合法
    """
    config_path = Path(config_path) if config_path else get_config_path()
    raw = _read_raw_config(config_path)
    if raw is None:
        logging.info(f"配置文件 '{config_path}' 不存在，使用默认配置")
        return AppConfig()

    try:
        config = AppConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"配置字段校验失败: {e}", details={"path": str(config_path)}) from e

    logging.debug(f"配置文件 '{config_path}' 加载成功")
    return config


def load_telegram_config(config_path: str | Path | None = None) -> TelegramConfig:
    """
    仅加载 Telegram 子配置

    与 load_app_config 规则一致，但只校验 telegram_config 节点，
    其他节点损坏不影响自动请求的模式判定。

    Raises:
        ConfigError: 文件无法读取或 telegram_config 不合法
    """
    config_path = Path(config_path) if config_path else get_config_path()
    raw = _read_raw_config(config_path)
    if raw is None:
        return TelegramConfig()

    section = raw.get("telegram_config") or {}
    try:
        return TelegramConfig.model_validate(section)
    except ValidationError as e:
        raise ConfigError(
            f"Telegram 配置校验失败: {e}", details={"path": str(config_path)}
        ) from e


def save_app_config(config: AppConfig, config_path: str | Path | None = None) -> Path:
    """
    保存应用配置 (自动备份 + 原子写入)

    Args:
        config: 要保存的配置
        config_path: 配置文件路径，默认使用 get_config_path()

    Returns:
        Path: 实际写入的文件路径

    Raises:
        ConfigPersistError: 目录创建、备份、序列化或写入失败
    """
    config_path = Path(config_path) if config_path else get_config_path()
    tmp_path = config_path.with_name(config_path.name + ".tmp")

    try:
        content = yaml.safe_dump(
            config.model_dump(mode="json"),
            allow_unicode=True,
            sort_keys=False,
        )
        config_path.parent.mkdir(parents=True, exist_ok=True)

        if config_path.is_file():
            shutil.copy2(config_path, config_path.with_name(config_path.name + ".bak"))

        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, config_path)
    except (OSError, yaml.YAMLError) as e:
        if tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                pass
        raise ConfigPersistError(
            f"保存配置失败: {e}", details={"path": str(config_path)}
        ) from e

    return config_path


# ========== 日志 ==========


def init_logging(log_config: dict[str, Any] | None = None) -> None:
    """
    初始化日志系统

    控制台日志输出到 stderr：stdout 保留给帮助/版本信息以及自动请求的 JSON 响应。

    Args:
        log_config: 日志配置字典，包含以下可选键:
            - level: 日志级别 (debug/info/warning/error)
            - format: 日志格式 (text/json)
            - output: 输出目标 (console/file)
            - file_path: 日志文件路径 (当 output=file 时)
    """
    if log_config is None:
        log_config = {}

    level_str = str(log_config.get("level", "info")).upper()
    level = getattr(logging, level_str, logging.INFO)

    if log_config.get("format", "text") == "json":
        log_format = (
            '{"time": "%(asctime)s", "level": "%(levelname)s", '
            '"name": "%(name)s", "message": "%(message)s"}'
        )
    else:
        log_format = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"

    date_format = "%Y-%m-%d %H:%M:%S"
    output_type = log_config.get("output", "console")

    handlers: list[logging.Handler] = []

    if output_type == "file":
        file_path = log_config.get("file_path", "./logs/cunzhi.log")
        try:
            log_dir = os.path.dirname(file_path)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            handlers.append(logging.FileHandler(file_path, encoding="utf-8"))
        except OSError as e:
            print(f"创建日志文件失败: {e}，回退到控制台", file=sys.stderr)

    if not handlers:
        handlers.append(logging.StreamHandler(sys.stderr))

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=handlers,
        force=True,
    )

    # 降低第三方库的日志级别，减少干扰
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logging.debug(f"日志系统初始化完成 | 级别: {level_str}")

