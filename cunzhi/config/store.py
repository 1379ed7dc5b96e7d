"""
共享配置存储

ConfigStore 持有进程内唯一的 AppConfig，所有读写都经过同一把 asyncio.Lock，
因此任何请求都不会观察到或写出"半更新"的配置。

并发模型:
    ┌──────────────┐   async with lock   ┌───────────────────────────┐
    │ HTTP handler │ ──────────────────▶ │ AppConfig (内存)           │
    └──────────────┘                     │   │                       │
                                         │   ▼ asyncio.to_thread     │
                                         │ save_app_config (磁盘)     │
                                         └───────────────────────────┘

    - 读写共用一把互斥锁 (非读写锁)，写入频率低、请求量小
    - 持久化在持锁期间完成，所有落盘文件按写入顺序全序排列
    - 落盘在线程中执行并被 shield 保护：调用方任务被取消时已开始的写入会继续完成
    - 每次落盘带递增序号，被取消的写入线程乱序执行时，旧快照不会覆盖新快照
    - 持久化失败不回滚内存值，内存与磁盘可能短暂不一致，直到下一次成功写入

方法清单:
    load(config_path) -> ConfigStore          加载配置，失败时使用默认配置
    read() -> AppConfig                       [async] 返回配置快照 (深拷贝)
    replace(config)                           [async] 整体替换并落盘
    mutate(setter, persist=True)              [async] 原地修改并落盘
    get_theme / set_theme                     主题
    get_always_on_top / set_always_on_top     窗口置顶 (仅内存)
    get_audio_enabled / set_audio_enabled     提示音开关
    get_audio_url / set_audio_url             自定义提示音 URL
    get_telegram_config / set_telegram_config Telegram 配置
"""

import asyncio
import logging
import threading
from pathlib import Path
from typing import Callable

from ..models.errors import ConfigError
from .settings import AppConfig, TelegramConfig, load_app_config, save_app_config


class ConfigStore:
    """互斥访问的共享配置"""

    def __init__(
        self,
        config: AppConfig | None = None,
        config_path: str | Path | None = None,
        saver: Callable[[AppConfig, str | Path | None], Path] = save_app_config,
    ):
        self._config = config.model_copy(deep=True) if config else AppConfig()
        self._config_path = config_path
        self._saver = saver
        self._lock = asyncio.Lock()
        self._write_lock = threading.Lock()
        self._write_seq = 0
        self._written_seq = 0

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> "ConfigStore":
        """从持久化存储加载配置，加载失败时记录警告并使用默认配置"""
        try:
            config = load_app_config(config_path)
        except ConfigError as e:
            logging.warning(f"加载配置失败，使用默认配置: {e}")
            config = AppConfig()
        return cls(config, config_path=config_path)

    # ========== 基础操作 ==========

    async def read(self) -> AppConfig:
        async with self._lock:
            return self._config.model_copy(deep=True)

    async def replace(self, config: AppConfig) -> None:
        async with self._lock:
            self._config = config.model_copy(deep=True)
            await self._persist_locked()

    async def mutate(
        self, setter: Callable[[AppConfig], None], persist: bool = True
    ) -> None:
        """
        在锁内原地修改配置

        Args:
            setter: 接收当前 AppConfig 并就地修改的函数
            persist: 修改后是否立即落盘

        Raises:
            ConfigPersistError: 落盘失败 (内存中的修改保留)
        """
        async with self._lock:
            setter(self._config)
            if persist:
                await self._persist_locked()

    async def _persist_locked(self) -> None:
        self._write_seq += 1
        snapshot = self._config.model_copy(deep=True)
        await asyncio.shield(asyncio.to_thread(self._write, snapshot, self._write_seq))

    def _write(self, snapshot: AppConfig, seq: int) -> None:
        with self._write_lock:
            # 已有更新的快照落盘时跳过旧快照
            if seq <= self._written_seq:
                logging.debug(f"跳过过期的配置快照: #{seq} <= #{self._written_seq}")
                return
            self._saver(snapshot, self._config_path)
            self._written_seq = seq

    # ========== 字段访问 ==========

    async def get_theme(self) -> str:
        return (await self.read()).ui_config.theme

    async def set_theme(self, theme: str) -> None:
        def setter(config: AppConfig) -> None:
            config.ui_config.theme = theme

        await self.mutate(setter)

    async def get_always_on_top(self) -> bool:
        return (await self.read()).ui_config.always_on_top

    async def set_always_on_top(self, always_on_top: bool) -> None:
        # Web 模式下没有真实窗口，只记录到内存
        def setter(config: AppConfig) -> None:
            config.ui_config.always_on_top = always_on_top

        await self.mutate(setter, persist=False)

    async def get_audio_enabled(self) -> bool:
        return (await self.read()).audio_config.notification_enabled

    async def set_audio_enabled(self, enabled: bool) -> None:
        def setter(config: AppConfig) -> None:
            config.audio_config.notification_enabled = enabled

        await self.mutate(setter)

    async def get_audio_url(self) -> str:
        return (await self.read()).audio_config.custom_url

    async def set_audio_url(self, url: str) -> None:
        def setter(config: AppConfig) -> None:
            config.audio_config.custom_url = url

        await self.mutate(setter)

    async def get_telegram_config(self) -> TelegramConfig:
        return (await self.read()).telegram_config

    async def set_telegram_config(self, telegram_config: TelegramConfig) -> None:
        def setter(config: AppConfig) -> None:
            config.telegram_config = telegram_config.model_copy(deep=True)

        await self.mutate(setter)
