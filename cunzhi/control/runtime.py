"""
运行时环境工具

用于区分源码运行 vs. 打包运行（PyInstaller / Nuitka），并查找前端构建产物。

函数清单:
    is_packaged() -> bool
        检测当前是否运行在打包环境 (PyInstaller / Nuitka)

    get_package_root() -> Path
        cunzhi 包目录 (control/* -> cunzhi)

    get_embedded_root() -> Optional[Path]
        获取打包环境下的资源根目录

    find_web_dist_dir() -> Optional[Path]
        查找前端构建产物目录
        环境变量覆盖: CUNZHI_WEB_DIST
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional


WEB_DIST_ENV = "CUNZHI_WEB_DIST"


def is_packaged() -> bool:
    """
    是否处于打包后的可执行文件环境。

    - PyInstaller: sys.frozen == True 且通常存在 sys._MEIPASS
    - Nuitka: 通常也会设置 sys.frozen（兼容 PyInstaller 行为）
    """
    return bool(getattr(sys, "frozen", False)) or bool(getattr(sys, "_MEIPASS", None))


def get_package_root() -> Path:
    """cunzhi 包目录 (cunzhi/control/* -> cunzhi)"""
    return Path(__file__).resolve().parents[1]


def get_embedded_root() -> Optional[Path]:
    """
    获取打包环境下的资源根目录。

    - PyInstaller onefile: sys._MEIPASS
    - 其他打包场景：可执行文件所在目录
    """
    meipass = getattr(sys, "_MEIPASS", None)
    if meipass:
        return Path(meipass).resolve()
    if not is_packaged():
        return None

    try:
        return Path(sys.executable).resolve().parent
    except OSError:
        return None


def find_web_dist_dir() -> Optional[Path]:
    """
    查找前端构建产物目录（优先顺序）：
      1) 环境变量 CUNZHI_WEB_DIST
      2) 包内 cunzhi/web/dist（随包分发）
      3) 源码仓库根目录下的 dist（前端本地构建）
      4) 打包资源目录中的 cunzhi/web/dist
    """
    candidates: list[Path] = []

    override = os.environ.get(WEB_DIST_ENV, "").strip()
    if override:
        candidates.append(Path(override).expanduser())

    package_root = get_package_root()
    candidates.append(package_root / "web" / "dist")
    candidates.append(package_root.parent / "dist")

    embedded_root = get_embedded_root()
    if embedded_root:
        candidates.append(embedded_root / "cunzhi" / "web" / "dist")

    for path in candidates:
        if path.is_dir():
            return path
    return None
