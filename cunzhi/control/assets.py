"""
内嵌静态资源

前端构建产物在服务器构造时一次性读入内存，之后视为只读：请求期间不做任何磁盘 I/O。

解析规则 (resolve):
    1. 去掉路径开头的 "/"；空路径或 "index.html" 视为根文档
    2. 命中资源 → 200 + 按扩展名推断的 Content-Type (未知时 application/octet-stream)
    3. 未命中 → 返回根文档 (Content-Type 固定为 text/html)，交给前端路由处理 (SPA fallback)
    4. 根文档也不存在 (打包错误) → 404 纯文本
"""

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from fastapi.responses import PlainTextResponse, Response

from .runtime import find_web_dist_dir


ROOT_DOCUMENT = "index.html"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class AssetEntry:
    content: bytes
    content_type: str


def guess_content_type(path: str) -> str:
    content_type, _ = mimetypes.guess_type(path)
    return content_type or DEFAULT_CONTENT_TYPE


class AssetBundle:
    """路径 -> 资源 的只读映射"""

    def __init__(self, files: Mapping[str, bytes] | None = None):
        entries = {
            path.lstrip("/"): AssetEntry(bytes(content), guess_content_type(path))
            for path, content in (files or {}).items()
        }
        self._entries = MappingProxyType(entries)

    @classmethod
    def from_directory(cls, directory: str | Path) -> "AssetBundle":
        """读取目录下全部文件 (键为相对路径，使用 / 分隔)"""
        directory = Path(directory)
        files = {
            path.relative_to(directory).as_posix(): path.read_bytes()
            for path in sorted(directory.rglob("*"))
            if path.is_file()
        }
        return cls(files)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: str) -> bool:
        return path in self._entries

    def get(self, path: str) -> AssetEntry | None:
        return self._entries.get(path)

    def resolve(self, request_path: str) -> Response:
        """按请求路径返回资源响应，未命中时回退到根文档"""
        path = request_path.lstrip("/")
        if not path or path == ROOT_DOCUMENT:
            path = ROOT_DOCUMENT

        entry = self._entries.get(path)
        if entry is not None:
            return Response(content=entry.content, media_type=entry.content_type)

        index = self._entries.get(ROOT_DOCUMENT)
        if index is not None:
            return Response(content=index.content, media_type="text/html")

        return PlainTextResponse("404 Not Found", status_code=404)


def load_asset_bundle() -> AssetBundle:
    """加载前端构建产物，找不到时返回空资源集 (所有页面请求返回 404)"""
    dist_dir = find_web_dist_dir()
    if dist_dir is None:
        logging.warning("未找到前端构建产物，页面请求将返回 404")
        return AssetBundle()

    bundle = AssetBundle.from_directory(dist_dir)
    if ROOT_DOCUMENT not in bundle:
        logging.warning(f"前端构建产物缺少 {ROOT_DOCUMENT}: {dist_dir}")
    logging.debug(f"已加载 {len(bundle)} 个前端资源: {dist_dir}")
    return bundle
