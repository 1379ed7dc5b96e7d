"""
Control Server 主模块

Web 模式下对外提供的 HTTP 控制面：配置读写 API、MCP 弹窗桥接端点，
以及内嵌前端资源 (SPA fallback)。

API 路由:
    GET  /api/app/info               应用信息 {name, version, mode}
    GET  /api/app/version            版本 {version}
    GET  /api/config                 完整配置
    POST /api/config                 整体替换配置 {config}
    GET  /api/theme                  主题 {theme}
    POST /api/theme                  设置主题 {theme}
    GET  /api/window/always-on-top   窗口置顶 {always_on_top}
    POST /api/window/always-on-top   设置窗口置顶 (无真实窗口，仅记录)
    GET  /api/audio/enabled          提示音开关 {enabled}
    POST /api/audio/enabled          设置提示音开关
    GET  /api/audio/url              提示音 URL {url}
    POST /api/audio/url              设置提示音 URL
    POST /api/mcp/popup              弹窗请求 → 决策提供者给出的响应
    POST /api/mcp/response           提交弹窗响应
    GET  /api/mcp/pending            挂起中的弹窗请求
    GET  /api/telegram/config        Telegram 配置
    POST /api/telegram/config        设置 Telegram 配置 {config}
    GET  /{path}                     内嵌静态资源 / SPA fallback

错误处理:
    - 配置落盘失败 (ConfigPersistError) → 500 {"success": false, "error": ...}
    - 请求体校验失败 → 422 (FastAPI 默认)
    - 其他写接口成功 → 200 {"success": true}

跨域:
    允许任意来源 (本地/可信网络使用)

端口:
    - Web 模式: CUNZHI_WEB_PORT (默认 3000)，监听 0.0.0.0
    - 桌面模式: 127.0.0.1 随机端口 (见 cunzhi.app.desktop)
"""

import asyncio
import logging
import webbrowser
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator

import uvicorn
from fastapi import Body, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .. import APP_NAME, __version__
from ..config import AppConfig, ConfigStore, TelegramConfig
from ..mcp import DecisionProvider, FixedDecisionProvider, PopupRequest
from ..models.errors import ConfigPersistError
from .assets import AssetBundle, load_asset_bundle


# ========== Pydantic Models ==========


class UpdateConfigRequest(BaseModel):
    config: AppConfig


class SetThemeRequest(BaseModel):
    theme: str


class SetAlwaysOnTopRequest(BaseModel):
    always_on_top: bool


class SetAudioEnabledRequest(BaseModel):
    enabled: bool


class SetAudioUrlRequest(BaseModel):
    url: str


class SetTelegramConfigRequest(BaseModel):
    config: TelegramConfig


SUCCESS = {"success": True}


async def _open_browser_when_ready(
    url: str,
    host: str,
    port: int,
    timeout_seconds: float = 5.0,
    interval_seconds: float = 0.2,
) -> None:
    """
    等待服务端口可连接后再打开浏览器，减少 Connection Refused 的概率。
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_seconds
    while True:
        try:
            _reader, writer = await asyncio.open_connection(host, port)
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass
            break
        except OSError:
            if loop.time() >= deadline:
                break
            await asyncio.sleep(interval_seconds)

    await asyncio.to_thread(webbrowser.open, url)


# ========== Lifespan ==========


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理 (桌面模式下打开浏览器)"""
    app_state = app.state
    browser_task = None
    if getattr(app_state, "open_browser", False):
        port = getattr(app_state, "port", 3000)
        browser_url = f"http://127.0.0.1:{port}"
        logging.info(f"Opening browser: {browser_url}")
        browser_task = asyncio.create_task(
            _open_browser_when_ready(url=browser_url, host="127.0.0.1", port=port)
        )
        browser_task.add_done_callback(
            lambda t: t.exception() if t.done() and not t.cancelled() else None
        )

    yield

    if browser_task and not browser_task.done():
        browser_task.cancel()


# ========== FastAPI App ==========


def create_control_app(
    store: ConfigStore,
    decision_provider: DecisionProvider | None = None,
    assets: AssetBundle | None = None,
    mode: str = "web",
) -> FastAPI:
    """
    创建控制面 FastAPI 应用

    Args:
        store: 共享配置存储
        decision_provider: 弹窗决策提供者，默认 FixedDecisionProvider (Web 模式)
        assets: 内嵌前端资源，默认从构建产物目录加载
        mode: 运行模式名称 ("web" / "desktop")，体现在 /api/app/info
    """
    if decision_provider is None:
        decision_provider = FixedDecisionProvider()
    if assets is None:
        assets = load_asset_bundle()

    app = FastAPI(
        title=f"{APP_NAME} Control Server",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.decision_provider = decision_provider
    app.state.mode = mode

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ConfigPersistError)
    async def handle_persist_error(request: Request, exc: ConfigPersistError):
        logging.error(f"保存配置失败 ({request.url.path}): {exc}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": exc.message},
        )

    # ========== App API ==========

    @app.get("/api/app/info")
    async def api_app_info():
        return {"name": APP_NAME, "version": __version__, "mode": mode}

    @app.get("/api/app/version")
    async def api_app_version():
        return {"version": __version__}

    # ========== Config API ==========

    @app.get("/api/config")
    async def api_get_config():
        config = await store.read()
        return config.model_dump(mode="json")

    @app.post("/api/config")
    async def api_update_config(request: UpdateConfigRequest):
        await store.replace(request.config)
        return SUCCESS

    @app.get("/api/theme")
    async def api_get_theme():
        return {"theme": await store.get_theme()}

    @app.post("/api/theme")
    async def api_set_theme(request: SetThemeRequest):
        await store.set_theme(request.theme)
        return SUCCESS

    @app.get("/api/window/always-on-top")
    async def api_get_always_on_top():
        return {"always_on_top": await store.get_always_on_top()}

    @app.post("/api/window/always-on-top")
    async def api_set_always_on_top(request: SetAlwaysOnTopRequest):
        # 服务器模式下没有窗口可置顶，只记录配置
        await store.set_always_on_top(request.always_on_top)
        return SUCCESS

    @app.get("/api/audio/enabled")
    async def api_get_audio_enabled():
        return {"enabled": await store.get_audio_enabled()}

    @app.post("/api/audio/enabled")
    async def api_set_audio_enabled(request: SetAudioEnabledRequest):
        await store.set_audio_enabled(request.enabled)
        return SUCCESS

    @app.get("/api/audio/url")
    async def api_get_audio_url():
        return {"url": await store.get_audio_url()}

    @app.post("/api/audio/url")
    async def api_set_audio_url(request: SetAudioUrlRequest):
        await store.set_audio_url(request.url)
        return SUCCESS

    # ========== MCP Bridge ==========

    @app.post("/api/mcp/popup")
    async def api_mcp_popup(request: PopupRequest):
        response = await decision_provider.decide(request)
        return response.model_dump(mode="json")

    @app.post("/api/mcp/response")
    async def api_mcp_response(payload: Any = Body(...)):
        await decision_provider.submit(payload)
        return SUCCESS

    @app.get("/api/mcp/pending")
    async def api_mcp_pending():
        return {
            "requests": [r.model_dump(mode="json") for r in decision_provider.pending()]
        }

    # ========== Telegram API ==========

    @app.get("/api/telegram/config")
    async def api_get_telegram_config():
        config = await store.get_telegram_config()
        return config.model_dump(mode="json")

    @app.post("/api/telegram/config")
    async def api_set_telegram_config(request: SetTelegramConfigRequest):
        await store.set_telegram_config(request.config)
        return SUCCESS

    # ========== Static Files ==========

    @app.api_route("/{path:path}", methods=["GET", "HEAD"], include_in_schema=False)
    async def serve_static(path: str):
        """服务内嵌静态文件或 SPA fallback"""
        return assets.resolve(path)

    return app


def run_control_server(
    port: int = 3000,
    host: str = "0.0.0.0",
    config_path: str | Path | None = None,
) -> None:
    """
    启动 Web 模式控制服务器 (阻塞直到退出)

    Args:
        port: 监听端口
        host: 监听地址 (默认 0.0.0.0，允许局域网访问)
        config_path: 配置文件路径，默认使用平台配置目录

    Raises:
        OSError: 端口无法监听，服务器未能启动
    """
    store = ConfigStore.load(config_path)
    app = create_control_app(store, FixedDecisionProvider(), mode="web")

    logging.info("🌐 Web服务器启动中...")
    logging.info(f"📍 访问地址: http://localhost:{port}")
    logging.info(f"📍 局域网访问: http://{host}:{port}")
    logging.info("🛑 按 Ctrl+C 停止服务器")

    server = uvicorn.Server(
        uvicorn.Config(app, host=host, port=port, log_level="warning", access_log=False)
    )
    try:
        server.run()
    except SystemExit as e:
        # uvicorn 在端口无法监听时直接 sys.exit
        raise OSError(f"无法监听 {host}:{port}") from e
    if not server.started:
        raise OSError(f"无法监听 {host}:{port}")
