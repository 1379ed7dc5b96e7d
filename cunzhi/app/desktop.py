"""
桌面界面

桌面模式在 127.0.0.1 的随机端口上启动控制服务器 (交互式决策提供者)，
端口就绪后用系统浏览器打开界面。

带请求文件启动时 (自动请求的界面路径)：
    1. 读取请求文件并登记为挂起的弹窗
    2. 界面通过 GET /api/mcp/pending 取得请求，通过 POST /api/mcp/response 提交
    3. 收到响应后把 JSON 写到 stdout，关闭服务器，退出码 0
    4. 服务器先于响应退出 (如 Ctrl+C) 时退出码 1
"""

import asyncio
import logging
import socket
from pathlib import Path

import uvicorn

from ..config import ConfigStore
from ..control.server import create_control_app
from ..mcp import InteractiveDecisionProvider, PopupRequest, load_popup_request
from ..models.errors import McpRequestError


DESKTOP_HOST = "127.0.0.1"


def _find_free_port(host: str = DESKTOP_HOST) -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((host, 0))
        return sock.getsockname()[1]


async def serve_desktop(
    request: PopupRequest | None = None,
    config_path: str | Path | None = None,
    open_browser: bool = True,
    port: int | None = None,
) -> int:
    """运行桌面界面服务器，返回进程退出码"""
    provider = InteractiveDecisionProvider()
    store = ConfigStore.load(config_path)
    port = port or _find_free_port()

    app = create_control_app(store, provider, mode="desktop")
    app.state.open_browser = open_browser
    app.state.port = port

    server = uvicorn.Server(
        uvicorn.Config(
            app, host=DESKTOP_HOST, port=port, log_level="warning", access_log=False
        )
    )
    logging.info(f"桌面界面地址: http://{DESKTOP_HOST}:{port}")
    serve_task = asyncio.create_task(server.serve())

    if request is None:
        await serve_task
        return 0

    decision_task = asyncio.create_task(provider.decide(request))
    done, _ = await asyncio.wait(
        {serve_task, decision_task}, return_when=asyncio.FIRST_COMPLETED
    )
    if decision_task in done:
        print(decision_task.result().model_dump_json(), flush=True)
        server.should_exit = True
        await serve_task
        return 0

    decision_task.cancel()
    logging.warning(f"界面已关闭，弹窗请求未得到响应: {request.id}")
    return 1


def run_desktop_ui(
    request_file: str | None = None,
    config_path: str | Path | None = None,
) -> int:
    """
    启动桌面界面 (阻塞直到退出)

    Args:
        request_file: 自动请求的弹窗请求文件，None 表示普通桌面模式
        config_path: 配置文件路径，默认使用平台配置目录

    Returns:
        int: 进程退出码
    """
    request = None
    if request_file is not None:
        try:
            request = load_popup_request(request_file)
        except McpRequestError as e:
            logging.error(f"无法读取弹窗请求: {e}")
            return 1

    return asyncio.run(serve_desktop(request, config_path))
