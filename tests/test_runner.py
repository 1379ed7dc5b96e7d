"""
运行模式执行测试

被测模块: cunzhi/app/runner.py

所有外部协作方 (桌面界面、Web 服务器、纯 Telegram 处理、配置加载) 均以假实现注入。
"""

import io
import json
import logging
import socket

import pytest

from cunzhi import __version__
from cunzhi.app.modes import (
    AutomatedRequestMode,
    DesktopMode,
    HelpMode,
    ServerMode,
    VersionMode,
)
from cunzhi.app.runner import (
    HELP_TEXT,
    ModeRunner,
    RequestRoute,
    format_version,
    resolve_automated_request,
)
from cunzhi.config import TelegramConfig
from cunzhi.mcp import build_send_response
from cunzhi.models.errors import ConfigError, TelegramError


class FakeDesktop:
    def __init__(self, exit_code: int = 0):
        self.calls = []
        self.exit_code = exit_code

    def __call__(self, request_file):
        self.calls.append(request_file)
        return self.exit_code


class FakeServer:
    def __init__(self, error: Exception | None = None):
        self.ports = []
        self.error = error

    def __call__(self, port):
        self.ports.append(port)
        if self.error:
            raise self.error


class FakeHeadless:
    def __init__(self, error: Exception | None = None):
        self.calls = []
        self.error = error

    async def __call__(self, request_file, config):
        self.calls.append((request_file, config))
        if self.error:
            raise self.error
        return build_send_response("通过", ["继续"], request_id="req-001", source="telegram")


def loader_for(config: TelegramConfig | None = None, error: Exception | None = None):
    def load():
        if error:
            raise error
        return config
    return load


class TestResolveAutomatedRequest:
    """自动请求路径选择测试"""

    @pytest.mark.parametrize(
        "enabled,hide,expected",
        [
            (True, True, RequestRoute.HEADLESS),
            (True, False, RequestRoute.UI),
            (False, True, RequestRoute.UI),
            (False, False, RequestRoute.UI),
        ],
    )
    def test_routes(self, enabled, hide, expected):
        config = TelegramConfig(enabled=enabled, hide_frontend_popup=hide)
        route, loaded = resolve_automated_request(loader_for(config))
        assert route is expected
        assert loaded == config

    def test_load_failure_uses_ui(self):
        route, loaded = resolve_automated_request(loader_for(error=ConfigError("坏配置")))
        assert route is RequestRoute.UI
        assert loaded is None

    def test_reads_config_file(self, sample_config_file):
        """测试默认加载器读取配置文件 (示例配置为启用且隐藏弹窗)"""
        route, loaded = resolve_automated_request()
        assert route is RequestRoute.HEADLESS
        assert loaded.chat_id == "987654"


class TestModeRunner:
    """ModeRunner 测试"""

    @pytest.fixture
    def desktop(self):
        return FakeDesktop()

    @pytest.fixture
    def server(self):
        return FakeServer()

    @pytest.fixture
    def headless(self):
        return FakeHeadless()

    @pytest.fixture
    def out(self):
        return io.StringIO()

    def make_runner(self, desktop, server, headless, out, config=None, error=None):
        return ModeRunner(
            desktop_runner=desktop,
            server_runner=server,
            headless_handler=headless,
            telegram_config_loader=loader_for(config, error),
            out=out,
        )

    def test_help(self, desktop, server, headless, out):
        runner = self.make_runner(desktop, server, headless, out)
        assert runner.run(HelpMode()) == 0
        assert out.getvalue().strip() == HELP_TEXT
        assert "--mcp-request" in out.getvalue()
        assert "CUNZHI_WEB_PORT" in out.getvalue()
        assert desktop.calls == [] and server.ports == []

    def test_version(self, desktop, server, headless, out):
        runner = self.make_runner(desktop, server, headless, out)
        assert runner.run(VersionMode()) == 0
        assert out.getvalue().strip() == format_version()
        assert f"v{__version__}" in out.getvalue()

    def test_desktop(self, desktop, server, headless, out):
        runner = self.make_runner(desktop, server, headless, out)
        assert runner.run(DesktopMode()) == 0
        assert desktop.calls == [None]

    def test_desktop_exit_code_propagates(self, server, headless, out):
        runner = self.make_runner(FakeDesktop(exit_code=1), server, headless, out)
        assert runner.run(DesktopMode()) == 1

    def test_server(self, desktop, server, headless, out):
        runner = self.make_runner(desktop, server, headless, out)
        assert runner.run(ServerMode(8080)) == 0
        assert server.ports == [8080]
        assert desktop.calls == []

    def test_server_bind_failure(self, desktop, headless, out):
        server = FakeServer(error=OSError("address already in use"))
        runner = self.make_runner(desktop, server, headless, out)
        assert runner.run(ServerMode(3000)) == 1

    def test_automated_ui_route(self, desktop, server, headless, out):
        config = TelegramConfig(enabled=True, hide_frontend_popup=False)
        runner = self.make_runner(desktop, server, headless, out, config=config)

        assert runner.run(AutomatedRequestMode("req.json")) == 0
        assert desktop.calls == ["req.json"]
        assert headless.calls == []

    def test_automated_config_failure_uses_ui(self, desktop, server, headless, out):
        runner = self.make_runner(
            desktop, server, headless, out, error=ConfigError("无法读取")
        )
        assert runner.run(AutomatedRequestMode("req.json")) == 0
        assert desktop.calls == ["req.json"]
        assert headless.calls == []

    def test_automated_headless_route(self, desktop, server, headless, out):
        config = TelegramConfig(enabled=True, hide_frontend_popup=True, chat_id="1")
        runner = self.make_runner(desktop, server, headless, out, config=config)

        assert runner.run(AutomatedRequestMode("req.json")) == 0
        assert headless.calls == [("req.json", config)]
        assert desktop.calls == []

        response = json.loads(out.getvalue())
        assert response["user_input"] == "通过"
        assert response["selected_options"] == ["继续"]
        assert response["metadata"]["source"] == "telegram"

    def test_automated_headless_failure_no_fallback(self, desktop, server, out):
        """测试纯 Telegram 失败时返回 1 且不回退到界面"""
        headless = FakeHeadless(error=TelegramError("网络错误"))
        config = TelegramConfig(enabled=True, hide_frontend_popup=True)
        runner = self.make_runner(desktop, server, headless, out, config=config)

        assert runner.run(AutomatedRequestMode("req.json")) == 1
        assert desktop.calls == []
        assert out.getvalue() == ""

    def test_unknown_mode(self, desktop, server, headless, out):
        runner = self.make_runner(desktop, server, headless, out)
        with pytest.raises(TypeError):
            runner.run("desktop")


class TestRunServerPortInUse:
    """真实服务器端口被占用测试"""

    def test_port_in_use_returns_1(self, config_path, caplog):
        """测试端口被占用时记录 error 并返回 1，而不是由 uvicorn 直接退出进程"""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("0.0.0.0", 0))
            blocker.listen(1)
            port = blocker.getsockname()[1]

            with caplog.at_level(logging.ERROR):
                exit_code = ModeRunner().run_server(port)

        assert exit_code == 1
        assert "Web服务器启动失败" in caplog.text
