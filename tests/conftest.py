"""
pytest fixtures - 测试共享资源

Fixtures 是 pytest 的核心概念，用于:
1. 提供测试数据
2. 设置/清理测试环境
3. 在多个测试间共享资源
"""

import json
import sys
from pathlib import Path

import pytest

# 确保可以导入 cunzhi 包与根目录 cli.py
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


# ==================== 配置 Fixtures ====================


@pytest.fixture
def sample_config() -> dict:
    """提供示例配置字典 (所有字段均非默认值)"""
    return {
        "ui_config": {
            "theme": "light",
            "always_on_top": False,
        },
        "audio_config": {
            "notification_enabled": False,
            "custom_url": "https://example.com/ding.mp3",
        },
        "telegram_config": {
            "enabled": True,
            "bot_token": "123456:ABC",
            "chat_id": "987654",
            "hide_frontend_popup": True,
            "api_base_url": "https://tg.example.com",
        },
    }


@pytest.fixture
def config_path(tmp_path, monkeypatch) -> Path:
    """临时配置文件路径 (文件尚不存在)，同时设置 CUNZHI_CONFIG_PATH"""
    path = tmp_path / "cunzhi" / "config.yaml"
    monkeypatch.setenv("CUNZHI_CONFIG_PATH", str(path))
    return path


@pytest.fixture
def sample_config_file(sample_config, config_path) -> Path:
    """写入示例配置的临时配置文件"""
    import yaml

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(sample_config, f, allow_unicode=True)
    return config_path


# ==================== MCP Fixtures ====================


@pytest.fixture
def popup_request() -> dict:
    """示例弹窗请求"""
    return {
        "id": "req-001",
        "message": "是否继续重构？",
        "predefined_options": ["继续", "暂停"],
        "is_markdown": True,
    }


@pytest.fixture
def request_file(popup_request, tmp_path) -> Path:
    """写入示例弹窗请求的临时 JSON 文件"""
    path = tmp_path / "request.json"
    path.write_text(json.dumps(popup_request, ensure_ascii=False), encoding="utf-8")
    return path


# ==================== 资源 Fixtures ====================


@pytest.fixture
def asset_files() -> dict:
    """内存中的前端构建产物"""
    return {
        "index.html": b"<!doctype html><title>cunzhi</title>",
        "assets/app.js": b"console.log('cunzhi')",
        "assets/style.css": b"body{}",
        "favicon.ico": b"\x00\x00\x01\x00",
        "data/blob.unknownext": b"\x01\x02",
    }
