"""
寸止 Control Server

Web 模式下的 HTTP 控制面，包括：
- 共享配置的读写 API (ConfigStore)
- MCP 弹窗桥接端点 (DecisionProvider)
- 内嵌前端资源与 SPA fallback (AssetBundle)

架构:
    CUNZHI_MODE=web cunzhi
           │
           ▼
    ┌─────────────────────────────────┐
    │  Control Server (FastAPI)       │
    │  0.0.0.0:3000                   │
    │                                 │
    │  ┌─────────────┐ ┌────────────┐ │
    │  │ ConfigStore │ │ Decision   │ │
    │  │             │ │ Provider   │ │
    │  └─────────────┘ └────────────┘ │
    │    fallback: AssetBundle (SPA)  │
    └─────────────────────────────────┘
"""

from .server import create_control_app, run_control_server

__all__ = ["create_control_app", "run_control_server"]
