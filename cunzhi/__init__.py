"""
寸止 (cunzhi)

代码审查工具的本地控制面：进程启动时选择运行模式（桌面界面 / 自动请求处理 /
Web 控制服务器），在 Web 模式下通过 REST + 静态资源对外暴露共享的持久化配置。

子包:
    - app: 运行模式选择与执行
    - config: 配置模型、持久化与共享配置存储
    - control: Web 控制服务器 (FastAPI) 与内嵌前端资源
    - mcp: 弹窗请求/响应协议与决策提供者
    - telegram: 纯 Telegram 模式下的无界面请求处理
    - models: 异常定义
"""

APP_NAME = "寸止"
__version__ = "0.4.0"

__all__ = ["APP_NAME", "__version__"]
