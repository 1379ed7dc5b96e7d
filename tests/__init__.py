"""
寸止 测试套件

测试目录结构:
    tests/
    ├── __init__.py
    ├── conftest.py          # pytest fixtures
    ├── test_cli.py          # CLI 入口测试
    ├── test_modes.py        # 运行模式选择测试
    ├── test_runner.py       # 运行模式执行测试
    ├── test_config.py       # 配置加载/保存测试
    ├── test_store.py        # 共享配置存储测试
    ├── test_decision.py     # 弹窗决策提供者测试
    ├── test_desktop.py      # 桌面界面测试
    ├── test_telegram.py     # 纯 Telegram 模式测试
    ├── test_models.py       # 异常层次结构测试
    └── control/
        ├── test_server.py   # Control Server API 测试
        └── test_assets.py   # 内嵌静态资源测试
"""
