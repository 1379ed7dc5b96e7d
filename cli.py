#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
cunzhi CLI Entry Point

Usage:
    python cli.py                              # Desktop UI
    python cli.py --mcp-request request.json   # Handle an MCP popup request
    python cli.py --help                       # Show help
    python cli.py --version                    # Show version info
    CUNZHI_MODE=web python cli.py              # Web control server (port 3000)
    CUNZHI_LOG_FORMAT=json CUNZHI_LOG_FILE=cunzhi.log python cli.py   # JSON logs to a file

Exit codes:
    0 - success
    1 - usage error, headless request failure, or interrupted
"""

import os
import sys

# Fix Windows console encoding
if sys.platform == 'win32':
    try:
        sys.stdout.reconfigure(encoding='utf-8', errors='replace')
        sys.stderr.reconfigure(encoding='utf-8', errors='replace')
    except (AttributeError, OSError):
        pass

from cunzhi.app import HELP_TEXT, ModeRunner, select_mode
from cunzhi.config import init_logging
from cunzhi.models.errors import UsageError


def build_log_config(environ):
    """从环境变量构造 init_logging 的配置字典"""
    log_config = {
        "level": environ.get("CUNZHI_LOG_LEVEL", "info"),
        "format": environ.get("CUNZHI_LOG_FORMAT", "text").lower(),
    }
    log_file = environ.get("CUNZHI_LOG_FILE")
    if log_file:
        log_config["output"] = "file"
        log_config["file_path"] = log_file
    return log_config


def main(argv=None, environ=None, runner=None):
    argv = sys.argv[1:] if argv is None else argv
    environ = os.environ if environ is None else environ

    init_logging(build_log_config(environ))

    try:
        mode = select_mode(argv, environ)
    except UsageError as e:
        print(e.message, file=sys.stderr)
        if e.show_help:
            print(HELP_TEXT)
        return 1

    runner = runner or ModeRunner()
    try:
        return runner.run(mode)
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
