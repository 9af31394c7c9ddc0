"""gitover 日志配置

诊断信息（origin 变更、版本变化、重复跟踪等）一律走 logging 写到 stderr，
stdout 只留给命令结果，便于管道处理。

级别与格式可由环境变量控制:
    GITOVER_LOG_LEVEL=DEBUG     默认 WARNING
    GITOVER_LOG_JSON=1          每条日志一行 JSON，适合 CI 收集
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import IO

LEVEL_ENV = "GITOVER_LOG_LEVEL"
JSON_ENV = "GITOVER_LOG_JSON"

TEXT_FORMAT = "%(levelname)s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """一行一条的 JSON 日志

    批量克隆时各仓库在不同线程中执行，记录中带上线程名；
    调用方通过 extra={"repo": name} 传入的仓库名单独成字段。
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        repo = getattr(record, "repo", None)
        if repo:
            entry["repo"] = repo
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def level_from_verbosity(verbose: int) -> str:
    """-v 一次降到 INFO，两次及以上降到 DEBUG"""
    if verbose >= 2:
        return "DEBUG"
    if verbose == 1:
        return "INFO"
    return os.getenv(LEVEL_ENV, "WARNING")


def setup_logging(
    level: str = "WARNING",
    json_output: bool | None = None,
    stream: IO[str] | None = None,
) -> None:
    """重新配置根日志器

    json_output 为 None 时由 GITOVER_LOG_JSON 决定；无法识别的级别按 WARNING 处理。
    """
    reset_logging()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))

    if json_output is None:
        json_output = os.getenv(JSON_ENV, "") == "1"
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)


def reset_logging() -> None:
    """移除根日志器上的全部 handler"""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
