"""cargo-localize 日志配置

提供统一的日志配置，支持普通文本和结构化 JSON 两种输出格式。
JSON 格式附带 package/version 等上下文字段，便于 CI 流水线按包过滤。
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

# 通过 logger.info(..., extra={...}) 传入、需要写进 JSON 的上下文字段
CONTEXT_FIELDS = ("package", "version", "path")


class JSONFormatter(logging.Formatter):
    """结构化 JSON 日志格式器

    输出格式:
        {
            "timestamp": "2024-01-01T12:00:00+00:00",
            "level": "INFO",
            "logger": "cargo_localize.core.dep.copier",
            "message": "已复制: rand-0.8.5",
            "module": "copier",
            "function": "copy_one",
            "line": 42,
            "package": "rand" (仅在 extra 中提供时),
            "exception": "traceback..." (仅在有异常时)
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            # 使用 record.created，记录事件发生时间而非格式化时间
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = str(value)
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


# 文本格式，DEBUG 级别附带 logger 名与行号
TEXT_FORMAT = "%(asctime)s [%(levelname)-7s] %(message)s"
DEBUG_TEXT_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)s:%(lineno)d: %(message)s"


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """配置根日志器，输出到 stderr（stdout 只留给命令结果）

    level 不可识别时回落到 INFO；重复调用会先清掉旧 handler。
    """
    reset_logging()
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        numeric = logging.INFO
    root = logging.getLogger()
    root.setLevel(numeric)

    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        fmt = DEBUG_TEXT_FORMAT if numeric <= logging.DEBUG else TEXT_FORMAT
        handler.setFormatter(logging.Formatter(fmt))
    root.addHandler(handler)


def reset_logging() -> None:
    """移除根日志器上的全部 handler"""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
