"""Structured logging setup.

TUI が端末を占有するため、既定ではログは stderr に WARNING 以上のみ、
--log-file 指定時はファイルへ JSON 1 行 1 イベントで出力する。
"""

from __future__ import annotations

import logging
from pathlib import Path

import structlog
from structlog import contextvars as structlog_contextvars


def configure_logging(level: str = "WARNING", log_file: str | Path | None = None) -> None:
    """Configure structlog for application-wide logging.

    標準 logging をメッセージのみのフォーマットで初期化し、structlog で
    ISO タイムスタンプ・ログレベル付きの JSON を出力する。
    """

    handler: logging.Handler
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        handlers=[handler],
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog_contextvars.merge_contextvars,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


logger = structlog.get_logger()
