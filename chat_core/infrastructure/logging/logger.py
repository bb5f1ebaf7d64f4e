"""JSON 行日志。

每条记录写成一行 JSON（ts、level、name、msg，再合并调用方通过
``extra={"extra": {...}}`` 传入的字段），便于按 trace_id 检索一次请求的所有转移。
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from chat_core.config.settings import settings

LOGGER_NAME = "chat_core"
LOG_FILE = "chat.log"

# 开启 log_redact_content 后这些字段只保留长度
CONTENT_FIELDS = ("error", "message", "response")


class JsonFormatter(logging.Formatter):
    def __init__(self, redact: bool = False) -> None:
        super().__init__()
        self.redact = redact

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            for key, value in extra.items():
                if self.redact and key in CONTENT_FIELDS and isinstance(value, str):
                    value = f"<redacted {len(value)} chars>"
                payload[key] = value
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """创建（或复用）写入 ``<log_dir>/chat.log`` 的 JSON 日志器。"""

    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    if logger.handlers:
        return logger

    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(log_dir / LOG_FILE, encoding="utf-8")
    fh.setLevel(logging.INFO)
    fh.setFormatter(JsonFormatter(redact=settings.log_redact_content))
    logger.addHandler(fh)
    return logger


logger = setup_logger()
