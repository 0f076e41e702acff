# core/logging_utils.py
from __future__ import annotations
import json
import logging
import sys
from typing import Literal, Union


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record; message text is escaped by json.dumps."""

    def __init__(self):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "time": self.formatTime(record, self.datefmt),
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"))


def setup_logging(
    level: Union[str, int] = "INFO",
    mode: Literal["plain", "json"] = "plain",
) -> None:
    """Route all channel engine logs to stdout with a single handler."""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if mode == "json":
        formatter = JsonLineFormatter()
    elif mode == "plain":
        formatter = logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
    else:
        raise ValueError(f"Unknown log mode {mode!r}. Use 'plain' or 'json'")

    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)
