"""
Log Formatters for Console and JSONL Output.

    ColoredConsoleFormatter:
        14:30:05 [ INFO  ] (ab12cd34ef56) synthesizing ipa=kæt language=English speaker=Joanna

    JsonlFormatter:
        {"ts": "2024-01-15T14:30:05+00:00", "level": 2, "tag": "INFO", "message": "synthesizing", ...}

Colors are disabled when stdout is not a TTY, or when NO_COLOR or
IPA_SERVER_NO_COLOR=1 is set.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime
from typing import Any, Dict


class Colors:
    """ANSI escape codes."""
    RESET = "\033[0m"
    DIM = "\033[2m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


_TAG_COLORS = {
    "SUCCESS": Colors.GREEN,
    "FAIL": Colors.RED,
    "ERROR": Colors.RED,
    "WARN": Colors.YELLOW,
    "INFO": Colors.CYAN,
    "DEBUG": Colors.GRAY,
    "TRACE": Colors.GRAY,
}


def supports_color() -> bool:
    """Whether stdout is a color-capable terminal and colors are not disabled."""
    if os.getenv("NO_COLOR") or os.getenv("IPA_SERVER_NO_COLOR") == "1":
        return False
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def get_tag_color(tag: str) -> str:
    return _TAG_COLORS.get(tag.upper(), Colors.RESET)


class JsonlFormatter(logging.Formatter):
    """Format log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created).astimezone().isoformat(),
            "level": getattr(record, "numeric_level", 2),
            "tag": getattr(record, "tag", record.levelname),
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
        }

        seconds = getattr(record, "seconds", None)
        if seconds is not None:
            payload["seconds"] = seconds

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            payload["extra"] = extra_data

        return json.dumps(payload, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """
    Human-readable console lines.

    Format:
        HH:MM:SS [ TAG   ] (rid) message key=value 0.123s
    """

    def __init__(self, use_colors: bool | None = None):
        super().__init__()
        self.use_colors = supports_color() if use_colors is None else use_colors

    def _c(self, text: str, color: str) -> str:
        if not self.use_colors:
            return text
        return f"{color}{text}{Colors.RESET}"

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        tag = getattr(record, "tag", record.levelname)
        rid = getattr(record, "request_id", "-")

        parts = [self._c(ts, Colors.DIM), self._c(f"[{tag:^7}]", get_tag_color(tag))]
        if rid != "-":
            parts.append(self._c(f"({rid})", Colors.DIM + Colors.CYAN))
        parts.append(record.getMessage())

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            for k, v in extra_data.items():
                parts.append(self._c(f"{k}={v}", Colors.DIM))

        # Slow provider calls stand out in red
        seconds = getattr(record, "seconds", None)
        if seconds is not None:
            if seconds < 0.5:
                color = Colors.GREEN
            elif seconds < 2.0:
                color = Colors.YELLOW
            else:
                color = Colors.RED
            parts.append(self._c(f"{seconds:.3f}s", color))

        if record.exc_info:
            parts.append("\n" + self.formatException(record.exc_info))

        return " ".join(parts)
