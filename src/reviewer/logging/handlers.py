import logging
from datetime import datetime
from typing import Literal

__all__ = [
    "colorize_text",
    "LogStreamFormatter",
    "LogStreamHandler",
]

_COLOR_CODES = {
    "red": "\033[31m",
    "orange": "\033[38;5;208m",
    "light_grey": "\033[37m",
    "bright_grey": "\033[97m",
    "bright_red": "\033[91m",
    "reset": "\033[0m",
}


def colorize_text(
        text: str,
        color: Literal["red", "orange", "light_grey", "bright_grey", "bright_red", "reset"] = "reset"
) -> str:
    """Wrap text in ANSI color codes for terminal output."""
    color_prefix = _COLOR_CODES.get(color, '')
    return f"{color_prefix}{text}{_COLOR_CODES['reset']}"


class LogStreamFormatter(logging.Formatter):
    """
    Formatter for stream output. Adds the current task id when one is in scope
    and colors messages based on level.
    """
    COLOR_ALIASES = {
        "DEBUG": "light_grey",
        "INFO": "bright_grey",
        "WARNING": "orange",
        "ERROR": "red",
        "CRITICAL": "bright_red",
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S,%f')[:-3]

        task_id = getattr(record, "task_id", None)
        if task_id:
            formatted_message = f"{timestamp} - {record.levelname} - {record.name} - Task [{task_id}] - {record.getMessage()}"
        else:
            formatted_message = f"{timestamp} - {record.levelname} - {record.name} - {record.getMessage()}"

        if record.exc_info:
            formatted_message = f"{formatted_message}\n{self.formatException(record.exc_info)}"

        if not self.use_colors:
            return formatted_message
        return self._colorize(record.levelname, formatted_message)

    def _colorize(self, level: str, message: str) -> str:
        color_alias = self.COLOR_ALIASES.get(level, self.COLOR_ALIASES["INFO"])
        return colorize_text(text=message, color=color_alias)


class LogStreamHandler(logging.StreamHandler):
    """StreamHandler that includes request context information in log output."""

    def __init__(self, stream=None, use_colors: bool = True):
        super().__init__(stream)
        self.setFormatter(LogStreamFormatter(use_colors=use_colors))
