from .factory import get_logger
from .base import ReviewerLogRecord, ReviewerLogger
from .handlers import LogStreamHandler, LogStreamFormatter

__all__ = [
    "get_logger",
    "ReviewerLogRecord",
    "ReviewerLogger",
    "LogStreamHandler",
    "LogStreamFormatter",
]
