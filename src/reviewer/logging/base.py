import logging
from typing import Optional


class ReviewerLogRecord(logging.LogRecord):
    """
    LogRecord that captures the A2A task handled by the current request.

    Attributes:
        task_id: ID of the task in scope when the record was created, or None
                 outside of request handling.
    """
    task_id: Optional[str]

    def __init__(self, *args, **kwargs):
        from reviewer.context import get_task_id

        super().__init__(*args, **kwargs)
        self.task_id = get_task_id()


class ReviewerLogger(logging.Logger):
    """Logger that creates ReviewerLogRecord instances."""

    def makeRecord(self, name, level, fn, lno, msg, args, exc_info,
                   func=None, extra=None, sinfo=None) -> ReviewerLogRecord:
        rv = ReviewerLogRecord(
            name, level, fn, lno, msg,
            args, exc_info, func, sinfo
        )
        if extra is not None:
            for key in extra:
                if (key in ["message", "asctime"]) or (key in rv.__dict__):
                    raise KeyError("Attempt to overwrite %r in ReviewerLogRecord" % key)
                rv.__dict__[key] = extra[key]
        return rv
