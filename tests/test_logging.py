import io
import logging

from reviewer.context import get_task_id, task_context
from reviewer.logging import (
    LogStreamFormatter,
    LogStreamHandler,
    ReviewerLogger,
    ReviewerLogRecord,
    get_logger,
)


def test_get_logger_configures_once():
    logger = get_logger("reviewer.tests.configured", level="DEBUG")
    again = get_logger("reviewer.tests.configured")

    assert logger is again
    assert isinstance(logger, ReviewerLogger)
    assert sum(isinstance(h, LogStreamHandler) for h in logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert logger.propagate is False


def test_get_logger_defaults_to_module_name():
    assert get_logger().name == __name__


def test_records_capture_task_id():
    logger = get_logger("reviewer.tests.records")

    with task_context("task-42"):
        record = logger.makeRecord(logger.name, logging.INFO, __file__, 1, "inside", (), None)
    outside = logger.makeRecord(logger.name, logging.INFO, __file__, 1, "outside", (), None)

    assert isinstance(record, ReviewerLogRecord)
    assert record.task_id == "task-42"
    assert outside.task_id is None
    assert get_task_id() is None


def test_stream_output_includes_task():
    stream = io.StringIO()
    logger = get_logger("reviewer.tests.stream", use_stream=False, level="INFO")
    logger.addHandler(LogStreamHandler(stream=stream, use_colors=False))
    logger.propagate = False

    with task_context("task-7"):
        logger.info("working")
    logger.info("idle")

    lines = stream.getvalue().splitlines()
    assert lines[0].endswith("INFO - reviewer.tests.stream - Task [task-7] - working")
    assert lines[1].endswith("INFO - reviewer.tests.stream - idle")


def test_formatter_colors():
    record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), None)

    assert LogStreamFormatter(use_colors=True).format(record).startswith("\033[31m")
    assert "\033[" not in LogStreamFormatter(use_colors=False).format(record)
