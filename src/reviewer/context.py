from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

__all__ = [
    "task_id_var",
    "get_task_id",
    "task_context",
]

task_id_var: ContextVar[Optional[str]] = ContextVar("reviewer_task_id", default=None)


def get_task_id() -> Optional[str]:
    """Return the id of the A2A task handled by the current request, if any."""
    return task_id_var.get()


@contextmanager
def task_context(task_id: str) -> Iterator[str]:
    """
    Context manager for setting the task id of the current request.

    The previous value is restored on exit, so nested scopes and concurrent
    asyncio tasks each observe their own id.

    Args:
        task_id: ID of the task handled in this scope

    Yields:
        The task id
    """
    token = task_id_var.set(task_id)
    try:
        yield task_id
    finally:
        task_id_var.reset(token)
