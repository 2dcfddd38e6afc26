"""Per-request event streams backing the ``message/stream`` SSE responses.

Each stream is an a2a-sdk ``EventQueue``. The request handler and the output
emitter push events into it; the SSE response drains it with an
``EventConsumer``, which stops after the terminal event or once the queue is
closed and empty.
"""

from typing import Any, AsyncIterator, Optional, Union

from a2a.server.events import EventConsumer, EventQueue
from a2a.types import Task, TaskArtifactUpdateEvent, TaskStatusUpdateEvent

from reviewer.logging import get_logger
from .exceptions import StreamAlreadyExistsError, StreamClosedError, StreamNotFoundError

__all__ = ["StreamEvent", "StreamHandle", "A2AStreamingHandler"]

logger = get_logger()

StreamEvent = Union[Task, TaskStatusUpdateEvent, TaskArtifactUpdateEvent]


class StreamHandle:
    """One stream: its event queue plus the JSON-RPC request it answers.

    Attributes:
        stream_id: Key of the stream in ``A2AStreamingHandler``
        request_id: JSON-RPC id of the ``message/stream`` request
        event_queue: Queue holding the events not yet read by the consumer
    """

    def __init__(self, stream_id: str, request_id: Any = None):
        self.stream_id = stream_id
        self.request_id = request_id
        self.event_queue = EventQueue()
        self._detached = False

    @property
    def closed(self) -> bool:
        return self.event_queue.is_closed()

    @property
    def detached(self) -> bool:
        return self._detached

    def put(self, event: StreamEvent) -> None:
        if self.closed or self._detached:
            raise StreamClosedError(self.stream_id)
        # listeners are synchronous; put directly so events keep the order they were raised in
        self.event_queue.queue.put_nowait(event)

    async def close(self, immediate: bool = False) -> None:
        """Close the queue. Pending events are dropped if the consumer is gone."""
        await self.event_queue.close(immediate=immediate or self._detached)

    def detach(self) -> None:
        """Mark the consumer as gone; later sends fail with ``StreamClosedError``.

        Unread events are dropped so a pending graceful close does not wait on them.
        """
        self._detached = True
        queue = self.event_queue.queue
        while not queue.empty():
            queue.get_nowait()
            queue.task_done()

    def __aiter__(self) -> AsyncIterator[StreamEvent]:
        return EventConsumer(self.event_queue).consume_all()


class A2AStreamingHandler:
    """Registry of open streams keyed by stream id.

    Producers push events with ``send_stream_event`` and finish a stream with
    ``close_stream``; the HTTP layer consumes the ``StreamHandle`` returned by
    ``create_stream``. All methods must be called from the event loop that
    created the stream.
    """

    def __init__(self):
        self._streams: dict[str, StreamHandle] = {}

    def create_stream(self, stream_id: str, request_id: Any = None) -> StreamHandle:
        if stream_id in self._streams:
            raise StreamAlreadyExistsError(stream_id)
        handle = StreamHandle(stream_id, request_id=request_id)
        self._streams[stream_id] = handle
        logger.debug(f"Created stream {stream_id}")
        return handle

    def has_stream(self, stream_id: str) -> bool:
        return stream_id in self._streams

    def get_stream(self, stream_id: str) -> Optional[StreamHandle]:
        return self._streams.get(stream_id)

    def send_stream_event(self, stream_id: str, event: StreamEvent) -> None:
        """Push ``event`` to the stream without waiting for the consumer.

        Raises:
            StreamNotFoundError: If no open stream has this id
            StreamClosedError: If the consumer of the stream went away
        """
        handle = self._streams.get(stream_id)
        if handle is None:
            raise StreamNotFoundError(stream_id)
        handle.put(event)
        logger.debug(f"Sent {type(event).__name__} to stream {stream_id}")

    async def close_stream(self, stream_id: str, immediate: bool = False) -> None:
        """Remove the stream and close its queue. Unknown ids are ignored."""
        handle = self._streams.pop(stream_id, None)
        if handle is None:
            return
        await handle.close(immediate=immediate)
        logger.debug(f"Closed stream {stream_id}")

    async def close_all(self) -> None:
        """Close every open stream, dropping events nobody has read yet."""
        for stream_id in list(self._streams):
            await self.close_stream(stream_id, immediate=True)

    @property
    def open_streams(self) -> list[str]:
        return list(self._streams)
