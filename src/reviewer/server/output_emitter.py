"""Turns story workflow bindings into A2A artifacts.

A single ``A2AOutputEmitter`` is registered as listener for every agent
process. For streaming requests each artifact is sent to the request's stream
as soon as it is bound; for non-streaming requests artifacts are collected and
returned with the final task.

The stream target and the collection buffer are held in ``ContextVar``s, so
every request (one asyncio task each) sees only its own slot even though the
emitter itself is shared.
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from a2a.types import Artifact, DataPart, Part, TaskArtifactUpdateEvent

from reviewer.agent import ReviewedStory, Story
from reviewer.engine import AgentProcessEvent, ObjectBindingEvent
from reviewer.logging import get_logger
from .streaming import A2AStreamingHandler

__all__ = ["A2AOutputEmitter"]

logger = get_logger()


@dataclass(frozen=True)
class _StreamTarget:
    stream_id: str
    task_id: str
    context_id: str


class A2AOutputEmitter:
    """Listens to agent process events and emits Story and ReviewedStory outputs as artifacts."""

    def __init__(self, streaming_handler: A2AStreamingHandler):
        self.streaming_handler = streaming_handler
        self._stream_target: ContextVar[Optional[_StreamTarget]] = ContextVar(
            f"a2a_stream_target_{id(self)}", default=None
        )
        self._collected_artifacts: ContextVar[Optional[list[Artifact]]] = ContextVar(
            f"a2a_collected_artifacts_{id(self)}", default=None
        )

    def set_stream_id(
            self,
            stream_id: str,
            task_id: Optional[str] = None,
            context_id: Optional[str] = None,
    ) -> None:
        """Send artifacts of the current request to ``stream_id``.

        Args:
            stream_id: Stream created for the request
            task_id: Task id put on artifact update events, defaults to the stream id
            context_id: Context id put on artifact update events, defaults to the stream id
        """
        self._collected_artifacts.set(None)
        self._stream_target.set(_StreamTarget(
            stream_id=stream_id,
            task_id=task_id or stream_id,
            context_id=context_id or stream_id,
        ))
        logger.debug(f"Set stream ID: {stream_id}")

    def start_collecting(self) -> None:
        """Collect the artifacts of the current request instead of streaming them."""
        self._stream_target.set(None)
        self._collected_artifacts.set([])
        logger.debug("Started collecting artifacts for non-streaming request")

    def get_collected_artifacts(self) -> list[Artifact]:
        artifacts = self._collected_artifacts.get()
        return list(artifacts) if artifacts is not None else []

    def clear(self) -> None:
        """Reset both slots of the current request. Safe to call repeatedly."""
        target = self._stream_target.get()
        artifacts = self._collected_artifacts.get()

        if target is not None:
            logger.debug(f"Clearing stream ID: {target.stream_id}")
        if artifacts is not None:
            logger.debug(f"Clearing {len(artifacts)} collected artifacts")

        self._stream_target.set(None)
        self._collected_artifacts.set(None)

    @property
    def stream_id(self) -> Optional[str]:
        target = self._stream_target.get()
        return target.stream_id if target else None

    @property
    def is_collecting(self) -> bool:
        return self._collected_artifacts.get() is not None

    @contextmanager
    def streaming(
            self,
            stream_id: str,
            task_id: Optional[str] = None,
            context_id: Optional[str] = None,
    ) -> Iterator[None]:
        self.set_stream_id(stream_id, task_id=task_id, context_id=context_id)
        try:
            yield
        finally:
            self.clear()

    @contextmanager
    def collecting(self) -> Iterator[None]:
        self.start_collecting()
        try:
            yield
        finally:
            self.clear()

    def on_process_event(self, event: AgentProcessEvent) -> None:
        # Only binding events carry outputs
        if not isinstance(event, ObjectBindingEvent):
            return

        match event.value:
            case Story() as story:
                logger.info("Processing Story binding event")
                self._emit_artifact("story", {
                    "text": story.text,
                    "type": "story",
                })
            case ReviewedStory() as reviewed_story:
                logger.info("Processing ReviewedStory binding event")
                self._emit_artifact("reviewed_story", {
                    "story": reviewed_story.story.text,
                    "review": reviewed_story.review,
                    "reviewer": reviewed_story.reviewer.name,
                    "type": "reviewed_story",
                })
            case _:
                return

    def _emit_artifact(self, artifact_type: str, data: dict[str, Any]) -> None:
        artifact = Artifact(
            artifact_id=str(uuid.uuid4()),
            name=artifact_type,
            parts=[Part(root=DataPart(data=data))],
        )

        collecting = self._collected_artifacts.get()
        if collecting is not None:
            collecting.append(artifact)
            logger.info(
                f"Collected {artifact_type} artifact for non-streaming request (total: {len(collecting)})"
            )
            return

        target = self._stream_target.get()
        if target is not None:
            try:
                self.streaming_handler.send_stream_event(
                    target.stream_id,
                    TaskArtifactUpdateEvent(
                        task_id=target.task_id,
                        context_id=target.context_id,
                        artifact=artifact,
                    ),
                )
                logger.info(f"Emitted {artifact_type} artifact to stream {target.stream_id}")
            except Exception:
                logger.exception(f"Failed to emit {artifact_type} artifact to stream {target.stream_id}")
            return

        # Neither streaming nor collecting: the caller did not set up the request
        logger.warning(
            f"No stream ID or artifact collection active, artifact will be lost: {artifact_type}"
        )
