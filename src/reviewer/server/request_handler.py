import asyncio
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from a2a.types import (
    Artifact,
    DataPart,
    Message,
    MessageSendParams,
    Part,
    Role,
    SendMessageRequest,
    SendMessageResponse,
    SendMessageSuccessResponse,
    SendStreamingMessageRequest,
    Task,
    TaskState,
    TaskStatus,
    TaskStatusUpdateEvent,
    TextPart,
)
from a2a.utils.telemetry import SpanKind, trace_class
from pydantic_core import to_jsonable_python

from reviewer.context import task_context
from reviewer.engine import AgentProcessExecution, Autonomy, ProcessOptions
from reviewer.logging import get_logger
from .exceptions import UnsupportedMethodError
from .output_emitter import A2AOutputEmitter
from .streaming import A2AStreamingHandler, StreamHandle

__all__ = [
    "CustomAutonomyA2ARequestHandler",
    "extract_intent",
    "ensure_context_id",
    "resolve_task_id",
    "create_result_artifact",
]

logger = get_logger()

TASK_STARTED_TEXT = "Task started..."
TASK_PROCESSING_TEXT = "Processing task..."
TASK_COMPLETED_TEXT = "Task completed successfully"


@trace_class(
    include_list=["handle_json_rpc", "handle_json_rpc_stream"],
    kind=SpanKind.SERVER,
)
class CustomAutonomyA2ARequestHandler:
    """A2A request handler that runs the chosen agent and reports its Story and
    ReviewedStory outputs as artifacts.

    Handles both streaming and non-streaming ``message`` requests. Failures are
    reported to the client as a FAILED task status and never raised.
    """

    def __init__(
            self,
            autonomy: Autonomy,
            streaming_handler: A2AStreamingHandler,
            output_emitter: A2AOutputEmitter,
    ):
        self.autonomy = autonomy
        self.streaming_handler = streaming_handler
        self.output_emitter = output_emitter
        self._background_tasks: set[asyncio.Task] = set()

    async def handle_json_rpc(self, request: Any) -> SendMessageResponse:
        """Handle a non-streaming JSON-RPC request.

        Raises:
            UnsupportedMethodError: For any method other than ``message/send``
        """
        if isinstance(request, SendMessageRequest):
            return await self._handle_non_streaming_message(request)
        raise UnsupportedMethodError(request.method)

    async def handle_json_rpc_stream(self, request: Any) -> StreamHandle:
        """Open a stream for a streaming JSON-RPC request.

        Returns as soon as the stream exists; the agent runs on a separate
        asyncio task that writes to the stream and closes it when done.

        Raises:
            UnsupportedMethodError: For any method other than ``message/stream``
        """
        if isinstance(request, SendStreamingMessageRequest):
            return self._handle_streaming_message(request)
        raise UnsupportedMethodError(request.method, streaming=True)

    async def wait_for_background_tasks(self) -> None:
        """Wait until every running streaming task has finished."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)

    async def _handle_non_streaming_message(self, request: SendMessageRequest) -> SendMessageResponse:
        params = request.params
        message = params.message
        task_id = resolve_task_id(message)

        with task_context(task_id):
            try:
                with self.output_emitter.collecting():
                    intent = extract_intent(message, task_id)
                    logger.info(f"Handling message send request with intent: '{intent}'")
                    _log_output_modes(params)

                    result = await self.autonomy.choose_and_run_agent(intent, self._process_options())
                    logger.debug(f"Task execution result: {result}")

                    # intermediate artifacts first, the result artifact always last
                    artifacts = self.output_emitter.get_collected_artifacts()
                    artifacts.append(create_result_artifact(result))

                task = Task(
                    id=task_id,
                    context_id=ensure_context_id(message.context_id),
                    status=_task_status(TaskState.completed, TASK_COMPLETED_TEXT, message, task_id),
                    history=[message],
                    artifacts=artifacts,
                    metadata=None,
                )
                logger.info(f"Handled message send request with {len(artifacts)} artifacts")
                return SendMessageResponse(root=SendMessageSuccessResponse(id=request.id, result=task))

            except Exception as e:
                logger.exception("Error handling non-streaming message request")
                error_task = Task(
                    id=task_id,
                    context_id=ensure_context_id(message.context_id),
                    status=_failed_status(message, task_id, e),
                    history=[message],
                    artifacts=[],
                    metadata=None,
                )
                return SendMessageResponse(root=SendMessageSuccessResponse(id=request.id, result=error_task))

    def _handle_streaming_message(self, request: SendStreamingMessageRequest) -> StreamHandle:
        stream_id = self._new_stream_id(request)
        handle = self.streaming_handler.create_stream(stream_id, request_id=request.id)

        task = asyncio.create_task(
            self._run_stream(stream_id, request.params),
            name=f"a2a-stream-{stream_id}",
        )
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return handle

    async def _run_stream(self, stream_id: str, params: MessageSendParams) -> None:
        message = params.message
        task_id = resolve_task_id(message)
        context_id = ensure_context_id(message.context_id)

        try:
            with task_context(task_id), self.output_emitter.streaming(
                    stream_id, task_id=task_id, context_id=context_id):
                try:
                    self.streaming_handler.send_stream_event(
                        stream_id,
                        _status_update(
                            task_id, context_id,
                            _task_status(TaskState.working, TASK_STARTED_TEXT, message, task_id),
                        ),
                    )

                    intent = extract_intent(message, task_id)
                    logger.info(f"Executing streaming task with intent: '{intent}'")
                    _log_output_modes(params)

                    result = await self.autonomy.choose_and_run_agent(intent, self._process_options())
                    logger.debug(f"Task execution result: {result}")

                    self.streaming_handler.send_stream_event(
                        stream_id,
                        _status_update(
                            task_id, context_id,
                            _task_status(TaskState.working, TASK_PROCESSING_TEXT, message, task_id),
                        ),
                    )

                    self.streaming_handler.send_stream_event(
                        stream_id,
                        Task(
                            id=task_id,
                            context_id=_new_context_id(),
                            status=_task_status(TaskState.completed, TASK_COMPLETED_TEXT, message, task_id),
                            history=[message],
                            artifacts=[create_result_artifact(result)],
                            metadata=None,
                        ),
                    )

                except Exception as e:
                    logger.exception("Streaming error")
                    try:
                        self.streaming_handler.send_stream_event(
                            stream_id,
                            _status_update(
                                task_id, context_id,
                                _failed_status(message, task_id, e),
                                final=True,
                            ),
                        )
                    except Exception:
                        logger.exception("Error sending error event")
        finally:
            await self.streaming_handler.close_stream(stream_id)

    def _process_options(self) -> ProcessOptions:
        return ProcessOptions(listeners=[self.output_emitter])

    def _new_stream_id(self, request: SendStreamingMessageRequest) -> str:
        if request.id is not None and not self.streaming_handler.has_stream(str(request.id)):
            return str(request.id)
        return str(uuid.uuid4())


def extract_intent(message: Message, task_id: Optional[str] = None) -> str:
    """Return the text of the first text part, or a label derived from the task id."""
    for part in message.parts:
        if isinstance(part.root, TextPart):
            return part.root.text
    return f"Task {task_id or message.task_id}"


def ensure_context_id(context_id: Optional[str]) -> str:
    return context_id if context_id is not None else _new_context_id()


def resolve_task_id(message: Message) -> str:
    return message.task_id if message.task_id is not None else str(uuid.uuid4())


def create_result_artifact(result: AgentProcessExecution) -> Artifact:
    data = {
        "output": to_jsonable_python(result.get_output(), fallback=str),
        "type": "final_result",
    }
    return Artifact(
        artifact_id=str(uuid.uuid4()),
        name="result",
        parts=[Part(root=DataPart(data=data))],
    )


def _new_context_id() -> str:
    return f"ctx_{uuid.uuid4()}"


def _task_status(state: TaskState, text: str, message: Message, task_id: str) -> TaskStatus:
    return TaskStatus(
        state=state,
        message=Message(
            message_id=str(uuid.uuid4()),
            role=Role.agent,
            parts=[Part(root=TextPart(text=text))],
            context_id=message.context_id,
            task_id=task_id,
        ),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


def _failed_status(message: Message, task_id: str, error: Exception) -> TaskStatus:
    return _task_status(TaskState.failed, f"Task failed: {error}", message, task_id)


def _status_update(
        task_id: str,
        context_id: str,
        status: TaskStatus,
        final: bool = False,
) -> TaskStatusUpdateEvent:
    return TaskStatusUpdateEvent(
        task_id=task_id,
        context_id=context_id,
        status=status,
        final=final,
    )


def _log_output_modes(params: MessageSendParams) -> None:
    if params.configuration and params.configuration.accepted_output_modes:
        logger.debug(f"Accepted output modes: {params.configuration.accepted_output_modes}")
