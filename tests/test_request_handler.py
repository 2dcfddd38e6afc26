import asyncio
import re
from typing import TypedDict
from unittest.mock import AsyncMock, Mock, patch

import pytest
from a2a.types import (
    DataPart,
    GetTaskRequest,
    MessageSendParams,
    Part,
    SendMessageRequest,
    SendStreamingMessageRequest,
    Task,
    TaskArtifactUpdateEvent,
    TaskQueryParams,
    TaskState,
    TaskStatusUpdateEvent,
)
from langgraph.graph import END, START, StateGraph

from reviewer.agent import Story
from reviewer.context import get_task_id
from reviewer.engine import Agent, AgentPlatform, AgentProcessExecution, Autonomy
from reviewer.server import (
    CustomAutonomyA2ARequestHandler,
    UnsupportedMethodError,
    create_result_artifact,
    ensure_context_id,
    extract_intent,
    resolve_task_id,
)

CONTEXT_ID_PATTERN = re.compile(r"^ctx_[0-9a-f-]{36}$")


def status_text(status):
    return status.message.parts[0].root.text


@pytest.fixture
def failing_handler(streaming_handler, output_emitter):
    autonomy = Mock()
    autonomy.choose_and_run_agent = AsyncMock(side_effect=RuntimeError("boom"))
    return CustomAutonomyA2ARequestHandler(
        autonomy=autonomy,
        streaming_handler=streaming_handler,
        output_emitter=output_emitter,
    )


# !! Non-streaming !!

@pytest.mark.asyncio
async def test_send_message_returns_completed_task(request_handler, make_message, story_text, review_text):
    message = make_message(task_id="task-1", context_id="ctx-given")
    request = SendMessageRequest(id="req-1", params=MessageSendParams(message=message))

    response = await request_handler.handle_json_rpc(request)

    task = response.root.result
    assert response.root.id == "req-1"
    assert task.id == "task-1"
    assert task.context_id == "ctx-given"
    assert task.status.state == TaskState.completed
    assert status_text(task.status) == "Task completed successfully"
    assert task.history == [message]
    assert task.metadata is None

    assert [artifact.name for artifact in task.artifacts] == ["story", "reviewed_story", "result"]
    assert task.artifacts[0].parts[0].root.data == {"text": story_text, "type": "story"}

    result_data = task.artifacts[-1].parts[0].root.data
    assert result_data["type"] == "final_result"
    assert result_data["output"]["review"] == review_text
    assert result_data["output"]["story"] == {"text": story_text}


@pytest.mark.asyncio
async def test_send_message_generates_ids(request_handler, make_message):
    request = SendMessageRequest(id="req-1", params=MessageSendParams(message=make_message()))

    response = await request_handler.handle_json_rpc(request)

    task = response.root.result
    assert CONTEXT_ID_PATTERN.match(task.context_id)
    assert task.id


@pytest.mark.asyncio
async def test_send_message_failure_returns_failed_task(failing_handler, make_message, output_emitter):
    message = make_message(task_id="task-1")
    request = SendMessageRequest(id="req-1", params=MessageSendParams(message=message))

    response = await failing_handler.handle_json_rpc(request)

    task = response.root.result
    assert task.status.state == TaskState.failed
    assert status_text(task.status) == "Task failed: boom"
    assert task.artifacts == []
    assert task.history == [message]
    assert not output_emitter.is_collecting


@pytest.mark.asyncio
async def test_send_message_clears_emitter(request_handler, make_message, output_emitter):
    request = SendMessageRequest(id="req-1", params=MessageSendParams(message=make_message()))

    await request_handler.handle_json_rpc(request)

    assert not output_emitter.is_collecting
    assert output_emitter.stream_id is None


@pytest.mark.asyncio
async def test_send_message_without_text_uses_task_label(failing_handler, make_message):
    message = make_message(task_id="T1", parts=[Part(root=DataPart(data={"a": 1}))])
    request = SendMessageRequest(id="req-1", params=MessageSendParams(message=message))

    await failing_handler.handle_json_rpc(request)

    failing_handler.autonomy.choose_and_run_agent.assert_awaited_once()
    assert failing_handler.autonomy.choose_and_run_agent.call_args[0][0] == "Task T1"


@pytest.mark.parametrize("handler_fixture, level", [
    ("request_handler", "info"),
    ("failing_handler", "exception"),
])
@pytest.mark.asyncio
async def test_send_message_outcome_is_logged_within_task_scope(request, make_message, handler_fixture, level):
    handler = request.getfixturevalue(handler_fixture)
    message = make_message(task_id="task-1")
    request_obj = SendMessageRequest(id="req-1", params=MessageSendParams(message=message))
    task_ids = []

    with patch("reviewer.server.request_handler.logger") as mock_logger:
        getattr(mock_logger, level).side_effect = lambda *args, **kwargs: task_ids.append(get_task_id())
        await handler.handle_json_rpc(request_obj)

    assert task_ids
    assert task_ids[-1] == "task-1"
    assert get_task_id() is None


# !! Streaming !!

@pytest.mark.asyncio
async def test_stream_message_event_order(request_handler, make_message, streaming_handler):
    message = make_message(task_id="task-1", context_id="ctx-given")
    request = SendStreamingMessageRequest(id="req-1", params=MessageSendParams(message=message))

    handle = await request_handler.handle_json_rpc_stream(request)
    events = [event async for event in handle]

    assert handle.stream_id == "req-1"
    assert [type(event) for event in events] == [
        TaskStatusUpdateEvent,
        TaskArtifactUpdateEvent,
        TaskArtifactUpdateEvent,
        TaskStatusUpdateEvent,
        Task,
    ]

    started, story, reviewed, processing, completed = events
    assert started.status.state == TaskState.working
    assert status_text(started.status) == "Task started..."
    assert started.final is False
    assert started.context_id == "ctx-given"

    assert story.artifact.name == "story"
    assert story.task_id == "task-1"
    assert reviewed.artifact.name == "reviewed_story"

    assert processing.status.state == TaskState.working
    assert status_text(processing.status) == "Processing task..."

    assert completed.status.state == TaskState.completed
    assert completed.id == "task-1"
    assert CONTEXT_ID_PATTERN.match(completed.context_id)
    assert [artifact.name for artifact in completed.artifacts] == ["result"]

    await request_handler.wait_for_background_tasks()
    assert streaming_handler.open_streams == []


@pytest.mark.asyncio
async def test_stream_message_failure_sends_final_failed_status(failing_handler, make_message, streaming_handler):
    request = SendStreamingMessageRequest(id="req-1", params=MessageSendParams(message=make_message()))

    handle = await failing_handler.handle_json_rpc_stream(request)
    events = [event async for event in handle]

    assert len(events) == 2
    started, failed = events
    assert status_text(started.status) == "Task started..."
    assert failed.status.state == TaskState.failed
    assert status_text(failed.status) == "Task failed: boom"
    assert failed.final is True
    assert handle.closed
    await failing_handler.wait_for_background_tasks()
    assert streaming_handler.open_streams == []


@pytest.mark.asyncio
async def test_stream_id_falls_back_when_request_id_in_use(request_handler, make_message, streaming_handler):
    streaming_handler.create_stream("req-1")
    request = SendStreamingMessageRequest(id="req-1", params=MessageSendParams(message=make_message()))

    handle = await request_handler.handle_json_rpc_stream(request)
    events = [event async for event in handle]

    assert handle.stream_id != "req-1"
    assert isinstance(events[-1], Task)
    await request_handler.wait_for_background_tasks()
    assert streaming_handler.open_streams == ["req-1"]


@pytest.mark.asyncio
async def test_stream_survives_detached_consumer(request_handler, make_message, streaming_handler):
    request = SendStreamingMessageRequest(id="req-1", params=MessageSendParams(message=make_message()))

    handle = await request_handler.handle_json_rpc_stream(request)
    handle.detach()
    await request_handler.wait_for_background_tasks()

    assert handle.closed
    assert streaming_handler.open_streams == []


@pytest.mark.asyncio
async def test_concurrent_requests_are_isolated(request_handler, make_message, output_emitter):
    async def streamed():
        request = SendStreamingMessageRequest(id="stream-req", params=MessageSendParams(message=make_message()))
        handle = await request_handler.handle_json_rpc_stream(request)
        return [event async for event in handle]

    async def sent():
        request = SendMessageRequest(id="send-req", params=MessageSendParams(message=make_message()))
        return await request_handler.handle_json_rpc(request)

    events, response = await asyncio.gather(streamed(), sent())

    artifact_events = [event for event in events if isinstance(event, TaskArtifactUpdateEvent)]
    assert [event.artifact.name for event in artifact_events] == ["story", "reviewed_story"]
    assert [artifact.name for artifact in response.root.result.artifacts] == ["story", "reviewed_story", "result"]
    assert not output_emitter.is_collecting
    assert output_emitter.stream_id is None


# !! Unsupported methods !!

@pytest.mark.asyncio
async def test_unsupported_method_raises(request_handler):
    request = GetTaskRequest(id="req-1", params=TaskQueryParams(id="task-1"))

    with pytest.raises(UnsupportedMethodError, match="Method tasks/get is not supported"):
        await request_handler.handle_json_rpc(request)

    with pytest.raises(UnsupportedMethodError, match="not supported for streaming"):
        await request_handler.handle_json_rpc_stream(request)


# !! Helpers !!

def test_extract_intent(make_message):
    assert extract_intent(make_message("hello")) == "hello"
    assert extract_intent(make_message(parts=[Part(root=DataPart(data={}))]), "T1") == "Task T1"


def test_ensure_context_id():
    assert ensure_context_id("ctx-given") == "ctx-given"
    assert CONTEXT_ID_PATTERN.match(ensure_context_id(None))


def test_resolve_task_id(make_message):
    assert resolve_task_id(make_message(task_id="task-1")) == "task-1"
    assert resolve_task_id(make_message())


def test_create_result_artifact_falls_back_to_string():
    execution = AgentProcessExecution(process_id="p", agent_name="a", output=object())

    artifact = create_result_artifact(execution)

    data = artifact.parts[0].root.data
    assert artifact.name == "result"
    assert data["type"] == "final_result"
    assert data["output"].startswith("<object object")


@pytest.mark.asyncio
async def test_stream_with_single_story_binding(streaming_handler, output_emitter, make_message):
    class DraftState(TypedDict, total=False):
        user_input: str
        draft: Story

    graph = StateGraph(DraftState)
    graph.add_node("draft", lambda state: {"draft": Story(text="Once upon a time")})
    graph.add_edge(START, "draft")
    graph.add_edge("draft", END)
    agent = Agent(
        name="Drafter",
        description="Write a draft",
        graph=graph.compile(),
        output_binding="draft",
        output_type=Story,
    )
    handler = CustomAutonomyA2ARequestHandler(
        autonomy=Autonomy(AgentPlatform([agent])),
        streaming_handler=streaming_handler,
        output_emitter=output_emitter,
    )
    request = SendStreamingMessageRequest(id="req-1", params=MessageSendParams(message=make_message()))

    handle = await handler.handle_json_rpc_stream(request)
    events = [event async for event in handle]

    assert [type(event) for event in events] == [
        TaskStatusUpdateEvent,
        TaskArtifactUpdateEvent,
        TaskStatusUpdateEvent,
        Task,
    ]
    assert events[1].artifact.parts[0].root.data == {"text": "Once upon a time", "type": "story"}
    assert status_text(events[2].status) == "Processing task..."
    assert len(events[3].artifacts) == 1
    assert events[3].artifacts[0].parts[0].root.data["output"] == {"text": "Once upon a time"}
