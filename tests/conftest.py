import uuid

import pytest
from a2a.types import Message, Part, Role, TextPart
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from reviewer.server import (
    A2AOutputEmitter,
    A2AStreamingHandler,
    CustomAutonomyA2ARequestHandler,
    build_autonomy,
)

STORY_TEXT = "Once upon a time a caterpillar named Lou dreamed of the circus."
REVIEW_TEXT = "A charming fable with a light touch."


@pytest.fixture
def story_text():
    return STORY_TEXT


@pytest.fixture
def review_text():
    return REVIEW_TEXT


@pytest.fixture
def writer_llm():
    return FakeListChatModel(responses=[STORY_TEXT])


@pytest.fixture
def reviewer_llm():
    return FakeListChatModel(responses=[REVIEW_TEXT])


@pytest.fixture
def streaming_handler():
    return A2AStreamingHandler()


@pytest.fixture
def output_emitter(streaming_handler):
    return A2AOutputEmitter(streaming_handler)


@pytest.fixture
def autonomy(writer_llm, reviewer_llm, output_emitter):
    return build_autonomy(writer_llm=writer_llm, reviewer_llm=reviewer_llm, output_emitter=output_emitter)


@pytest.fixture
def request_handler(autonomy, streaming_handler, output_emitter):
    return CustomAutonomyA2ARequestHandler(
        autonomy=autonomy,
        streaming_handler=streaming_handler,
        output_emitter=output_emitter,
    )


@pytest.fixture
def make_message():
    """Factory for user messages with a single text part."""

    def _make(text="Tell me a story about caterpillars", task_id=None, context_id=None, parts=None):
        return Message(
            message_id=str(uuid.uuid4()),
            role=Role.user,
            parts=parts if parts is not None else [Part(root=TextPart(text=text))],
            task_id=task_id,
            context_id=context_id,
        )

    return _make
