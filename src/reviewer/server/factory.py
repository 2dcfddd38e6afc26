from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from langchain_core.language_models import BaseChatModel
from starlette.applications import Starlette

from reviewer.agent import WriteAndReviewAgent, create_chat_model
from reviewer.engine import AgentPlatform, Autonomy
from reviewer.logging import get_logger
from reviewer.settings import app_settings, llm_settings, story_settings
from .app import A2AServerApplication
from .card import build_agent_card
from .configuration import default_process_options
from .output_emitter import A2AOutputEmitter
from .request_handler import CustomAutonomyA2ARequestHandler
from .streaming import A2AStreamingHandler

__all__ = ["AppLifespan", "AppFactory", "build_autonomy", "create_app"]

logger = get_logger()


def build_autonomy(
        writer_llm: Optional[BaseChatModel] = None,
        reviewer_llm: Optional[BaseChatModel] = None,
        output_emitter: Optional[A2AOutputEmitter] = None,
) -> Autonomy:
    """Deploy the write and review agent and return an ``Autonomy`` running it.

    Chat models default to the ones configured through ``LlmSettings``. When an
    emitter is given it is registered as default listener of every process.
    """
    writer_llm = writer_llm or create_chat_model(llm_settings.writer_temperature)
    reviewer_llm = reviewer_llm or create_chat_model(llm_settings.reviewer_temperature)

    agent = WriteAndReviewAgent(
        writer_llm=writer_llm,
        reviewer_llm=reviewer_llm,
        story_word_count=story_settings.story_word_count,
        review_word_count=story_settings.review_word_count,
    )
    platform = AgentPlatform()
    platform.deploy(agent.as_agent())

    default_options = default_process_options(output_emitter) if output_emitter else None
    return Autonomy(platform, default_options=default_options)


class AppLifespan:
    """Manages the lifecycle of the Starlette application."""

    def __init__(self, app_factory: "AppFactory"):
        self.app_factory = app_factory

    @asynccontextmanager
    async def executor(self, app: Starlette) -> AsyncGenerator[None, None]:
        try:
            await self.startup()
            yield
        finally:
            await self.shutdown()

    async def startup(self):
        logger.info(f"A2A server for '{self.app_factory.agent_card.name}' available at {self.app_factory.base_url}")

    async def shutdown(self):
        await self.app_factory.shutdown()


class AppFactory:
    """Wires the agent, the streaming infrastructure and the HTTP application together.

    Attributes:
        base_url: URL advertised in the agent card
        streaming_handler: Registry of open SSE streams
        output_emitter: Listener turning workflow outputs into artifacts
        autonomy: Engine running the deployed agent
        request_handler: A2A JSON-RPC request handler
        agent_card: Card served on the well-known paths
        a2a_app: A2A application exposing the request handler
        starlette_app: Starlette application to be served
    """

    def __init__(
            self,
            writer_llm: Optional[BaseChatModel] = None,
            reviewer_llm: Optional[BaseChatModel] = None,
            base_url: Optional[str] = None,
    ):
        self.writer_llm = writer_llm
        self.reviewer_llm = reviewer_llm
        self.base_url = base_url or app_settings.url

        self.streaming_handler: Optional[A2AStreamingHandler] = None
        self.output_emitter: Optional[A2AOutputEmitter] = None
        self.autonomy: Optional[Autonomy] = None
        self.request_handler: Optional[CustomAutonomyA2ARequestHandler] = None
        self.agent_card = None
        self.a2a_app: Optional[A2AServerApplication] = None
        self.starlette_app: Optional[Starlette] = None

    def build(self) -> "AppFactory":
        """Create every application component. Returns the factory itself."""
        self.streaming_handler = A2AStreamingHandler()
        self.output_emitter = A2AOutputEmitter(self.streaming_handler)
        self.autonomy = build_autonomy(
            writer_llm=self.writer_llm,
            reviewer_llm=self.reviewer_llm,
            output_emitter=self.output_emitter,
        )
        self.request_handler = CustomAutonomyA2ARequestHandler(
            autonomy=self.autonomy,
            streaming_handler=self.streaming_handler,
            output_emitter=self.output_emitter,
        )
        self.agent_card = build_agent_card(self.base_url)
        self.a2a_app = A2AServerApplication(
            agent_card=self.agent_card,
            request_handler=self.request_handler,
        )

        lifespan = AppLifespan(app_factory=self)
        self.starlette_app = self.a2a_app.build(lifespan=lifespan.executor)
        logger.debug(f"Application for agent '{self.agent_card.name}' built")
        return self

    async def shutdown(self) -> None:
        """Close every open stream so pending SSE responses finish."""
        if self.streaming_handler is None:
            return
        open_streams = self.streaming_handler.open_streams
        if open_streams:
            logger.info(f"Closing {len(open_streams)} open streams")
        await self.streaming_handler.close_all()


def create_app(
        writer_llm: Optional[BaseChatModel] = None,
        reviewer_llm: Optional[BaseChatModel] = None,
        base_url: Optional[str] = None,
) -> Starlette:
    return AppFactory(writer_llm=writer_llm, reviewer_llm=reviewer_llm, base_url=base_url).build().starlette_app
