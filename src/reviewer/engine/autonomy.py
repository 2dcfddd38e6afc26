"""Runs deployed agents for free-text intents.

``Autonomy`` is the entry point used by the A2A request handler: it picks the
agent best suited to an intent, streams its LangGraph workflow and reports
progress to the listeners of the process as typed events.
"""

import re
import time
import uuid
from typing import Any, Generic, Iterable, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from reviewer.logging import get_logger
from .events import (
    ActionExecutionResultEvent,
    AgentProcessCompletedEvent,
    AgentProcessCreationEvent,
    AgentProcessEvent,
    AgentProcessFailedEvent,
    ObjectBindingEvent,
)
from .exceptions import AgentProcessExecutionError, NoAgentFoundError
from .options import ProcessOptions
from .platform import Agent, AgentPlatform

__all__ = ["AgentProcessExecution", "Autonomy", "AgentInvocation"]

logger = get_logger()

T = TypeVar("T")

_WORD_PATTERN = re.compile(r"[a-z0-9]+")


class AgentProcessExecution(BaseModel):
    """Result of a finished agent process."""

    process_id: str
    agent_name: str
    output: Any = Field(description="Value bound to the agent's output binding")
    bindings: dict[str, Any] = Field(default_factory=dict)
    model_config = ConfigDict(arbitrary_types_allowed=True)

    def get_output(self) -> Any:
        return self.output


class Autonomy:
    """Chooses and runs agents deployed on an ``AgentPlatform``."""

    def __init__(
            self,
            agent_platform: AgentPlatform,
            default_options: ProcessOptions | None = None,
    ):
        """
        Args:
            agent_platform: Registry of the agents that can be chosen
            default_options: Options applied to every process, merged with
                the options passed to each call
        """
        self.agent_platform = agent_platform
        self.default_options = default_options or ProcessOptions()

    async def choose_and_run_agent(
            self,
            intent: str,
            options: ProcessOptions | None = None,
    ) -> AgentProcessExecution:
        """Choose the agent matching ``intent`` and run it to completion.

        Raises:
            NoAgentFoundError: If no agent is deployed
            Exception: Any error raised by the workflow itself
        """
        agent = self.choose_agent(intent)
        logger.info(f"Chose agent '{agent.name}' for intent '{intent}'")
        return await self.run_agent(agent, intent, options)

    def choose_agent(self, intent: str) -> Agent:
        agents = self.agent_platform.agents()
        if not agents:
            raise NoAgentFoundError()
        if len(agents) == 1:
            return agents[0]

        intent_words = set(_words(intent))
        best_agent, best_score = agents[0], -1
        for agent in agents:
            score = len(intent_words.intersection(_words(f"{agent.name} {agent.description}")))
            if score > best_score:
                best_agent, best_score = agent, score
        return best_agent

    async def run_agent(
            self,
            agent: Agent,
            intent: str,
            options: ProcessOptions | None = None,
    ) -> AgentProcessExecution:
        """Run ``agent`` for ``intent``, publishing process events to the listeners."""
        process_options = self.default_options.merged_with(options)
        process_id = str(uuid.uuid4())
        listeners = process_options.listeners

        self._publish(listeners, AgentProcessCreationEvent(
            process_id=process_id,
            agent_name=agent.name,
            intent=intent,
        ))

        bindings: dict[str, Any] = {agent.input_binding: agent.build_input(intent)}
        try:
            step_started = time.perf_counter()
            async for update in agent.graph.astream(dict(bindings), stream_mode="updates"):
                for action_name, values in update.items():
                    # interrupts and other graph internals
                    if action_name.startswith("__"):
                        continue

                    now = time.perf_counter()
                    self._publish(listeners, ActionExecutionResultEvent(
                        process_id=process_id,
                        action_name=action_name,
                        running_time_ms=(now - step_started) * 1000,
                    ))
                    step_started = now

                    if not isinstance(values, dict):
                        continue
                    for name, value in values.items():
                        bindings[name] = value
                        logger.debug(f"Bound '{name}' ({type(value).__name__}) in process {process_id}")
                        self._publish(listeners, ObjectBindingEvent(
                            process_id=process_id,
                            name=name,
                            value=value,
                        ))

            if agent.output_binding not in bindings:
                raise AgentProcessExecutionError(
                    f"Agent '{agent.name}' finished without binding '{agent.output_binding}'"
                )
        except Exception as ex:
            logger.error(f"Process {process_id} of agent '{agent.name}' failed: {ex}")
            self._publish(listeners, AgentProcessFailedEvent(
                process_id=process_id,
                error=str(ex),
                error_type=type(ex).__name__,
            ))
            raise

        output = bindings[agent.output_binding]
        self._publish(listeners, AgentProcessCompletedEvent(process_id=process_id, result=output))
        return AgentProcessExecution(
            process_id=process_id,
            agent_name=agent.name,
            output=output,
            bindings=bindings,
        )

    @staticmethod
    def _publish(listeners: Iterable[Any], event: AgentProcessEvent) -> None:
        for listener in listeners:
            listener.on_process_event(event)


class AgentInvocation(Generic[T]):
    """Programmatic invocation of the agent producing a given output type.

    Example:
        story = await AgentInvocation.create(autonomy, ReviewedStory).invoke(
            UserInput(content="Tell me a story about caterpillars"))
    """

    def __init__(self, autonomy: Autonomy, output_type: type[T], options: ProcessOptions | None = None):
        self.autonomy = autonomy
        self.output_type = output_type
        self.options = options

    @classmethod
    def create(cls, autonomy: Autonomy, output_type: type[T]) -> "AgentInvocation[T]":
        return cls(autonomy, output_type)

    async def invoke(self, user_input: Any) -> T:
        agent = next(
            (a for a in self.autonomy.agent_platform.agents() if issubclass(a.output_type, self.output_type)),
            None,
        )
        if agent is None:
            raise NoAgentFoundError(output_type=self.output_type)

        intent = getattr(user_input, "content", None) or str(user_input)
        execution = await self.autonomy.run_agent(agent, intent, self.options)
        return execution.output


def _words(text: str) -> list[str]:
    return _WORD_PATTERN.findall(text.lower())
