from dataclasses import dataclass, field
from typing import Any, Callable

from langgraph.graph.state import CompiledStateGraph

from reviewer.logging import get_logger
from .exceptions import AgentDeploymentError

__all__ = ["Agent", "AgentPlatform"]

logger = get_logger()


@dataclass(frozen=True)
class Agent:
    """A deployable workflow.

    The graph receives ``{input_binding: build_input(intent)}`` as its initial
    state and must bind ``output_binding`` before it finishes.
    """
    name: str
    description: str
    graph: CompiledStateGraph
    output_binding: str
    output_type: type
    input_binding: str = "user_input"
    build_input: Callable[[str], Any] = field(default=lambda intent: intent)


class AgentPlatform:
    """Registry of the agents available to the engine."""

    def __init__(self, agents: list[Agent] | None = None):
        self._agents: dict[str, Agent] = {}
        for agent in agents or []:
            self.deploy(agent)

    def deploy(self, agent: Agent) -> Agent:
        if agent.name in self._agents:
            raise AgentDeploymentError(f"Agent '{agent.name}' is already deployed")
        self._agents[agent.name] = agent
        logger.info(f"Deployed agent '{agent.name}'")
        return agent

    def agents(self) -> list[Agent]:
        return list(self._agents.values())

    def get_agent(self, name: str) -> Agent | None:
        return self._agents.get(name)
