"""Process event models emitted while an agent runs.

Listeners registered through ``ProcessOptions`` receive every event of the
process they are attached to, in the order the engine raises them:

- AgentProcessCreationEvent once the agent has been chosen
- ActionExecutionResultEvent after each workflow step
- ObjectBindingEvent for every value a step binds
- AgentProcessCompletedEvent or AgentProcessFailedEvent at the end
"""

from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "AgentProcessEvent",
    "AgentProcessCreationEvent",
    "ActionExecutionResultEvent",
    "ObjectBindingEvent",
    "AgentProcessCompletedEvent",
    "AgentProcessFailedEvent",
    "AgenticEventListener",
]


class AgentProcessEvent(BaseModel):
    """Base class for events raised during an agent process."""

    process_id: str = Field(description="ID of the process raising the event")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event was raised"
    )
    model_config = ConfigDict(arbitrary_types_allowed=True)


class AgentProcessCreationEvent(AgentProcessEvent):
    """Raised when a process is created for the chosen agent."""

    agent_name: str = Field(description="Name of the agent that will run")
    intent: str = Field(description="Intent the agent was chosen for")


class ActionExecutionResultEvent(AgentProcessEvent):
    """Raised after a workflow step has run."""

    action_name: str = Field(description="Name of the step")
    running_time_ms: float = Field(default=0.0, description="Time spent since the previous step")


class ObjectBindingEvent(AgentProcessEvent):
    """Raised when a named value becomes available on the process blackboard."""

    name: str = Field(description="Binding name")
    value: Any = Field(description="Bound value")

    @property
    def type(self) -> str:
        return type(self.value).__name__


class AgentProcessCompletedEvent(AgentProcessEvent):
    """Raised when the process finished and produced its output."""

    result: Any = Field(default=None, description="Process output")


class AgentProcessFailedEvent(AgentProcessEvent):
    """Raised when the process failed."""

    error: str = Field(description="Error message")
    error_type: str = Field(description="Exception class name")


@runtime_checkable
class AgenticEventListener(Protocol):
    """Receives process events for the processes it is registered with."""

    def on_process_event(self, event: AgentProcessEvent) -> None:
        ...
