from .autonomy import AgentInvocation, AgentProcessExecution, Autonomy
from .events import (
    ActionExecutionResultEvent,
    AgentProcessCompletedEvent,
    AgentProcessCreationEvent,
    AgentProcessEvent,
    AgentProcessFailedEvent,
    AgenticEventListener,
    ObjectBindingEvent,
)
from .exceptions import (
    AgentDeploymentError,
    AgentProcessExecutionError,
    EngineError,
    NoAgentFoundError,
)
from .options import ProcessOptions
from .platform import Agent, AgentPlatform

__all__ = [
    "Agent",
    "AgentPlatform",
    "Autonomy",
    "AgentInvocation",
    "AgentProcessExecution",
    "ProcessOptions",
    # events
    "AgentProcessEvent",
    "AgentProcessCreationEvent",
    "ActionExecutionResultEvent",
    "ObjectBindingEvent",
    "AgentProcessCompletedEvent",
    "AgentProcessFailedEvent",
    "AgenticEventListener",
    # exceptions
    "EngineError",
    "AgentDeploymentError",
    "NoAgentFoundError",
    "AgentProcessExecutionError",
]
