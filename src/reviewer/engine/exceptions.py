class EngineError(Exception):
    pass


class AgentDeploymentError(EngineError):
    pass


class NoAgentFoundError(EngineError):
    def __init__(self, intent: str | None = None, output_type: type | None = None):
        if output_type is not None:
            message = f"No deployed agent produces '{output_type.__name__}'"
        elif intent is not None:
            message = f"No deployed agent can handle intent '{intent}'"
        else:
            message = "No agents deployed"
        super().__init__(message)


class AgentProcessExecutionError(EngineError):
    pass
