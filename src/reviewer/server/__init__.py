from .app import A2AServerApplication
from .card import build_agent_card
from .configuration import default_process_options
from .exceptions import (
    StreamAlreadyExistsError,
    StreamClosedError,
    StreamingError,
    StreamNotFoundError,
    UnsupportedMethodError,
)
from .factory import AppFactory, AppLifespan, build_autonomy, create_app
from .output_emitter import A2AOutputEmitter
from .request_handler import (
    CustomAutonomyA2ARequestHandler,
    create_result_artifact,
    ensure_context_id,
    extract_intent,
    resolve_task_id,
)
from .streaming import A2AStreamingHandler, StreamEvent, StreamHandle

__all__ = [
    "A2AServerApplication",
    "AppFactory",
    "AppLifespan",
    "build_autonomy",
    "create_app",
    "build_agent_card",
    "default_process_options",
    "A2AOutputEmitter",
    "A2AStreamingHandler",
    "StreamEvent",
    "StreamHandle",
    "CustomAutonomyA2ARequestHandler",
    "create_result_artifact",
    "ensure_context_id",
    "extract_intent",
    "resolve_task_id",
    # exceptions
    "StreamingError",
    "StreamNotFoundError",
    "StreamClosedError",
    "StreamAlreadyExistsError",
    "UnsupportedMethodError",
]
