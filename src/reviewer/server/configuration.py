from reviewer.engine import ProcessOptions
from .output_emitter import A2AOutputEmitter


def default_process_options(output_emitter: A2AOutputEmitter) -> ProcessOptions:
    """
    Default options registering the emitter as listener of every agent process.

    With these defaults Story and ReviewedStory bindings are reported even for
    processes started outside the A2A request handler, as long as the caller
    has set up a stream or collection slot for its request.
    """
    return ProcessOptions(listeners=[output_emitter])
