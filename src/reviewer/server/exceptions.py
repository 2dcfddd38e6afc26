class StreamingError(Exception):
    pass


class StreamNotFoundError(StreamingError):
    def __init__(self, stream_id: str):
        super().__init__(f"Stream '{stream_id}' does not exist")
        self.stream_id = stream_id


class StreamClosedError(StreamingError):
    def __init__(self, stream_id: str):
        super().__init__(f"Stream '{stream_id}' is closed")
        self.stream_id = stream_id


class StreamAlreadyExistsError(StreamingError):
    def __init__(self, stream_id: str):
        super().__init__(f"Stream '{stream_id}' already exists")
        self.stream_id = stream_id


class UnsupportedMethodError(Exception):
    def __init__(self, method: str, streaming: bool = False):
        suffix = " for streaming" if streaming else ""
        super().__init__(f"Method {method} is not supported{suffix}")
        self.method = method
