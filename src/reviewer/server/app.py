import json
from typing import Any, AsyncGenerator

from a2a.server.apps import A2AStarletteApplication
from a2a.server.apps.jsonrpc.jsonrpc_app import CallContextBuilder
from a2a.server.context import ServerCallContext
from a2a.types import (
    A2AError,
    A2ARequest,
    AgentCard,
    InternalError,
    InvalidRequestError,
    JSONParseError,
    JSONRPCRequest,
    SendStreamingMessageRequest,
    SendStreamingMessageResponse,
    SendStreamingMessageSuccessResponse,
    TaskResubscriptionRequest,
    UnsupportedOperationError,
)
from pydantic import ValidationError
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import Response
from starlette.status import HTTP_413_CONTENT_TOO_LARGE

from reviewer.logging import get_logger
from .exceptions import UnsupportedMethodError
from .request_handler import CustomAutonomyA2ARequestHandler
from .streaming import StreamHandle

__all__ = ["A2AServerApplication"]

logger = get_logger()


class A2AServerApplication(A2AStarletteApplication):
    """A2A Starlette application serving the story agent.

    Agent card routes and JSON-RPC error responses come from a2a-sdk. Only
    ``message/send`` and ``message/stream`` are answered; they go straight to
    ``CustomAutonomyA2ARequestHandler``.
    """

    def __init__(
            self,
            agent_card: AgentCard,
            request_handler: CustomAutonomyA2ARequestHandler,
            context_builder: CallContextBuilder | None = None,
    ):
        """
        Args:
            agent_card: Card served on the well-known agent card paths
            request_handler: Handler for ``message/send`` and ``message/stream``
            context_builder: Optional context builder for requests
        """
        super().__init__(
            agent_card=agent_card,
            http_handler=request_handler,
            context_builder=context_builder)
        self.request_handler = request_handler

    async def _handle_requests(self, request: Request) -> Response:
        """Parse a JSON-RPC request and hand it to the story request handler.

        Malformed JSON, invalid requests and methods the handler does not
        serve are answered with the matching JSON-RPC error.
        """
        request_id = None

        if not self._allowed_content_length(request):
            return self._generate_error_response(
                None, A2AError(root=InvalidRequestError(message='Payload too large'))
            )

        try:
            body = await request.json()
            if isinstance(body, dict):
                request_id = body.get('id')

            # A2ARequest defaults 'method' for some members, so check the envelope on its own
            JSONRPCRequest.model_validate(body)
            request_obj = A2ARequest.model_validate(body).root
            request_id = request_obj.id
            call_context = self._context_builder.build(request)

            match request_obj:
                case SendStreamingMessageRequest() | TaskResubscriptionRequest():
                    handler_result = await self.request_handler.handle_json_rpc_stream(request_obj)
                case _:
                    handler_result = await self.request_handler.handle_json_rpc(request_obj)

            return self._create_response(context=call_context, handler_result=handler_result)

        except json.decoder.JSONDecodeError as e:
            logger.warning(f'Rejected request with malformed JSON: {e}')
            return self._generate_error_response(
                None, A2AError(root=JSONParseError(message=str(e)))
            )
        except ValidationError as e:
            logger.warning(f'Rejected invalid JSON-RPC request {request_id}')
            return self._generate_error_response(
                request_id,
                A2AError(root=InvalidRequestError(data=json.loads(e.json()))),
            )
        except UnsupportedMethodError as e:
            logger.warning(str(e))
            return self._generate_error_response(
                request_id, A2AError(root=UnsupportedOperationError(message=str(e)))
            )
        except HTTPException as e:
            if e.status_code != HTTP_413_CONTENT_TOO_LARGE:
                raise
            return self._generate_error_response(
                request_id, A2AError(root=InvalidRequestError(message='Payload too large'))
            )
        except Exception as e:
            logger.exception(f'Unhandled exception while serving request {request_id}')
            return self._generate_error_response(
                request_id, A2AError(root=InternalError(message=str(e)))
            )

    def _create_response(self, context: ServerCallContext, handler_result: Any) -> Response:
        """Serve a stream handle as SSE; any other result as the a2a-sdk default response."""
        if isinstance(handler_result, StreamHandle):
            handler_result = self._stream_responses(handler_result)
        return super()._create_response(context=context, handler_result=handler_result)

    @staticmethod
    async def _stream_responses(handle: StreamHandle) -> AsyncGenerator[SendStreamingMessageResponse, None]:
        """Wrap each stream event in a ``SendStreamingMessageResponse``.

        The handle is detached when iteration stops, including when the
        client disconnects, so later sends to it fail.
        """
        try:
            async for event in handle:
                yield SendStreamingMessageResponse(
                    root=SendStreamingMessageSuccessResponse(id=handle.request_id, result=event)
                )
        finally:
            handle.detach()
