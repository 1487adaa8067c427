"""
JSON-RPC request construction for the A2A methods used by the client.

Pure functions: every call produces fresh request and message ids and
touches neither the network nor any shared state.
"""

import uuid
from typing import Dict, Optional, Any

from .message import MessageBuilder
from .task import TaskContext

METHOD_MESSAGE_SEND = "message/send"
METHOD_MESSAGE_STREAM = "message/stream"
METHOD_AGENT_CARD = "agent/getAuthenticatedExtendedCard"

JSONRPC_VERSION = "2.0"


def generate_id() -> str:
    """Generate a unique identifier for requests and messages."""
    return str(uuid.uuid4())


def create_jsonrpc_request(method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Create JSON-RPC 2.0 request; ``params`` is omitted when None."""
    request = {
        "jsonrpc": JSONRPC_VERSION,
        "method": method,
        "id": generate_id()
    }
    if params is not None:
        request["params"] = params
    return request


def create_message_params(
    text: str,
    context: Optional[TaskContext] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Build ``params`` for message/send and message/stream.

    ``taskId`` and ``contextId`` go into the message only when non-empty;
    leaving them out tells the agent to start a new task. Empty metadata
    is never sent.
    """
    builder = MessageBuilder(
        role="user",
        task_id=context.task_id if context and context.task_id else None,
        context_id=context.context_id if context and context.context_id else None
    )
    builder.add_text(text)

    params: Dict[str, Any] = {"message": builder.build().to_dict()}
    if metadata:
        params["metadata"] = dict(metadata)
    return params


def create_send_request(
    text: str,
    context: Optional[TaskContext] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Create a message/send request."""
    return create_jsonrpc_request(METHOD_MESSAGE_SEND, create_message_params(text, context, metadata))


def create_stream_request(
    text: str,
    context: Optional[TaskContext] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Create a message/stream request."""
    return create_jsonrpc_request(METHOD_MESSAGE_STREAM, create_message_params(text, context, metadata))


def create_agent_card_request() -> Dict[str, Any]:
    """Create an agent/getAuthenticatedExtendedCard request."""
    return create_jsonrpc_request(METHOD_AGENT_CARD)
