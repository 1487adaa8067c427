"""
A2A Protocol Client.

This module provides a client for the Agent-to-Agent (A2A) JSON-RPC
protocol, including the streaming variant delivered as Server-Sent Events,
a relay for clients that cannot reach agents directly, and per-agent
conversation context tracking.
"""

from .agent_card import AgentInfo, AgentSkill, derive_agent_name
from .client import A2AClient, SendResult
from .config import (
    ClientConfig,
    RelayConfig,
    DEFAULT_RELAY_URL,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY,
    DEFAULT_TIMEOUT,
)
from .conversation import ContextStore, Conversation, StreamedMessageMerger
from .errors import (
    A2AClientError,
    A2AProtocolError,
    HTTPStatusError,
    NetworkError,
    UnknownResponseError,
)
from .events import (
    ArtifactUpdateEvent,
    MessageEvent,
    StatusUpdateEvent,
    TaskEvent,
    UnknownEvent,
    parse_result,
)
from .message import A2AMessage, MessageBuilder, MessagePart, TextPart, FilePart, DataPart
from .relay import RelayServer
from .request import (
    METHOD_AGENT_CARD,
    METHOD_MESSAGE_SEND,
    METHOD_MESSAGE_STREAM,
    create_agent_card_request,
    create_send_request,
    create_stream_request,
)
from .streaming import SSEDecoder, StreamResult, StreamState, StreamUpdate
from .task import Task, TaskContext, TaskState, TaskStatus, TERMINAL_STATES, is_terminal_state

__version__ = "1.0.0"

# Protocol constants
PROTOCOL_NAME = "a2a"
JSONRPC_VERSION = "2.0"

# Relay endpoints
PROXY_ENDPOINT = "/api/proxy"
PROXY_STREAM_ENDPOINT = "/api/proxy/stream"
HEALTH_ENDPOINT = "/health"

# Content types
CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_SSE = "text/event-stream"

__all__ = [
    # Core classes
    "A2AClient",
    "SendResult",
    "StreamResult",
    "StreamUpdate",
    "StreamState",
    "SSEDecoder",
    "TaskContext",
    "Task",
    "TaskState",
    "TaskStatus",
    "A2AMessage",
    "MessageBuilder",
    "MessagePart",
    "TextPart",
    "FilePart",
    "DataPart",
    "AgentInfo",
    "AgentSkill",
    "RelayServer",
    "ContextStore",
    "Conversation",
    "StreamedMessageMerger",
    "ClientConfig",
    "RelayConfig",

    # Events
    "TaskEvent",
    "MessageEvent",
    "StatusUpdateEvent",
    "ArtifactUpdateEvent",
    "UnknownEvent",
    "parse_result",

    # Requests
    "create_send_request",
    "create_stream_request",
    "create_agent_card_request",

    # Errors
    "A2AClientError",
    "A2AProtocolError",
    "HTTPStatusError",
    "NetworkError",
    "UnknownResponseError",

    # Helpers
    "derive_agent_name",
    "is_terminal_state",

    # Constants
    "TERMINAL_STATES",
    "METHOD_MESSAGE_SEND",
    "METHOD_MESSAGE_STREAM",
    "METHOD_AGENT_CARD",
    "PROTOCOL_NAME",
    "JSONRPC_VERSION",
    "DEFAULT_RELAY_URL",
    "DEFAULT_TIMEOUT",
    "DEFAULT_RETRY_ATTEMPTS",
    "DEFAULT_RETRY_DELAY",
    "PROXY_ENDPOINT",
    "PROXY_STREAM_ENDPOINT",
    "HEALTH_ENDPOINT",
    "CONTENT_TYPE_JSON",
    "CONTENT_TYPE_SSE",
]
