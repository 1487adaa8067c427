"""
A2A Client implementation.

Handles outbound communication to A2A agents: single-shot and streaming
message exchange, task/context tracking across turns, and the agent card
probe. Requests go through the relay unless the client runs in direct mode.
"""

import json
import time
import asyncio
import aiohttp
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple
import ssl
import certifi

from .agent_card import AgentInfo
from .config import (
    ClientConfig,
    DEFAULT_RELAY_URL,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY,
    DEFAULT_TIMEOUT,
)
from .errors import (
    A2AClientError,
    A2AProtocolError,
    HTTPStatusError,
    NetworkError,
    UnknownResponseError,
)
from .events import MessageEvent, TaskEvent, parse_result
from .message import A2AMessage
from .metrics import A2A_REQUEST_DURATION, A2A_REQUESTS
from .request import (
    METHOD_AGENT_CARD,
    METHOD_MESSAGE_SEND,
    METHOD_MESSAGE_STREAM,
    create_agent_card_request,
    create_send_request,
    create_stream_request,
)
from .retry import SleepFunc, retry_with_fixed_delay
from .streaming import StreamResult, StreamState, UpdateCallback, consume_stream
from .task import Task, TaskContext

import logging

logger = logging.getLogger(__name__)

CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_SSE = "text/event-stream"
STREAM_PATH_SUFFIX = "/stream"


@dataclass
class SendResult:
    """Outcome of a non-streaming message/send call."""
    text: str
    context: TaskContext
    intermediate_messages: List[str] = field(default_factory=list)


class A2AClient:
    """
    A2A Client for talking to one remote agent.

    Implements the Agent2Agent JSON-RPC 2.0 methods ``message/send``,
    ``message/stream`` and ``agent/getAuthenticatedExtendedCard``.
    The client never stores a TaskContext itself: callers pass the prior
    context in and persist the returned one.
    """

    def __init__(
        self,
        url: str,
        relay_url: Optional[str] = DEFAULT_RELAY_URL,
        timeout: float = DEFAULT_TIMEOUT,
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        verify_ssl: bool = True,
        sleep: Optional[SleepFunc] = None
    ):
        """Initialize A2A client."""
        if retry_attempts < 1:
            raise ValueError("retry_attempts must be at least 1")

        self.url = url
        self.relay_url = relay_url.rstrip('/') if relay_url else None
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.verify_ssl = verify_ssl
        self.session: Optional[aiohttp.ClientSession] = None
        self._sleep = sleep

        # Setup SSL context
        self.ssl_context = None
        if verify_ssl:
            self.ssl_context = ssl.create_default_context(cafile=certifi.where())

        logger.info(f"A2A Client initialized for {url} ({'relay ' + self.relay_url if self.relay_url else 'direct'})")

    @classmethod
    def from_config(cls, url: str, config: Optional[ClientConfig] = None, sleep: Optional[SleepFunc] = None) -> 'A2AClient':
        """Create a client from a ClientConfig (environment when omitted)."""
        config = config or ClientConfig.from_env()
        return cls(
            url,
            relay_url=config.relay_url,
            timeout=config.timeout,
            retry_attempts=config.retry_attempts,
            retry_delay=config.retry_delay,
            verify_ssl=config.verify_ssl,
            sleep=sleep
        )

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close_session()

    async def start_session(self) -> None:
        """Start HTTP session."""
        if self.session is None or self.session.closed:
            connector = aiohttp.TCPConnector(ssl=self.ssl_context if self.verify_ssl else False)
            timeout = aiohttp.ClientTimeout(total=self.timeout)

            headers = {
                'Content-Type': CONTENT_TYPE_JSON,
                'User-Agent': 'a2a-chat-client'
            }

            self.session = aiohttp.ClientSession(
                connector=connector,
                timeout=timeout,
                headers=headers
            )

            logger.debug("HTTP session started")

    async def close_session(self) -> None:
        """Close HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None
            logger.debug("HTTP session closed")

    def _target(self, request: Dict[str, Any], streaming: bool) -> Tuple[str, Dict[str, Any]]:
        """URL to post to and the body to post, wrapped for the relay if one is used."""
        if not self.relay_url:
            return self.url, request

        url = self.relay_url + STREAM_PATH_SUFFIX if streaming else self.relay_url
        return url, {"destinationUrl": self.url, "body": request}

    async def _make_request(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """Post a JSON-RPC request and return the decoded response envelope."""
        await self.start_session()

        method = request.get("method")
        url, payload = self._target(request, streaming=False)
        logger.debug(f"A2A Request: {json.dumps(request)}")

        try:
            async with self.session.post(url, json=payload) as response:
                response_text = await response.text(errors="replace")

                if not 200 <= response.status < 300:
                    logger.error(f"HTTP error: {response.status} {response_text[:200]}")
                    raise HTTPStatusError(response.status, response_text)

                try:
                    data = json.loads(response_text)
                except json.JSONDecodeError as e:
                    raise A2AClientError(f"Invalid JSON response: {str(e)}", status_code=response.status)

                if not isinstance(data, dict):
                    raise A2AClientError("Invalid JSON-RPC response: expected an object", status_code=response.status)

                logger.debug(f"A2A Response: {response_text[:500]}")
                return data

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f"Network error calling {method}: {str(e)}", e)

    async def send_message(
        self,
        message: str,
        context: Optional[TaskContext] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> SendResult:
        """Send a message with message/send and wait for the complete answer."""
        request = create_send_request(message, context, metadata)
        started = time.monotonic()

        try:
            data = await self._make_request(request)

            if data.get("error") is not None:
                logger.error(f"A2A Error: {data['error']}")
                raise A2AProtocolError(data["error"])

            result = self._interpret_send_result(data.get("result"), context)
            A2A_REQUESTS.labels(method=METHOD_MESSAGE_SEND, outcome="success").inc()
            return result

        except A2AClientError as e:
            A2A_REQUESTS.labels(method=METHOD_MESSAGE_SEND, outcome="failure").inc()
            logger.error(f"A2A request failed: {str(e)}")
            raise
        finally:
            A2A_REQUEST_DURATION.labels(method=METHOD_MESSAGE_SEND).observe(time.monotonic() - started)

    def _interpret_send_result(self, result: Any, context: Optional[TaskContext]) -> SendResult:
        """Turn a message/send result into text, context and intermediate messages."""
        if not isinstance(result, dict):
            logger.warning(f"Unknown result: {result!r}")
            raise UnknownResponseError(response_data={"result": result})

        event = parse_result(result)

        if isinstance(event, MessageEvent):
            send_result = self._message_result(event.message, context)
        elif isinstance(event, TaskEvent):
            send_result = self._task_result(event.task, context)
        else:
            logger.warning(f"Unknown result kind: {result.get('kind')}")
            raise UnknownResponseError(kind=result.get("kind"), response_data=result)

        if not send_result.text:
            logger.warning(f"Could not extract text from response: {result}")

        return send_result

    def _message_result(self, message: A2AMessage, context: Optional[TaskContext]) -> SendResult:
        previous = context or TaskContext()
        return SendResult(
            text=message.first_text() or "",
            context=TaskContext(
                task_id=message.task_id or previous.task_id,
                context_id=message.context_id or previous.context_id
            )
        )

    def _task_result(self, task: Task, context: Optional[TaskContext]) -> SendResult:
        logger.info(f"Task state: {task.status.state}, terminal: {task.is_terminal}")

        final_message = task.status.message if task.status.agent_text() is not None else None
        response_text = task.status.agent_text() or ""

        intermediate_messages = []
        for entry in task.history:
            if entry.role != "agent":
                continue
            text = entry.first_text()
            if not text:
                continue
            if response_text and final_message is not None and _same_message(entry, final_message):
                continue
            intermediate_messages.append(text)

        # Fall back to the last agent message in history
        if not response_text and intermediate_messages:
            response_text = intermediate_messages.pop()

        return SendResult(
            text=response_text,
            context=task.next_context(context),
            intermediate_messages=intermediate_messages
        )

    async def send_message_streaming(
        self,
        message: str,
        context: Optional[TaskContext] = None,
        metadata: Optional[Dict[str, Any]] = None,
        on_update: Optional[UpdateCallback] = None
    ) -> StreamResult:
        """
        Send a message with message/stream.

        Intermediate agent text is passed to ``on_update`` as it arrives.
        Transport failures and JSON-RPC errors restart the whole request,
        up to ``retry_attempts`` times with ``retry_delay`` seconds between
        attempts. The returned context reflects only the successful attempt.
        """
        request = create_stream_request(message, context, metadata)
        started = time.monotonic()
        logger.debug(f"A2A Streaming Request: {json.dumps(request)}")

        async def attempt(number: int) -> StreamResult:
            return await self._stream_once(request, context, on_update)

        try:
            result = await retry_with_fixed_delay(
                attempt,
                attempts=self.retry_attempts,
                delay=self.retry_delay,
                sleep=self._sleep
            )
            A2A_REQUESTS.labels(method=METHOD_MESSAGE_STREAM, outcome="success").inc()
            return result

        except A2AClientError as e:
            A2A_REQUESTS.labels(method=METHOD_MESSAGE_STREAM, outcome="failure").inc()
            logger.error(f"Streaming request failed: {str(e)}")
            raise
        finally:
            A2A_REQUEST_DURATION.labels(method=METHOD_MESSAGE_STREAM).observe(time.monotonic() - started)

    async def _stream_once(
        self,
        request: Dict[str, Any],
        context: Optional[TaskContext],
        on_update: Optional[UpdateCallback]
    ) -> StreamResult:
        """One streaming attempt: open the response and consume it to the end."""
        await self.start_session()

        state = StreamState(context, on_update)
        url, payload = self._target(request, streaming=True)
        # Streams stay open as long as the agent works; only bound the connect.
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=self.timeout)

        try:
            async with self.session.post(
                url,
                json=payload,
                headers={'Accept': CONTENT_TYPE_SSE},
                timeout=timeout
            ) as response:
                if not 200 <= response.status < 300:
                    body = await response.text(errors="replace")
                    raise HTTPStatusError(response.status, body)

                content_type = response.headers.get('Content-Type', '')
                if CONTENT_TYPE_JSON in content_type:
                    return self._consume_json_body(await response.read(), state)

                return await consume_stream(_iter_chunks(response), state)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f"Stream transport error: {str(e)}", e)

    def _consume_json_body(self, body: bytes, state: StreamState) -> StreamResult:
        """Direct mode: the agent answered a stream request with one JSON body."""
        try:
            data = json.loads(body.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise A2AClientError(f"Invalid JSON response: {str(e)}")

        if isinstance(data, dict):
            state.handle_payload(data)
        return state.result()

    async def get_agent_info(self) -> AgentInfo:
        """Fetch the agent card and extract name, description and skills."""
        started = time.monotonic()

        try:
            data = await self._make_request(create_agent_card_request())

            if data.get("error") is not None:
                logger.error(f"Failed to get agent info: {data['error']}")
                raise A2AProtocolError(data["error"])

            result = data.get("result")
            if not isinstance(result, dict):
                raise UnknownResponseError(response_data=data)

            A2A_REQUESTS.labels(method=METHOD_AGENT_CARD, outcome="success").inc()
            return AgentInfo.from_card(result)

        except A2AClientError as e:
            A2A_REQUESTS.labels(method=METHOD_AGENT_CARD, outcome="failure").inc()
            logger.error(f"Failed to get agent info: {str(e)}")
            raise
        finally:
            A2A_REQUEST_DURATION.labels(method=METHOD_AGENT_CARD).observe(time.monotonic() - started)

    async def ping(self) -> bool:
        """Check whether the URL answers the agent card method without an error."""
        try:
            data = await self._make_request(create_agent_card_request())
            return data.get("error") is None
        except A2AClientError as e:
            logger.error(f"Ping failed: {str(e)}")
            return False


async def _iter_chunks(response: aiohttp.ClientResponse) -> AsyncIterator[bytes]:
    """Yield body chunks as the transport delivers them."""
    async for chunk in response.content.iter_any():
        yield chunk


def _same_message(a: A2AMessage, b: A2AMessage) -> bool:
    """Match by message id when both have one, otherwise by text."""
    if a.message_id and b.message_id:
        return a.message_id == b.message_id
    return a.first_text() == b.first_text()
