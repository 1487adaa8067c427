"""
A2A Streaming implementation.

Decodes the Server-Sent Events (SSE) byte stream returned by a
``message/stream`` call and folds the resulting events into the running
task context, the intermediate updates and the final answer.
"""

import codecs
import json
from typing import AsyncIterable, Callable, Dict, List, Optional, Any
from dataclasses import dataclass

from .errors import A2AProtocolError
from .events import (
    ArtifactUpdateEvent,
    MessageEvent,
    ResultEvent,
    StatusUpdateEvent,
    TaskEvent,
    UnknownEvent,
    parse_result,
)
from .metrics import A2A_MALFORMED_FRAMES, A2A_STREAM_EVENTS
from .task import TaskContext

import logging

logger = logging.getLogger(__name__)


DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


@dataclass
class StreamUpdate:
    """Intermediate agent text delivered while a stream is still open."""
    text: str
    kind: str
    message_id: Optional[str] = None
    task_id: Optional[str] = None


@dataclass
class StreamResult:
    """Final answer of a streaming call and the context for the next turn."""
    text: str
    context: TaskContext


UpdateCallback = Callable[[StreamUpdate], None]


class SSEDecoder:
    """
    Incremental SSE decoder.

    Bytes may arrive split anywhere, including inside a multi-byte UTF-8
    sequence or in the middle of a line; incomplete input is buffered until
    the next ``feed`` or ``flush``. Only ``data: `` lines are parsed, every
    other line is framing. Lines that are not valid JSON objects are logged
    and dropped.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.malformed_frames = 0

    def feed(self, chunk: bytes) -> List[Dict[str, Any]]:
        """Feed raw bytes, return the payloads of all completed lines."""
        self._buffer += self._decoder.decode(chunk)
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()
        return self._parse_lines(lines)

    def flush(self) -> List[Dict[str, Any]]:
        """Parse whatever is left once the transport has closed."""
        self._buffer += self._decoder.decode(b"", final=True)
        remaining, self._buffer = self._buffer, ""
        return self._parse_lines([remaining])

    def _parse_lines(self, lines: List[str]) -> List[Dict[str, Any]]:
        payloads = []
        for line in lines:
            payload = self._parse_line(line)
            if payload is not None:
                payloads.append(payload)
        return payloads

    def _parse_line(self, line: str) -> Optional[Dict[str, Any]]:
        line = line.rstrip("\r")
        if not line.strip() or not line.startswith(DATA_PREFIX):
            return None

        data = line[len(DATA_PREFIX):]
        if data.strip() == DONE_SENTINEL:
            return None

        try:
            payload = json.loads(data)
        except json.JSONDecodeError as e:
            self.malformed_frames += 1
            A2A_MALFORMED_FRAMES.inc()
            logger.warning(f"Failed to parse stream chunk: {str(e)}")
            return None

        if not isinstance(payload, dict):
            self.malformed_frames += 1
            A2A_MALFORMED_FRAMES.inc()
            logger.warning(f"Ignoring non-object stream chunk: {data[:100]}")
            return None

        return payload


class StreamState:
    """
    Working state of a single streaming attempt.

    Holds the task context as it evolves, the final answer seen so far and
    the update callback. A new instance is created for every attempt, so
    nothing observed during a failed attempt leaks into the next one.
    """

    def __init__(self, context: Optional[TaskContext] = None, on_update: Optional[UpdateCallback] = None):
        self.context = context.copy() if context else TaskContext()
        self.final_text = ""
        self.on_update = on_update
        self.events_seen = 0
        self.updates_sent = 0

    def handle_payload(self, payload: Dict[str, Any]) -> Optional[ResultEvent]:
        """
        Apply one decoded JSON-RPC envelope.

        Raises A2AProtocolError when the envelope carries an error; the
        caller treats that as a failed attempt.
        """
        if payload.get("error") is not None:
            raise A2AProtocolError(payload["error"])

        result = payload.get("result")
        if not isinstance(result, dict):
            return None

        event = parse_result(result)
        self.apply(event)
        return event

    def apply(self, event: ResultEvent) -> None:
        """Fold a classified event into the working state."""
        self.events_seen += 1
        A2A_STREAM_EVENTS.labels(kind=event.kind or "unknown").inc()

        if isinstance(event, TaskEvent):
            self._apply_task(event)
        elif isinstance(event, MessageEvent):
            self._apply_message(event)
        elif isinstance(event, StatusUpdateEvent):
            self._apply_status_update(event)
        elif isinstance(event, ArtifactUpdateEvent):
            logger.debug(f"Artifact update received for task {event.task_id}")
        elif isinstance(event, UnknownEvent):
            logger.warning(f"Ignoring stream result of unknown kind: {event.kind}")

    def result(self) -> StreamResult:
        """Final text and context once the stream has ended."""
        return StreamResult(text=self.final_text, context=self.context.copy())

    def _apply_task(self, event: TaskEvent) -> None:
        task = event.task
        self.context = task.next_context(self.context)
        logger.info(f"Task received: {task.task_id}, state: {task.status.state}")

        text = task.status.agent_text()
        if text:
            self.final_text = text

    def _apply_message(self, event: MessageEvent) -> None:
        message = event.message
        if message.role != "agent":
            return

        text = message.first_text()
        if text:
            logger.debug(f"Streaming message: {text[:50]}")
            self._emit(StreamUpdate(
                text=text,
                kind=event.kind,
                message_id=message.message_id or None,
                task_id=message.task_id
            ))

        if message.task_id:
            self.context.task_id = message.task_id
        if message.context_id:
            self.context.context_id = message.context_id

    def _apply_status_update(self, event: StatusUpdateEvent) -> None:
        logger.debug(
            f"Status update: taskId={event.task_id}, state={event.status.state}, final={event.final}"
        )

        if event.task_id is not None:
            self.context.task_id = event.task_id
        if event.context_id is not None:
            self.context.context_id = event.context_id

        text = event.status.agent_text()
        if text:
            if event.final:
                self.final_text = text
                logger.info("Final message received")
            else:
                status_message = event.status.message
                self._emit(StreamUpdate(
                    text=text,
                    kind=event.kind,
                    message_id=status_message.message_id or None,
                    task_id=event.task_id
                ))

        if event.status.is_terminal:
            self.context.task_id = ""

    def _emit(self, update: StreamUpdate) -> None:
        self.updates_sent += 1
        if self.on_update is not None:
            self.on_update(update)


async def consume_stream(
    chunks: AsyncIterable[bytes],
    state: StreamState,
    decoder: Optional[SSEDecoder] = None
) -> StreamResult:
    """Drive a byte stream through the decoder into ``state`` until it closes."""
    decoder = decoder or SSEDecoder()

    async for chunk in chunks:
        for payload in decoder.feed(chunk):
            state.handle_payload(payload)

    for payload in decoder.flush():
        state.handle_payload(payload)

    return state.result()
