"""
Unit tests for the A2A protocol client components.

These tests cover request construction, result classification, SSE
decoding, stream state tracking, retry orchestration, configuration and
the caller-side conversation helpers without any network access.
"""

import json
import pytest
from unittest.mock import AsyncMock

from a2a_chat.core.a2a.agent_card import AgentInfo, derive_agent_name
from a2a_chat.core.a2a.client import A2AClient
from a2a_chat.core.a2a.relay import RelayServer
from a2a_chat.core.a2a.config import ClientConfig, RelayConfig, DEFAULT_RELAY_URL
from a2a_chat.core.a2a.conversation import ContextStore, Conversation, StreamedMessageMerger
from a2a_chat.core.a2a.errors import A2AClientError, A2AProtocolError, NetworkError
from a2a_chat.core.a2a.events import (
    ArtifactUpdateEvent,
    MessageEvent,
    StatusUpdateEvent,
    TaskEvent,
    UnknownEvent,
    parse_result,
)
from a2a_chat.core.a2a.message import A2AMessage, MessageBuilder, TextPart, DataPart
from a2a_chat.core.a2a.request import (
    create_agent_card_request,
    create_send_request,
    create_stream_request,
)
from a2a_chat.core.a2a.retry import retry_with_fixed_delay
from a2a_chat.core.a2a.streaming import (
    SSEDecoder,
    StreamResult,
    StreamState,
    StreamUpdate,
    consume_stream,
)
from a2a_chat.core.a2a.task import Task, TaskContext, is_terminal_state


def sse(payload):
    """Encode one SSE record."""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


def rpc(result):
    """Wrap a result in a JSON-RPC response envelope."""
    return {"jsonrpc": "2.0", "id": "req-1", "result": result}


def agent_message(text, message_id="m-1"):
    return {
        "kind": "message",
        "messageId": message_id,
        "role": "agent",
        "parts": [{"kind": "text", "text": text}],
    }


async def chunks_of(*chunks):
    for chunk in chunks:
        yield chunk.encode("utf-8") if isinstance(chunk, str) else chunk


class RecordingSleep:
    """Sleep replacement that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


class TestRequestConstruction:
    """Test JSON-RPC request construction."""

    def test_stream_request_for_new_conversation(self):
        """A request without context opens a new task."""
        request = create_stream_request("Hello")

        assert request["jsonrpc"] == "2.0"
        assert request["method"] == "message/stream"
        assert request["id"]

        message = request["params"]["message"]
        assert message["kind"] == "message"
        assert message["role"] == "user"
        assert message["parts"] == [{"kind": "text", "text": "Hello"}]
        assert message["messageId"]
        assert "taskId" not in message
        assert "contextId" not in message
        assert "metadata" not in request["params"]

    @pytest.mark.parametrize("task_id,context_id", [
        ("", ""),
        ("task-1", ""),
        ("", "ctx-1"),
        ("task-1", "ctx-1"),
    ])
    def test_ids_included_only_when_non_empty(self, task_id, context_id):
        """taskId and contextId are present iff non-empty in the prior context."""
        context = TaskContext(task_id=task_id, context_id=context_id)

        for request in (create_send_request("hi", context), create_stream_request("hi", context)):
            message = request["params"]["message"]
            assert ("taskId" in message) == bool(task_id)
            assert ("contextId" in message) == bool(context_id)
            if task_id:
                assert message["taskId"] == task_id
            if context_id:
                assert message["contextId"] == context_id

    def test_metadata_only_when_non_empty(self):
        """Empty metadata is never sent."""
        assert "metadata" not in create_send_request("hi", metadata={})["params"]
        assert "metadata" not in create_send_request("hi", metadata=None)["params"]

        request = create_send_request("hi", metadata={"user": "alice", "limit": 3})
        assert request["params"]["metadata"] == {"user": "alice", "limit": 3}

    def test_fresh_ids_per_call(self):
        """Request ids and message ids are unique and independent."""
        first = create_send_request("hi")
        second = create_send_request("hi")

        assert first["id"] != second["id"]
        assert first["params"]["message"]["messageId"] != second["params"]["message"]["messageId"]
        assert first["id"] != first["params"]["message"]["messageId"]

    def test_agent_card_request(self):
        """The agent card request carries no params."""
        request = create_agent_card_request()

        assert request["method"] == "agent/getAuthenticatedExtendedCard"
        assert request["jsonrpc"] == "2.0"
        assert "params" not in request


class TestMessage:
    """Test A2A message functionality."""

    def test_message_builder(self):
        """Builder produces a user message with the given ids."""
        message = (MessageBuilder(role="user", task_id="t-1", context_id="c-1")
                   .add_text("Hello!")
                   .build())

        data = message.to_dict()
        assert data["kind"] == "message"
        assert data["taskId"] == "t-1"
        assert data["contextId"] == "c-1"
        assert data["parts"] == [{"kind": "text", "text": "Hello!"}]
        assert message.validate() == []

    def test_first_text_skips_non_text_parts(self):
        """first_text returns the first text part only."""
        message = A2AMessage.from_dict({
            "messageId": "m-1",
            "role": "agent",
            "parts": [
                {"kind": "data", "data": {"x": 1}},
                {"kind": "text", "text": "first"},
                {"kind": "text", "text": "second"},
            ],
        })

        assert isinstance(message.parts[0], DataPart)
        assert isinstance(message.parts[1], TextPart)
        assert message.first_text() == "first"
        assert message.get_text_content() == "first\nsecond"

    def test_unknown_parts_are_dropped(self):
        """Parts of an unknown kind are skipped."""
        message = A2AMessage.from_dict({
            "messageId": "m-1",
            "role": "agent",
            "parts": [{"kind": "video", "url": "x"}],
        })

        assert message.parts == []
        assert message.first_text() is None

    def test_message_validation(self):
        """Invalid messages report errors."""
        message = A2AMessage(message_id="", role="system", parts=[])
        errors = message.validate()

        assert any("messageId" in error for error in errors)
        assert any("role" in error for error in errors)
        assert any("part" in error for error in errors)


class TestTask:
    """Test task snapshot handling."""

    @pytest.mark.parametrize("state", ["completed", "canceled", "failed", "rejected"])
    def test_terminal_task_clears_task_id(self, state):
        """Terminal tasks clear the task id and keep the context id."""
        task = Task.from_dict({"kind": "task", "id": "t-1", "contextId": "c-1", "status": {"state": state}})

        assert is_terminal_state(state)
        assert task.next_context() == TaskContext(task_id="", context_id="c-1")

    @pytest.mark.parametrize("state", ["submitted", "working", "input-required", "auth-required", "mystery", None])
    def test_open_task_keeps_task_id(self, state):
        """Non-terminal and unrecognized states keep the task open."""
        task = Task.from_dict({"kind": "task", "id": "t-1", "contextId": "c-1", "status": {"state": state}})

        assert not is_terminal_state(state)
        assert task.next_context() == TaskContext(task_id="t-1", context_id="c-1")

    def test_context_id_falls_back_to_previous(self):
        """A task without contextId keeps the previous conversation."""
        task = Task.from_dict({"kind": "task", "id": "t-2", "status": {"state": "working"}})

        assert task.next_context(TaskContext("t-1", "c-1")) == TaskContext("t-2", "c-1")

    def test_status_agent_text(self):
        """Status text is only taken from agent messages."""
        task = Task.from_dict({
            "kind": "task",
            "id": "t-1",
            "status": {"state": "completed", "message": {**agent_message("Done"), "role": "user"}},
        })

        assert task.status.agent_text() is None

    def test_task_context_round_trip(self):
        """TaskContext serializes to the wire field names."""
        context = TaskContext(task_id="t-1", context_id="c-1")

        assert context.to_dict() == {"taskId": "t-1", "contextId": "c-1"}
        assert TaskContext.from_dict(context.to_dict()) == context
        assert TaskContext.from_dict(None).is_empty()


class TestEvents:
    """Test result classification."""

    def test_parse_known_kinds(self):
        """Each known kind maps to its event class."""
        assert isinstance(parse_result({"kind": "task", "id": "t-1"}), TaskEvent)
        assert isinstance(parse_result(agent_message("hi")), MessageEvent)
        assert isinstance(parse_result({"kind": "status-update", "taskId": "t-1"}), StatusUpdateEvent)
        assert isinstance(parse_result({"kind": "artifact-update", "taskId": "t-1"}), ArtifactUpdateEvent)

    def test_status_update_fields(self):
        """Status update events carry ids, state and the final flag."""
        event = parse_result({
            "kind": "status-update",
            "taskId": "t-1",
            "contextId": "c-1",
            "final": True,
            "status": {"state": "completed", "message": agent_message("Done.")},
        })

        assert event.task_id == "t-1"
        assert event.context_id == "c-1"
        assert event.final is True
        assert event.status.is_terminal
        assert event.status.agent_text() == "Done."

    def test_unknown_kind_is_explicit(self):
        """Unrecognized kinds become UnknownEvent."""
        event = parse_result({"kind": "push-notification", "x": 1})

        assert isinstance(event, UnknownEvent)
        assert event.kind == "push-notification"
        assert event.data["x"] == 1


class TestSSEDecoder:
    """Test SSE framing."""

    def test_records_split_across_chunks(self):
        """A record split in the middle is reassembled."""
        decoder = SSEDecoder()
        record = sse(rpc({"kind": "artifact-update"}))

        assert decoder.feed(record[:10].encode()) == []
        payloads = decoder.feed(record[10:].encode())

        assert payloads == [rpc({"kind": "artifact-update"})]

    def test_utf8_split_across_chunks(self):
        """A multi-byte character split between chunks decodes correctly."""
        decoder = SSEDecoder()
        raw = sse(rpc(agent_message("café"))).encode("utf-8")
        split = raw.index("é".encode("utf-8")) + 1

        assert decoder.feed(raw[:split]) == []
        payloads = decoder.feed(raw[split:])

        assert payloads[0]["result"]["parts"][0]["text"] == "café"

    def test_framing_lines_are_ignored(self):
        """Comments, event names, ids and blank lines are skipped."""
        decoder = SSEDecoder()
        text = ": keep-alive\n\nevent: update\nid: 7\n" + sse({"result": {"kind": "task"}})

        assert decoder.feed(text.encode()) == [{"result": {"kind": "task"}}]

    def test_done_sentinel_is_ignored(self):
        """The [DONE] sentinel yields nothing and does not end decoding."""
        decoder = SSEDecoder()
        payloads = decoder.feed(("data: [DONE]\n\n" + sse({"result": {"kind": "task"}})).encode())

        assert payloads == [{"result": {"kind": "task"}}]

    def test_malformed_frame_is_dropped(self):
        """Invalid JSON is logged and dropped without stopping the stream."""
        decoder = SSEDecoder()
        payloads = decoder.feed(("data: {not json\n\n" + sse({"result": {"kind": "task"}})).encode())

        assert payloads == [{"result": {"kind": "task"}}]
        assert decoder.malformed_frames == 1

    def test_crlf_line_endings(self):
        """Carriage returns before newlines are tolerated."""
        decoder = SSEDecoder()
        payloads = decoder.feed(b'data: {"result": {"kind": "task"}}\r\n\r\n')

        assert payloads == [{"result": {"kind": "task"}}]

    def test_flush_parses_trailing_line(self):
        """A last record without a newline is parsed on flush."""
        decoder = SSEDecoder()

        assert decoder.feed(b'data: {"result": {"kind": "task"}}') == []
        assert decoder.flush() == [{"result": {"kind": "task"}}]


class TestStreamState:
    """Test event classification and context tracking over a stream."""

    @pytest.mark.asyncio
    async def test_single_completed_task(self):
        """A completed task with agent text is the final answer, with no updates."""
        updates = []
        state = StreamState(on_update=updates.append)

        result = await consume_stream(chunks_of(sse(rpc({
            "kind": "task",
            "id": "t-1",
            "contextId": "c-9",
            "status": {"state": "completed", "message": agent_message("Hello")},
        }))), state)

        assert result == StreamResult(text="Hello", context=TaskContext(task_id="", context_id="c-9"))
        assert updates == []

    @pytest.mark.asyncio
    async def test_intermediate_then_final_status(self):
        """Non-final status text is an update; final status text is the answer."""
        updates = []
        state = StreamState(on_update=updates.append)

        result = await consume_stream(chunks_of(
            sse(rpc({
                "kind": "status-update",
                "taskId": "t-1",
                "contextId": "c-1",
                "final": False,
                "status": {"state": "working", "message": agent_message("Thinking...", "m-1")},
            })),
            sse(rpc({
                "kind": "status-update",
                "taskId": "t-1",
                "contextId": "c-1",
                "final": True,
                "status": {"state": "completed", "message": agent_message("Done.", "m-2")},
            })),
        ), state)

        assert [update.text for update in updates] == ["Thinking..."]
        assert updates[0].message_id == "m-1"
        assert updates[0].kind == "status-update"
        assert result.text == "Done."
        assert result.context == TaskContext(task_id="", context_id="c-1")

    @pytest.mark.asyncio
    async def test_artifact_update_changes_nothing(self):
        """An artifact update alone yields no text and no context change."""
        updates = []
        prior = TaskContext(task_id="t-1", context_id="c-1")
        state = StreamState(prior, on_update=updates.append)

        result = await consume_stream(chunks_of('data: {"result":{"kind":"artifact-update"}}\n\n'), state)

        assert result == StreamResult(text="", context=prior)
        assert updates == []

    @pytest.mark.asyncio
    async def test_agent_messages_are_updates(self):
        """Agent messages stream through the update channel and update the context."""
        updates = []
        state = StreamState(on_update=updates.append)

        message = agent_message("Partial", "m-1")
        message.update({"taskId": "t-5", "contextId": "c-5"})
        user_echo = {**agent_message("echo"), "role": "user"}

        result = await consume_stream(chunks_of(sse(rpc(message)), sse(rpc(user_echo))), state)

        assert [u.text for u in updates] == ["Partial"]
        assert result.text == ""
        assert result.context == TaskContext(task_id="t-5", context_id="c-5")

    @pytest.mark.asyncio
    async def test_terminal_state_clears_task_without_final_flag(self):
        """A terminal status clears the task id even when not marked final."""
        state = StreamState()

        result = await consume_stream(chunks_of(sse(rpc({
            "kind": "status-update",
            "taskId": "t-1",
            "contextId": "c-1",
            "final": False,
            "status": {"state": "failed"},
        }))), state)

        assert result.context == TaskContext(task_id="", context_id="c-1")

    @pytest.mark.asyncio
    async def test_round_trip_keeps_open_context(self):
        """Echoed ids of a non-terminal task leave the context unchanged."""
        context = TaskContext(task_id="t-1", context_id="c-1")
        request = create_stream_request("continue", context)
        message = request["params"]["message"]

        state = StreamState(context)
        result = await consume_stream(chunks_of(sse(rpc({
            "kind": "task",
            "id": message["taskId"],
            "contextId": message["contextId"],
            "status": {"state": "working"},
        }))), state)

        assert result.context == context

    @pytest.mark.asyncio
    async def test_error_payload_aborts_attempt(self):
        """A JSON-RPC error in the stream raises a protocol error."""
        state = StreamState()

        with pytest.raises(A2AProtocolError) as exc_info:
            await consume_stream(chunks_of(sse({"error": {"code": -32000, "message": "boom"}})), state)

        assert str(exc_info.value) == "boom"
        assert exc_info.value.code == -32000

    def test_empty_error_object_aborts_attempt(self):
        """An empty error object is still an error."""
        with pytest.raises(A2AProtocolError, match="Unknown error"):
            StreamState().handle_payload({"jsonrpc": "2.0", "id": "req-1", "error": {}})

        assert StreamState().handle_payload({"error": None, "result": {"kind": "task", "id": "t-1"}}) is not None

    @pytest.mark.asyncio
    async def test_unknown_kind_is_ignored(self):
        """Unknown kinds do not fail the stream."""
        state = StreamState(TaskContext("t-1", "c-1"))

        result = await consume_stream(chunks_of(sse(rpc({"kind": "future-thing"}))), state)

        assert result.context == TaskContext("t-1", "c-1")
        assert state.events_seen == 1

    def test_state_does_not_mutate_caller_context(self):
        """The caller's context object is never modified."""
        prior = TaskContext(task_id="t-1", context_id="c-1")
        state = StreamState(prior)
        state.handle_payload(rpc({"kind": "status-update", "taskId": "t-2", "status": {"state": "completed"}}))

        assert prior == TaskContext(task_id="t-1", context_id="c-1")
        assert state.context == TaskContext(task_id="", context_id="c-1")


class TestRetry:
    """Test fixed-delay retry orchestration."""

    @pytest.mark.asyncio
    async def test_succeeds_after_failures(self):
        """Three failures then success: three fixed delays."""
        sleep = RecordingSleep()
        calls = []

        async def operation(attempt):
            calls.append(attempt)
            if attempt <= 3:
                raise NetworkError(f"refused {attempt}")
            return "ok"

        result = await retry_with_fixed_delay(operation, attempts=5, delay=5.0, sleep=sleep)

        assert result == "ok"
        assert calls == [1, 2, 3, 4]
        assert sleep.delays == [5.0, 5.0, 5.0]

    @pytest.mark.asyncio
    async def test_exhausted_raises_last_error(self):
        """When every attempt fails the last error propagates."""
        sleep = RecordingSleep()

        async def operation(attempt):
            raise NetworkError(f"refused {attempt}")

        with pytest.raises(NetworkError, match="refused 5"):
            await retry_with_fixed_delay(operation, attempts=5, delay=5.0, sleep=sleep)

        assert sleep.delays == [5.0] * 4

    @pytest.mark.asyncio
    async def test_non_retryable_error_propagates(self):
        """Errors outside retry_on are not retried."""
        sleep = RecordingSleep()

        async def operation(attempt):
            raise RuntimeError("callback failed")

        with pytest.raises(RuntimeError):
            await retry_with_fixed_delay(operation, attempts=5, delay=5.0, sleep=sleep)

        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_requires_an_attempt(self):
        """Zero attempts is rejected."""
        with pytest.raises(ValueError):
            await retry_with_fixed_delay(AsyncMock(), attempts=0, delay=1.0)


class TestConfig:
    """Test configuration loading."""

    def test_defaults(self):
        """An empty environment yields the defaults."""
        config = ClientConfig.from_env({})

        assert config.relay_url == DEFAULT_RELAY_URL
        assert config.retry_attempts == 5
        assert config.retry_delay == 5.0
        assert config.verify_ssl is True

    def test_overrides(self):
        """Environment variables override defaults."""
        config = ClientConfig.from_env({
            "A2A_CHAT_RELAY_URL": "http://relay:9000/api/proxy",
            "A2A_CHAT_TIMEOUT": "12.5",
            "A2A_CHAT_RETRY_ATTEMPTS": "2",
            "A2A_CHAT_RETRY_DELAY": "0",
            "A2A_CHAT_VERIFY_SSL": "false",
        })

        assert config.relay_url == "http://relay:9000/api/proxy"
        assert config.timeout == 12.5
        assert config.retry_attempts == 2
        assert config.retry_delay == 0.0
        assert config.verify_ssl is False

    def test_empty_relay_url_means_direct(self):
        """An empty relay URL selects direct mode."""
        assert ClientConfig.from_env({"A2A_CHAT_RELAY_URL": ""}).relay_url is None

    @pytest.mark.parametrize("env", [
        {"A2A_CHAT_RETRY_ATTEMPTS": "many"},
        {"A2A_CHAT_RETRY_ATTEMPTS": "0"},
        {"A2A_CHAT_TIMEOUT": "soon"},
        {"A2A_CHAT_VERIFY_SSL": "maybe"},
    ])
    def test_invalid_values(self, env):
        """Invalid values are rejected."""
        with pytest.raises(ValueError):
            ClientConfig.from_env(env)

    def test_relay_config(self):
        """Relay settings come from the environment."""
        config = RelayConfig.from_env({"A2A_CHAT_RELAY_PORT": "4000", "A2A_CHAT_RELAY_HOST": "0.0.0.0"})

        assert config.port == 4000
        assert config.host == "0.0.0.0"
        assert config.enable_cors is True

    def test_client_from_config(self):
        """A client picks its settings from the configuration."""
        client = A2AClient.from_config(
            "http://agent.example.com/",
            ClientConfig(relay_url=None, retry_attempts=2, retry_delay=0.5)
        )

        assert client.relay_url is None
        assert client.retry_attempts == 2
        assert client.retry_delay == 0.5

    def test_relay_from_config(self):
        """A relay picks its settings from the configuration."""
        relay = RelayServer.from_config(RelayConfig(host="0.0.0.0", port=4000, enable_cors=False))

        assert relay.host == "0.0.0.0"
        assert relay.port == 4000
        assert relay.enable_cors is False


class TestAgentInfo:
    """Test agent card extraction."""

    def test_from_card(self):
        """Name, description and skills are extracted."""
        info = AgentInfo.from_card({
            "name": "Weather",
            "description": "Forecasts",
            "skills": [{"id": "f", "name": "forecast", "description": "Daily", "tags": ["weather"]}],
        })

        assert info.name == "Weather"
        assert info.description == "Forecasts"
        assert info.skills[0].name == "forecast"
        assert info.skills[0].tags == ["weather"]

    def test_missing_name_uses_host(self):
        """Without a name the caller falls back to the host."""
        info = AgentInfo.from_card({})

        assert info.name is None
        assert info.skills == []
        assert info.display_name("https://agents.example.com/a2a") == "agents.example.com"

    def test_derive_agent_name(self):
        """Ports are kept; unparsable input gets a generic name."""
        assert derive_agent_name("http://localhost:8080/") == "localhost:8080"
        assert derive_agent_name("example.org") == "example.org"
        assert derive_agent_name("") == "Unknown Agent"


class TestConversation:
    """Test caller-side context store and message merging."""

    def test_context_store(self):
        """Stored contexts are copies and can be cleared."""
        store = ContextStore()
        context = TaskContext("t-1", "c-1")
        store.set("agent", context)
        context.task_id = "changed"

        assert store.get("agent") == TaskContext("t-1", "c-1")
        assert store.get("other") == TaskContext()
        assert store.agent_ids() == ["agent"]

        store.clear("agent")
        assert store.get("agent").is_empty()

    def test_merger_prefix_growth(self):
        """Growing text updates the same logical message."""
        merger = StreamedMessageMerger()

        first_id, first_new = merger.merge(StreamUpdate(text="Hel", kind="message"))
        second_id, second_new = merger.merge(StreamUpdate(text="Hello", kind="message"))
        third_id, third_new = merger.merge(StreamUpdate(text="Other", kind="message"))

        assert first_new and not second_new and third_new
        assert first_id == second_id != third_id
        assert merger.texts() == ["Hello", "Other"]

    def test_merger_prefers_message_id(self):
        """A known message id wins even when the text does not extend."""
        merger = StreamedMessageMerger()

        entry_id, _ = merger.merge(StreamUpdate(text="Draft one", kind="message", message_id="m-1"))
        same_id, is_new = merger.merge(StreamUpdate(text="Rewritten", kind="message", message_id="m-1"))

        assert same_id == entry_id
        assert not is_new
        assert merger.texts() == ["Rewritten"]

    @pytest.mark.asyncio
    async def test_send_stores_context_on_success(self):
        """A successful turn stores the returned context and reports merged messages."""
        store = ContextStore()
        store.set("agent", TaskContext("", "c-1"))
        client = AsyncMock()

        async def fake_stream(text, context, metadata, on_update):
            assert context == TaskContext("", "c-1")
            on_update(StreamUpdate(text="Work", kind="status-update"))
            on_update(StreamUpdate(text="Working", kind="status-update"))
            return StreamResult(text="Done", context=TaskContext("", "c-1"))

        client.send_message_streaming.side_effect = fake_stream
        seen = []

        conversation = Conversation(client, store, "agent")
        result = await conversation.send("hi", on_message=lambda *args: seen.append(args))

        assert result.text == "Done"
        assert store.get("agent") == TaskContext("", "c-1")
        assert [(text, is_new) for _, text, is_new in seen] == [("Work", True), ("Working", False)]
        assert conversation.final_text_is_new(result)

    @pytest.mark.asyncio
    async def test_send_keeps_context_on_failure(self):
        """A failed turn leaves the stored context untouched."""
        store = ContextStore()
        store.set("agent", TaskContext("t-1", "c-1"))
        client = AsyncMock()
        client.send_message_streaming.side_effect = A2AClientError("exhausted")

        conversation = Conversation(client, store, "agent")
        with pytest.raises(A2AClientError):
            await conversation.send("hi")

        assert store.get("agent") == TaskContext("t-1", "c-1")

    def test_final_text_already_streamed(self):
        """A final text equal to a streamed message is not new."""
        conversation = Conversation(AsyncMock(), ContextStore(), "agent")
        conversation.last_streamed = ["Done"]

        assert not conversation.final_text_is_new(StreamResult(text="Done", context=TaskContext()))
        assert not conversation.final_text_is_new(StreamResult(text="", context=TaskContext()))

    def test_reset(self):
        """Reset forgets the stored context."""
        store = ContextStore()
        store.set("agent", TaskContext("t-1", "c-1"))

        Conversation(AsyncMock(), store, "agent").reset()

        assert store.get("agent").is_empty()


if __name__ == "__main__":
    # Run tests with pytest
    pytest.main([__file__, "-v"])
