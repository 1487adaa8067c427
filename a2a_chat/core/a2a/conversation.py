"""
Conversation state kept on the caller's side of the A2A client.

``ContextStore`` remembers the last TaskContext per agent and serializes
turns per agent. ``StreamedMessageMerger`` correlates streamed updates
that belong to one logical message. ``Conversation`` ties both to a client
for one agent.
"""

import asyncio
import uuid
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Tuple

from .client import A2AClient
from .streaming import StreamResult, StreamUpdate
from .task import TaskContext

import logging

logger = logging.getLogger(__name__)

MessageCallback = Callable[[str, str, bool], None]


class ContextStore:
    """In-memory map from agent id to its last known TaskContext."""

    def __init__(self):
        self._contexts: Dict[str, TaskContext] = {}
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def get(self, agent_id: str) -> TaskContext:
        """Context for an agent; an empty one if nothing is stored."""
        context = self._contexts.get(agent_id)
        return context.copy() if context else TaskContext()

    def set(self, agent_id: str, context: TaskContext) -> None:
        """Store the context returned by a successful call."""
        self._contexts[agent_id] = context.copy()
        logger.debug(f"Stored context for agent {agent_id}: {context.to_dict()}")

    def clear(self, agent_id: str) -> None:
        """Forget the context of an agent."""
        self._contexts.pop(agent_id, None)

    def agent_ids(self) -> List[str]:
        """Ids of all agents with a stored context."""
        return list(self._contexts.keys())

    @asynccontextmanager
    async def turn(self, agent_id: str) -> AsyncIterator[None]:
        """Hold the agent's turn lock; turns for other agents are unaffected."""
        async with self._locks[agent_id]:
            yield


class StreamedMessageMerger:
    """
    Correlates streamed updates of one call into logical messages.

    An update whose ``message_id`` was already seen replaces that entry.
    Without a known id, an update whose text extends a tracked text is
    treated as the same message. That prefix match is ambiguous: an
    unrelated message that happens to start with an earlier message's text
    is merged into it.
    """

    def __init__(self):
        self._texts: Dict[str, str] = {}
        self._ids_by_message: Dict[str, str] = {}

    def merge(self, update: StreamUpdate) -> Tuple[str, bool]:
        """Record an update; return ``(entry_id, is_new)``."""
        if update.message_id and update.message_id in self._ids_by_message:
            entry_id = self._ids_by_message[update.message_id]
            self._texts[entry_id] = update.text
            return entry_id, False

        for entry_id, text in self._texts.items():
            if update.text.startswith(text):
                self._texts[entry_id] = update.text
                if update.message_id:
                    self._ids_by_message[update.message_id] = entry_id
                return entry_id, False

        entry_id = f"msg-stream-{uuid.uuid4()}"
        self._texts[entry_id] = update.text
        if update.message_id:
            self._ids_by_message[update.message_id] = entry_id
        return entry_id, True

    def texts(self) -> List[str]:
        """Latest text of every logical message, in arrival order."""
        return list(self._texts.values())


class Conversation:
    """One user's conversation with one agent."""

    def __init__(self, client: A2AClient, store: ContextStore, agent_id: str):
        self.client = client
        self.store = store
        self.agent_id = agent_id
        self.last_streamed: List[str] = []

    async def send(
        self,
        text: str,
        metadata: Optional[Dict[str, Any]] = None,
        on_message: Optional[MessageCallback] = None
    ) -> StreamResult:
        """
        Run one streaming turn.

        ``on_message(entry_id, text, is_new)`` is called for every merged
        update. The stored context is replaced only when the call succeeds.
        """
        async with self.store.turn(self.agent_id):
            merger = StreamedMessageMerger()

            def handle_update(update: StreamUpdate) -> None:
                entry_id, is_new = merger.merge(update)
                if on_message is not None:
                    on_message(entry_id, update.text, is_new)

            result = await self.client.send_message_streaming(
                text,
                self.store.get(self.agent_id),
                metadata,
                handle_update
            )

            self.store.set(self.agent_id, result.context)
            self.last_streamed = merger.texts()
            return result

    def final_text_is_new(self, result: StreamResult) -> bool:
        """True when the final text is not one of the messages already streamed."""
        return bool(result.text) and result.text not in self.last_streamed

    def reset(self) -> None:
        """Start over: the next turn opens a new task in a new context."""
        self.store.clear(self.agent_id)
        self.last_streamed = []
