"""
A2A Task implementation.

Task state, task status and the running task/conversation context that
a client carries from one turn to the next.
"""

from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum

from .message import A2AMessage

import logging

logger = logging.getLogger(__name__)


class TaskState(Enum):
    """Task state enumeration."""
    SUBMITTED = "submitted"
    WORKING = "working"
    INPUT_REQUIRED = "input-required"
    COMPLETED = "completed"
    CANCELED = "canceled"
    FAILED = "failed"
    REJECTED = "rejected"
    AUTH_REQUIRED = "auth-required"
    UNKNOWN = "unknown"


TERMINAL_STATES = frozenset({
    TaskState.COMPLETED.value,
    TaskState.CANCELED.value,
    TaskState.FAILED.value,
    TaskState.REJECTED.value,
})


def is_terminal_state(state: Optional[str]) -> bool:
    """Check whether a raw state string is terminal."""
    return state in TERMINAL_STATES


@dataclass
class TaskContext:
    """
    Task and conversation identifiers for one agent.

    An empty ``task_id`` means the next turn starts a fresh task; the
    ``context_id`` survives terminal tasks so the agent keeps continuity.
    """

    task_id: str = ""
    context_id: str = ""

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary."""
        return {"taskId": self.task_id, "contextId": self.context_id}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'TaskContext':
        """Create from dictionary."""
        if not data:
            return cls()
        return cls(
            task_id=data.get("taskId") or "",
            context_id=data.get("contextId") or ""
        )

    def copy(self) -> 'TaskContext':
        """Return an independent copy."""
        return TaskContext(task_id=self.task_id, context_id=self.context_id)

    def is_empty(self) -> bool:
        """Check if neither identifier is set."""
        return not self.task_id and not self.context_id


@dataclass
class TaskStatus:
    """Status of a task: its state and an optional status message."""

    state: Optional[str] = None
    message: Optional[A2AMessage] = None
    timestamp: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return is_terminal_state(self.state)

    def agent_text(self) -> Optional[str]:
        """Text of the status message, only when it was written by the agent."""
        if self.message is None or self.message.role != "agent":
            return None
        return self.message.first_text()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = {
            "state": self.state,
            "message": self.message.to_dict() if self.message else None,
            "timestamp": self.timestamp
        }
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'TaskStatus':
        """Create from dictionary."""
        if not isinstance(data, dict):
            return cls()

        message = None
        if isinstance(data.get("message"), dict):
            message = A2AMessage.from_dict(data["message"])

        return cls(
            state=data.get("state"),
            message=message,
            timestamp=data.get("timestamp")
        )


@dataclass
class Task:
    """
    A2A Task snapshot as returned by a remote agent.

    Represents a unit of work with a status and the message history
    exchanged so far.
    """

    # Required fields
    task_id: str

    # Optional fields
    context_id: Optional[str] = None
    status: TaskStatus = field(default_factory=TaskStatus)
    history: List[A2AMessage] = field(default_factory=list)
    artifacts: List[Dict[str, Any]] = field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def to_dict(self) -> Dict[str, Any]:
        """Convert task to dictionary."""
        data = {
            "kind": "task",
            "id": self.task_id,
            "contextId": self.context_id,
            "status": self.status.to_dict(),
            "history": [message.to_dict() for message in self.history] or None,
            "artifacts": self.artifacts or None,
            "metadata": self.metadata
        }
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Task':
        """Create task from dictionary."""
        history = [
            A2AMessage.from_dict(entry)
            for entry in data.get("history") or []
            if isinstance(entry, dict)
        ]

        return cls(
            task_id=data.get("id") or "",
            context_id=data.get("contextId"),
            status=TaskStatus.from_dict(data.get("status")),
            history=history,
            artifacts=list(data.get("artifacts") or []),
            metadata=data.get("metadata")
        )

    def next_context(self, previous: Optional[TaskContext] = None) -> TaskContext:
        """
        Context to use for the next turn.

        A terminal task clears the task id so the next message opens a new
        task; the conversation id is kept.
        """
        context_id = self.context_id
        if not context_id and previous is not None:
            context_id = previous.context_id

        return TaskContext(
            task_id="" if self.is_terminal else self.task_id,
            context_id=context_id or ""
        )
