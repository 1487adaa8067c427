"""
A2A result variants.

Every JSON-RPC ``result`` returned by an agent carries a ``kind`` tag.
``parse_result`` maps it onto one of the event classes below; tags this
client does not know become an ``UnknownEvent`` instead of being dropped.
"""

from typing import Dict, Optional, Any, Union
from dataclasses import dataclass, field

from .message import A2AMessage
from .task import Task, TaskStatus

import logging

logger = logging.getLogger(__name__)


KIND_TASK = "task"
KIND_MESSAGE = "message"
KIND_STATUS_UPDATE = "status-update"
KIND_ARTIFACT_UPDATE = "artifact-update"


@dataclass
class TaskEvent:
    """Task snapshot, usually the first event of a stream."""
    task: Task
    kind: str = KIND_TASK


@dataclass
class MessageEvent:
    """A message emitted directly by the agent."""
    message: A2AMessage
    kind: str = KIND_MESSAGE


@dataclass
class StatusUpdateEvent:
    """Task status transition."""
    task_id: Optional[str]
    context_id: Optional[str]
    status: TaskStatus
    final: bool = False
    kind: str = KIND_STATUS_UPDATE


@dataclass
class ArtifactUpdateEvent:
    """Artifact produced by the task."""
    task_id: Optional[str]
    context_id: Optional[str]
    artifact: Dict[str, Any] = field(default_factory=dict)
    append: bool = False
    last_chunk: bool = False
    kind: str = KIND_ARTIFACT_UPDATE


@dataclass
class UnknownEvent:
    """Result whose kind is not recognized."""
    kind: Optional[str]
    data: Dict[str, Any] = field(default_factory=dict)


ResultEvent = Union[TaskEvent, MessageEvent, StatusUpdateEvent, ArtifactUpdateEvent, UnknownEvent]


def parse_result(result: Dict[str, Any]) -> ResultEvent:
    """Classify a JSON-RPC result by its ``kind``."""
    kind = result.get("kind")

    if kind == KIND_TASK:
        return TaskEvent(task=Task.from_dict(result))

    if kind == KIND_MESSAGE:
        return MessageEvent(message=A2AMessage.from_dict(result))

    if kind == KIND_STATUS_UPDATE:
        return StatusUpdateEvent(
            task_id=result.get("taskId"),
            context_id=result.get("contextId"),
            status=TaskStatus.from_dict(result.get("status")),
            final=bool(result.get("final", False))
        )

    if kind == KIND_ARTIFACT_UPDATE:
        return ArtifactUpdateEvent(
            task_id=result.get("taskId"),
            context_id=result.get("contextId"),
            artifact=dict(result.get("artifact") or {}),
            append=bool(result.get("append", False)),
            last_chunk=bool(result.get("lastChunk", False))
        )

    return UnknownEvent(kind=kind, data=result)
