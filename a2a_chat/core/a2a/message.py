"""
A2A Message implementation.

Handles message structure, parts, and serialization for A2A protocol communication.
"""

import json
import uuid
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from abc import ABC, abstractmethod

import logging

logger = logging.getLogger(__name__)


class MessagePart(ABC):
    """Abstract base class for message parts."""

    kind: str = ""

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Convert part to dictionary."""
        pass

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Optional['MessagePart']:
        """Create the matching part type from dictionary."""
        kind = data.get("kind")
        if kind == "text":
            return TextPart.from_dict(data)
        if kind == "file":
            return FilePart.from_dict(data)
        if kind == "data":
            return DataPart.from_dict(data)

        logger.warning(f"Unknown part kind: {kind}")
        return None


@dataclass
class TextPart(MessagePart):
    """Text content part of a message."""

    text: str
    kind: str = "text"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"kind": "text", "text": self.text}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TextPart':
        """Create from dictionary."""
        return cls(text=data.get("text") or "")


@dataclass
class FilePart(MessagePart):
    """File part of a message, carried either inline or by URI."""

    file: Dict[str, Any]
    kind: str = "file"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"kind": "file", "file": self.file}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FilePart':
        """Create from dictionary."""
        return cls(file=dict(data.get("file") or {}))


@dataclass
class DataPart(MessagePart):
    """Structured data part of a message."""

    data: Dict[str, Any]
    kind: str = "data"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"kind": "data", "data": self.data}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DataPart':
        """Create from dictionary."""
        return cls(data=dict(data.get("data") or {}))


@dataclass
class A2AMessage:
    """
    A2A Message following the Agent2Agent specification.

    Represents a communication turn between a user and an agent with
    support for multimodal content through message parts.
    """

    # Required fields
    message_id: str
    role: str  # "user" or "agent"
    parts: List[MessagePart] = field(default_factory=list)

    # Optional fields
    task_id: Optional[str] = None
    context_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert message to its wire representation."""
        data = {
            "kind": "message",
            "messageId": self.message_id,
            "role": self.role,
            "parts": [part.to_dict() for part in self.parts],
            "taskId": self.task_id or None,
            "contextId": self.context_id or None,
            "metadata": self.metadata or None
        }
        return {k: v for k, v in data.items() if v is not None}

    def to_json(self) -> str:
        """Convert message to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'A2AMessage':
        """Create message from dictionary."""
        parts = []
        for part_data in data.get("parts") or []:
            if not isinstance(part_data, dict):
                continue
            part = MessagePart.from_dict(part_data)
            if part is not None:
                parts.append(part)

        return cls(
            message_id=data.get("messageId") or "",
            role=data.get("role") or "",
            parts=parts,
            task_id=data.get("taskId"),
            context_id=data.get("contextId"),
            metadata=data.get("metadata")
        )

    @classmethod
    def from_json(cls, json_str: str) -> 'A2AMessage':
        """Create message from JSON string."""
        return cls.from_dict(json.loads(json_str))

    def first_text(self) -> Optional[str]:
        """Text of the first text part, or None if there is no text part."""
        for part in self.parts:
            if isinstance(part, TextPart):
                return part.text
        return None

    def get_text_content(self) -> str:
        """Get all text content from the message."""
        return "\n".join(part.text for part in self.parts if isinstance(part, TextPart))

    def validate(self) -> List[str]:
        """Validate message and return list of errors."""
        errors = []

        if not self.message_id:
            errors.append("messageId is required")
        if self.role not in ['user', 'agent']:
            errors.append("role must be 'user' or 'agent'")
        if not self.parts:
            errors.append("at least one message part is required")

        return errors


class MessageBuilder:
    """Builder class for creating outbound A2A messages."""

    def __init__(self, role: str = "user", task_id: Optional[str] = None, context_id: Optional[str] = None):
        """Initialize message builder with a fresh message id."""
        self.message_id = str(uuid.uuid4())
        self.role = role
        self.task_id = task_id
        self.context_id = context_id
        self.parts: List[MessagePart] = []
        self.metadata: Dict[str, Any] = {}

    def add_text(self, text: str) -> 'MessageBuilder':
        """Add text part to message."""
        self.parts.append(TextPart(text=text))
        return self

    def add_data(self, data: Dict[str, Any]) -> 'MessageBuilder':
        """Add data part to message."""
        self.parts.append(DataPart(data=data))
        return self

    def set_metadata(self, metadata: Dict[str, Any]) -> 'MessageBuilder':
        """Set message metadata."""
        self.metadata = metadata
        return self

    def build(self) -> A2AMessage:
        """Build the A2A message."""
        message = A2AMessage(
            message_id=self.message_id,
            role=self.role,
            parts=self.parts,
            task_id=self.task_id,
            context_id=self.context_id,
            metadata=self.metadata
        )

        logger.debug(f"Built A2A message {self.message_id} with {len(self.parts)} parts")
        return message
