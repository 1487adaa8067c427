"""
Agent Card implementation for A2A protocol.

The parts of an agent card that are shown to a user: name, description
and the skills the agent advertises.
"""

import json
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, asdict, field
from urllib.parse import urlparse

import logging

logger = logging.getLogger(__name__)


@dataclass
class AgentSkill:
    """Represents a skill advertised by an agent."""
    id: str
    name: str
    description: str = ""
    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AgentSkill':
        """Create skill from dictionary."""
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            tags=[str(tag) for tag in data.get("tags") or []]
        )


@dataclass
class AgentInfo:
    """
    Display metadata from an agent card.

    ``name`` is None when the card does not carry one; callers pick a
    fallback, usually with ``derive_agent_name``.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    skills: List[AgentSkill] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert agent info to dictionary."""
        return asdict(self)

    def to_json(self) -> str:
        """Convert agent info to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_card(cls, card: Dict[str, Any]) -> 'AgentInfo':
        """Extract display metadata from an agent card result."""
        skills = []
        for skill in card.get("skills") or []:
            if isinstance(skill, dict):
                skills.append(AgentSkill.from_dict(skill))
            else:
                logger.warning(f"Ignoring malformed skill entry: {skill!r}")

        return cls(
            name=card.get("name") or None,
            description=card.get("description"),
            skills=skills
        )

    def display_name(self, url: str) -> str:
        """Name to show for the agent, derived from its URL when absent."""
        return self.name or derive_agent_name(url)


def derive_agent_name(url: str) -> str:
    """Fallback agent name built from the host part of its URL."""
    parsed = urlparse(url if "://" in url else f"http://{url}")
    host = parsed.hostname or ""
    if not host:
        return "Unknown Agent"
    if parsed.port:
        return f"{host}:{parsed.port}"
    return host
