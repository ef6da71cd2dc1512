"""
Session context helpers built on the coordinator's ``session`` namespace.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from memcoord.types import utc_now

if TYPE_CHECKING:
    from memcoord.coordinator import MemoryCoordinator

SESSION_NAMESPACE = "session"


@dataclass
class SessionDecision:
    """A decision recorded during a session."""

    description: str
    rationale: str
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "description": self.description,
            "rationale": self.rationale,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionDecision:
        return cls(
            description=data["description"],
            rationale=data["rationale"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


@dataclass
class SessionContext:
    """Mutable state of an analysis session.

    Saved whole under its session ID; there is no partial update.
    """

    session_id: str
    started_at: datetime = field(default_factory=utc_now)
    repository: str | None = None
    branch: str | None = None
    analysis_state: dict[str, Any] = field(default_factory=dict)
    decisions: list[SessionDecision] = field(default_factory=list)
    artifacts: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-ready dict."""
        return {
            "session_id": self.session_id,
            "started_at": self.started_at.isoformat(),
            "repository": self.repository,
            "branch": self.branch,
            "analysis_state": self.analysis_state,
            "decisions": [d.to_dict() for d in self.decisions],
            "artifacts": self.artifacts,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionContext:
        """Build a context from its stored form."""
        return cls(
            session_id=data["session_id"],
            started_at=datetime.fromisoformat(data["started_at"]),
            repository=data.get("repository"),
            branch=data.get("branch"),
            analysis_state=data.get("analysis_state", {}),
            decisions=[SessionDecision.from_dict(d) for d in data.get("decisions", [])],
            artifacts=list(data.get("artifacts", [])),
        )


async def save_session_context(coordinator: MemoryCoordinator, context: SessionContext) -> None:
    """Persist a session context under its ID."""
    await coordinator.store(SESSION_NAMESPACE, context.session_id, context.to_dict())


async def load_session_context(
    coordinator: MemoryCoordinator, session_id: str
) -> SessionContext | None:
    """Load a session context, or None if absent or expired."""
    data = await coordinator.retrieve(SESSION_NAMESPACE, session_id)
    if data is None:
        return None
    return SessionContext.from_dict(data)


async def add_session_decision(
    coordinator: MemoryCoordinator,
    session_id: str,
    description: str,
    rationale: str,
) -> bool:
    """Append a decision to an existing session.

    Returns:
        False if the session does not exist.
    """
    context = await load_session_context(coordinator, session_id)
    if context is None:
        return False

    context.decisions.append(SessionDecision(description=description, rationale=rationale))
    await save_session_context(coordinator, context)
    return True
