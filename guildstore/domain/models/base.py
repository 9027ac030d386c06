"""
Base classes for Guildstore domain models.

An `Entity` is identified by `id`; two instances with the same id compare
equal whatever their other state. An `AggregateRoot` is the only object
callers mutate directly, and it records a `DomainEvent` for every change it
makes.

Events are only collected here. Nothing in Guildstore publishes or drains
them: the host application reads them with `get_pending_events()` and must
call `clear_domain_events()` after handling them, otherwise they accumulate
for the lifetime of the entity.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Hashable, List


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DomainEvent:
    """Something that happened to an aggregate, e.g. `guild.member_added`."""

    event_name: str
    payload: Dict[str, Any]
    occurred_at: datetime = field(default_factory=_utcnow)


class Entity(ABC):
    def __init__(self, entity_id: Hashable) -> None:
        self._id = entity_id
        self._domain_events: List[DomainEvent] = []

    @property
    def id(self) -> Hashable:
        return self._id

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return False
        return self._id == other._id  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash(self._id)

    # -------------------------------------------------------------------------
    # Domain events
    # -------------------------------------------------------------------------

    def add_domain_event(self, event_name: str, payload: Dict[str, Any]) -> None:
        self._domain_events.append(DomainEvent(event_name, payload))

    def get_pending_events(self) -> List[DomainEvent]:
        """Copy of the events recorded since the last clear."""
        return list(self._domain_events)

    def clear_domain_events(self) -> List[DomainEvent]:
        """Drain and return the recorded events."""
        drained, self._domain_events = self._domain_events, []
        return drained


class AggregateRoot(Entity):
    """Consistency boundary; must not hand out its internal collections."""
