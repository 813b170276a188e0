"""
Event Log — Append-only record of scope lifecycle and sync activity

Events are immutable. Once written, never modified. The registry document
stays the source of truth for scope state; the log is history for audit.

Format: one JSON object per line in .scopekit/_events/events.jsonl.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import orjson
import xxhash

from .models import utc_now

logger = logging.getLogger(__name__)

EVENTS_FILE = "events.jsonl"


class EventType(Enum):
    SYSTEM_INITIALIZED = "system_initialized"

    # Registry
    SCOPE_CREATED = "scope_created"
    SCOPE_UPDATED = "scope_updated"
    SCOPE_REMOVED = "scope_removed"
    SCOPE_ARCHIVED = "scope_archived"
    SCOPE_ACTIVATED = "scope_activated"

    # Sync
    SYNC_UP = "sync_up"
    SYNC_DOWN = "sync_down"

    # Migration
    MIGRATED = "migrated"
    ROLLED_BACK = "rolled_back"


@dataclass
class Event:
    type: EventType
    scope_id: Optional[str]
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=utc_now)
    id: str = ""

    def __post_init__(self):
        if not self.id:
            content = orjson.dumps(
                [self.type.value, self.scope_id, self.timestamp, self.data],
                option=orjson.OPT_SORT_KEYS,
            )
            self.id = xxhash.xxh64(content).hexdigest()[:16]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "scope_id": self.scope_id,
            "data": self.data,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Event':
        return cls(
            type=EventType(d["type"]),
            scope_id=d.get("scope_id"),
            data=d.get("data") or {},
            timestamp=d["timestamp"],
            id=d.get("id", ""),
        )


class EventLog:
    """Single-file JSONL log. Directory is created on first append."""

    def __init__(self, events_dir: Path):
        self.path = Path(events_dir) / EVENTS_FILE

    def append(self, event_type: EventType, scope_id: Optional[str] = None, **data) -> Event:
        """Append an event. Returns it with its ID."""
        event = Event(type=event_type, scope_id=scope_id, data=data)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "ab") as f:
            f.write(orjson.dumps(event.to_dict()) + b"\n")
        return event

    def read_all(self) -> List[Event]:
        """Read all events in order."""
        events = []
        if not self.path.exists():
            return events
        with open(self.path, "rb") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    events.append(Event.from_dict(orjson.loads(line)))
                except (orjson.JSONDecodeError, KeyError, ValueError, TypeError):
                    logger.debug("Skipping malformed event line in %s", self.path)
                    continue
        return events

    def read_for_scope(self, scope_id: str) -> List[Event]:
        return [e for e in self.read_all() if e.scope_id == scope_id]

    def read_by_type(self, event_type: EventType) -> List[Event]:
        return [e for e in self.read_all() if e.type == event_type]

    def count(self) -> int:
        return len(self.read_all())
