"""
Event Log
=========

Append-only record of what each component did, named after the events
the on-chain contracts emit (Transfer, UpdateUser, NFTRented, ...).
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Event:
    """A single recorded event."""
    sequence: int
    name: str
    args: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"sequence": self.sequence, "name": self.name, "args": dict(self.args)}


class EventLog:
    """
    Ordered event history for one component.

    Components emit while holding their own lock, so the log order is the
    order in which their state changed.
    """

    def __init__(self, source: str):
        self.source = source
        self._events: List[Event] = []
        self._lock = threading.Lock()

    def emit(self, name: str, **args) -> Event:
        with self._lock:
            event = Event(sequence=len(self._events) + 1, name=name, args=args)
            self._events.append(event)
        logger.debug("%s emitted %s %s", self.source, name, args)
        return event

    def events(self, name: Optional[str] = None) -> List[Event]:
        """All events, or only those with the given name."""
        with self._lock:
            if name is None:
                return list(self._events)
            return [e for e in self._events if e.name == name]

    def last(self, name: Optional[str] = None) -> Optional[Event]:
        matching = self.events(name)
        return matching[-1] if matching else None
