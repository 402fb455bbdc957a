"""
Collaborators - Narrow interfaces to the infrastructure around an engine.

The engines do not authenticate callers, emit telemetry, source session
ids or talk to external services themselves. They call out through:
- Authenticator: may the current caller act as this player?
- EventSink: fire-and-forget domain events
- SequenceSource: monotonically changing session ids
- HubClient: optional registration with an external game hub

Implementations here are the in-process defaults; a host can plug in its own.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from collections import deque
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Iterator
import itertools
import logging
import threading
import time

logger = logging.getLogger(__name__)


# =============================================================================
# Authentication
# =============================================================================

_current_caller: ContextVar[str | None] = ContextVar("zkarena_caller", default=None)


@contextmanager
def acting_as(caller: str | None) -> Iterator[None]:
    """Bind the authenticated caller for the duration of a block."""
    token = _current_caller.set(caller)
    try:
        yield
    finally:
        _current_caller.reset(token)


def current_caller() -> str | None:
    return _current_caller.get()


class Authenticator(ABC):
    """Decides whether the current caller may act as a named player."""

    @abstractmethod
    def authorize(self, player: str) -> bool:
        pass


class TrustingAuthenticator(Authenticator):
    """Accepts every player. For tests and trusted single-host setups."""

    def authorize(self, player: str) -> bool:
        return True


class CallerAuthenticator(Authenticator):
    """Authorizes only the caller bound by acting_as()."""

    def authorize(self, player: str) -> bool:
        caller = current_caller()
        return caller is not None and caller == player


# =============================================================================
# Events
# =============================================================================

@dataclass(frozen=True)
class DomainEvent:
    """
    A structured notification, e.g. topic ("shot", "fire") with
    data {"shooter": ..., "shot_index": ..., "result": ...}.
    """
    topic: tuple[str, ...]
    data: dict[str, Any] = field(default_factory=dict)
    session_id: int | None = None
    timestamp: float = field(default_factory=time.time)

    @property
    def name(self) -> str:
        return ".".join(self.topic)

    def to_dict(self) -> dict[str, Any]:
        return {
            "topic": self.name,
            "session_id": self.session_id,
            "data": dict(self.data),
            "timestamp": self.timestamp,
        }


class EventSink(ABC):
    """Receives domain events. Return values are never consumed."""

    @abstractmethod
    def publish(self, event: DomainEvent) -> None:
        pass


class LoggingEventSink(EventSink):
    def publish(self, event: DomainEvent) -> None:
        logger.info("event %s session=%s %s", event.name, event.session_id, event.data)


class RecordingEventSink(LoggingEventSink):
    """Keeps the most recent max_events published events in memory (and logs them)."""

    def __init__(self, max_events: int = 1000):
        self.events: deque[DomainEvent] = deque(maxlen=max_events)

    def publish(self, event: DomainEvent) -> None:
        self.events.append(event)
        super().publish(event)

    def topics(self) -> list[str]:
        return [e.name for e in self.events]

    def clear(self) -> None:
        self.events.clear()


# =============================================================================
# Session ids
# =============================================================================

class SequenceSource(ABC):
    """Supplies the number used as a new session's id."""

    @abstractmethod
    def next_sequence(self) -> int:
        pass


class MonotonicSequence(SequenceSource):
    """Strictly increasing counter, safe to share between engines."""

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_sequence(self) -> int:
        with self._lock:
            return next(self._counter)


# =============================================================================
# Hub
# =============================================================================

class HubClient(ABC):
    """
    External game hub, notified after a transition has been committed.

    Failures are the hub's problem: they are logged and never undo local state.
    """

    @abstractmethod
    def start_game(self, game: str, session_id: int, player1: str, player2: str) -> None:
        pass

    @abstractmethod
    def end_game(self, game: str, session_id: int, player1_won: bool) -> None:
        pass


class NullHub(HubClient):
    """No hub configured."""

    def start_game(self, game: str, session_id: int, player1: str, player2: str) -> None:
        pass

    def end_game(self, game: str, session_id: int, player1_won: bool) -> None:
        pass
