"""
Session Store - Persistence of one engine's session record and key.

Each engine owns one store. The store holds:
- the current session record (None before the first start)
- the verification key (set once by init)

Design principles:
- Typed accessors, one per logical field group
- Loads hand out copies; nothing changes until save_session()
- A restart replaces the whole record, there is no incremental reset
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from copy import deepcopy
from typing import Generic, TypeVar

from ..crypto import VerificationKey


S = TypeVar("S")


class SessionStore(ABC, Generic[S]):
    """Abstract persistence for a single engine."""

    @abstractmethod
    def load_session(self) -> S | None:
        """Return a private copy of the current session, or None."""
        pass

    @abstractmethod
    def save_session(self, session: S) -> None:
        pass

    @abstractmethod
    def clear_session(self) -> None:
        pass

    @abstractmethod
    def load_verification_key(self) -> VerificationKey | None:
        pass

    @abstractmethod
    def save_verification_key(self, vk: VerificationKey) -> None:
        pass


class InMemorySessionStore(SessionStore[S]):
    """Process-local store. Copies on the way in and out."""

    def __init__(self):
        self._session: S | None = None
        self._vk: VerificationKey | None = None

    def load_session(self) -> S | None:
        if self._session is None:
            return None
        return deepcopy(self._session)

    def save_session(self, session: S) -> None:
        self._session = deepcopy(session)

    def clear_session(self) -> None:
        self._session = None

    def load_verification_key(self) -> VerificationKey | None:
        # Frozen and never mutated, so it is shared
        return self._vk

    def save_verification_key(self, vk: VerificationKey) -> None:
        self._vk = vk
