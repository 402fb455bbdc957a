"""
Engine Core - Deterministic, proof-gated session state management.

The engine is the runtime that:
1. Holds a verification key (installed once)
2. Authenticates the acting player
3. Validates phase, turn and ownership
4. Forwards claimed private facts to the Groth16 verifier
5. Applies the transition and emits domain events
"""

from .action import Action, ActionType, ActionPayload, ActionResult, ErrorCode
from .commitments import CommitLedger, commitment_to_field, parse_commitment
from .collaborators import (
    Authenticator,
    CallerAuthenticator,
    DomainEvent,
    EventSink,
    HubClient,
    LoggingEventSink,
    MonotonicSequence,
    NullHub,
    RecordingEventSink,
    SequenceSource,
    TrustingAuthenticator,
    acting_as,
    current_caller,
)
from .store import InMemorySessionStore, SessionStore
from .engine import GameEngine

__all__ = [
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "ErrorCode",
    "CommitLedger",
    "commitment_to_field",
    "parse_commitment",
    "Authenticator",
    "CallerAuthenticator",
    "DomainEvent",
    "EventSink",
    "HubClient",
    "LoggingEventSink",
    "MonotonicSequence",
    "NullHub",
    "RecordingEventSink",
    "SequenceSource",
    "TrustingAuthenticator",
    "acting_as",
    "current_caller",
    "InMemorySessionStore",
    "SessionStore",
    "GameEngine",
]
