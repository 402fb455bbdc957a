"""
Game Engine - Applies actions to a persisted session.

The engine is the single point of state mutation for one table.
All state changes must go through apply().

Design principles:
- Every call either fully applies or changes nothing
- Calls on one engine are serialized; a load, its handler and its save never interleave with another call
- Authenticate, then load a copy, then validate, then verify, then mutate
- The copy is saved only when the handler succeeded
- Events are published and the hub notified only after the save
- Domain failures are results, never exceptions
"""

from __future__ import annotations
from typing import Any, Callable, ClassVar, Generic, Sequence, TypeVar
import logging
import threading

from ..crypto import Groth16Verifier, InvalidPointError, MalformedProof, Proof, VerificationKey
from .action import Action, ActionResult, ActionType, ErrorCode
from .collaborators import (
    Authenticator,
    DomainEvent,
    EventSink,
    HubClient,
    LoggingEventSink,
    MonotonicSequence,
    NullHub,
    SequenceSource,
    TrustingAuthenticator,
)
from .store import InMemorySessionStore, SessionStore

logger = logging.getLogger(__name__)

S = TypeVar("S")
Handler = Callable[[Any, Action], ActionResult]


class GameEngine(Generic[S]):
    """
    Base engine shared by both games.

    Subclasses set game_name and signal_count (the number of public
    signals every proof of this game carries) and provide handlers.
    """
    game_name: ClassVar[str] = "game"
    signal_count: ClassVar[int] = 0

    def __init__(
        self,
        verifier: Groth16Verifier,
        store: SessionStore[S] | None = None,
        authenticator: Authenticator | None = None,
        events: EventSink | None = None,
        sequence: SequenceSource | None = None,
        hub: HubClient | None = None,
        admin: str | None = None,
    ):
        self.verifier = verifier
        self.store: SessionStore[S] = store or InMemorySessionStore()
        self.authenticator = authenticator or TrustingAuthenticator()
        self.events = events or LoggingEventSink()
        self.sequence = sequence or MonotonicSequence()
        self.hub = hub or NullHub()
        self.admin = admin
        self._lock = threading.Lock()

    @property
    def curve(self):
        return self.verifier.curve

    @property
    def verification_key(self) -> VerificationKey | None:
        return self.store.load_verification_key()

    def session(self) -> S | None:
        """Copy of the current session record (None before the first start)."""
        return self.store.load_session()

    # =========================================================================
    # Initialization
    # =========================================================================

    def init(self, vk: VerificationKey, caller: str | None = None) -> ActionResult:
        """
        Install the verification key. Allowed exactly once per engine.

        When the engine has an admin, the caller must be that admin and
        pass authentication.
        """
        if self.admin is not None:
            if caller != self.admin or not self.authenticator.authorize(caller):
                return self._rejected(
                    "init",
                    ActionResult.failure("Only the admin may initialize", ErrorCode.UNAUTHORIZED),
                )

        with self._lock:
            return self._install_key(vk)

    def _install_key(self, vk: VerificationKey) -> ActionResult:
        if self.store.load_verification_key() is not None:
            return self._rejected(
                "init",
                ActionResult.failure(
                    "Verifier is already initialized", ErrorCode.VERIFIER_ALREADY_INITIALIZED
                ),
            )

        if len(vk.ic) != self.signal_count + 1:
            return self._rejected(
                "init",
                ActionResult.failure(
                    f"{self.game_name} proofs carry {self.signal_count} public signals, "
                    f"key expects {len(vk.ic) - 1}",
                    ErrorCode.INVALID_VERIFICATION_KEY,
                ),
            )

        try:
            self.verifier.check_verification_key(vk)
        except InvalidPointError as e:
            return self._rejected(
                "init", ActionResult.failure(str(e), ErrorCode.INVALID_VERIFICATION_KEY)
            )

        self.store.save_verification_key(vk)
        logger.debug("%s verifier initialized (%d public signals)", self.game_name, self.signal_count)
        return ActionResult.success_with_state(None, changes=["Verification key installed"])

    # =========================================================================
    # Action application
    # =========================================================================

    def apply(self, action: Action) -> ActionResult:
        """
        Apply an action to the current session.

        Returns ActionResult with the new session or an error.
        """
        handler = self._get_handler(action.action_type)
        if not handler:
            return self._rejected(
                action.action_type.value,
                ActionResult.failure(
                    f"No handler for action type: {action.action_type}",
                    error_code=ErrorCode.NO_HANDLER,
                ),
            )

        player = action.payload.player_id
        if not player or not self.authenticator.authorize(player):
            return self._rejected(
                action.action_type.value,
                ActionResult.failure(
                    f"Caller is not authorized to act as {player}", ErrorCode.UNAUTHORIZED
                ),
            )

        with self._lock:
            return self._run(handler, action)

    def _run(self, handler: Handler, action: Action) -> ActionResult:
        """Load, handle and save as one step. Caller holds the engine lock."""
        player = action.payload.player_id
        session = self.store.load_session()
        try:
            result = handler(session, action)
        except (MalformedProof, InvalidPointError) as e:
            result = ActionResult.failure(str(e), ErrorCode.MALFORMED_PROOF)
        except Exception as e:
            logger.exception("%s handler for %s failed", self.game_name, action.action_type.value)
            return ActionResult.failure(str(e), error_code=ErrorCode.HANDLER_ERROR)

        if not result.success:
            return self._rejected(action.action_type.value, result)

        self.store.save_session(result.new_state)
        logger.debug(
            "%s %s by %s: %s",
            self.game_name, action.action_type.value, player, "; ".join(result.state_changes),
        )
        for event in result.events:
            self.events.publish(event)
            self._notify_hub(event)
        return result

    def _get_handler(self, action_type: ActionType) -> Handler | None:
        """Get the handler function for an action type."""
        return self._handlers().get(action_type)

    def _handlers(self) -> dict[ActionType, Handler]:
        return {}

    def _rejected(self, operation: str, result: ActionResult) -> ActionResult:
        code = result.error_code.value if result.error_code else None
        logger.info("%s %s rejected [%s]: %s", self.game_name, operation, code, result.error)
        return result

    # =========================================================================
    # Proof helpers
    # =========================================================================

    def _verify(self, vk: VerificationKey, proof: Proof, public_signals: Sequence[int]) -> bool:
        """Run the pairing check. MalformedProof propagates to apply()."""
        if not isinstance(proof, Proof):
            raise MalformedProof("Proof must be a Groth16 Proof")
        return self.verifier.verify(vk, proof, public_signals)

    @staticmethod
    def _signals_bind(public_signals: Sequence[int], expected: Sequence[int]) -> bool:
        """True iff the proof's public signals are exactly the expected claim."""
        return list(public_signals) == list(expected)

    # =========================================================================
    # Events
    # =========================================================================

    def _event(self, session_id: int | None, *topic: str, **data: Any) -> DomainEvent:
        return DomainEvent(topic=tuple(topic), data=data, session_id=session_id)

    def _notify_hub(self, event: DomainEvent) -> None:
        if event.session_id is None:
            return
        try:
            if event.topic == ("game", "start"):
                self.hub.start_game(
                    self.game_name, event.session_id, event.data["player1"], event.data["player2"]
                )
            elif event.topic == ("game", "end"):
                self.hub.end_game(self.game_name, event.session_id, event.data["player1_won"])
        except Exception:
            logger.warning("Hub notification %s failed", event.name, exc_info=True)
