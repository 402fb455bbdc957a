"""
Action System - Actions, payloads, error codes and results.

Actions represent:
1. Session lifecycle (start game, end game)
2. Commitments to private state (board, deck)
3. Proof-gated claims (shot results, card draws)
4. Public combat moves (creatures, fireball, attacks, end turn)

All state changes flow through actions. Every failure is reported as an
ActionResult carrying an ErrorCode; engines never raise for domain errors.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence


class ActionType(Enum):
    """Types of actions in the system."""
    # Lifecycle
    START_GAME = "start_game"
    END_GAME = "end_game"

    # Commit phase
    COMMIT = "commit"

    # Battleship
    SHOOT = "shoot"

    # Card combat
    DRAW_CARD = "draw_card"
    PLAY_CREATURE = "play_creature"
    FIREBALL = "fireball"
    ATTACK = "attack"
    ATTACK_CREATURE = "attack_creature"
    END_TURN = "end_turn"


class ErrorCode(str, Enum):
    """Named failure outcomes. Exactly one is attached to every failed result."""
    # Authorization
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_PLAYER = "INVALID_PLAYER"

    # Phase
    GAME_NOT_STARTED = "GAME_NOT_STARTED"
    GAME_ALREADY_ENDED = "GAME_ALREADY_ENDED"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"

    # Commitments
    INVALID_COMMITMENT = "INVALID_COMMITMENT"
    BOARD_ALREADY_COMMITTED = "BOARD_ALREADY_COMMITTED"
    NOT_ALL_BOARDS_COMMITTED = "NOT_ALL_BOARDS_COMMITTED"
    DECK_ALREADY_COMMITTED = "DECK_ALREADY_COMMITTED"
    DECK_NOT_COMMITTED = "DECK_NOT_COMMITTED"

    # Action preconditions
    INVALID_SHOT_INDEX = "INVALID_SHOT_INDEX"
    INVALID_SHOT_RESULT = "INVALID_SHOT_RESULT"
    INVALID_TARGET = "INVALID_TARGET"
    INVALID_INDEX = "INVALID_INDEX"
    INVALID_CREATURE = "INVALID_CREATURE"
    BOARD_FULL = "BOARD_FULL"
    WIN_CONDITION_NOT_MET = "WIN_CONDITION_NOT_MET"

    # Cryptography
    MALFORMED_PROOF = "MALFORMED_PROOF"
    PROOF_VERIFICATION_FAILED = "PROOF_VERIFICATION_FAILED"
    INVALID_PROOF = "INVALID_PROOF"
    PUBLIC_SIGNAL_MISMATCH = "PUBLIC_SIGNAL_MISMATCH"
    VERIFIER_NOT_INITIALIZED = "VERIFIER_NOT_INITIALIZED"
    VERIFIER_ALREADY_INITIALIZED = "VERIFIER_ALREADY_INITIALIZED"
    INVALID_VERIFICATION_KEY = "INVALID_VERIFICATION_KEY"

    # Engine
    NO_HANDLER = "NO_HANDLER"
    HANDLER_ERROR = "HANDLER_ERROR"


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields.
    This is a generic container; validation happens in the engine.
    """
    # Acting player (always authenticated)
    player_id: str | None = None
    target_player_id: str | None = None

    # start_game
    opponent_id: str | None = None

    # commit_board / commit_deck
    commitment: bytes | None = None

    # Proof-gated claims
    proof: Any | None = None  # Proof
    public_signals: list[int] | None = None

    # shoot
    shot_index: int | None = None
    claimed_result: int | None = None

    # draw_card
    card_value: int | None = None

    # play_creature
    attack: int | None = None
    health: int | None = None

    # attack / attack_creature
    attacker_index: int | None = None
    target_index: int | None = None


@dataclass
class Action:
    """
    A complete action to be applied to a session.

    Actions are:
    - Authenticated against payload.player_id
    - Validated before application
    - Applied atomically by the engine
    """
    action_type: ActionType
    payload: ActionPayload

    @property
    def player_id(self) -> str | None:
        return self.payload.player_id

    @classmethod
    def start_game(cls, player1: str, player2: str) -> Action:
        """Factory for start action; player1 is the caller."""
        return cls(
            action_type=ActionType.START_GAME,
            payload=ActionPayload(player_id=player1, opponent_id=player2),
        )

    @classmethod
    def commit(cls, player_id: str, commitment: bytes) -> Action:
        """Factory for a board or deck commitment."""
        return cls(
            action_type=ActionType.COMMIT,
            payload=ActionPayload(player_id=player_id, commitment=commitment),
        )

    @classmethod
    def shoot(
        cls,
        player_id: str,
        shot_index: int,
        claimed_result: int,
        proof: Any,
        public_signals: Sequence[int],
    ) -> Action:
        """Factory for a proof-gated shot."""
        return cls(
            action_type=ActionType.SHOOT,
            payload=ActionPayload(
                player_id=player_id,
                shot_index=shot_index,
                claimed_result=claimed_result,
                proof=proof,
                public_signals=list(public_signals),
            ),
        )

    @classmethod
    def end_game(cls, player_id: str) -> Action:
        """Factory for end game; player_id is the caller (or claimed winner)."""
        return cls(
            action_type=ActionType.END_GAME,
            payload=ActionPayload(player_id=player_id),
        )

    @classmethod
    def draw_card(
        cls,
        player_id: str,
        card_value: int,
        proof: Any,
        public_signals: Sequence[int] | None = None,
    ) -> Action:
        """Factory for a proof-gated card draw."""
        return cls(
            action_type=ActionType.DRAW_CARD,
            payload=ActionPayload(
                player_id=player_id,
                card_value=card_value,
                proof=proof,
                public_signals=list(public_signals) if public_signals is not None else None,
            ),
        )

    @classmethod
    def play_creature(cls, player_id: str, attack: int, health: int) -> Action:
        return cls(
            action_type=ActionType.PLAY_CREATURE,
            payload=ActionPayload(player_id=player_id, attack=attack, health=health),
        )

    @classmethod
    def fireball(cls, player_id: str, target_player_id: str) -> Action:
        return cls(
            action_type=ActionType.FIREBALL,
            payload=ActionPayload(player_id=player_id, target_player_id=target_player_id),
        )

    @classmethod
    def attack_player(cls, player_id: str, attacker_index: int, target_player_id: str) -> Action:
        return cls(
            action_type=ActionType.ATTACK,
            payload=ActionPayload(
                player_id=player_id,
                attacker_index=attacker_index,
                target_player_id=target_player_id,
            ),
        )

    @classmethod
    def attack_creature(
        cls,
        player_id: str,
        attacker_index: int,
        target_player_id: str,
        target_index: int,
    ) -> Action:
        return cls(
            action_type=ActionType.ATTACK_CREATURE,
            payload=ActionPayload(
                player_id=player_id,
                attacker_index=attacker_index,
                target_player_id=target_player_id,
                target_index=target_index,
            ),
        )

    @classmethod
    def end_turn(cls, player_id: str) -> Action:
        return cls(
            action_type=ActionType.END_TURN,
            payload=ActionPayload(player_id=player_id),
        )


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether the action succeeded
    - New session state (if succeeded)
    - Return value of the operation, if it has one
    - Error and error code (if failed)
    - Domain events to publish once the new state is persisted
    """
    success: bool
    new_state: Any | None = None
    value: Any | None = None
    error: str | None = None
    error_code: ErrorCode | None = None

    # For presentation
    state_changes: list[str] = field(default_factory=list)  # Human-readable changes

    # Published only after the state is saved
    events: list[Any] = field(default_factory=list)  # DomainEvent

    @classmethod
    def failure(cls, error: str, error_code: ErrorCode | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
        events: list[Any] | None = None,
        value: Any | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            value=value,
            state_changes=changes or [],
            events=events or [],
        )
