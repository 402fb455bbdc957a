"""
Card Combat State - Session record and rules for the turn-based card duel.

Phases:
    NOT_STARTED -> STARTED -> ENDED (winner recorded) -> CLOSED (end_game)

Public state: hit points, creature boards, whose turn it is.
Private state: each player's deck, known to the table only by its
committed hash and a per-player draw index.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from ...engine_core.action import ErrorCode
from ...engine_core.commitments import CommitLedger


class TcgPhase(Enum):
    NOT_STARTED = "not_started"
    STARTED = "started"
    ENDED = "ended"
    CLOSED = "closed"


@dataclass(frozen=True)
class TcgRules:
    """Per-table constants."""
    starting_hp: int = 15
    fireball_damage: int = 2
    max_board_size: int = 7


@dataclass
class Creature:
    """A deployed creature. Attack degrades as it takes damage."""
    attack: int
    health: int

    def to_dict(self) -> dict:
        return {"attack": self.attack, "health": self.health}


@dataclass
class TcgSession:
    """
    One duel between two fixed players.

    Boards are index-addressed; removing a creature shifts later
    indices down.
    """
    session_id: int
    player1: str
    player2: str
    hp: dict[str, int]
    board: dict[str, list[Creature]] = field(default_factory=dict)
    draw_index: dict[str, int] = field(default_factory=dict)
    turn: str | None = None
    started: bool = True
    ended: bool = False
    winner: str | None = None
    ledger: CommitLedger = field(init=False)

    def __post_init__(self):
        self.ledger = CommitLedger(
            players=(self.player1, self.player2),
            duplicate_error=ErrorCode.DECK_ALREADY_COMMITTED,
        )
        for player in self.players:
            self.board.setdefault(player, [])
            self.draw_index.setdefault(player, 0)
        if self.turn is None:
            self.turn = self.player1

    @classmethod
    def new(cls, session_id: int, player1: str, player2: str, rules: TcgRules) -> TcgSession:
        """Fresh session: full hit points, empty boards, player1 to act."""
        return cls(
            session_id=session_id,
            player1=player1,
            player2=player2,
            hp={player1: rules.starting_hp, player2: rules.starting_hp},
        )

    @property
    def players(self) -> tuple[str, str]:
        return (self.player1, self.player2)

    @property
    def phase(self) -> TcgPhase:
        if not self.started:
            return TcgPhase.CLOSED if self.winner else TcgPhase.NOT_STARTED
        if self.ended:
            return TcgPhase.ENDED
        return TcgPhase.STARTED

    def is_player(self, player: str | None) -> bool:
        return player in self.players

    def opponent_of(self, player: str) -> str:
        return self.player2 if player == self.player1 else self.player1

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "player1": self.player1,
            "player2": self.player2,
            "phase": self.phase.value,
            "started": self.started,
            "ended": self.ended,
            "winner": self.winner,
            "turn": self.turn,
            "hp": dict(self.hp),
            "board": {p: [c.to_dict() for c in cs] for p, cs in self.board.items()},
            "draw_index": dict(self.draw_index),
            "committed": {p: self.ledger.has(p) for p in self.players},
        }
