"""
Battleship State - Session record and rules for the 5x5 proof-gated game.

Phases:
    NOT_STARTED -> COMMITTING -> PLAYABLE -> ENDED

Each player commits a hash of a private board. A shot's result is only
counted when the defender supplies a proof that the claimed hit/miss is
consistent with that committed board.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from ...engine_core.action import ErrorCode
from ...engine_core.commitments import CommitLedger


class BattleshipPhase(Enum):
    NOT_STARTED = "not_started"
    COMMITTING = "committing"
    PLAYABLE = "playable"
    ENDED = "ended"


@dataclass(frozen=True)
class BattleshipRules:
    """Per-table constants."""
    grid_size: int = 5
    hits_to_win: int = 5
    strict_turns: bool = False

    @property
    def cell_count(self) -> int:
        return self.grid_size * self.grid_size


SHOT_MISS = 0
SHOT_HIT = 1


@dataclass
class BattleshipSession:
    """
    One play-through between two fixed players.

    hits and total_shots change only through shoot; ended and winner
    are set exactly once.
    """
    session_id: int
    player1: str
    player2: str
    hits: dict[str, int] = field(default_factory=dict)
    total_shots: int = 0
    started: bool = True
    ended: bool = False
    winner: str | None = None
    turn: str | None = None
    ledger: CommitLedger = field(init=False)

    def __post_init__(self):
        self.ledger = CommitLedger(
            players=(self.player1, self.player2),
            duplicate_error=ErrorCode.BOARD_ALREADY_COMMITTED,
        )
        if not self.hits:
            self.hits = {self.player1: 0, self.player2: 0}
        if self.turn is None:
            self.turn = self.player1

    @property
    def players(self) -> tuple[str, str]:
        return (self.player1, self.player2)

    @property
    def phase(self) -> BattleshipPhase:
        if self.ended:
            return BattleshipPhase.ENDED
        if not self.started:
            return BattleshipPhase.NOT_STARTED
        if self.ledger.is_complete():
            return BattleshipPhase.PLAYABLE
        return BattleshipPhase.COMMITTING

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
            "hits": dict(self.hits),
            "total_shots": self.total_shots,
            "committed": {p: self.ledger.has(p) for p in self.players},
        }
