"""
Commit-Reveal Ledger - Per-player commitments to private state.

A commitment is a 32-byte hash of a board layout or a deck order. Each
player commits exactly once per session; a second commit is rejected and
never overwrites, so a player cannot change their board after seeing the
opponent play. The ledger lives inside a session record and disappears
with it on restart.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .action import ErrorCode


COMMITMENT_SIZE = 32


@dataclass
class CommitLedger:
    """
    Commitments of the two registered players of one session.

    duplicate_error is the code reported when a player commits twice
    (BOARD_ALREADY_COMMITTED for Battleship, DECK_ALREADY_COMMITTED for cards).
    """
    players: tuple[str, str]
    duplicate_error: ErrorCode = ErrorCode.BOARD_ALREADY_COMMITTED
    commitments: dict[str, bytes] = field(default_factory=dict)

    def commit(self, player: str, digest: bytes) -> ErrorCode | None:
        """Record a commitment. Returns None on success, else the error code."""
        if player not in self.players:
            return ErrorCode.INVALID_PLAYER
        if not isinstance(digest, (bytes, bytearray)) or len(digest) != COMMITMENT_SIZE:
            return ErrorCode.INVALID_COMMITMENT
        if player in self.commitments:
            return self.duplicate_error
        self.commitments[player] = bytes(digest)
        return None

    def get(self, player: str) -> bytes | None:
        return self.commitments.get(player)

    def has(self, player: str) -> bool:
        return player in self.commitments

    def is_complete(self) -> bool:
        """True once both players have committed."""
        return all(p in self.commitments for p in self.players)


def commitment_to_field(digest: bytes, order: int) -> int:
    """Map a commitment to the scalar a proof exposes as its public signal."""
    return int.from_bytes(digest, "big") % order


def parse_commitment(text: str) -> bytes:
    """Decode a 0x-prefixed or bare hex commitment. Raises ValueError."""
    value = text.strip()
    if value.lower().startswith("0x"):
        value = value[2:]
    digest = bytes.fromhex(value)
    if len(digest) != COMMITMENT_SIZE:
        raise ValueError(f"Commitment must be {COMMITMENT_SIZE} bytes, got {len(digest)}")
    return digest
