"""
Battleship Engine - Proof-gated shot resolution.

Flow:
1. start_game(p1, p2)      -> fresh session, full reset of any prior one
2. commit_board(player, h) -> once per player
3. shoot(...)              -> once both boards are committed; every claimed
                              hit/miss is checked against the defender's
                              committed board by a Groth16 proof
4. end_game(caller)        -> explicit end, ties favor player1
                              (reaching hits_to_win ends the game at once)

Proof public signals: [board_hash, shot_index, claimed_result], where
board_hash is the commitment of the player being fired at.
"""

from __future__ import annotations
from typing import Any, Sequence

from ...crypto import Groth16Verifier
from ...engine_core import (
    Action,
    ActionResult,
    ActionType,
    ErrorCode,
    GameEngine,
    commitment_to_field,
)
from .state import SHOT_HIT, SHOT_MISS, BattleshipRules, BattleshipSession


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class BattleshipEngine(GameEngine[BattleshipSession]):
    """
    Engine for one Battleship table.

    Usage:
        engine = BattleshipEngine(verifier)
        engine.init(vk)
        engine.start_game("alice", "bob")
        engine.commit_board("alice", alice_hash)
        engine.commit_board("bob", bob_hash)
        engine.shoot("alice", 7, 1, proof, [bob_hash_field, 7, 1])
    """
    game_name = "battleship"
    signal_count = 3

    def __init__(self, verifier: Groth16Verifier, rules: BattleshipRules | None = None, **kwargs):
        super().__init__(verifier, **kwargs)
        self.rules = rules or BattleshipRules()

    # =========================================================================
    # Operations
    # =========================================================================

    def start_game(self, player1: str, player2: str) -> ActionResult:
        return self.apply(Action.start_game(player1, player2))

    def commit_board(self, player: str, commitment: bytes) -> ActionResult:
        return self.apply(Action.commit(player, commitment))

    def shoot(
        self,
        shooter: str,
        shot_index: int,
        claimed_result: int,
        proof: Any,
        public_signals: Sequence[int],
    ) -> ActionResult:
        return self.apply(Action.shoot(shooter, shot_index, claimed_result, proof, public_signals))

    def end_game(self, caller: str) -> ActionResult:
        return self.apply(Action.end_game(caller))

    # =========================================================================
    # Views
    # =========================================================================

    def get_hits(self, player: str) -> int:
        session = self.session()
        if session is None:
            return 0
        return session.hits.get(player, 0)

    def get_game_state(self) -> tuple[bool, bool]:
        """(started, ended)"""
        session = self.session()
        if session is None:
            return (False, False)
        return (session.started, session.ended)

    def get_winner(self) -> str | None:
        session = self.session()
        return session.winner if session else None

    def get_total_shots(self) -> int:
        session = self.session()
        return session.total_shots if session else 0

    def get_session_id(self) -> int | None:
        session = self.session()
        return session.session_id if session else None

    def get_commitment(self, player: str) -> bytes | None:
        session = self.session()
        return session.ledger.get(player) if session else None

    def get_turn(self) -> str | None:
        """Player expected to shoot next (only enforced with strict_turns)."""
        session = self.session()
        if session is None or session.ended:
            return None
        return session.turn

    # =========================================================================
    # Handlers
    # =========================================================================

    def _handlers(self):
        return {
            ActionType.START_GAME: self._handle_start,
            ActionType.COMMIT: self._handle_commit,
            ActionType.SHOOT: self._handle_shoot,
            ActionType.END_GAME: self._handle_end,
        }

    def _handle_start(self, session: BattleshipSession | None, action: Action) -> ActionResult:
        player1 = action.payload.player_id
        player2 = action.payload.opponent_id
        if not player2 or player1 == player2:
            return ActionResult.failure(
                "A game needs two distinct players", ErrorCode.INVALID_PLAYER
            )

        # Any prior session is replaced wholesale
        session_id = self.sequence.next_sequence()
        new_session = BattleshipSession(session_id=session_id, player1=player1, player2=player2)
        return ActionResult.success_with_state(
            new_session,
            changes=[f"Session {session_id} started: {player1} vs {player2}"],
            events=[
                self._event(session_id, "game", "start", player1=player1, player2=player2)
            ],
            value=session_id,
        )

    def _handle_commit(self, session: BattleshipSession | None, action: Action) -> ActionResult:
        player = action.payload.player_id
        if session is None or not session.started:
            return ActionResult.failure("Game not started", ErrorCode.GAME_NOT_STARTED)
        if session.ended:
            return ActionResult.failure("Game already ended", ErrorCode.GAME_ALREADY_ENDED)

        error_code = session.ledger.commit(player, action.payload.commitment)
        if error_code is not None:
            return ActionResult.failure(f"Cannot commit board for {player}", error_code)

        return ActionResult.success_with_state(
            session,
            changes=[f"{player} committed a board"],
            events=[self._event(session.session_id, "board", "commit", player=player)],
        )

    def _handle_shoot(self, session: BattleshipSession | None, action: Action) -> ActionResult:
        payload = action.payload
        shooter = payload.player_id
        shot_index = payload.shot_index
        claimed = payload.claimed_result

        if session is None or not session.started:
            return ActionResult.failure("Game not started", ErrorCode.GAME_NOT_STARTED)
        if session.ended:
            return ActionResult.failure("Game already ended", ErrorCode.GAME_ALREADY_ENDED)
        if not _is_int(shot_index) or not 0 <= shot_index < self.rules.cell_count:
            return ActionResult.failure(
                f"Shot index must be in [0, {self.rules.cell_count})",
                ErrorCode.INVALID_SHOT_INDEX,
            )
        if not _is_int(claimed) or claimed not in (SHOT_MISS, SHOT_HIT):
            return ActionResult.failure(
                "Claimed result must be 0 (miss) or 1 (hit)", ErrorCode.INVALID_SHOT_RESULT
            )
        if not session.is_player(shooter):
            return ActionResult.failure(
                f"{shooter} is not a player in this game", ErrorCode.INVALID_PLAYER
            )
        if not session.ledger.is_complete():
            return ActionResult.failure(
                "Both boards must be committed", ErrorCode.NOT_ALL_BOARDS_COMMITTED
            )
        if self.rules.strict_turns and session.turn != shooter:
            return ActionResult.failure(f"It is {session.turn}'s turn", ErrorCode.NOT_YOUR_TURN)

        vk = self.store.load_verification_key()
        if vk is None:
            return ActionResult.failure(
                "Verifier has not been initialized", ErrorCode.VERIFIER_NOT_INITIALIZED
            )
        signals = payload.public_signals or []
        if len(signals) != self.signal_count:
            return ActionResult.failure(
                f"Expected {self.signal_count} public signals, got {len(signals)}",
                ErrorCode.MALFORMED_PROOF,
            )

        defender = session.opponent_of(shooter)
        board_hash = commitment_to_field(session.ledger.get(defender), self.curve.curve_order)
        if not self._signals_bind(signals, [board_hash, shot_index, claimed]):
            return ActionResult.failure(
                "Public signals do not match the defender's board, shot and result",
                ErrorCode.PUBLIC_SIGNAL_MISMATCH,
            )
        if not self._verify(vk, payload.proof, signals):
            return ActionResult.failure(
                "Proof verification failed", ErrorCode.PROOF_VERIFICATION_FAILED
            )

        # Proof accepted: apply the transition
        if claimed == SHOT_HIT:
            session.hits[shooter] += 1
        session.total_shots += 1
        if self.rules.strict_turns:
            session.turn = defender

        events = [
            self._event(
                session.session_id, "shot", "fire",
                shooter=shooter, shot_index=shot_index, result=claimed,
            )
        ]
        changes = [
            f"{shooter} fired at {shot_index}: {'hit' if claimed == SHOT_HIT else 'miss'}"
        ]
        if session.hits[shooter] >= self.rules.hits_to_win:
            events.append(self._finish(session, shooter))
            changes.append(f"{shooter} sank the fleet and wins")

        return ActionResult.success_with_state(
            session, changes=changes, events=events, value=session.hits[shooter]
        )

    def _handle_end(self, session: BattleshipSession | None, action: Action) -> ActionResult:
        caller = action.payload.player_id
        if session is None or not session.started:
            return ActionResult.failure("Game not started", ErrorCode.GAME_NOT_STARTED)
        if session.ended:
            return ActionResult.failure("Game already ended", ErrorCode.GAME_ALREADY_ENDED)
        if not session.is_player(caller):
            return ActionResult.failure(
                f"{caller} is not a player in this game", ErrorCode.INVALID_PLAYER
            )

        p1_hits = session.hits[session.player1]
        p2_hits = session.hits[session.player2]
        # Ties go to player1
        winner = session.player1 if p1_hits >= p2_hits else session.player2
        event = self._finish(session, winner)
        return ActionResult.success_with_state(
            session,
            changes=[f"Game ended {p1_hits}-{p2_hits}, winner {winner}"],
            events=[event],
            value=winner,
        )

    def _finish(self, session: BattleshipSession, winner: str):
        session.ended = True
        session.winner = winner
        return self._event(
            session.session_id, "game", "end",
            winner=winner, player1_won=winner == session.player1,
        )
