"""
Card Combat Engine - Strict turn-ordered duel with proof-gated draws.

Flow:
1. start_game(p1, p2)          -> both players at starting hp, empty boards,
                                  player1 to act
2. commit_deck(player, h)      -> once per player
3. On your turn, in any order:
   draw_card      (proof that card_value is the card at draw_index of
                   the committed deck)
   play_creature  (append to your board, capped)
   play_fireball  (fixed burn to the opponent)
   attack         (creature hits the opponent)
   attack_creature (simultaneous creature combat)
   end_turn       (pass to the opponent)
4. Hit points reaching zero records the winner and ends play.
5. end_game(winner) closes a session the engine has already decided.

Proof public signals: [deck_hash, draw_index, card_value].
"""

from __future__ import annotations
from typing import Any, Sequence

from ...crypto import Groth16Verifier, Proof
from ...engine_core import (
    Action,
    ActionResult,
    ActionType,
    DomainEvent,
    ErrorCode,
    GameEngine,
    commitment_to_field,
)
from .combat import clash, damage
from .state import Creature, TcgRules, TcgSession


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class TcgEngine(GameEngine[TcgSession]):
    """
    Engine for one card-combat table.

    Usage:
        engine = TcgEngine(verifier)
        engine.init(vk)
        engine.start_game("alice", "bob")
        engine.play_creature("alice", attack=4, health=4)
        engine.attack("alice", 0, "bob")
        engine.get_state()  # (15, 11)
    """
    game_name = "tcg"
    signal_count = 3

    def __init__(self, verifier: Groth16Verifier, rules: TcgRules | None = None, **kwargs):
        super().__init__(verifier, **kwargs)
        self.rules = rules or TcgRules()

    # =========================================================================
    # Operations
    # =========================================================================

    def start_game(self, player1: str, player2: str) -> ActionResult:
        return self.apply(Action.start_game(player1, player2))

    def commit_deck(self, player: str, commitment: bytes) -> ActionResult:
        return self.apply(Action.commit(player, commitment))

    def draw_card(
        self,
        player: str,
        card_value: int,
        proof: Any,
        public_signals: Sequence[int] | None = None,
    ) -> ActionResult:
        return self.apply(Action.draw_card(player, card_value, proof, public_signals))

    def play_creature(self, player: str, attack: int, health: int) -> ActionResult:
        return self.apply(Action.play_creature(player, attack, health))

    def play_fireball(self, player: str, target: str) -> ActionResult:
        return self.apply(Action.fireball(player, target))

    def attack(self, player: str, attacker_index: int, target: str) -> ActionResult:
        return self.apply(Action.attack_player(player, attacker_index, target))

    def attack_creature(
        self,
        player: str,
        attacker_index: int,
        target_player: str,
        target_index: int,
    ) -> ActionResult:
        return self.apply(
            Action.attack_creature(player, attacker_index, target_player, target_index)
        )

    def end_turn(self, player: str) -> ActionResult:
        return self.apply(Action.end_turn(player))

    def end_game(self, winner: str) -> ActionResult:
        return self.apply(Action.end_game(winner))

    # =========================================================================
    # Views
    # =========================================================================

    def get_state(self) -> tuple[int, int]:
        """(hp1, hp2); (0, 0) before any session."""
        session = self.session()
        if session is None:
            return (0, 0)
        return (session.hp[session.player1], session.hp[session.player2])

    def get_board(self, player: str) -> list[Creature]:
        session = self.session()
        if session is None:
            return []
        return session.board.get(player, [])

    def get_turn(self) -> str | None:
        session = self.session()
        if session is None or session.ended or not session.started:
            return None
        return session.turn

    def get_winner(self) -> str | None:
        session = self.session()
        return session.winner if session else None

    def get_draw_index(self, player: str) -> int:
        session = self.session()
        if session is None:
            return 0
        return session.draw_index.get(player, 0)

    def get_game_state(self) -> tuple[bool, bool]:
        """(started, ended)"""
        session = self.session()
        if session is None:
            return (False, False)
        return (session.started, session.ended)

    # =========================================================================
    # Handlers
    # =========================================================================

    def _handlers(self):
        return {
            ActionType.START_GAME: self._handle_start,
            ActionType.COMMIT: self._handle_commit,
            ActionType.DRAW_CARD: self._handle_draw,
            ActionType.PLAY_CREATURE: self._handle_play_creature,
            ActionType.FIREBALL: self._handle_fireball,
            ActionType.ATTACK: self._handle_attack,
            ActionType.ATTACK_CREATURE: self._handle_attack_creature,
            ActionType.END_TURN: self._handle_end_turn,
            ActionType.END_GAME: self._handle_end,
        }

    def _check_live(self, session: TcgSession | None, player: str) -> ActionResult | None:
        """Phase and membership checks shared by every action after start."""
        if session is None or not session.started:
            return ActionResult.failure("Game not started", ErrorCode.GAME_NOT_STARTED)
        if session.ended:
            return ActionResult.failure("Game already ended", ErrorCode.GAME_ALREADY_ENDED)
        if not session.is_player(player):
            return ActionResult.failure(
                f"{player} is not a player in this game", ErrorCode.INVALID_PLAYER
            )
        return None

    def _check_turn(self, session: TcgSession | None, player: str) -> ActionResult | None:
        failure = self._check_live(session, player)
        if failure:
            return failure
        if session.turn != player:
            return ActionResult.failure(f"It is {session.turn}'s turn", ErrorCode.NOT_YOUR_TURN)
        return None

    def _check_target(self, session: TcgSession, player: str, target: str | None) -> ActionResult | None:
        if target != session.opponent_of(player):
            return ActionResult.failure(
                f"{target} is not {player}'s opponent", ErrorCode.INVALID_TARGET
            )
        return None

    def _handle_start(self, session: TcgSession | None, action: Action) -> ActionResult:
        player1 = action.payload.player_id
        player2 = action.payload.opponent_id
        if not player2 or player1 == player2:
            return ActionResult.failure(
                "A game needs two distinct players", ErrorCode.INVALID_PLAYER
            )

        session_id = self.sequence.next_sequence()
        new_session = TcgSession.new(session_id, player1, player2, self.rules)
        return ActionResult.success_with_state(
            new_session,
            changes=[f"Duel {session_id} started: {player1} vs {player2}"],
            events=[
                self._event(session_id, "game", "start", player1=player1, player2=player2)
            ],
            value=session_id,
        )

    def _handle_commit(self, session: TcgSession | None, action: Action) -> ActionResult:
        player = action.payload.player_id
        failure = self._check_live(session, player)
        if failure:
            return failure

        error_code = session.ledger.commit(player, action.payload.commitment)
        if error_code is not None:
            return ActionResult.failure(f"Cannot commit deck for {player}", error_code)

        return ActionResult.success_with_state(
            session,
            changes=[f"{player} committed a deck"],
            events=[self._event(session.session_id, "deck", "commit", player=player)],
        )

    def _handle_draw(self, session: TcgSession | None, action: Action) -> ActionResult:
        payload = action.payload
        player = payload.player_id
        card_value = payload.card_value

        failure = self._check_turn(session, player)
        if failure:
            return failure
        if not isinstance(payload.proof, Proof):
            return ActionResult.failure("A draw requires a Groth16 proof", ErrorCode.INVALID_PROOF)
        if not _is_int(card_value) or card_value < 0:
            return ActionResult.failure(
                "Card value must be a non-negative integer", ErrorCode.MALFORMED_PROOF
            )
        if not session.ledger.has(player):
            return ActionResult.failure(
                f"{player} has not committed a deck", ErrorCode.DECK_NOT_COMMITTED
            )

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

        index = session.draw_index[player]
        deck_hash = commitment_to_field(session.ledger.get(player), self.curve.curve_order)
        if not self._signals_bind(signals, [deck_hash, index, card_value]):
            return ActionResult.failure(
                "Public signals do not match the committed deck, draw index and card",
                ErrorCode.PUBLIC_SIGNAL_MISMATCH,
            )
        if not self._verify(vk, payload.proof, signals):
            return ActionResult.failure("Draw proof rejected", ErrorCode.INVALID_PROOF)

        session.draw_index[player] = index + 1
        return ActionResult.success_with_state(
            session,
            changes=[f"{player} drew card #{index}"],
            events=[
                self._event(session.session_id, "draw", player=player, card_value=card_value)
            ],
            value=card_value,
        )

    def _handle_play_creature(self, session: TcgSession | None, action: Action) -> ActionResult:
        player = action.payload.player_id
        attack = action.payload.attack
        health = action.payload.health

        failure = self._check_turn(session, player)
        if failure:
            return failure
        if not (_is_int(attack) and _is_int(health)) or attack < 0 or health < 1:
            return ActionResult.failure(
                "Creatures need attack >= 0 and health >= 1", ErrorCode.INVALID_CREATURE
            )
        board = session.board[player]
        if len(board) >= self.rules.max_board_size:
            return ActionResult.failure(
                f"Board is full ({self.rules.max_board_size} creatures)", ErrorCode.BOARD_FULL
            )

        board.append(Creature(attack=attack, health=health))
        return ActionResult.success_with_state(
            session,
            changes=[f"{player} played a {attack}/{health} creature"],
            value=len(board) - 1,
        )

    def _handle_fireball(self, session: TcgSession | None, action: Action) -> ActionResult:
        player = action.payload.player_id
        target = action.payload.target_player_id

        failure = self._check_turn(session, player) or self._check_target(session, player, target)
        if failure:
            return failure

        return self._hit_player(
            session, player, target, self.rules.fireball_damage,
            f"{player} cast fireball at {target}",
        )

    def _handle_attack(self, session: TcgSession | None, action: Action) -> ActionResult:
        player = action.payload.player_id
        target = action.payload.target_player_id
        index = action.payload.attacker_index

        failure = self._check_turn(session, player) or self._check_target(session, player, target)
        if failure:
            return failure
        board = session.board[player]
        if not _is_int(index) or not 0 <= index < len(board):
            return ActionResult.failure(
                f"No creature at index {index} on {player}'s board", ErrorCode.INVALID_INDEX
            )

        return self._hit_player(
            session, player, target, board[index].attack,
            f"{player}'s creature #{index} attacked {target}",
        )

    def _handle_attack_creature(self, session: TcgSession | None, action: Action) -> ActionResult:
        payload = action.payload
        player = payload.player_id
        target = payload.target_player_id

        failure = self._check_turn(session, player) or self._check_target(session, player, target)
        if failure:
            return failure
        board = session.board[player]
        target_board = session.board[target]
        a_idx, t_idx = payload.attacker_index, payload.target_index
        if not _is_int(a_idx) or not 0 <= a_idx < len(board):
            return ActionResult.failure(
                f"No creature at index {a_idx} on {player}'s board", ErrorCode.INVALID_INDEX
            )
        if not _is_int(t_idx) or not 0 <= t_idx < len(target_board):
            return ActionResult.failure(
                f"No creature at index {t_idx} on {target}'s board", ErrorCode.INVALID_INDEX
            )

        attacker_after, target_after = clash(board[a_idx], target_board[t_idx])
        changes = []
        # Attacker and target live on different boards, so indices stay valid
        if attacker_after is None:
            del board[a_idx]
            changes.append(f"{player}'s creature #{a_idx} died")
        else:
            board[a_idx] = attacker_after
        if target_after is None:
            del target_board[t_idx]
            changes.append(f"{target}'s creature #{t_idx} died")
        else:
            target_board[t_idx] = target_after

        return ActionResult.success_with_state(
            session,
            changes=[f"{player}'s creature #{a_idx} fought {target}'s #{t_idx}"] + changes,
        )

    def _handle_end_turn(self, session: TcgSession | None, action: Action) -> ActionResult:
        player = action.payload.player_id
        failure = self._check_turn(session, player)
        if failure:
            return failure

        session.turn = session.opponent_of(player)
        return ActionResult.success_with_state(
            session, changes=[f"{player} ended the turn"], value=session.turn
        )

    def _handle_end(self, session: TcgSession | None, action: Action) -> ActionResult:
        winner = action.payload.player_id
        if session is None or not session.started:
            return ActionResult.failure("Game not started", ErrorCode.GAME_NOT_STARTED)
        if not session.is_player(winner):
            return ActionResult.failure(
                f"{winner} is not a player in this game", ErrorCode.INVALID_PLAYER
            )
        if session.winner != winner:
            return ActionResult.failure(
                f"{winner} has not reduced the opponent to zero hit points",
                ErrorCode.WIN_CONDITION_NOT_MET,
            )

        session.started = False
        return ActionResult.success_with_state(
            session,
            changes=[f"Duel closed, winner {winner}"],
            events=[self._event(session.session_id, "game", "close", winner=winner)],
            value=winner,
        )

    def _hit_player(
        self,
        session: TcgSession,
        player: str,
        target: str,
        amount: int,
        description: str,
    ) -> ActionResult:
        session.hp[target] = damage(session.hp[target], amount)
        changes = [f"{description} for {amount} ({session.hp[target]} hp left)"]
        events: list[DomainEvent] = []
        if session.hp[target] == 0 and session.winner is None:
            session.ended = True
            session.winner = player
            changes.append(f"{player} wins")
            events.append(
                self._event(
                    session.session_id, "game", "end",
                    winner=player, player1_won=player == session.player1,
                )
            )
        return ActionResult.success_with_state(
            session, changes=changes, events=events, value=session.hp[target]
        )
