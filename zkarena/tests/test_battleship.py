"""
Tests for the Battleship engine.

Tests:
- Start / restart semantics
- Board commitments
- Proof-gated shots and their check order
- Winning: threshold and explicit end with the player1 tie-break
- Views and events
"""

import pytest

from ..engine_core import ErrorCode, acting_as, CallerAuthenticator, commitment_to_field
from ..games.battleship import BattleshipEngine, BattleshipPhase
from .conftest import ALICE, BOB, MALLORY, make_commitment


class TestStart:
    def test_fresh_engine_views(self, battleship):
        assert battleship.get_game_state() == (False, False)
        assert battleship.get_hits(ALICE) == 0
        assert battleship.get_winner() is None
        assert battleship.get_session_id() is None

    def test_start_game(self, battleship, events):
        result = battleship.start_game(ALICE, BOB)
        assert result.success
        assert result.value == battleship.get_session_id()
        assert battleship.get_game_state() == (True, False)
        assert battleship.session().phase == BattleshipPhase.COMMITTING
        assert events.topics() == ["game.start"]
        assert events.events[0].data == {"player1": ALICE, "player2": BOB}

    def test_start_needs_two_players(self, battleship):
        result = battleship.start_game(ALICE, ALICE)
        assert result.error_code == ErrorCode.INVALID_PLAYER
        assert battleship.get_game_state() == (False, False)

    def test_session_ids_change(self, battleship):
        first = battleship.start_game(ALICE, BOB).value
        second = battleship.start_game(ALICE, BOB).value
        assert second > first

    def test_restart_resets_everything(self, committed_battleship, shot, bob_board):
        engine = committed_battleship
        proof, signals = shot(bob_board, 3, 1)
        assert engine.shoot(ALICE, 3, 1, proof, signals).success
        assert engine.end_game(ALICE).success
        assert engine.get_winner() == ALICE

        assert engine.start_game(ALICE, BOB).success
        assert engine.get_hits(ALICE) == 0
        assert engine.get_hits(BOB) == 0
        assert engine.get_total_shots() == 0
        assert engine.get_winner() is None
        assert engine.get_game_state() == (True, False)
        assert engine.get_commitment(ALICE) is None


class TestCommit:
    def test_commit_before_start(self, battleship, alice_board):
        result = battleship.commit_board(ALICE, alice_board)
        assert result.error_code == ErrorCode.GAME_NOT_STARTED

    def test_commit_both(self, battleship, alice_board, bob_board, events):
        battleship.start_game(ALICE, BOB)
        assert battleship.commit_board(ALICE, alice_board).success
        assert battleship.commit_board(BOB, bob_board).success
        assert battleship.session().phase == BattleshipPhase.PLAYABLE
        assert events.topics() == ["game.start", "board.commit", "board.commit"]

    def test_second_commit_rejected_and_first_kept(self, battleship, alice_board):
        battleship.start_game(ALICE, BOB)
        battleship.commit_board(ALICE, alice_board)
        result = battleship.commit_board(ALICE, make_commitment("other"))
        assert result.error_code == ErrorCode.BOARD_ALREADY_COMMITTED
        assert battleship.get_commitment(ALICE) == alice_board

    def test_outsider_cannot_commit(self, battleship):
        battleship.start_game(ALICE, BOB)
        result = battleship.commit_board(MALLORY, make_commitment("m"))
        assert result.error_code == ErrorCode.INVALID_PLAYER


class TestShoot:
    def test_hit_counts(self, committed_battleship, shot, bob_board, events):
        proof, signals = shot(bob_board, 12, 1)
        result = committed_battleship.shoot(ALICE, 12, 1, proof, signals)
        assert result.success
        assert committed_battleship.get_hits(ALICE) == 1
        assert committed_battleship.get_hits(BOB) == 0
        assert committed_battleship.get_total_shots() == 1
        fire = events.events[-1]
        assert fire.name == "shot.fire"
        assert fire.data == {"shooter": ALICE, "shot_index": 12, "result": 1}

    def test_miss_counts_shot_only(self, committed_battleship, shot, alice_board):
        proof, signals = shot(alice_board, 0, 0)
        assert committed_battleship.shoot(BOB, 0, 0, proof, signals).success
        assert committed_battleship.get_hits(BOB) == 0
        assert committed_battleship.get_total_shots() == 1

    def test_either_player_may_shoot_repeatedly(self, committed_battleship, shot, bob_board):
        for index in (1, 2):
            proof, signals = shot(bob_board, index, 0)
            assert committed_battleship.shoot(ALICE, index, 0, proof, signals).success
        assert committed_battleship.get_total_shots() == 2

    def test_shot_index_25_rejected_even_with_valid_proof(self, committed_battleship, shot, bob_board):
        proof, signals = shot(bob_board, 25, 1)
        result = committed_battleship.shoot(ALICE, 25, 1, proof, signals)
        assert result.error_code == ErrorCode.INVALID_SHOT_INDEX
        assert committed_battleship.get_hits(ALICE) == 0
        assert committed_battleship.get_total_shots() == 0

    @pytest.mark.parametrize("index", [-1, 100, "3", None])
    def test_bad_shot_index(self, committed_battleship, proofs, index):
        result = committed_battleship.shoot(ALICE, index, 1, proofs.forge(), [0, 0, 1])
        assert result.error_code == ErrorCode.INVALID_SHOT_INDEX

    def test_claimed_result_must_be_bit(self, committed_battleship, shot, bob_board):
        proof, signals = shot(bob_board, 4, 2)
        result = committed_battleship.shoot(ALICE, 4, 2, proof, signals)
        assert result.error_code == ErrorCode.INVALID_SHOT_RESULT

    def test_outsider_cannot_shoot(self, committed_battleship, shot, bob_board):
        proof, signals = shot(bob_board, 4, 1)
        result = committed_battleship.shoot(MALLORY, 4, 1, proof, signals)
        assert result.error_code == ErrorCode.INVALID_PLAYER

    def test_needs_both_boards(self, battleship, alice_board, shot, bob_board):
        battleship.start_game(ALICE, BOB)
        battleship.commit_board(ALICE, alice_board)
        proof, signals = shot(bob_board, 4, 1)
        result = battleship.shoot(ALICE, 4, 1, proof, signals)
        assert result.error_code == ErrorCode.NOT_ALL_BOARDS_COMMITTED

    def test_before_start(self, battleship, proofs):
        result = battleship.shoot(ALICE, 4, 1, proofs.forge(), [0, 4, 1])
        assert result.error_code == ErrorCode.GAME_NOT_STARTED

    def test_failed_proof_changes_nothing(self, committed_battleship, proofs, bob_board, bn_curve):
        signals = [commitment_to_field(bob_board, bn_curve.curve_order), 4, 1]
        result = committed_battleship.shoot(ALICE, 4, 1, proofs.forge(), signals)
        assert result.error_code == ErrorCode.PROOF_VERIFICATION_FAILED
        assert committed_battleship.get_hits(ALICE) == 0
        assert committed_battleship.get_total_shots() == 0

    def test_proof_for_other_shot_cannot_be_replayed(self, committed_battleship, shot, bob_board):
        proof, signals = shot(bob_board, 4, 1)
        result = committed_battleship.shoot(ALICE, 5, 1, proof, signals)
        assert result.error_code == ErrorCode.PUBLIC_SIGNAL_MISMATCH

    def test_proof_about_own_board_rejected(self, committed_battleship, shot, alice_board):
        """The claim must be about the defender's committed board."""
        proof, signals = shot(alice_board, 4, 1)
        result = committed_battleship.shoot(ALICE, 4, 1, proof, signals)
        assert result.error_code == ErrorCode.PUBLIC_SIGNAL_MISMATCH

    def test_flipped_result_rejected(self, committed_battleship, shot, bob_board):
        proof, signals = shot(bob_board, 4, 0)
        result = committed_battleship.shoot(ALICE, 4, 1, proof, [signals[0], 4, 1])
        assert result.error_code == ErrorCode.PROOF_VERIFICATION_FAILED

    def test_wrong_signal_count(self, committed_battleship, shot, bob_board):
        proof, signals = shot(bob_board, 4, 1)
        result = committed_battleship.shoot(ALICE, 4, 1, proof, signals[:2])
        assert result.error_code == ErrorCode.MALFORMED_PROOF

    def test_not_a_proof(self, committed_battleship, shot, bob_board):
        _, signals = shot(bob_board, 4, 1)
        result = committed_battleship.shoot(ALICE, 4, 1, b"\x01\x02", signals)
        assert result.error_code == ErrorCode.MALFORMED_PROOF

    def test_verifier_not_initialized(self, verifier, shot, alice_board, bob_board):
        engine = BattleshipEngine(verifier)
        engine.start_game(ALICE, BOB)
        engine.commit_board(ALICE, alice_board)
        engine.commit_board(BOB, bob_board)
        proof, signals = shot(bob_board, 4, 1)
        result = engine.shoot(ALICE, 4, 1, proof, signals)
        assert result.error_code == ErrorCode.VERIFIER_NOT_INITIALIZED


class TestStrictTurns:
    def test_alternation(self, strict_battleship, alice_board, bob_board, shot):
        engine = strict_battleship
        engine.start_game(ALICE, BOB)
        engine.commit_board(ALICE, alice_board)
        engine.commit_board(BOB, bob_board)
        assert engine.get_turn() == ALICE

        proof, signals = shot(alice_board, 1, 0)
        assert engine.shoot(BOB, 1, 0, proof, signals).error_code == ErrorCode.NOT_YOUR_TURN

        proof, signals = shot(bob_board, 1, 0)
        assert engine.shoot(ALICE, 1, 0, proof, signals).success
        assert engine.get_turn() == BOB


class TestEndGame:
    def test_tie_goes_to_player1(self, committed_battleship, shot, alice_board, bob_board):
        proof, signals = shot(bob_board, 1, 1)
        committed_battleship.shoot(ALICE, 1, 1, proof, signals)
        proof, signals = shot(alice_board, 1, 1)
        committed_battleship.shoot(BOB, 1, 1, proof, signals)

        result = committed_battleship.end_game(BOB)
        assert result.success
        assert committed_battleship.get_winner() == ALICE
        assert committed_battleship.get_game_state() == (True, True)

    def test_more_hits_wins(self, committed_battleship, shot, alice_board):
        proof, signals = shot(alice_board, 9, 1)
        committed_battleship.shoot(BOB, 9, 1, proof, signals)
        assert committed_battleship.end_game(ALICE).value == BOB

    def test_end_twice(self, committed_battleship):
        committed_battleship.end_game(ALICE)
        result = committed_battleship.end_game(ALICE)
        assert result.error_code == ErrorCode.GAME_ALREADY_ENDED

    def test_end_before_start(self, battleship):
        assert battleship.end_game(ALICE).error_code == ErrorCode.GAME_NOT_STARTED

    def test_outsider_cannot_end(self, committed_battleship):
        assert committed_battleship.end_game(MALLORY).error_code == ErrorCode.INVALID_PLAYER

    def test_no_shots_after_end(self, committed_battleship, shot, bob_board):
        committed_battleship.end_game(ALICE)
        proof, signals = shot(bob_board, 4, 1)
        result = committed_battleship.shoot(ALICE, 4, 1, proof, signals)
        assert result.error_code == ErrorCode.GAME_ALREADY_ENDED

    def test_fifth_hit_wins(self, committed_battleship, shot, bob_board, events):
        for index in range(5):
            proof, signals = shot(bob_board, index, 1)
            assert committed_battleship.shoot(ALICE, index, 1, proof, signals).success
        assert committed_battleship.get_winner() == ALICE
        assert committed_battleship.get_game_state() == (True, True)
        end = events.events[-1]
        assert end.name == "game.end"
        assert end.data == {"winner": ALICE, "player1_won": True}


class TestAuthentication:
    def test_caller_must_match_player(self, verifier, proofs, alice_board):
        engine = BattleshipEngine(verifier, authenticator=CallerAuthenticator())
        engine.init(proofs.vk)

        with acting_as(BOB):
            assert engine.start_game(ALICE, BOB).error_code == ErrorCode.UNAUTHORIZED
        with acting_as(ALICE):
            assert engine.start_game(ALICE, BOB).success
            assert engine.commit_board(ALICE, alice_board).success
            assert engine.commit_board(BOB, alice_board).error_code == ErrorCode.UNAUTHORIZED
        assert engine.end_game(ALICE).error_code == ErrorCode.UNAUTHORIZED
