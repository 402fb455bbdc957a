"""
Pytest fixtures for ZK Arena tests.

Proofs are synthesized from a known trapdoor: with alpha, beta, gamma,
delta and the IC discrete logs in hand, a valid C for any A, B and
public signals is

    c = (a*b - alpha*beta - x*gamma) / delta   (mod r)

where x = ic0 + sum(s_i * ic_{i+1}). This exercises the real pairing
check without a prover.
"""

import hashlib
import random

import pytest

from ..crypto import CurveAdapter, Groth16Verifier, Proof, VerificationKey
from ..engine_core import RecordingEventSink, commitment_to_field
from ..games.battleship import BattleshipEngine, BattleshipRules
from ..games.tcg import TcgEngine


class ProofFactory:
    """Builds a verification key and genuine proofs for it."""

    def __init__(self, curve: CurveAdapter, n_public: int = 3, seed: int = 7):
        self.curve = curve
        self.r = curve.curve_order
        self._rng = random.Random(seed)

        self.alpha, self.beta, self.gamma, self.delta = (self._scalar() for _ in range(4))
        self.ic = [self._scalar() for _ in range(n_public + 1)]

        g1, g2 = curve.G1, curve.G2
        mul = curve.scalar_mul
        self.vk = VerificationKey(
            alpha=mul(g1, self.alpha),
            beta=mul(g2, self.beta),
            gamma=mul(g2, self.gamma),
            delta=mul(g2, self.delta),
            ic=tuple(mul(g1, k) for k in self.ic),
        )

    def _scalar(self) -> int:
        return self._rng.randrange(1, self.r)

    def prove(self, signals) -> Proof:
        """A valid proof for exactly these public signals."""
        r = self.r
        x = (self.ic[0] + sum(s * k for s, k in zip(signals, self.ic[1:]))) % r
        a, b = self._scalar(), self._scalar()
        c = (a * b - self.alpha * self.beta - x * self.gamma) * pow(self.delta, -1, r) % r
        return Proof(
            a=self.curve.scalar_mul(self.curve.G1, a),
            b=self.curve.scalar_mul(self.curve.G2, b),
            c=self.curve.scalar_mul(self.curve.G1, c),
        )

    def forge(self) -> Proof:
        """Well-formed points that satisfy nothing."""
        return Proof(
            a=self.curve.scalar_mul(self.curve.G1, self._scalar()),
            b=self.curve.scalar_mul(self.curve.G2, self._scalar()),
            c=self.curve.scalar_mul(self.curve.G1, self._scalar()),
        )


def make_commitment(label: str) -> bytes:
    """Stand-in for a board/deck hash."""
    return hashlib.sha256(label.encode()).digest()


ALICE = "alice"
BOB = "bob"
MALLORY = "mallory"


@pytest.fixture(scope="session")
def bn_curve() -> CurveAdapter:
    return CurveAdapter("bn128")


@pytest.fixture(scope="session")
def verifier(bn_curve) -> Groth16Verifier:
    return Groth16Verifier(bn_curve)


@pytest.fixture(scope="session")
def proofs(bn_curve) -> ProofFactory:
    """Three public signals, the layout both games use."""
    return ProofFactory(bn_curve, n_public=3)


@pytest.fixture
def events() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture
def alice_board() -> bytes:
    return make_commitment("alice-board")


@pytest.fixture
def bob_board() -> bytes:
    return make_commitment("bob-board")


@pytest.fixture
def battleship(verifier, proofs, events) -> BattleshipEngine:
    """Initialized engine, no game started."""
    engine = BattleshipEngine(verifier, events=events)
    assert engine.init(proofs.vk).success
    return engine


@pytest.fixture
def strict_battleship(verifier, proofs, events) -> BattleshipEngine:
    engine = BattleshipEngine(verifier, rules=BattleshipRules(strict_turns=True), events=events)
    assert engine.init(proofs.vk).success
    return engine


@pytest.fixture
def committed_battleship(battleship, alice_board, bob_board) -> BattleshipEngine:
    """alice vs bob, both boards committed."""
    assert battleship.start_game(ALICE, BOB).success
    assert battleship.commit_board(ALICE, alice_board).success
    assert battleship.commit_board(BOB, bob_board).success
    return battleship


@pytest.fixture
def shot(proofs, bn_curve):
    """
    Build the arguments of a valid shoot() call.

    The proof is about the defender's board.
    """
    def _shot(defender_board: bytes, index: int, result: int):
        signals = [commitment_to_field(defender_board, bn_curve.curve_order), index, result]
        return proofs.prove(signals), signals
    return _shot


@pytest.fixture
def tcg(verifier, proofs, events) -> TcgEngine:
    engine = TcgEngine(verifier, events=events)
    assert engine.init(proofs.vk).success
    return engine


@pytest.fixture
def started_tcg(tcg) -> TcgEngine:
    assert tcg.start_game(ALICE, BOB).success
    return tcg
