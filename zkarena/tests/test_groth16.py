"""
Tests for the Groth16 verifier.

Tests:
- Genuine proofs verify
- Mutated proofs and signals are rejected
- Input-shape errors raise MalformedProof instead of returning False
- snarkjs JSON loading
"""

import pytest

from ..crypto import (
    CurveAdapter,
    Groth16Verifier,
    InvalidPointError,
    MalformedProof,
    Proof,
    VerificationKey,
    dump_proof,
    dump_verification_key,
    load_proof,
    load_verification_key,
    parse_public_signals,
)
from .conftest import ProofFactory


SIGNALS = [12345, 7, 1]


class TestVerify:
    def test_valid_proof(self, verifier, proofs):
        proof = proofs.prove(SIGNALS)
        assert verifier.verify(proofs.vk, proof, SIGNALS) is True

    def test_different_signal_rejected(self, verifier, proofs):
        proof = proofs.prove(SIGNALS)
        assert verifier.verify(proofs.vk, proof, [12345, 7, 0]) is False

    def test_mutated_a_rejected(self, verifier, proofs, bn_curve):
        proof = proofs.prove(SIGNALS)
        tampered = Proof(a=bn_curve.add(proof.a, bn_curve.G1), b=proof.b, c=proof.c)
        assert verifier.verify(proofs.vk, tampered, SIGNALS) is False

    def test_mutated_c_rejected(self, verifier, proofs, bn_curve):
        proof = proofs.prove(SIGNALS)
        tampered = Proof(a=proof.a, b=proof.b, c=bn_curve.negate(proof.c))
        assert verifier.verify(proofs.vk, tampered, SIGNALS) is False

    def test_forged_proof_rejected(self, verifier, proofs):
        assert verifier.verify(proofs.vk, proofs.forge(), SIGNALS) is False

    def test_zero_signals(self, verifier, proofs):
        signals = [0, 0, 0]
        assert verifier.verify(proofs.vk, proofs.prove(signals), signals)


class TestMalformed:
    @pytest.mark.parametrize("signals", [[], [1, 2], [1, 2, 3, 4]])
    def test_signal_count_mismatch(self, verifier, proofs, signals):
        with pytest.raises(MalformedProof):
            verifier.verify(proofs.vk, proofs.forge(), signals)

    def test_non_canonical_signal(self, verifier, proofs, bn_curve):
        """s and s + r must not alias the same proof."""
        proof = proofs.prove(SIGNALS)
        aliased = [SIGNALS[0] + bn_curve.curve_order, 7, 1]
        with pytest.raises(MalformedProof):
            verifier.verify(proofs.vk, proof, aliased)

    def test_non_integer_signal(self, verifier, proofs):
        with pytest.raises(MalformedProof):
            verifier.verify(proofs.vk, proofs.forge(), [True, 7, 1])

    def test_invalid_proof_point(self, verifier, proofs):
        proof = proofs.prove(SIGNALS)
        broken = Proof(a=(1, 2, 1), b=proof.b, c=proof.c)
        with pytest.raises(MalformedProof):
            verifier.verify(proofs.vk, broken, SIGNALS)

    def test_malformed_is_a_value_error(self):
        assert issubclass(MalformedProof, ValueError)


class TestVerificationKey:
    def test_check_accepts_generated_key(self, verifier, proofs):
        verifier.check_verification_key(proofs.vk)

    def test_check_rejects_empty_ic(self, verifier, proofs):
        vk = VerificationKey(
            alpha=proofs.vk.alpha,
            beta=proofs.vk.beta,
            gamma=proofs.vk.gamma,
            delta=proofs.vk.delta,
            ic=(),
        )
        with pytest.raises(InvalidPointError):
            verifier.check_verification_key(vk)

    def test_num_public_inputs(self, proofs):
        assert proofs.vk.num_public_inputs == 3


class TestSnarkjsJson:
    def test_verify_from_json(self, verifier, proofs, bn_curve):
        proof = proofs.prove(SIGNALS)
        vk_json = dump_verification_key(proofs.vk, bn_curve)
        proof_json = dump_proof(proof, bn_curve)
        assert vk_json["nPublic"] == 3
        assert vk_json["curve"] == "bn128"

        vk = load_verification_key(vk_json, bn_curve)
        loaded = load_proof({"proof": proof_json, "publicSignals": []}, bn_curve)
        signals = parse_public_signals([str(s) for s in SIGNALS])
        assert verifier.verify(vk, loaded, signals)

    def test_relaxed_field_names(self, proofs, bn_curve):
        vk_json = dump_verification_key(proofs.vk, bn_curve)
        relaxed = {
            "alpha": vk_json["vk_alpha_1"],
            "beta_2": vk_json["vk_beta_2"],
            "gamma": vk_json["vk_gamma_2"],
            "delta": vk_json["vk_delta_2"],
            "ic": vk_json["IC"],
        }
        vk = load_verification_key(relaxed, bn_curve)
        assert vk.num_public_inputs == 3

    def test_missing_field(self, bn_curve):
        with pytest.raises(KeyError):
            load_proof({"pi_a": ["1", "2", "1"]}, bn_curve)

    def test_curve_mismatch(self, proofs, bn_curve):
        vk_json = dump_verification_key(proofs.vk, bn_curve)
        vk_json["curve"] = "bls12381"
        with pytest.raises(ValueError):
            load_verification_key(vk_json, bn_curve)

    def test_npublic_mismatch(self, proofs, bn_curve):
        vk_json = dump_verification_key(proofs.vk, bn_curve)
        vk_json["nPublic"] = 2
        with pytest.raises(ValueError):
            load_verification_key(vk_json, bn_curve)

    def test_off_curve_point_in_json(self, bn_curve):
        with pytest.raises(InvalidPointError):
            load_proof({"pi_a": ["1", "3", "1"], "pi_b": [], "pi_c": []}, bn_curve)

    def test_parse_public_signals(self):
        assert parse_public_signals(["10", "0x10", 3]) == [10, 16, 3]
        with pytest.raises(MalformedProof):
            parse_public_signals(["ten"])


@pytest.mark.slow
class TestBls12381:
    def test_valid_and_invalid_proof(self):
        curve = CurveAdapter("bls12_381")
        factory = ProofFactory(curve, n_public=3, seed=11)
        verifier = Groth16Verifier(curve)
        verifier.check_verification_key(factory.vk)

        proof = factory.prove(SIGNALS)
        assert verifier.verify(factory.vk, proof, SIGNALS)
        assert not verifier.verify(factory.vk, proof, [12345, 8, 1])
