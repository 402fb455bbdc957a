"""
Groth16 Verifier - Pairing-based verification of Groth16 proofs.

Verification equation, in the product form used by the host contracts:

    e(-A, B) * e(alpha, beta) * e(vk_x, gamma) * e(C, delta) == 1

which is equivalent to the canonical e(A, B) = e(alpha, beta) e(vk_x, gamma) e(C, delta),
with vk_x = IC[0] + sum_i signal_i * IC[i + 1].

JSON compatibility (snarkjs):
- Verification key: vk_alpha_1, vk_beta_2, vk_gamma_2, vk_delta_2, IC
- Proof: pi_a, pi_b, pi_c
Coordinates are decimal strings; G2 elements are [c0, c1] pairs.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from .curve import CurveAdapter, G1Point, G2Point, InvalidPointError, canonical_curve_name, to_int


class MalformedProof(ValueError):
    """
    Input-shape error: the proof or its public signals cannot be checked.

    Distinct from a rejected proof, which is a well-formed claim that fails
    the pairing equation.
    """


@dataclass(frozen=True)
class VerificationKey:
    """Groth16 verification key; ic has one entry per public signal plus one."""
    alpha: G1Point
    beta: G2Point
    gamma: G2Point
    delta: G2Point
    ic: tuple[G1Point, ...]

    @property
    def num_public_inputs(self) -> int:
        return len(self.ic) - 1


@dataclass(frozen=True)
class Proof:
    """A Groth16 proof (A in G1, B in G2, C in G1)."""
    a: G1Point
    b: G2Point
    c: G1Point


class Groth16Verifier:
    """
    Stateless Groth16 verifier bound to one curve.

    Usage:
        verifier = Groth16Verifier(CurveAdapter("bls12_381"))
        verifier.check_verification_key(vk)   # once, when the key is installed
        ok = verifier.verify(vk, proof, [board_hash, shot_index, result])
    """

    def __init__(self, curve: CurveAdapter | None = None):
        self.curve = curve or CurveAdapter()

    def check_verification_key(self, vk: VerificationKey) -> None:
        """Validate every point of a verification key. Raises InvalidPointError."""
        if len(vk.ic) < 1:
            raise InvalidPointError("Verification key has an empty IC vector")
        self.curve.check_g1(vk.alpha)
        for point in (vk.beta, vk.gamma, vk.delta):
            self.curve.check_g2(point)
        for point in vk.ic:
            self.curve.check_g1(point)

    def verify(
        self,
        vk: VerificationKey,
        proof: Proof,
        public_signals: Sequence[int],
    ) -> bool:
        """
        Verify a proof against exactly these public signals.

        Returns True iff the pairing equation holds. Raises MalformedProof
        when the signal count does not match the key, when a signal is not a
        canonical scalar, or when a proof point is invalid.
        """
        if len(public_signals) + 1 != len(vk.ic):
            raise MalformedProof(
                f"Expected {len(vk.ic) - 1} public signals, got {len(public_signals)}"
            )
        scalars = [self._scalar(s) for s in public_signals]

        try:
            self.curve.check_g1(proof.a)
            self.curve.check_g2(proof.b)
            self.curve.check_g1(proof.c)
        except InvalidPointError as e:
            raise MalformedProof(str(e)) from e

        vk_x = self.linear_combination(vk, scalars)
        curve = self.curve
        return curve.pairing_check(
            [curve.negate(proof.a), vk.alpha, vk_x, proof.c],
            [proof.b, vk.beta, vk.gamma, vk.delta],
        )

    def linear_combination(self, vk: VerificationKey, scalars: Sequence[int]) -> G1Point:
        """vk_x = IC[0] + sum(scalars[i] * IC[i + 1])."""
        acc = vk.ic[0]
        for point, s in zip(vk.ic[1:], scalars):
            if s:
                acc = self.curve.add(acc, self.curve.scalar_mul(point, s))
        return acc

    def _scalar(self, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise MalformedProof(f"Public signal {value!r} is not an integer")
        if not 0 <= value < self.curve.curve_order:
            raise MalformedProof("Public signal is outside the scalar field")
        return value


# =============================================================================
# snarkjs JSON loaders
# =============================================================================

def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    raise KeyError(f"Missing field (tried {', '.join(keys)})")


def _check_curve_field(data: Mapping[str, Any], curve: CurveAdapter) -> None:
    declared = data.get("curve")
    if declared and canonical_curve_name(str(declared)) != curve.name:
        raise ValueError(f"Data is for curve {declared}, verifier uses {curve.name}")


def load_verification_key(data: Mapping[str, Any], curve: CurveAdapter) -> VerificationKey:
    """
    Parse a snarkjs-style verification key.

    Raises KeyError for missing fields, InvalidPointError for bad points.
    """
    _check_curve_field(data, curve)
    alpha = _first(data, "vk_alpha_1", "alpha_1", "alpha")
    beta = _first(data, "vk_beta_2", "beta_2", "beta")
    gamma = _first(data, "vk_gamma_2", "gamma_2", "gamma")
    delta = _first(data, "vk_delta_2", "delta_2", "delta")
    ic = _first(data, "IC", "vk_ic", "ic")

    vk = VerificationKey(
        alpha=curve.g1_from_json(alpha),
        beta=curve.g2_from_json(beta),
        gamma=curve.g2_from_json(gamma),
        delta=curve.g2_from_json(delta),
        ic=tuple(curve.g1_from_json(p) for p in ic),
    )
    declared_inputs = data.get("nPublic")
    if declared_inputs is not None and int(declared_inputs) != vk.num_public_inputs:
        raise ValueError(
            f"nPublic={declared_inputs} disagrees with IC length {len(vk.ic)}"
        )
    return vk


def load_proof(data: Mapping[str, Any], curve: CurveAdapter) -> Proof:
    """Parse a snarkjs-style proof (a wrapping {"proof": ...} object is unwrapped)."""
    if "proof" in data and isinstance(data["proof"], Mapping):
        data = data["proof"]
    _check_curve_field(data, curve)
    return Proof(
        a=curve.g1_from_json(_first(data, "pi_a", "a", "A")),
        b=curve.g2_from_json(_first(data, "pi_b", "b", "B")),
        c=curve.g1_from_json(_first(data, "pi_c", "c", "C")),
    )


def parse_public_signals(values: Sequence[Any]) -> list[int]:
    """Parse public signals given as ints, decimal strings or 0x-hex strings."""
    try:
        return [to_int(v) for v in values]
    except (TypeError, ValueError) as e:
        raise MalformedProof(f"Invalid public signal: {e}") from e


def dump_verification_key(vk: VerificationKey, curve: CurveAdapter) -> dict[str, Any]:
    return {
        "protocol": "groth16",
        "curve": curve.name,
        "nPublic": vk.num_public_inputs,
        "vk_alpha_1": curve.g1_to_json(vk.alpha),
        "vk_beta_2": curve.g2_to_json(vk.beta),
        "vk_gamma_2": curve.g2_to_json(vk.gamma),
        "vk_delta_2": curve.g2_to_json(vk.delta),
        "IC": [curve.g1_to_json(p) for p in vk.ic],
    }


def dump_proof(proof: Proof, curve: CurveAdapter) -> dict[str, Any]:
    return {
        "protocol": "groth16",
        "curve": curve.name,
        "pi_a": curve.g1_to_json(proof.a),
        "pi_b": curve.g2_to_json(proof.b),
        "pi_c": curve.g1_to_json(proof.c),
    }
