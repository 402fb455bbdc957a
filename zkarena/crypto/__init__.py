"""
Crypto - Curve arithmetic and Groth16 verification.

The verifier is the only component that decides whether a claimed
outcome is consistent with a committed private state.
"""

from .curve import CurveAdapter, InvalidPointError, canonical_curve_name
from .groth16 import (
    Groth16Verifier,
    MalformedProof,
    Proof,
    VerificationKey,
    dump_proof,
    dump_verification_key,
    load_proof,
    load_verification_key,
    parse_public_signals,
)

__all__ = [
    "CurveAdapter",
    "InvalidPointError",
    "canonical_curve_name",
    "Groth16Verifier",
    "MalformedProof",
    "Proof",
    "VerificationKey",
    "dump_proof",
    "dump_verification_key",
    "load_proof",
    "load_verification_key",
    "parse_public_signals",
]
