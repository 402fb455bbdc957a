"""
Curve Adapter - Elliptic-curve arithmetic and pairings over py_ecc.

Wraps one of py_ecc's optimized pairing-friendly backends behind a small,
side-effect-free interface:
- Point construction with strict validation (on-curve and subgroup)
- Scalar multiplication, addition, negation in G1
- Product-of-pairings check over paired G1/G2 sequences
- snarkjs JSON encodings

Points are the backend's projective tuples. They are opaque to callers;
only this module looks inside them.
"""

from __future__ import annotations
from typing import Any, Sequence, Union

from py_ecc import optimized_bls12_381, optimized_bn128


G1Point = Any
G2Point = Any
Scalar = Union[int, str]


_BACKENDS = {
    "bls12_381": optimized_bls12_381,
    "bn128": optimized_bn128,
}

_ALIASES = {
    "bls12381": "bls12_381",
    "bls12-381": "bls12_381",
    "bn254": "bn128",
    "altbn128": "bn128",
    "alt_bn128": "bn128",
}


class InvalidPointError(ValueError):
    """Raised when a curve point is malformed, off-curve or outside the subgroup."""


def canonical_curve_name(name: str) -> str:
    """Normalize a curve name (snarkjs spells BLS12-381 as 'bls12381')."""
    key = name.strip().lower()
    key = _ALIASES.get(key, key)
    if key not in _BACKENDS:
        raise ValueError(f"Unsupported curve: {name}")
    return key


def to_int(value: Scalar) -> int:
    """Parse an int, a decimal string or a 0x-prefixed hex string."""
    if isinstance(value, bool):
        raise TypeError("Booleans are not curve scalars")
    if isinstance(value, int):
        return value
    text = str(value).strip().lower()
    if text.startswith("0x"):
        return int(text, 16)
    return int(text)


class CurveAdapter:
    """
    Arithmetic adapter for one pairing-friendly curve.

    Usage:
        curve = CurveAdapter("bn128")
        p = curve.g1(x, y)
        q = curve.scalar_mul(p, 7)
        ok = curve.pairing_check([p, curve.negate(p)], [curve.G2, curve.G2])
    """

    def __init__(self, name: str = "bls12_381"):
        self.name = canonical_curve_name(name)
        self._backend = _BACKENDS[self.name]
        self.curve_order: int = self._backend.curve_order
        self.field_modulus: int = self._backend.field_modulus

        self.G1 = self._backend.G1
        self.G2 = self._backend.G2
        self.Z1 = self._backend.Z1
        self.Z2 = self._backend.Z2

    def __repr__(self) -> str:
        return f"CurveAdapter({self.name!r})"

    # =========================================================================
    # Construction and validation
    # =========================================================================

    def g1(self, x: Scalar, y: Scalar, z: Scalar = 1) -> G1Point:
        """Build and validate a G1 point from (projective) coordinates."""
        xi, yi, zi = (self._coordinate(v) for v in (x, y, z))
        FQ = self._backend.FQ
        if zi == 0 or (xi == 0 and yi == 0):
            return self.Z1
        point = (FQ(xi), FQ(yi), FQ(zi))
        self.check_g1(point)
        return point

    def g2(
        self,
        x: Sequence[Scalar],
        y: Sequence[Scalar],
        z: Sequence[Scalar] = (1, 0),
    ) -> G2Point:
        """Build and validate a G2 point; each coordinate is [c0, c1]."""
        if len(x) != 2 or len(y) != 2 or len(z) != 2:
            raise InvalidPointError("G2 coordinates must have two components")
        xs = [self._coordinate(v) for v in x]
        ys = [self._coordinate(v) for v in y]
        zs = [self._coordinate(v) for v in z]
        FQ2 = self._backend.FQ2
        if zs == [0, 0] or xs + ys == [0, 0, 0, 0]:
            return self.Z2
        point = (FQ2(xs), FQ2(ys), FQ2(zs))
        self.check_g2(point)
        return point

    def check_g1(self, point: G1Point) -> None:
        """Reject points that are not on the curve or not in the r-torsion subgroup."""
        if not self._is_point(point, self._backend.FQ):
            raise InvalidPointError("Not a G1 point")
        if not self._backend.is_on_curve(point, self._backend.b):
            raise InvalidPointError("G1 point is not on the curve")
        if not self._backend.is_inf(self._backend.multiply(point, self.curve_order)):
            raise InvalidPointError("G1 point is not in the prime-order subgroup")

    def check_g2(self, point: G2Point) -> None:
        """Reject points that are not on the twist or not in the r-torsion subgroup."""
        if not self._is_point(point, self._backend.FQ2):
            raise InvalidPointError("Not a G2 point")
        if not self._backend.is_on_curve(point, self._backend.b2):
            raise InvalidPointError("G2 point is not on the twisted curve")
        if not self._backend.is_inf(self._backend.multiply(point, self.curve_order)):
            raise InvalidPointError("G2 point is not in the prime-order subgroup")

    def _coordinate(self, value: Scalar) -> int:
        try:
            n = to_int(value)
        except (TypeError, ValueError) as e:
            raise InvalidPointError(f"Invalid coordinate {value!r}: {e}") from e
        if not 0 <= n < self.field_modulus:
            raise InvalidPointError("Coordinate is outside the base field")
        return n

    @staticmethod
    def _is_point(point: Any, field_type: type) -> bool:
        return (
            isinstance(point, tuple)
            and len(point) == 3
            and all(isinstance(c, field_type) for c in point)
        )

    # =========================================================================
    # Group operations
    # =========================================================================

    def scalar_mul(self, point: G1Point, scalar: int) -> G1Point:
        s = scalar % self.curve_order
        if s == 0:
            return self.Z1
        return self._backend.multiply(point, s)

    def add(self, p: G1Point, q: G1Point) -> G1Point:
        return self._backend.add(p, q)

    def negate(self, point: G1Point) -> G1Point:
        return self._backend.neg(point)

    def is_infinity(self, point: Any) -> bool:
        return self._backend.is_inf(point)

    def eq(self, p: Any, q: Any) -> bool:
        if self.is_infinity(p) or self.is_infinity(q):
            return self.is_infinity(p) and self.is_infinity(q)
        return self._backend.eq(p, q)

    def pairing_check(self, g1_points: Sequence[G1Point], g2_points: Sequence[G2Point]) -> bool:
        """
        Evaluate prod e(g1_i, g2_i) == 1.

        Miller loops are multiplied first and a single final exponentiation
        is applied to the product.
        """
        if len(g1_points) != len(g2_points):
            raise ValueError(
                f"Pairing inputs differ in length: {len(g1_points)} vs {len(g2_points)}"
            )
        FQ12 = self._backend.FQ12
        acc = FQ12.one()
        for p, q in zip(g1_points, g2_points):
            if self.is_infinity(p) or self.is_infinity(q):
                continue
            acc = acc * self._backend.pairing(q, p, final_exponentiate=False)
        return self._backend.final_exponentiate(acc) == FQ12.one()

    # =========================================================================
    # Encodings
    # =========================================================================

    def g1_affine(self, point: G1Point) -> tuple[int, int] | None:
        """Affine (x, y) of a G1 point, or None for infinity."""
        if self.is_infinity(point):
            return None
        x, y = self._backend.normalize(point)
        return int(x), int(y)

    def g2_affine(self, point: G2Point) -> tuple[tuple[int, int], tuple[int, int]] | None:
        """Affine ((x0, x1), (y0, y1)) of a G2 point, or None for infinity."""
        if self.is_infinity(point):
            return None
        x, y = self._backend.normalize(point)
        return (int(x.coeffs[0]), int(x.coeffs[1])), (int(y.coeffs[0]), int(y.coeffs[1]))

    def g1_to_json(self, point: G1Point) -> list[str]:
        """snarkjs layout: [x, y, z] as decimal strings."""
        affine = self.g1_affine(point)
        if affine is None:
            return ["0", "1", "0"]
        return [str(affine[0]), str(affine[1]), "1"]

    def g2_to_json(self, point: G2Point) -> list[list[str]]:
        """snarkjs layout: [[x0, x1], [y0, y1], [z0, z1]] as decimal strings."""
        affine = self.g2_affine(point)
        if affine is None:
            return [["0", "0"], ["1", "0"], ["0", "0"]]
        (x0, x1), (y0, y1) = affine
        return [[str(x0), str(x1)], [str(y0), str(y1)], ["1", "0"]]

    def g1_from_json(self, data: Sequence[Any]) -> G1Point:
        if not 2 <= len(data) <= 3:
            raise InvalidPointError("G1 JSON point must have 2 or 3 coordinates")
        return self.g1(*data)

    def g2_from_json(self, data: Sequence[Sequence[Any]]) -> G2Point:
        if not 2 <= len(data) <= 3:
            raise InvalidPointError("G2 JSON point must have 2 or 3 coordinates")
        return self.g2(*data)

