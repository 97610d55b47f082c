"""
shieldpool.verifiers.curve
==========================

BN254 G1/G2 point types with canonical, bit-exact serialization.

Encodings
---------
G1 : 64 bytes   = x (32, big-endian) || y (32, big-endian)
G2 : 128 bytes  = x1 || x0 || y1 || y0   (each 32, big-endian; high component first)

The G2 ordering is an external compatibility contract with alt_bn128-style
precompiles; it is *not* the snarkjs JSON order, which is `[[x0, x1], [y0, y1]]`.
In memory, Fq2 components are kept as `(c0, c1)` meaning `c0 + c1 * i`, matching
py_ecc's `FQ2([c0, c1])`.

The point at infinity is encoded as all-zero coordinates in both groups.

Parsing validates every coordinate against the base field modulus `Q`
(`InvalidFieldElement` otherwise). On-curve checks are separate
(`is_on_curve`), so callers decide whether an off-curve point is a malformed
input or merely a failing proof.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple

from py_ecc.optimized_bn128 import FQ, FQ2, Z1, Z2, b, b2, is_on_curve, normalize

from ..errors import InvalidFieldElement
from .field import FIELD_BYTE_LEN, Fq, IntLike, neg_mod, parse_fq, Q

G1_BYTE_LEN = 2 * FIELD_BYTE_LEN
G2_BYTE_LEN = 4 * FIELD_BYTE_LEN


def _be(n: int) -> bytes:
    return n.to_bytes(FIELD_BYTE_LEN, "big")


def _chunks(data: bytes, count: int) -> List[bytes]:
    return [data[i * FIELD_BYTE_LEN:(i + 1) * FIELD_BYTE_LEN] for i in range(count)]


@dataclass(frozen=True)
class G1Point:
    """Affine G1 point over Fq. (0, 0) is the point at infinity."""

    x: Fq
    y: Fq

    @classmethod
    def infinity(cls) -> "G1Point":
        return cls(Fq(0), Fq(0))

    @classmethod
    def from_ints(cls, x: IntLike, y: IntLike) -> "G1Point":
        return cls(Fq(parse_fq(x)), Fq(parse_fq(y)))

    @classmethod
    def from_bytes(cls, data: bytes) -> "G1Point":
        if len(data) != G1_BYTE_LEN:
            raise InvalidFieldElement(f"G1 encoding must be {G1_BYTE_LEN} bytes, got {len(data)}")
        x, y = _chunks(bytes(data), 2)
        return cls(Fq.from_bytes(x), Fq.from_bytes(y))

    @classmethod
    def from_decimal(cls, coords: Sequence[Any]) -> "G1Point":
        """
        Parse snarkjs `[x, y]` or projective `[x, y, z]`.

        Only z in {"1", "0"} is accepted: z == 0 is infinity, anything else is
        rejected as non-affine.
        """
        if len(coords) not in (2, 3):
            raise InvalidFieldElement("G1 point must have 2 or 3 coordinates")
        if len(coords) == 3:
            z = parse_fq(coords[2])
            if z == 0:
                return cls.infinity()
            if z != 1:
                raise InvalidFieldElement("G1 point must be affine (z == 1)")
        return cls.from_ints(coords[0], coords[1])

    def to_bytes(self) -> bytes:
        return self.x.to_bytes() + self.y.to_bytes()

    def to_decimal(self) -> List[str]:
        """snarkjs projective form `[x, y, "1"]` (infinity as `["0", "1", "0"]`)."""
        if self.is_infinity():
            return ["0", "1", "0"]
        return [self.x.to_decimal(), self.y.to_decimal(), "1"]

    def is_infinity(self) -> bool:
        return self.x.is_zero() and self.y.is_zero()

    def negate(self) -> "G1Point":
        """(x, Q - y); infinity maps to itself."""
        if self.is_infinity():
            return self
        return G1Point(self.x, Fq(neg_mod(self.y.n, Q)))

    def to_backend(self) -> Tuple[Any, Any, Any]:
        """py_ecc optimized_bn128 projective point."""
        if self.is_infinity():
            return Z1
        return (FQ(self.x.n), FQ(self.y.n), FQ.one())

    @classmethod
    def from_backend(cls, pt: Tuple[Any, Any, Any]) -> "G1Point":
        if pt[2] == FQ.zero():
            return cls.infinity()
        x, y = normalize(pt)
        return cls(Fq(int(x.n)), Fq(int(y.n)))

    def is_on_curve(self) -> bool:
        return bool(is_on_curve(self.to_backend(), b))


@dataclass(frozen=True)
class G2Point:
    """
    Affine G2 point over Fq2 = Fq[i]/(i^2 + 1).

    `x = (x0, x1)` means `x0 + x1 * i`. All-zero is the point at infinity.
    """

    x: Tuple[Fq, Fq]
    y: Tuple[Fq, Fq]

    @classmethod
    def infinity(cls) -> "G2Point":
        return cls((Fq(0), Fq(0)), (Fq(0), Fq(0)))

    @classmethod
    def from_ints(cls, x0: IntLike, x1: IntLike, y0: IntLike, y1: IntLike) -> "G2Point":
        return cls(
            (Fq(parse_fq(x0)), Fq(parse_fq(x1))),
            (Fq(parse_fq(y0)), Fq(parse_fq(y1))),
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "G2Point":
        if len(data) != G2_BYTE_LEN:
            raise InvalidFieldElement(f"G2 encoding must be {G2_BYTE_LEN} bytes, got {len(data)}")
        x1, x0, y1, y0 = (Fq.from_bytes(c) for c in _chunks(bytes(data), 4))
        return cls((x0, x1), (y0, y1))

    @classmethod
    def from_decimal(cls, coords: Sequence[Sequence[Any]]) -> "G2Point":
        """
        Parse snarkjs `[[x0, x1], [y0, y1]]` or projective
        `[[x0, x1], [y0, y1], [z0, z1]]` with z in {["1","0"], ["0","0"]}.
        """
        if len(coords) not in (2, 3):
            raise InvalidFieldElement("G2 point must have 2 or 3 coordinate pairs")
        if any(len(c) != 2 for c in coords):
            raise InvalidFieldElement("G2 coordinates must be [c0, c1] pairs")
        if len(coords) == 3:
            z0, z1 = parse_fq(coords[2][0]), parse_fq(coords[2][1])
            if (z0, z1) == (0, 0):
                return cls.infinity()
            if (z0, z1) != (1, 0):
                raise InvalidFieldElement("G2 point must be affine (z == 1)")
        (x0, x1), (y0, y1) = coords[0], coords[1]
        return cls.from_ints(x0, x1, y0, y1)

    def to_bytes(self) -> bytes:
        return (
            self.x[1].to_bytes() + self.x[0].to_bytes()
            + self.y[1].to_bytes() + self.y[0].to_bytes()
        )

    def to_decimal(self) -> List[List[str]]:
        if self.is_infinity():
            return [["0", "0"], ["1", "0"], ["0", "0"]]
        return [
            [self.x[0].to_decimal(), self.x[1].to_decimal()],
            [self.y[0].to_decimal(), self.y[1].to_decimal()],
            ["1", "0"],
        ]

    def is_infinity(self) -> bool:
        return all(c.is_zero() for c in (*self.x, *self.y))

    def to_backend(self) -> Tuple[Any, Any, Any]:
        if self.is_infinity():
            return Z2
        return (
            FQ2([self.x[0].n, self.x[1].n]),
            FQ2([self.y[0].n, self.y[1].n]),
            FQ2.one(),
        )

    @classmethod
    def from_backend(cls, pt: Tuple[Any, Any, Any]) -> "G2Point":
        if pt[2] == FQ2.zero():
            return cls.infinity()
        x, y = normalize(pt)
        return cls.from_ints(
            int(x.coeffs[0]), int(x.coeffs[1]), int(y.coeffs[0]), int(y.coeffs[1])
        )

    def is_on_curve(self) -> bool:
        return bool(is_on_curve(self.to_backend(), b2))


__all__ = ["G1Point", "G2Point", "G1_BYTE_LEN", "G2_BYTE_LEN"]
