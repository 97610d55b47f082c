# Copyright
# SPDX-License-Identifier: Apache-2.0
"""
BN254 prime fields (a.k.a. alt_bn128): validated, immutable elements.

Two moduli are in play and are never mixed up implicitly:

- `R` : scalar field (group order). Public inputs, Poseidon, commitments,
        nullifiers, Merkle nodes and note amounts live here.
- `Q` : base field. G1/G2 point coordinates live here.

Every element is constructed through a *validating* parse: a value that is
not strictly below the applicable modulus raises `InvalidFieldElement`. It is
never reduced silently.

Features:
- `Fr` / `Fq` frozen wrappers with big-endian (canonical) and little-endian
  (multiexp scalar) 32-byte serialization.
- Decimal-string parsing (the proving toolchain's native text format), with
  `0x` hex accepted as a convenience.
- Negation (`Q - y` for the base field; zero stays zero).
- Modular helpers that take the modulus explicitly and assert in-range output.

It is **not** constant-time and is intended only for verification and
bookkeeping, not for secret-bearing computations.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Union

from ..errors import InvalidFieldElement

# BN254 scalar field (curve order).
R: int = 21888242871839275222246405745257275088548364400416034343698204186575808495617
# BN254 base field.
Q: int = 21888242871839275222246405745257275088696311157297823662689037894645226208583

FIELD_BYTE_LEN = 32

IntLike = Union[int, str, bytes, bytearray, "FieldElement"]


def _coerce_int(value: IntLike, *, field: str) -> int:
    """Turn an int/decimal string/0x-hex string/big-endian bytes into an int."""
    if isinstance(value, FieldElement):
        return value.n
    if isinstance(value, bool):
        raise InvalidFieldElement(f"{field}: booleans are not field elements")
    if isinstance(value, int):
        return value
    if isinstance(value, (bytes, bytearray)):
        if len(value) > FIELD_BYTE_LEN:
            raise InvalidFieldElement(
                f"{field}: too many bytes for a field element", context={"len": len(value)}
            )
        return int.from_bytes(bytes(value), "big")
    if isinstance(value, str):
        s = value.strip()
        try:
            if s.lower().startswith("0x"):
                return int(s[2:], 16)
            if not s.isdigit():
                raise ValueError(s)
            return int(s, 10)
        except ValueError as e:
            raise InvalidFieldElement(
                f"{field}: not a decimal field element", context={"value": value[:80]}
            ) from e
    raise InvalidFieldElement(f"{field}: unsupported type {type(value).__name__}")


def parse_element(value: IntLike, modulus: int, *, field: str) -> int:
    """Validating parse into a canonical integer in [0, modulus)."""
    n = _coerce_int(value, field=field)
    if n < 0 or n >= modulus:
        raise InvalidFieldElement.out_of_range(n, modulus, field=field)
    return n


def parse_fr(value: IntLike) -> int:
    return parse_element(value, R, field="Fr")


def parse_fq(value: IntLike) -> int:
    return parse_element(value, Q, field="Fq")


# --- explicit-modulus arithmetic ---------------------------------------------


def _checked(x: int, modulus: int) -> int:
    assert 0 <= x < modulus, "modular result out of range"
    return x


def add_mod(a: int, b: int, modulus: int) -> int:
    return _checked((a + b) % modulus, modulus)


def sub_mod(a: int, b: int, modulus: int) -> int:
    return _checked((a - b) % modulus, modulus)


def mul_mod(a: int, b: int, modulus: int) -> int:
    return _checked((a * b) % modulus, modulus)


def neg_mod(a: int, modulus: int) -> int:
    return 0 if a % modulus == 0 else _checked(modulus - (a % modulus), modulus)


def inv_mod(a: int, modulus: int) -> int:
    """Multiplicative inverse via Fermat's little theorem (modulus is prime)."""
    if a % modulus == 0:
        raise ZeroDivisionError("inverse of zero")
    return _checked(pow(a, modulus - 2, modulus), modulus)


# --- element wrappers --------------------------------------------------------


@dataclass(frozen=True)
class FieldElement:
    """
    Immutable canonical element of a prime field.

    Subclasses pin `MODULUS` and `FIELD`; construction validates the range:

        Fr(5)                 -> ok
        Fr(R)                 -> InvalidFieldElement
        Fq.from_decimal("7")  -> Fq(7)
    """

    MODULUS: ClassVar[int] = 0
    FIELD: ClassVar[str] = "?"

    n: int

    def __post_init__(self) -> None:
        if isinstance(self.n, bool) or not isinstance(self.n, int):
            raise InvalidFieldElement(f"{self.FIELD}: expected int, got {type(self.n).__name__}")
        if not (0 <= self.n < self.MODULUS):
            raise InvalidFieldElement.out_of_range(self.n, self.MODULUS, field=self.FIELD)

    # --- constructors -----------------------------------------------------

    @classmethod
    def parse(cls, value: IntLike):
        return cls(parse_element(value, cls.MODULUS, field=cls.FIELD))

    @classmethod
    def from_decimal(cls, s: str):
        return cls.parse(str(s))

    @classmethod
    def from_bytes(cls, b: bytes, *, strict_len: bool = True):
        """Parse big-endian bytes. With strict_len, require exactly 32 bytes."""
        if strict_len and len(b) != FIELD_BYTE_LEN:
            raise InvalidFieldElement(
                f"{cls.FIELD}.from_bytes: expected {FIELD_BYTE_LEN} bytes, got {len(b)}"
            )
        return cls.parse(bytes(b))

    @classmethod
    def from_bytes_le(cls, b: bytes):
        if len(b) != FIELD_BYTE_LEN:
            raise InvalidFieldElement(
                f"{cls.FIELD}.from_bytes_le: expected {FIELD_BYTE_LEN} bytes, got {len(b)}"
            )
        return cls.parse(int.from_bytes(bytes(b), "little"))

    @classmethod
    def zero(cls):
        return cls(0)

    # --- serialization ----------------------------------------------------

    def to_bytes(self) -> bytes:
        """Canonical 32-byte big-endian encoding."""
        return self.n.to_bytes(FIELD_BYTE_LEN, "big")

    def to_bytes_le(self) -> bytes:
        """32-byte little-endian encoding (multiexp scalar operands)."""
        return self.n.to_bytes(FIELD_BYTE_LEN, "little")

    def to_decimal(self) -> str:
        return str(self.n)

    # --- ops --------------------------------------------------------------

    def neg(self):
        return type(self)(neg_mod(self.n, self.MODULUS))

    def __neg__(self):
        return self.neg()

    def is_zero(self) -> bool:
        return self.n == 0

    def __int__(self) -> int:
        return self.n

    def __index__(self) -> int:
        return self.n

    def __bool__(self) -> bool:
        return self.n != 0

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FieldElement):
            return self.MODULUS == other.MODULUS and self.n == other.n
        if isinstance(other, int) and not isinstance(other, bool):
            return self.n == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.MODULUS, self.n))

    def __repr__(self) -> str:
        return f"{self.FIELD}({self.n})"


@dataclass(frozen=True, eq=False, repr=False)
class Fr(FieldElement):
    """Scalar-field element (< R)."""

    MODULUS: ClassVar[int] = R
    FIELD: ClassVar[str] = "Fr"


@dataclass(frozen=True, eq=False, repr=False)
class Fq(FieldElement):
    """Base-field element (< Q); curve coordinates."""

    MODULUS: ClassVar[int] = Q
    FIELD: ClassVar[str] = "Fq"


def is_canonical_bytes(b: bytes, modulus: int = R) -> bool:
    """Check that `b` is exactly 32 big-endian bytes encoding a value < modulus."""
    if len(b) != FIELD_BYTE_LEN:
        return False
    return int.from_bytes(b, "big") < modulus


__all__ = [
    "R",
    "Q",
    "FIELD_BYTE_LEN",
    "FieldElement",
    "Fr",
    "Fq",
    "parse_element",
    "parse_fr",
    "parse_fq",
    "add_mod",
    "sub_mod",
    "mul_mod",
    "neg_mod",
    "inv_mod",
    "is_canonical_bytes",
]
