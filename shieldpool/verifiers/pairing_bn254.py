"""
shieldpool.verifiers.pairing_bn254
==================================

Thin BN254 (alt_bn128) optimal-Ate pairing wrapper over `py_ecc.optimized_bn128`.

Public API
----------
- pair(P, Q) -> GTElement
- product_of_pairings(pairs) -> GTElement
- check_pairing_product(pairs) -> bool
- is_on_curve_g1(P), is_on_curve_g2(Q), is_in_g2_subgroup(Q)
- g1_generator(), g2_generator(), curve_order(), field_modulus()

Notes
-----
- Point ordering follows the common convention e(P, Q) with P in G1, Q in G2.
  The underlying `py_ecc` pairing call expects (Q, P); this wrapper handles it.
- `product_of_pairings` multiplies raw Miller-loop outputs and applies a single
  final exponentiation, which is what makes a 4-pairing Groth16 check affordable
  in pure Python.
- Points are the opaque projective tuples py_ecc understands; serialization is
  handled in `curve.py`.
"""

from __future__ import annotations

from typing import Any, Iterable, Tuple

from py_ecc.optimized_bn128 import (
    FQ12,
    G1 as _G1,
    G2 as _G2,
    b as _B,
    b2 as _B2,
    curve_order as _R,
    field_modulus as _Q,
    final_exponentiate as _final_exponentiate,
    is_inf as _is_inf,
    is_on_curve as _is_on_curve,
    multiply as _multiply,
    pairing as _pairing,
)

G1Point = Any
G2Point = Any
GTElement = FQ12

BACKEND_NAME = "py_ecc.optimized_bn128"

__all__ = [
    "pair",
    "product_of_pairings",
    "check_pairing_product",
    "is_on_curve_g1",
    "is_on_curve_g2",
    "is_in_g2_subgroup",
    "g1_generator",
    "g2_generator",
    "curve_order",
    "field_modulus",
    "BACKEND_NAME",
]


def curve_order() -> int:
    """Return the BN254 subgroup order r."""
    return int(_R)


def field_modulus() -> int:
    """Return the base field modulus q."""
    return int(_Q)


def g1_generator() -> G1Point:
    return _G1


def g2_generator() -> G2Point:
    return _G2


def is_on_curve_g1(P: G1Point) -> bool:
    """True if P is on G1 or is the point at infinity."""
    return bool(_is_on_curve(P, _B))


def is_on_curve_g2(Q: G2Point) -> bool:
    """True if Q is on the twist or is the point at infinity."""
    return bool(_is_on_curve(Q, _B2))


def is_in_g2_subgroup(Q: G2Point) -> bool:
    """
    r-torsion check for the twist. G2 has a non-trivial cofactor, so being on
    the curve is not enough for a point to be a valid pairing input.
    """
    if _is_inf(Q):
        return True
    return _is_inf(_multiply(Q, curve_order()))


def _miller(P: G1Point, Q: G2Point, *, validate: bool) -> GTElement:
    if validate:
        if not is_on_curve_g1(P):
            raise ValueError("G1 point is not on curve")
        if not is_on_curve_g2(Q):
            raise ValueError("G2 point is not on curve")
    if _is_inf(P) or _is_inf(Q):
        return FQ12.one()
    return _pairing(Q, P, final_exponentiate=False)


def pair(P: G1Point, Q: G2Point, *, validate: bool = True) -> GTElement:
    """
    Compute the reduced Ate pairing e(P, Q) on BN254.

    Raises
    ------
    ValueError
        If inputs are not on the curve and validate=True.
    """
    return _final_exponentiate(_miller(P, Q, validate=validate))


def product_of_pairings(
    pairs: Iterable[Tuple[G1Point, G2Point]], *, validate: bool = True
) -> GTElement:
    """
    Compute ∏ e(P_i, Q_i) with one shared final exponentiation.
    """
    acc = FQ12.one()
    for P, Q in pairs:
        acc = acc * _miller(P, Q, validate=validate)
    return _final_exponentiate(acc)


def check_pairing_product(
    pairs: Iterable[Tuple[G1Point, G2Point]], *, validate: bool = True
) -> bool:
    """Return True iff ∏ e(P_i, Q_i) == 1 in GT."""
    return product_of_pairings(pairs, validate=validate) == FQ12.one()
