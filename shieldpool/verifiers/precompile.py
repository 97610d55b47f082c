"""
shieldpool.verifiers.precompile
===============================

Byte encodings for chains exposing alt_bn128-style precompiles
(EIP-196/197 layout).

- G1 operand : x || y                      (32-byte big-endian each)
- G2 operand : x1 || x0 || y1 || y0        (high component first)
- multiexp scalar : 32-byte *little-endian*, appended after a big-endian point

The scalar endianness differs from the point encoding. That divergence is
part of the external protocol and must not be normalized away.

Public API
----------
- encode_g1(P) / encode_g2(Q) / encode_scalar_le(s)
- encode_multiexp_input(points, scalars) -> bytes
- encode_pairing_input(pairs) -> bytes
- encode_groth16_pairing_input(vk, proof, public_inputs) -> bytes
"""

from __future__ import annotations

from typing import Iterable, Sequence, Tuple

from ..errors import PublicInputCountMismatch
from .curve import G1Point, G2Point
from .field import Fr, IntLike, parse_fr
from .groth16_bn254 import Proof, VerificationKey, compute_vk_x


def encode_g1(point: G1Point) -> bytes:
    return point.to_bytes()


def encode_g2(point: G2Point) -> bytes:
    return point.to_bytes()


def encode_scalar_le(scalar: IntLike) -> bytes:
    return Fr(parse_fr(scalar)).to_bytes_le()


def encode_multiexp_input(points: Sequence[G1Point], scalars: Sequence[IntLike]) -> bytes:
    """Concatenate `point_i (BE, 64) || scalar_i (LE, 32)` for each term."""
    if len(points) != len(scalars):
        raise ValueError("points and scalars must have the same length")
    return b"".join(encode_g1(p) + encode_scalar_le(s) for p, s in zip(points, scalars))


def encode_pairing_input(pairs: Iterable[Tuple[G1Point, G2Point]]) -> bytes:
    """Concatenate `G1 (64) || G2 (128)` for each pair; 192 bytes per pair."""
    return b"".join(encode_g1(p) + encode_g2(q) for p, q in pairs)


def encode_groth16_pairing_input(
    vk: VerificationKey, proof: Proof, public_inputs: Sequence[IntLike]
) -> bytes:
    """
    Four-pair pairing-check input for a Groth16 proof:
    (-A, B), (alpha1, beta2), (vk_x, gamma2), (C, delta2).
    """
    if len(public_inputs) != vk.num_public_inputs:
        raise PublicInputCountMismatch.expected(vk.num_public_inputs, len(public_inputs))
    inputs = [parse_fr(v) for v in public_inputs]
    vk_x = G1Point.from_backend(compute_vk_x(vk.ic, inputs))
    return encode_pairing_input(
        [
            (proof.a.negate(), proof.b),
            (vk.alpha1, vk.beta2),
            (vk_x, vk.gamma2),
            (proof.c, vk.delta2),
        ]
    )


__all__ = [
    "encode_g1",
    "encode_g2",
    "encode_scalar_le",
    "encode_multiexp_input",
    "encode_pairing_input",
    "encode_groth16_pairing_input",
]
