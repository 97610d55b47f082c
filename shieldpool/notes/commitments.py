"""
Commitment, nullifier-hash and public-data-hash helpers.

Every wider hash is a fixed tree of two-input Poseidon calls; the shape is part
of the on-chain contract and must not change:

    commitment        = H( H(nullifier, secret), H(amount, asset_id) )
    nullifier_hash    = H( nullifier, leaf_index )
    public_data_hash  = H( H(public_amount, asset_id), ext_data_hash )
"""

from __future__ import annotations

from ..errors import InvalidFieldElement
from ..verifiers.field import IntLike, R, parse_fr
from ..verifiers.poseidon import hash2


def compute_commitment(nullifier: IntLike, secret: IntLike, amount: IntLike, asset_id: IntLike) -> int:
    return hash2(hash2(nullifier, secret), hash2(amount, asset_id))


def compute_nullifier_hash(nullifier: IntLike, leaf_index: int) -> int:
    if isinstance(leaf_index, bool) or not isinstance(leaf_index, int) or leaf_index < 0:
        raise InvalidFieldElement(
            "nullifier hash needs an on-chain leaf index", context={"leaf_index": leaf_index}
        )
    return hash2(nullifier, leaf_index)


def compute_public_data_hash(public_amount: IntLike, asset_id: IntLike, ext_data_hash: IntLike) -> int:
    return hash2(hash2(public_amount, asset_id), ext_data_hash)


def encode_signed_amount(amount: int) -> int:
    """
    Map a signed public amount into Fr: non-negative values stay as-is,
    a withdrawal of `-a` becomes `r - a`.
    """
    if amount >= 0:
        return parse_fr(amount)
    if -amount >= R:
        raise InvalidFieldElement.out_of_range(-amount, R, field="Fr")
    return R + amount


__all__ = [
    "compute_commitment",
    "compute_nullifier_hash",
    "compute_public_data_hash",
    "encode_signed_amount",
]
