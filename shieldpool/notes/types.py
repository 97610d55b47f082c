"""
shieldpool.notes.types
======================

Typed note records using **msgspec**.

- `Note`: a private UTXO owned by one shielded key.
- `PartialNote`: the four preimage fields only; what fixed-arity circuits
  consume, and what dummy padding inputs look like.
- `SourceType`: where a note came from.

Conventions
-----------
- Field values (nullifier, secret, asset_id, commitment) and amounts are
  carried as decimal strings, the proving toolchain's native format. Numbers
  this large do not survive JSON consumers that use doubles.
- JSON keys are camelCase (`assetId`, `leafIndex`, `createdAt`,
  `sourceType`) so backups interoperate with existing wallet exports.
- `leaf_index == -1` means "not yet observed on-chain".
- `spent` only ever goes False -> True.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import List

import msgspec

from ..errors import InvalidFieldElement, InvalidNote
from ..verifiers.field import parse_fr
from .commitments import compute_commitment

MAX_AMOUNT = (1 << 128) - 1
UNASSIGNED_LEAF = -1


class SourceType(str, Enum):
    DEPOSIT = "deposit"
    TRANSFER = "transfer"
    CHANGE = "change"


def now_ms() -> int:
    return int(time.time() * 1000)


def parse_amount(value: object) -> int:
    """Amounts are u128 and must also fit in Fr."""
    n = parse_fr(value)  # type: ignore[arg-type]
    if n > MAX_AMOUNT:
        raise InvalidFieldElement("amount exceeds u128", context={"amount": str(n)})
    return n


class PartialNote(msgspec.Struct, frozen=True, rename="camel"):
    nullifier: str
    secret: str
    amount: str
    asset_id: str

    @property
    def is_dummy(self) -> bool:
        return parse_amount(self.amount) == 0

    def commitment(self) -> int:
        return compute_commitment(self.nullifier, self.secret, parse_amount(self.amount), self.asset_id)


class Note(msgspec.Struct, frozen=True, rename="camel"):
    """
    Private UTXO.

    Invariant: commitment == H(H(nullifier, secret), H(amount, asset_id)),
    enforced by `validate()` (the ledger calls it on save/import).
    """
    nullifier: str
    secret: str
    amount: str
    asset_id: str
    commitment: str
    leaf_index: int = UNASSIGNED_LEAF
    spent: bool = False
    created_at: int = msgspec.field(default_factory=now_ms)
    source_type: SourceType = SourceType.DEPOSIT

    @property
    def amount_int(self) -> int:
        return int(self.amount)

    @property
    def on_chain(self) -> bool:
        return self.leaf_index >= 0

    def as_partial(self) -> PartialNote:
        return PartialNote(
            nullifier=self.nullifier, secret=self.secret, amount=self.amount, asset_id=self.asset_id
        )

    def validate(self, *, check_commitment: bool = True) -> None:
        """Raise InvalidNote if a field is out of range or the commitment is wrong."""
        try:
            nullifier = parse_fr(self.nullifier)
            secret = parse_fr(self.secret)
            amount = parse_amount(self.amount)
            asset_id = parse_fr(self.asset_id)
            commitment = parse_fr(self.commitment)
        except InvalidFieldElement as e:
            raise InvalidNote(f"note field invalid: {e.message}", context=e.context, cause=e) from e
        # stored strings are compared verbatim, so only one spelling per value is accepted
        for name, parsed in (
            ("nullifier", nullifier),
            ("secret", secret),
            ("amount", amount),
            ("asset_id", asset_id),
            ("commitment", commitment),
        ):
            if getattr(self, name) != str(parsed):
                raise InvalidNote(
                    f"note field {name} is not a canonical decimal string",
                    context={"field": name, "value": getattr(self, name)},
                )
        if self.leaf_index < UNASSIGNED_LEAF:
            raise InvalidNote("leaf index must be -1 or a tree position", context={"leaf_index": self.leaf_index})
        if check_commitment and compute_commitment(nullifier, secret, amount, asset_id) != commitment:
            raise InvalidNote("commitment does not match note fields", context={"commitment": self.commitment})


def encode_notes(notes: List[Note]) -> bytes:
    return msgspec.json.encode(notes)


def decode_notes(data: bytes | str) -> List[Note]:
    return msgspec.json.decode(data, type=List[Note])


__all__ = [
    "MAX_AMOUNT",
    "UNASSIGNED_LEAF",
    "SourceType",
    "PartialNote",
    "Note",
    "now_ms",
    "parse_amount",
    "encode_notes",
    "decode_notes",
]
