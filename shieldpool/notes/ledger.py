"""
shieldpool.notes.ledger
=======================

Per-owner wallet of private notes, plus coin selection.

The ledger never talks to a database directly; it reads and writes whole note
lists through an injected `NoteStorage`. Every mutation is a read-modify-write
of the owner's list, so callers serialize writes per owner.

Coin selection
--------------
`list_spendable(owner, asset_id, target)`:

1. take unspent notes of `asset_id`;
2. sort by amount, largest first (stable, so equal amounts keep insertion order);
3. accumulate until the running total reaches `target`.

If the owner cannot cover `target`, the full candidate list is returned and the
caller compares the total itself. `require_spendable` is the raising variant.
"""

from __future__ import annotations

import secrets
from typing import List, Optional, Sequence, Union

import msgspec

from ..errors import InsufficientBalance, InvalidNote
from ..logging import get_logger
from ..verifiers.field import IntLike, R, parse_fr
from .commitments import compute_commitment
from .storage import NoteStorage
from .types import Note, PartialNote, SourceType, decode_notes, encode_notes, parse_amount

_LOG = get_logger("notes")


def _commitment_key(value: IntLike) -> str:
    return str(parse_fr(value))


def _sum(notes: Sequence[Note]) -> int:
    return sum(n.amount_int for n in notes)


def create_note(
    amount: IntLike,
    asset_id: IntLike,
    source_type: SourceType = SourceType.DEPOSIT,
) -> Note:
    """Fresh note with a random nullifier and secret in [0, r)."""
    value = parse_amount(amount)
    asset = parse_fr(asset_id)
    nullifier = secrets.randbelow(R)
    secret = secrets.randbelow(R)
    return Note(
        nullifier=str(nullifier),
        secret=str(secret),
        amount=str(value),
        asset_id=str(asset),
        commitment=str(compute_commitment(nullifier, secret, value, asset)),
        source_type=source_type,
    )


def build_dummy_note(asset_id: IntLike = 0) -> PartialNote:
    """Zero-value padding input for fixed-arity circuits."""
    return PartialNote(nullifier="0", secret="0", amount="0", asset_id=str(parse_fr(asset_id)))


class NoteLedger:
    def __init__(self, storage: NoteStorage) -> None:
        self._storage = storage

    @property
    def storage(self) -> NoteStorage:
        return self._storage

    # ---- reads

    def get_notes(self, owner: str) -> List[Note]:
        return self._storage.get(owner)

    def find(self, owner: str, commitment: IntLike) -> Optional[Note]:
        key = _commitment_key(commitment)
        for n in self._storage.get(owner):
            if n.commitment == key:
                return n
        return None

    def total_balance(self, owner: str, asset_id: IntLike, *, include_spent: bool = False) -> int:
        asset = str(parse_fr(asset_id))
        return _sum(
            [n for n in self._storage.get(owner) if n.asset_id == asset and (include_spent or not n.spent)]
        )

    def list_spendable(self, owner: str, asset_id: IntLike, target: IntLike) -> List[Note]:
        asset = str(parse_fr(asset_id))
        want = parse_amount(target)
        candidates = [n for n in self._storage.get(owner) if n.asset_id == asset and not n.spent]
        candidates.sort(key=lambda n: n.amount_int, reverse=True)

        picked: List[Note] = []
        total = 0
        for n in candidates:
            picked.append(n)
            total += n.amount_int
            if total >= want:
                break
        if total < want:
            _LOG.debug(
                "insufficient spendable balance",
                extra={"owner": owner, "asset_id": asset, "target": want, "available": total},
            )
        return picked

    def require_spendable(self, owner: str, asset_id: IntLike, target: IntLike) -> List[Note]:
        """`list_spendable` that raises InsufficientBalance on a shortfall."""
        picked = self.list_spendable(owner, asset_id, target)
        available = _sum(picked)
        want = parse_amount(target)
        if available < want:
            raise InsufficientBalance(
                "not enough unspent notes to cover target",
                context={"asset_id": str(parse_fr(asset_id)), "target": str(want), "available": str(available)},
            )
        return picked

    # ---- writes

    def save(self, owner: str, note: Note) -> bool:
        """
        Append `note` unless a note with the same commitment is already stored.
        Returns True when the note was added.
        """
        note.validate()
        notes = self._storage.get(owner)
        if any(n.commitment == note.commitment for n in notes):
            _LOG.debug("duplicate note ignored", extra={"owner": owner, "commitment": note.commitment})
            return False
        notes.append(note)
        self._storage.put(owner, notes)
        _LOG.info("note saved", extra={"owner": owner, "amount": note.amount, "asset_id": note.asset_id})
        return True

    def mark_spent(self, owner: str, commitment: IntLike) -> bool:
        key = _commitment_key(commitment)
        notes = self._storage.get(owner)
        for i, n in enumerate(notes):
            if n.commitment == key:
                if n.spent:
                    return False
                notes[i] = msgspec.structs.replace(n, spent=True)
                self._storage.put(owner, notes)
                _LOG.info("note spent", extra={"owner": owner, "commitment": key})
                return True
        return False

    def update_leaf_index(self, owner: str, commitment: IntLike, leaf_index: int) -> bool:
        if isinstance(leaf_index, bool) or not isinstance(leaf_index, int) or leaf_index < 0:
            raise InvalidNote("leaf index must be a non-negative int", context={"leaf_index": leaf_index})
        key = _commitment_key(commitment)
        notes = self._storage.get(owner)
        for i, n in enumerate(notes):
            if n.commitment == key:
                if n.leaf_index == leaf_index:
                    return False
                notes[i] = msgspec.structs.replace(n, leaf_index=leaf_index)
                self._storage.put(owner, notes)
                return True
        return False

    def build_dummy_note(self, asset_id: IntLike = 0) -> PartialNote:
        return build_dummy_note(asset_id)

    def create_note(
        self, amount: IntLike, asset_id: IntLike, source_type: SourceType = SourceType.DEPOSIT
    ) -> Note:
        return create_note(amount, asset_id, source_type)

    # ---- backup

    def export_notes(self, owner: str) -> str:
        return encode_notes(self._storage.get(owner)).decode("utf-8")

    def import_notes(self, owner: str, data: Union[str, bytes], *, merge: bool = True) -> int:
        """
        Load a JSON note list produced by `export_notes`. With `merge=True`
        unknown commitments are appended; otherwise the owner's list is
        replaced. Returns the number of notes added.
        """
        try:
            incoming = decode_notes(data)
        except (msgspec.DecodeError, msgspec.ValidationError) as e:
            raise InvalidNote(f"cannot decode note backup: {e}", cause=e) from e
        for n in incoming:
            n.validate()

        existing = self._storage.get(owner) if merge else []
        seen = {n.commitment for n in existing}
        added = 0
        for n in incoming:
            if n.commitment in seen:
                continue
            existing.append(n)
            seen.add(n.commitment)
            added += 1
        self._storage.put(owner, existing)
        _LOG.info("notes imported", extra={"owner": owner, "added": added, "merge": merge})
        return added


__all__ = ["NoteLedger", "create_note", "build_dummy_note"]
