"""
shieldpool notes: private UTXO records, commitment helpers, storage and the
per-owner ledger with coin selection.
"""

from __future__ import annotations

from .commitments import (compute_commitment, compute_nullifier_hash,
                          compute_public_data_hash, encode_signed_amount)
from .ledger import NoteLedger, build_dummy_note, create_note
from .storage import (MemoryNoteStorage, NoteStorage, SQLiteNoteStorage,
                      open_default_storage)
from .types import MAX_AMOUNT, UNASSIGNED_LEAF, Note, PartialNote, SourceType

__all__ = [
    "compute_commitment",
    "compute_nullifier_hash",
    "compute_public_data_hash",
    "encode_signed_amount",
    "NoteLedger",
    "build_dummy_note",
    "create_note",
    "NoteStorage",
    "MemoryNoteStorage",
    "SQLiteNoteStorage",
    "open_default_storage",
    "Note",
    "PartialNote",
    "SourceType",
    "MAX_AMOUNT",
    "UNASSIGNED_LEAF",
]
