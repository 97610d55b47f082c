"""
Keep the local Merkle mirror in step with the ledger of record.

The authoritative commitment log and nullifier set live on-chain; a
`LedgerOfRecord` is whatever adapter reads them (RPC client, indexer, fake in
tests). Before building a withdraw/transfer witness a caller should:

    added = sync_tree(tree, chain)
    ensure_fresh_root(tree, chain_root)           # StaleMerkleRoot on mismatch
    check_nullifiers_unused(chain, [nh1, nh2])    # NullifierAlreadyUsed
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Protocol, Sequence

from ..errors import NullifierAlreadyUsed, StaleMerkleRoot
from ..notes.ledger import NoteLedger
from ..verifiers.field import IntLike, parse_fr
from ..verifiers.merkle import IncrementalMerkleTree

_LOG = logging.getLogger("shieldpool.sync")


class LedgerOfRecord(Protocol):
    def get_commitments_range(self, start: int, limit: int) -> Sequence[IntLike]: ...
    def is_nullifier_used(self, nullifier_hash: IntLike) -> bool: ...


def _page_size(page_size: Optional[int]) -> int:
    if page_size is None:
        from ..config import load_config

        page_size = load_config().sync.page_size
    if page_size <= 0:
        raise ValueError("page_size must be > 0")
    return page_size


def _fetch_from(ledger: LedgerOfRecord, start: int, page_size: int) -> Iterable[List[IntLike]]:
    cursor = start
    while True:
        page = list(ledger.get_commitments_range(cursor, page_size))
        if not page:
            return
        yield page
        cursor += len(page)
        if len(page) < page_size:
            return


def sync_tree(tree: IncrementalMerkleTree, ledger: LedgerOfRecord, page_size: Optional[int] = None) -> int:
    """Append every commitment the ledger has beyond `tree.leaf_count`. Returns the number added."""
    size = _page_size(page_size)
    start = tree.leaf_count
    added = 0
    for page in _fetch_from(ledger, start, size):
        tree.insert_many(page)
        added += len(page)
    if added:
        _LOG.info("tree synced", extra={"from_index": start, "added": added, "leaf_count": tree.leaf_count})
    return added


def rebuild_tree(
    ledger: LedgerOfRecord,
    depth: Optional[int] = None,
    page_size: Optional[int] = None,
    zero_leaf: Optional[IntLike] = None,
) -> IncrementalMerkleTree:
    """Discard local state and replay the full commitment log."""
    if depth is None or zero_leaf is None:
        from ..config import load_config

        tree_cfg = load_config().tree
        depth = tree_cfg.depth if depth is None else depth
        zero_leaf = tree_cfg.zero_leaf if zero_leaf is None else zero_leaf
    commitments: List[IntLike] = []
    for page in _fetch_from(ledger, 0, _page_size(page_size)):
        commitments.extend(page)
    tree = IncrementalMerkleTree.from_commitments(commitments, depth, zero_leaf)
    _LOG.info("tree rebuilt", extra={"depth": depth, "leaf_count": tree.leaf_count})
    return tree


def ensure_fresh_root(tree: IncrementalMerkleTree, remote_root: IntLike) -> int:
    remote = parse_fr(remote_root)
    local = tree.root
    if local != remote:
        _LOG.warning("stale merkle root", extra={"local_root": local, "remote_root": remote})
        raise StaleMerkleRoot(
            "local tree root differs from the ledger of record",
            context={"local_root": str(local), "remote_root": str(remote), "leaf_count": tree.leaf_count},
        )
    return local


def check_nullifiers_unused(ledger: LedgerOfRecord, nullifier_hashes: Iterable[IntLike]) -> None:
    for h in nullifier_hashes:
        value = parse_fr(h)
        if ledger.is_nullifier_used(value):
            raise NullifierAlreadyUsed("nullifier already spent on-chain", context={"nullifier_hash": str(value)})


def assign_leaf_indices(ledger_notes: NoteLedger, tree: IncrementalMerkleTree, owner: str) -> int:
    """Record the tree position of each owned note that has appeared on-chain."""
    updated = 0
    for note in ledger_notes.get_notes(owner):
        if note.on_chain:
            continue
        index = tree.index_of(note.commitment)
        if index >= 0 and ledger_notes.update_leaf_index(owner, note.commitment, index):
            updated += 1
    return updated


__all__ = [
    "LedgerOfRecord",
    "sync_tree",
    "rebuild_tree",
    "ensure_fresh_root",
    "check_nullifiers_unused",
    "assign_leaf_indices",
]
