"""
shieldpool.verifiers.merkle
===========================

Incremental, append-only Poseidon Merkle tree mirroring the on-chain
commitment log, plus the free-standing inclusion-proof verifier.

Conventions
-----------
- Nodes are Fr integers; `node = hash2(left, right)`.
- `zeros[0] = zero_leaf`, `zeros[i+1] = hash2(zeros[i], zeros[i])` is the root
  of an empty subtree of height i+1.
- A missing right sibling is `zeros[level]`.
- Leaves get indices 0, 1, 2, ... in insertion order; nothing is ever removed
  or reordered.
- `path_indices[i] == 1` means the node on the path is a *right* child, so its
  sibling `path_elements[i]` sits on the left.

API
---
    IncrementalMerkleTree(depth, zero_leaf=0)
        .insert(leaf) -> int
        .root / .get_root() -> int
        .get_proof(leaf_index) -> MerkleProof
        .leaf_count, .depth, .zeros, .leaves()
        .export_state() -> dict
        IncrementalMerkleTree.from_commitments(leaves, depth, zero_leaf=0)
        IncrementalMerkleTree.import_state(state)

    verify_merkle_proof(proof) -> bool

A "stale root" (local root differs from the ledger of record) is detected by
callers (`shieldpool.integration.sync`); the tree only reports its own state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from ..errors import InvalidDepth, InvalidLeafIndex, TreeFull
from .field import IntLike, R, parse_fr
from .poseidon import hash2

_LOG = logging.getLogger("shieldpool.merkle")

MIN_DEPTH = 1
MAX_DEPTH = 32


@dataclass(frozen=True)
class MerkleProof:
    leaf: int
    leaf_index: int
    path_elements: Tuple[int, ...]
    path_indices: Tuple[int, ...]
    root: int

    def to_dict(self) -> Dict[str, Any]:
        """Decimal-string view, the shape circuits and JSON consumers expect."""
        return {
            "leaf": str(self.leaf),
            "leafIndex": self.leaf_index,
            "pathElements": [str(e) for e in self.path_elements],
            "pathIndices": list(self.path_indices),
            "root": str(self.root),
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "MerkleProof":
        return cls(
            leaf=parse_fr(d["leaf"]),
            leaf_index=int(d["leafIndex"]),
            path_elements=tuple(parse_fr(e) for e in d["pathElements"]),
            path_indices=tuple(int(i) for i in d["pathIndices"]),
            root=parse_fr(d["root"]),
        )


class IncrementalMerkleTree:
    """
    Append-only accumulator of note commitments.

    Only the filled part of each level is stored, so memory is O(leaf_count)
    regardless of depth.
    """

    __slots__ = ("_depth", "_zeros", "_levels")

    def __init__(self, depth: int, zero_leaf: IntLike = 0) -> None:
        if isinstance(depth, bool) or not isinstance(depth, int) or not (MIN_DEPTH <= depth <= MAX_DEPTH):
            raise InvalidDepth(
                f"tree depth must be in [{MIN_DEPTH}, {MAX_DEPTH}]", context={"depth": depth}
            )
        self._depth = depth
        zeros = [parse_fr(zero_leaf)]
        for i in range(depth):
            zeros.append(hash2(zeros[i], zeros[i]))
        self._zeros: Tuple[int, ...] = tuple(zeros)
        # _levels[0] = leaves, _levels[depth] = [root] once non-empty
        self._levels: List[List[int]] = [[] for _ in range(depth + 1)]

    # --- introspection ----------------------------------------------------

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def zeros(self) -> Tuple[int, ...]:
        return self._zeros

    @property
    def zero_leaf(self) -> int:
        return self._zeros[0]

    @property
    def leaf_count(self) -> int:
        return len(self._levels[0])

    @property
    def capacity(self) -> int:
        return 1 << self._depth

    def __len__(self) -> int:
        return self.leaf_count

    def leaves(self) -> List[int]:
        return list(self._levels[0])

    def __repr__(self) -> str:
        return f"IncrementalMerkleTree(depth={self._depth}, leaves={self.leaf_count})"

    # --- mutation ---------------------------------------------------------

    def insert(self, leaf: IntLike) -> int:
        """Append `leaf` and recompute its path to the root. Returns its index."""
        value = parse_fr(leaf)
        index = self.leaf_count
        if index >= self.capacity:
            raise TreeFull(
                f"tree is full (max {self.capacity} leaves)",
                context={"depth": self._depth, "leaf_count": index},
            )

        self._levels[0].append(value)
        current_index = index
        current = value
        for level in range(self._depth):
            nodes = self._levels[level]
            if current_index % 2 == 1:
                current = hash2(nodes[current_index - 1], current)
            else:
                right = nodes[current_index + 1] if current_index + 1 < len(nodes) else self._zeros[level]
                current = hash2(current, right)
            current_index //= 2
            parent_level = self._levels[level + 1]
            if current_index < len(parent_level):
                parent_level[current_index] = current
            else:
                parent_level.append(current)

        _LOG.debug("leaf inserted", extra={"leaf_index": index, "depth": self._depth})
        return index

    def insert_many(self, leaves: Iterable[IntLike]) -> List[int]:
        return [self.insert(leaf) for leaf in leaves]

    # --- queries ----------------------------------------------------------

    @property
    def root(self) -> int:
        top = self._levels[self._depth]
        return top[0] if top else self._zeros[self._depth]

    def get_root(self) -> int:
        return self.root

    def _node(self, level: int, index: int) -> int:
        nodes = self._levels[level]
        return nodes[index] if index < len(nodes) else self._zeros[level]

    def get_proof(self, leaf_index: int) -> MerkleProof:
        """Sibling path from leaf `leaf_index` up to the current root."""
        if isinstance(leaf_index, bool) or not isinstance(leaf_index, int) or not (0 <= leaf_index < self.leaf_count):
            raise InvalidLeafIndex(
                f"leaf index out of range [0, {self.leaf_count})",
                context={"leaf_index": leaf_index, "leaf_count": self.leaf_count},
            )
        elements: List[int] = []
        indices: List[int] = []
        idx = leaf_index
        for level in range(self._depth):
            if idx % 2 == 1:
                elements.append(self._node(level, idx - 1))
                indices.append(1)
            else:
                elements.append(self._node(level, idx + 1))
                indices.append(0)
            idx //= 2
        return MerkleProof(
            leaf=self._levels[0][leaf_index],
            leaf_index=leaf_index,
            path_elements=tuple(elements),
            path_indices=tuple(indices),
            root=self.root,
        )

    def index_of(self, leaf: IntLike) -> int:
        """First index holding `leaf`, or -1."""
        value = parse_fr(leaf)
        try:
            return self._levels[0].index(value)
        except ValueError:
            return -1

    # --- rebuild / persistence -------------------------------------------

    @classmethod
    def from_commitments(
        cls, commitments: Iterable[IntLike], depth: int, zero_leaf: IntLike = 0
    ) -> "IncrementalMerkleTree":
        """Replay `insert` over an ordered commitment list (resync from the log)."""
        tree = cls(depth, zero_leaf)
        for c in commitments:
            tree.insert(c)
        return tree

    def export_state(self) -> Dict[str, Any]:
        return {
            "depth": self._depth,
            "zeroLeaf": str(self.zero_leaf),
            "leafCount": self.leaf_count,
            "leaves": [str(v) for v in self._levels[0]],
            "root": str(self.root),
        }

    @classmethod
    def import_state(cls, state: Mapping[str, Any]) -> "IncrementalMerkleTree":
        """
        Rebuild from `export_state()` output. Raises ValueError when the saved
        leaf count or root disagrees with the replayed leaves.
        """
        leaves = list(state.get("leaves") or [])
        if "leafCount" in state and int(state["leafCount"]) != len(leaves):
            raise ValueError("tree state leafCount does not match leaves")
        tree = cls.from_commitments(leaves, int(state["depth"]), state.get("zeroLeaf", 0))
        saved_root = state.get("root")
        if saved_root is not None and parse_fr(saved_root) != tree.root:
            raise ValueError("tree state root does not match replayed leaves")
        return tree


def verify_merkle_proof(proof: MerkleProof) -> bool:
    """
    Fold `path_elements` / `path_indices` over `leaf` with `hash2` and compare
    with `proof.root`. Malformed proofs (non-bit indices, length mismatch,
    out-of-field values) simply do not verify.
    """
    if len(proof.path_elements) != len(proof.path_indices):
        return False
    values: Sequence[int] = (proof.leaf, proof.root, *proof.path_elements)
    if any(not isinstance(v, int) or not (0 <= v < R) for v in values):
        return False

    current = proof.leaf
    for sibling, bit in zip(proof.path_elements, proof.path_indices):
        if bit == 1:
            current = hash2(sibling, current)
        elif bit == 0:
            current = hash2(current, sibling)
        else:
            return False
    return current == proof.root


__all__ = ["MerkleProof", "IncrementalMerkleTree", "verify_merkle_proof", "MIN_DEPTH", "MAX_DEPTH"]
