import pytest

from shieldpool.errors import (InvalidDepth, InvalidFieldElement, InvalidLeafIndex,
                               TreeFull)
from shieldpool.verifiers.field import R
from shieldpool.verifiers.merkle import (IncrementalMerkleTree, MerkleProof,
                                         verify_merkle_proof)
from shieldpool.verifiers.poseidon import hash2


def _naive_root(leaves, depth, zero=0):
    """Full recomputation over the padded leaf layer."""
    level = list(leaves) + [zero] * ((1 << depth) - len(leaves))
    for _ in range(depth):
        level = [hash2(level[i], level[i + 1]) for i in range(0, len(level), 2)]
    return level[0]


def test_empty_root_is_zero_subtree():
    tree = IncrementalMerkleTree(3)
    assert tree.root == tree.zeros[3]
    assert tree.leaf_count == 0
    assert tree.capacity == 8


@pytest.mark.parametrize("n", [1, 2, 3, 5, 8])
def test_root_matches_naive_recomputation(n):
    leaves = [1000 + i for i in range(n)]
    tree = IncrementalMerkleTree(3)
    assert tree.insert_many(leaves) == list(range(n))
    assert tree.root == _naive_root(leaves, 3)


def test_two_leaf_root():
    tree = IncrementalMerkleTree(1)
    tree.insert(1)
    tree.insert(2)
    assert tree.root == hash2(1, 2)


@pytest.mark.parametrize("depth", [0, 33, -1, True, "4"])
def test_invalid_depth(depth):
    with pytest.raises(InvalidDepth):
        IncrementalMerkleTree(depth)


def test_full_tree_rejects_insert():
    tree = IncrementalMerkleTree(2)
    tree.insert_many([1, 2, 3, 4])
    root = tree.root
    with pytest.raises(TreeFull):
        tree.insert(5)
    assert tree.leaf_count == 4
    assert tree.root == root


def test_insert_rejects_non_canonical_leaf():
    tree = IncrementalMerkleTree(2)
    with pytest.raises(InvalidFieldElement):
        tree.insert(R)
    assert tree.leaf_count == 0


def test_proofs_round_trip_for_every_leaf():
    leaves = [11, 22, 33, 44, 55]
    tree = IncrementalMerkleTree(4)
    tree.insert_many(leaves)
    for i, leaf in enumerate(leaves):
        proof = tree.get_proof(i)
        assert proof.leaf == leaf
        assert proof.root == tree.root
        assert len(proof.path_elements) == 4
        assert verify_merkle_proof(proof)


def test_single_bit_flips_break_the_proof():
    tree = IncrementalMerkleTree(3)
    tree.insert_many([101, 202, 303, 404, 505, 606])
    proof = tree.get_proof(2)
    assert verify_merkle_proof(proof)
    for i in range(len(proof.path_indices)):
        flipped = list(proof.path_indices)
        flipped[i] ^= 1
        bad = MerkleProof(proof.leaf, proof.leaf_index, proof.path_elements, tuple(flipped), proof.root)
        assert not verify_merkle_proof(bad)
    elements = list(proof.path_elements)
    elements[0] = (elements[0] + 1) % R
    assert not verify_merkle_proof(
        MerkleProof(proof.leaf, proof.leaf_index, tuple(elements), proof.path_indices, proof.root)
    )
    assert not verify_merkle_proof(
        MerkleProof(proof.leaf + 1, proof.leaf_index, proof.path_elements, proof.path_indices, proof.root)
    )


def test_malformed_proofs_do_not_verify():
    tree = IncrementalMerkleTree(2)
    tree.insert_many([1, 2])
    p = tree.get_proof(0)
    assert not verify_merkle_proof(MerkleProof(p.leaf, 0, p.path_elements[:1], p.path_indices, p.root))
    assert not verify_merkle_proof(MerkleProof(p.leaf, 0, p.path_elements, (2, 0), p.root))
    assert not verify_merkle_proof(MerkleProof(R, 0, p.path_elements, p.path_indices, p.root))


def test_old_proof_fails_against_new_root():
    tree = IncrementalMerkleTree(3)
    tree.insert_many([7, 8])
    old = tree.get_proof(0)
    tree.insert(9)
    assert verify_merkle_proof(old)  # still consistent with its own root
    assert old.root != tree.root
    assert verify_merkle_proof(tree.get_proof(0))


@pytest.mark.parametrize("index", [-1, 3, 100, True])
def test_get_proof_rejects_unknown_index(index):
    tree = IncrementalMerkleTree(3)
    tree.insert_many([1, 2, 3])
    with pytest.raises(InvalidLeafIndex):
        tree.get_proof(index)


def test_from_commitments_and_state_round_trip():
    leaves = [5, 6, 7]
    tree = IncrementalMerkleTree.from_commitments(leaves, 5)
    state = tree.export_state()
    assert state["leaves"] == ["5", "6", "7"]
    again = IncrementalMerkleTree.import_state(state)
    assert again.root == tree.root
    assert again.leaf_count == 3

    state["root"] = str((tree.root + 1) % R)
    with pytest.raises(ValueError):
        IncrementalMerkleTree.import_state(state)


def test_index_of_and_proof_dict():
    tree = IncrementalMerkleTree(2)
    tree.insert_many([9, 8])
    assert tree.index_of(8) == 1
    assert tree.index_of(77) == -1
    d = tree.get_proof(1).to_dict()
    assert d["leafIndex"] == 1
    assert d["pathIndices"] == [1, 0]
    assert MerkleProof.from_dict(d) == tree.get_proof(1)


def test_nonzero_zero_leaf_changes_empty_root():
    assert IncrementalMerkleTree(2, zero_leaf=5).root != IncrementalMerkleTree(2).root
