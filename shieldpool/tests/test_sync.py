import pytest

from shieldpool.errors import NullifierAlreadyUsed, StaleMerkleRoot
from shieldpool.integration.sync import (assign_leaf_indices,
                                         check_nullifiers_unused,
                                         ensure_fresh_root, rebuild_tree,
                                         sync_tree)
from shieldpool.notes import compute_nullifier_hash, create_note
from shieldpool.verifiers.merkle import IncrementalMerkleTree


def test_sync_pulls_in_pages(chain):
    chain.commitments = list(range(1, 12))
    tree = IncrementalMerkleTree(5)
    assert sync_tree(tree, chain, page_size=4) == 11
    assert tree.leaves() == chain.commitments
    # 4 + 4 + 3 (short page ends the loop)
    assert chain.range_calls == 3


def test_sync_is_incremental(chain):
    tree = IncrementalMerkleTree(5)
    chain.commitments = [1, 2, 3]
    sync_tree(tree, chain, page_size=10)
    chain.commitments += [4, 5]
    assert sync_tree(tree, chain, page_size=10) == 2
    assert sync_tree(tree, chain, page_size=10) == 0
    assert tree.root == IncrementalMerkleTree.from_commitments([1, 2, 3, 4, 5], 5).root


def test_sync_uses_configured_page_size(chain, monkeypatch):
    from shieldpool.config import reload_config

    monkeypatch.setenv("SHIELDPOOL_SYNC_PAGE_SIZE", "2")
    reload_config()
    chain.commitments = [1, 2, 3, 4, 5]
    sync_tree(IncrementalMerkleTree(4), chain)
    assert chain.range_calls == 3
    with pytest.raises(ValueError):
        sync_tree(IncrementalMerkleTree(4), chain, page_size=0)


def test_rebuild_matches_incremental(chain):
    chain.commitments = [10, 20, 30, 40]
    rebuilt = rebuild_tree(chain, depth=6, page_size=3)
    assert rebuilt.depth == 6
    assert rebuilt.root == IncrementalMerkleTree.from_commitments(chain.commitments, 6).root


def test_rebuild_defaults_to_config_depth(chain):
    chain.commitments = [1]
    assert rebuild_tree(chain).depth == 20


def test_stale_root_detection(chain):
    chain.commitments = [1, 2]
    tree = rebuild_tree(chain, depth=4)
    assert ensure_fresh_root(tree, tree.root) == tree.root
    chain.commitments.append(3)
    remote = IncrementalMerkleTree.from_commitments(chain.commitments, 4).root
    with pytest.raises(StaleMerkleRoot) as ei:
        ensure_fresh_root(tree, remote)
    assert ei.value.context["leaf_count"] == 2
    sync_tree(tree, chain)
    assert ensure_fresh_root(tree, str(remote)) == remote


def test_nullifier_checks(chain):
    used = compute_nullifier_hash(5, 0)
    chain.nullifiers.add(used)
    check_nullifiers_unused(chain, [compute_nullifier_hash(6, 1)])
    with pytest.raises(NullifierAlreadyUsed) as ei:
        check_nullifiers_unused(chain, [compute_nullifier_hash(6, 1), used])
    assert ei.value.context["nullifier_hash"] == str(used)


def test_assign_leaf_indices(chain, ledger):
    mine = [create_note(a, 0) for a in (1, 2)]
    for n in mine:
        ledger.save("alice", n)
    chain.commitments = [99, int(mine[1].commitment), 98]
    tree = rebuild_tree(chain, depth=4)
    assert assign_leaf_indices(ledger, tree, "alice") == 1
    notes = ledger.get_notes("alice")
    assert notes[0].leaf_index == -1
    assert notes[1].leaf_index == 1
    chain.commitments.append(int(mine[0].commitment))
    sync_tree(tree, chain)
    assert assign_leaf_indices(ledger, tree, "alice") == 1
    assert ledger.get_notes("alice")[0].leaf_index == 3
    assert assign_leaf_indices(ledger, tree, "alice") == 0
