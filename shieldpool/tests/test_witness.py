import json

import msgspec
import pytest

from shieldpool.errors import MalformedWitness
from shieldpool.integration.witness import (DepositWitness, TransferWitness,
                                            WithdrawWitness,
                                            build_deposit_witness,
                                            build_transfer_witness,
                                            build_withdraw_witness,
                                            decode_witness, encode_witness)
from shieldpool.notes import (PartialNote, compute_nullifier_hash,
                              compute_public_data_hash, create_note)
from shieldpool.verifiers.field import R
from shieldpool.verifiers.merkle import IncrementalMerkleTree, verify_merkle_proof, MerkleProof

DEPTH = 4


def _on_chain(tree, note):
    index = tree.insert(note.commitment)
    return msgspec.structs.replace(note, leaf_index=index)


def _out(amount, asset="0"):
    n = create_note(amount, asset)
    return n.as_partial()


def test_deposit_witness_signals():
    note = create_note(100, 2)
    w = build_deposit_witness(note)
    assert w.public_inputs() == [int(note.commitment), 100, 2]
    signals = w.to_signals()
    assert set(signals) == {"commitment", "amount", "assetId", "nullifier", "secret"}
    assert all(isinstance(v, str) for v in signals.values())


def test_decode_by_tag_round_trip():
    w = build_deposit_witness(create_note(1, 0))
    raw = encode_witness(w)
    assert json.loads(raw)["type"] == "deposit"
    again = decode_witness(raw)
    assert isinstance(again, DepositWitness)
    assert again == w


def test_decode_rejects_unknown_tag_and_missing_fields():
    with pytest.raises(MalformedWitness):
        decode_witness(b'{"type": "mint", "amount": "1"}')
    with pytest.raises(MalformedWitness):
        decode_witness(b'{"type": "deposit", "amount": "1"}')
    with pytest.raises(MalformedWitness):
        decode_witness(b"[]")


def test_validate_rejects_out_of_field_value():
    w = build_deposit_witness(create_note(1, 0))
    bad = msgspec.structs.replace(w, secret=str(R))
    with pytest.raises(MalformedWitness) as ei:
        bad.validate()
    assert ei.value.context["field"] == "secret"
    with pytest.raises(MalformedWitness):
        decode_witness(encode_witness(bad))


def test_withdraw_witness_path_checks():
    tree = IncrementalMerkleTree(DEPTH)
    note = _on_chain(tree, create_note(9, 0))
    w = build_withdraw_witness(tree, note, recipient=12345)
    assert w.root == str(tree.root)
    assert w.nullifier_hash == str(compute_nullifier_hash(note.nullifier, 0))
    assert len(w.path_elements) == DEPTH
    assert w.to_signals()["pathIndices"] == ["0"] * DEPTH
    assert w.public_inputs()[:3] == [tree.root, int(w.nullifier_hash), 12345]

    with pytest.raises(MalformedWitness):
        msgspec.structs.replace(w, path_indices=(0, 2, 0, 0)).validate()
    with pytest.raises(MalformedWitness):
        msgspec.structs.replace(w, path_elements=w.path_elements[:2]).validate()
    with pytest.raises(MalformedWitness):
        msgspec.structs.replace(w, path_elements=(), path_indices=()).validate()


def test_withdraw_requires_note_in_tree():
    tree = IncrementalMerkleTree(DEPTH)
    note = create_note(9, 0)
    with pytest.raises(MalformedWitness):
        build_withdraw_witness(tree, note, recipient=1)
    with pytest.raises(MalformedWitness):
        build_withdraw_witness(tree, msgspec.structs.replace(note, leaf_index=0), recipient=1)
    tree.insert(1)
    with pytest.raises(MalformedWitness):
        build_withdraw_witness(tree, msgspec.structs.replace(note, leaf_index=0), recipient=1)


def test_transfer_two_in_two_out():
    tree = IncrementalMerkleTree(DEPTH)
    a = _on_chain(tree, create_note(30, 0))
    b = _on_chain(tree, create_note(12, 0))
    w = build_transfer_witness(tree, [a, b], [_out(40), _out(2)])
    assert isinstance(w, TransferWitness)
    assert w.root == str(tree.root)
    assert w.nullifier_hash1 == str(compute_nullifier_hash(a.nullifier, 0))
    assert w.nullifier_hash2 == str(compute_nullifier_hash(b.nullifier, 1))
    assert w.public_data_hash == str(compute_public_data_hash(0, 0, 0))
    assert len(w.public_inputs()) == 6

    proof = MerkleProof(
        leaf=int(a.commitment),
        leaf_index=0,
        path_elements=tuple(int(e) for e in w.in_path_elements1),
        path_indices=w.in_path_indices1,
        root=tree.root,
    )
    assert verify_merkle_proof(proof)

    signals = w.to_signals()
    assert signals["inPathElements1"] == list(w.in_path_elements1)
    assert "outputCommitment2" in signals and "type" not in signals


def test_transfer_pads_with_dummies():
    tree = IncrementalMerkleTree(DEPTH)
    a = _on_chain(tree, create_note(30, 0))
    w = build_transfer_witness(tree, [a], [_out(30)])
    assert (w.in_nullifier2, w.in_secret2, w.in_amount2) == ("0", "0", "0")
    assert w.in_path_elements2 == tuple(str(z) for z in tree.zeros[:DEPTH])
    assert w.in_path_indices2 == (0,) * DEPTH
    assert w.out_amount2 == "0"


def test_transfer_conservation_and_withdrawal():
    tree = IncrementalMerkleTree(DEPTH)
    a = _on_chain(tree, create_note(30, 0))
    with pytest.raises(MalformedWitness):
        build_transfer_witness(tree, [a], [_out(31)])
    w = build_transfer_witness(tree, [a], [_out(20)], public_amount=-10)
    assert w.public_amount == str(R - 10)
    w = build_transfer_witness(tree, [a], [_out(35)], public_amount=5)
    assert w.public_amount == "5"


def test_transfer_rejects_bad_inputs():
    tree = IncrementalMerkleTree(DEPTH)
    a = _on_chain(tree, create_note(30, 0))
    other_asset = _on_chain(tree, create_note(1, 5))
    with pytest.raises(MalformedWitness):
        build_transfer_witness(tree, [], [_out(0)])
    with pytest.raises(MalformedWitness):
        build_transfer_witness(tree, [a, a, a], [])
    with pytest.raises(MalformedWitness):
        build_transfer_witness(tree, [a], [_out(10), _out(10), _out(10)])
    with pytest.raises(MalformedWitness):
        build_transfer_witness(tree, [a, other_asset], [_out(31)])
    with pytest.raises(MalformedWitness):
        build_transfer_witness(tree, [msgspec.structs.replace(a, spent=True)], [_out(30)])


def test_transfer_witness_survives_json():
    tree = IncrementalMerkleTree(DEPTH)
    a = _on_chain(tree, create_note(30, 0))
    w = build_transfer_witness(tree, [a], [PartialNote("1", "2", "30", "0")])
    raw = encode_witness(w)
    assert json.loads(raw)["inPathIndices1"] == [0] * DEPTH
    assert decode_witness(raw) == w
    assert isinstance(decode_witness(raw), TransferWitness)
    assert not isinstance(decode_witness(raw), WithdrawWitness)
