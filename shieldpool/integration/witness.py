"""
shieldpool.integration.witness
==============================

Typed circuit witnesses using **msgspec** tagged structs.

Each circuit gets its own struct (`DepositWitness`, `WithdrawWitness`,
`TransferWitness`) instead of an open string-keyed dict, so a missing or
out-of-field input is caught by `validate()` before the expensive proving step.

Wire shape
----------
JSON objects with camelCase keys and a `type` tag:

    {"type": "deposit", "commitment": "...", "amount": "...", "assetId": "...",
     "nullifier": "...", "secret": "..."}

All scalar values are decimal strings < r; path indices are 0/1 integers.
`to_signals()` drops the tag and returns the flat map the circuit expects
(every value a decimal string or a list of decimal strings).

Public signal order (what the verifier sees):
- deposit  : commitment, amount, assetId
- withdraw : root, nullifierHash, recipient, amount, assetId
- transfer : nullifierHash1, nullifierHash2, outputCommitment1,
             outputCommitment2, root, publicDataHash
"""

from __future__ import annotations

from typing import Any, ClassVar, Dict, List, Sequence, Tuple, Union

import msgspec

from ..errors import InvalidFieldElement, InvalidLeafIndex, MalformedWitness
from ..notes.commitments import (compute_nullifier_hash,
                                 compute_public_data_hash,
                                 encode_signed_amount)
from ..notes.ledger import build_dummy_note
from ..notes.types import Note, PartialNote, parse_amount
from ..verifiers.field import R, parse_fr
from ..verifiers.merkle import IncrementalMerkleTree, MerkleProof

Signals = Dict[str, Union[str, List[str]]]

MAX_INPUTS = 2
MAX_OUTPUTS = 2


class _Witness(msgspec.Struct, frozen=True, rename="camel", tag_field="type"):
    circuit: ClassVar[str] = ""
    _public: ClassVar[Tuple[str, ...]] = ()
    _paths: ClassVar[Tuple[Tuple[str, str], ...]] = ()

    def _scalars(self) -> Dict[str, str]:
        return {
            name: getattr(self, name)
            for name in self.__struct_fields__
            if isinstance(getattr(self, name), str)
        }

    def validate(self) -> None:
        """Raise MalformedWitness unless every input is usable by the circuit."""
        for name, value in self._scalars().items():
            try:
                parse_fr(value)
            except InvalidFieldElement as e:
                raise MalformedWitness(
                    f"{self.circuit} witness field {name} is not a field element",
                    context={"field": name, "value": value},
                    cause=e,
                ) from e
        depth = None
        for elements_name, indices_name in self._paths:
            elements = getattr(self, elements_name)
            indices = getattr(self, indices_name)
            if len(elements) != len(indices):
                raise MalformedWitness(
                    "path elements and path indices differ in length",
                    context={"field": elements_name, "elements": len(elements), "indices": len(indices)},
                )
            if depth is None:
                depth = len(elements)
            elif len(elements) != depth:
                raise MalformedWitness(
                    "input paths have different lengths",
                    context={"field": elements_name, "expected": depth, "actual": len(elements)},
                )
            for i, bit in enumerate(indices):
                if bit not in (0, 1):
                    raise MalformedWitness(
                        "path index must be 0 or 1", context={"field": indices_name, "position": i, "value": bit}
                    )
            for i, e in enumerate(elements):
                try:
                    parse_fr(e)
                except InvalidFieldElement as err:
                    raise MalformedWitness(
                        "path element is not a field element",
                        context={"field": elements_name, "position": i},
                        cause=err,
                    ) from err
        if depth == 0:
            raise MalformedWitness(f"{self.circuit} witness has an empty Merkle path")

    def to_signals(self) -> Signals:
        raw = msgspec.to_builtins(self)
        raw.pop("type", None)
        return {k: [str(x) for x in v] if isinstance(v, list) else str(v) for k, v in raw.items()}

    def public_inputs(self) -> List[int]:
        return [parse_fr(getattr(self, name)) for name in self._public]


class DepositWitness(_Witness, frozen=True, tag="deposit"):
    circuit: ClassVar[str] = "deposit"
    _public: ClassVar[Tuple[str, ...]] = ("commitment", "amount", "asset_id")

    commitment: str
    amount: str
    asset_id: str
    nullifier: str
    secret: str


class WithdrawWitness(_Witness, frozen=True, tag="withdraw"):
    circuit: ClassVar[str] = "withdraw"
    _public: ClassVar[Tuple[str, ...]] = ("root", "nullifier_hash", "recipient", "amount", "asset_id")
    _paths: ClassVar[Tuple[Tuple[str, str], ...]] = (("path_elements", "path_indices"),)

    root: str
    nullifier_hash: str
    recipient: str
    amount: str
    asset_id: str
    nullifier: str
    secret: str
    path_elements: Tuple[str, ...]
    path_indices: Tuple[int, ...]


class TransferWitness(_Witness, frozen=True, tag="transfer"):
    circuit: ClassVar[str] = "transfer"
    _public: ClassVar[Tuple[str, ...]] = (
        "nullifier_hash1",
        "nullifier_hash2",
        "output_commitment1",
        "output_commitment2",
        "root",
        "public_data_hash",
    )
    _paths: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("in_path_elements1", "in_path_indices1"),
        ("in_path_elements2", "in_path_indices2"),
    )

    # public
    nullifier_hash1: str
    nullifier_hash2: str
    output_commitment1: str
    output_commitment2: str
    root: str
    public_data_hash: str
    # private: public-data preimage
    public_amount: str
    asset_id: str
    ext_data_hash: str
    # private: inputs
    in_nullifier1: str
    in_secret1: str
    in_amount1: str
    in_path_elements1: Tuple[str, ...]
    in_path_indices1: Tuple[int, ...]
    in_nullifier2: str
    in_secret2: str
    in_amount2: str
    in_path_elements2: Tuple[str, ...]
    in_path_indices2: Tuple[int, ...]
    # private: outputs
    out_nullifier1: str
    out_secret1: str
    out_amount1: str
    out_nullifier2: str
    out_secret2: str
    out_amount2: str


Witness = Union[DepositWitness, WithdrawWitness, TransferWitness]

_DECODER = msgspec.json.Decoder(Witness)


def decode_witness(data: Union[bytes, str]) -> Witness:
    """Decode a tagged witness from JSON and validate it."""
    try:
        witness = _DECODER.decode(data)
    except (msgspec.DecodeError, msgspec.ValidationError) as e:
        raise MalformedWitness(f"cannot decode witness: {e}", cause=e) from e
    witness.validate()
    return witness


def encode_witness(witness: Witness) -> bytes:
    return msgspec.json.encode(witness)


# -----------------------------------------------------------------------------
# Builders
# -----------------------------------------------------------------------------


def build_deposit_witness(note: Union[Note, PartialNote]) -> DepositWitness:
    partial = note.as_partial() if isinstance(note, Note) else note
    witness = DepositWitness(
        commitment=str(partial.commitment()),
        amount=partial.amount,
        asset_id=partial.asset_id,
        nullifier=partial.nullifier,
        secret=partial.secret,
    )
    witness.validate()
    return witness


def _inclusion_proof(tree: IncrementalMerkleTree, note: Note) -> MerkleProof:
    if not note.on_chain:
        raise MalformedWitness("input note has no on-chain leaf index", context={"commitment": note.commitment})
    try:
        proof = tree.get_proof(note.leaf_index)
    except InvalidLeafIndex as e:
        raise MalformedWitness(
            "input note is not in the local tree (sync first)",
            context={"leaf_index": note.leaf_index, "leaf_count": tree.leaf_count},
            cause=e,
        ) from e
    if str(proof.leaf) != note.commitment:
        raise MalformedWitness(
            "tree leaf does not match note commitment",
            context={"leaf_index": note.leaf_index, "commitment": note.commitment},
        )
    return proof


def _zero_path(tree: IncrementalMerkleTree) -> Tuple[Tuple[str, ...], Tuple[int, ...]]:
    return tuple(str(z) for z in tree.zeros[: tree.depth]), (0,) * tree.depth


def build_withdraw_witness(tree: IncrementalMerkleTree, note: Note, recipient: Any) -> WithdrawWitness:
    """Withdraw the whole of `note` to `recipient` (an address already encoded in Fr)."""
    if note.spent:
        raise MalformedWitness("note is already spent", context={"commitment": note.commitment})
    proof = _inclusion_proof(tree, note)
    witness = WithdrawWitness(
        root=str(proof.root),
        nullifier_hash=str(compute_nullifier_hash(note.nullifier, note.leaf_index)),
        recipient=str(parse_fr(recipient)),
        amount=note.amount,
        asset_id=note.asset_id,
        nullifier=note.nullifier,
        secret=note.secret,
        path_elements=tuple(str(e) for e in proof.path_elements),
        path_indices=proof.path_indices,
    )
    witness.validate()
    return witness


def build_transfer_witness(
    tree: IncrementalMerkleTree,
    inputs: Sequence[Note],
    outputs: Sequence[PartialNote],
    public_amount: int = 0,
    ext_data_hash: Any = 0,
) -> TransferWitness:
    """
    Build a 2-in/2-out transfer witness.

    Missing inputs/outputs are padded with zero-value dummies; a dummy input
    carries an all-zero-subtree path so both paths have the tree's depth.
    `public_amount` is signed: negative values withdraw from the pool.
    Value must be conserved: sum(in) + public_amount == sum(out) (mod r).
    """
    if not 1 <= len(inputs) <= MAX_INPUTS:
        raise MalformedWitness("transfer takes one or two input notes", context={"inputs": len(inputs)})
    if len(outputs) > MAX_OUTPUTS:
        raise MalformedWitness("transfer takes at most two output notes", context={"outputs": len(outputs)})

    asset_id = inputs[0].asset_id
    for n in (*inputs, *outputs):
        if parse_fr(n.asset_id) != parse_fr(asset_id):
            raise MalformedWitness("all notes in a transfer must share one asset", context={"asset_id": n.asset_id})
    for n in inputs:
        if n.spent:
            raise MalformedWitness("input note is already spent", context={"commitment": n.commitment})

    root = tree.root
    in_rows: List[Tuple[PartialNote, Tuple[str, ...], Tuple[int, ...], int]] = []
    for n in inputs:
        proof = _inclusion_proof(tree, n)
        in_rows.append(
            (n.as_partial(), tuple(str(e) for e in proof.path_elements), proof.path_indices, n.leaf_index)
        )
    while len(in_rows) < MAX_INPUTS:
        elements, indices = _zero_path(tree)
        in_rows.append((build_dummy_note(asset_id), elements, indices, 0))
    outs = list(outputs)
    while len(outs) < MAX_OUTPUTS:
        outs.append(build_dummy_note(asset_id))

    signed = encode_signed_amount(public_amount)
    total_in = sum(parse_amount(p.amount) for p, _, _, _ in in_rows)
    total_out = sum(parse_amount(p.amount) for p in outs)
    if (total_in + signed - total_out) % R != 0:
        raise MalformedWitness(
            "transfer does not conserve value",
            context={"inputs": str(total_in), "public_amount": str(public_amount), "outputs": str(total_out)},
        )

    ext = parse_fr(ext_data_hash)
    (in1, el1, ix1, li1), (in2, el2, ix2, li2) = in_rows
    out1, out2 = outs
    witness = TransferWitness(
        nullifier_hash1=str(compute_nullifier_hash(in1.nullifier, li1)),
        nullifier_hash2=str(compute_nullifier_hash(in2.nullifier, li2)),
        output_commitment1=str(out1.commitment()),
        output_commitment2=str(out2.commitment()),
        root=str(root),
        public_data_hash=str(compute_public_data_hash(signed, asset_id, ext)),
        public_amount=str(signed),
        asset_id=asset_id,
        ext_data_hash=str(ext),
        in_nullifier1=in1.nullifier,
        in_secret1=in1.secret,
        in_amount1=in1.amount,
        in_path_elements1=el1,
        in_path_indices1=ix1,
        in_nullifier2=in2.nullifier,
        in_secret2=in2.secret,
        in_amount2=in2.amount,
        in_path_elements2=el2,
        in_path_indices2=ix2,
        out_nullifier1=out1.nullifier,
        out_secret1=out1.secret,
        out_amount1=out1.amount,
        out_nullifier2=out2.nullifier,
        out_secret2=out2.secret,
        out_amount2=out2.amount,
    )
    witness.validate()
    return witness


__all__ = [
    "DepositWitness",
    "WithdrawWitness",
    "TransferWitness",
    "Witness",
    "Signals",
    "decode_witness",
    "encode_witness",
    "build_deposit_witness",
    "build_withdraw_witness",
    "build_transfer_witness",
]
