"""
shieldpool integration: typed circuit witnesses, the async prover boundary and
ledger-of-record synchronization.
"""

from __future__ import annotations

from .prover import ProofErr, ProofOk, ProofResult, Prover, prove
from .sync import (LedgerOfRecord, assign_leaf_indices, check_nullifiers_unused,
                   ensure_fresh_root, rebuild_tree, sync_tree)
from .witness import (DepositWitness, TransferWitness, Witness, WithdrawWitness,
                      build_deposit_witness, build_transfer_witness,
                      build_withdraw_witness, decode_witness, encode_witness)

__all__ = [
    "Prover",
    "ProofOk",
    "ProofErr",
    "ProofResult",
    "prove",
    "LedgerOfRecord",
    "sync_tree",
    "rebuild_tree",
    "ensure_fresh_root",
    "check_nullifiers_unused",
    "assign_leaf_indices",
    "DepositWitness",
    "WithdrawWitness",
    "TransferWitness",
    "Witness",
    "decode_witness",
    "encode_witness",
    "build_deposit_witness",
    "build_withdraw_witness",
    "build_transfer_witness",
]
