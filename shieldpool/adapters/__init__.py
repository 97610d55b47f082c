"""
shieldpool adapters: load external proving-toolchain artifacts (snarkjs).
"""

from __future__ import annotations

from .snarkjs_loader import (dump_groth16, is_groth16_proof, is_groth16_vk,
                             load_groth16, load_json, split_proof_bundle)

__all__ = [
    "load_json",
    "is_groth16_vk",
    "is_groth16_proof",
    "split_proof_bundle",
    "load_groth16",
    "dump_groth16",
]
