"""
shieldpool verifiers: field/curve primitives, Poseidon, Merkle mirror, Groth16.

Modules
-------
- `field`          : validated Fr / Fq elements and explicit-modulus helpers
- `curve`          : G1/G2 point types with canonical byte/decimal encodings
- `poseidon`       : circomlib-compatible two-input Poseidon (`hash2`)
- `merkle`         : incremental Merkle tree + `verify_merkle_proof`
- `pairing_bn254`  : py_ecc pairing wrapper (shared final exponentiation)
- `groth16_bn254`  : Groth16 verify / verify_json over snarkjs JSON
- `precompile`     : alt_bn128 precompile byte encodings

Usage
-----
>>> from shieldpool.verifiers import hash2, IncrementalMerkleTree
>>> tree = IncrementalMerkleTree(20)
>>> tree.insert(hash2(1, 2))
0
"""

from __future__ import annotations

from .curve import G1Point, G2Point
from .field import Q, R, Fq, Fr, parse_fq, parse_fr
from .groth16_bn254 import (Proof, VerificationKey, load_proof, load_vk,
                            verify, verify_json)
from .merkle import IncrementalMerkleTree, MerkleProof, verify_merkle_proof
from .poseidon import hash2

__all__ = [
    "R",
    "Q",
    "Fr",
    "Fq",
    "parse_fr",
    "parse_fq",
    "G1Point",
    "G2Point",
    "hash2",
    "IncrementalMerkleTree",
    "MerkleProof",
    "verify_merkle_proof",
    "VerificationKey",
    "Proof",
    "load_vk",
    "load_proof",
    "verify",
    "verify_json",
]
