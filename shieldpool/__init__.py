"""
shieldpool: client-side core of a Groth16/BN254 shielded pool.

Subpackages
-----------
- `shieldpool.verifiers`   : field/curve types, Poseidon, Merkle mirror, Groth16 verifier
- `shieldpool.adapters`    : snarkjs artifact loading
- `shieldpool.notes`       : private notes, storage, coin selection
- `shieldpool.integration` : circuit witnesses, prover boundary, chain sync
"""

from __future__ import annotations

__version__ = "0.1.0"

from .errors import ErrorCode, ShieldError

__all__ = ["__version__", "ErrorCode", "ShieldError"]
