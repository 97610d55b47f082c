"""
shieldpool.adapters.snarkjs_loader
==================================

Helpers to **load** snarkjs Groth16 artifacts (bn128) from files, JSON text or
dicts and hand typed objects to `shieldpool.verifiers.groth16_bn254`.

This module does **not** verify proofs; it reads JSON, recognizes the common
shapes and converts parse problems into `MalformedVerificationKey` /
`MalformedProof`.

Typical snarkjs shapes
----------------------
verification_key.json:
{
  "protocol": "groth16", "curve": "bn128", "nPublic": 2,
  "vk_alpha_1": ["..", "..", "1"],
  "vk_beta_2":  [["..",".."], ["..",".."], ["1","0"]],
  "vk_gamma_2": ..., "vk_delta_2": ...,
  "IC": [["..", "..", "1"], ...]
}

proof.json:   { "pi_a": [...], "pi_b": [...], "pi_c": [...], "protocol": "groth16" }
public.json:  ["123", "456"]

Some tools wrap as { "proof": {...}, "publicSignals": [...] }; both are handled.

Exports
-------
- load_json(source) -> dict | list
- is_groth16_vk(obj) / is_groth16_proof(obj)
- split_proof_bundle(obj) -> (proof_dict, public_signals | None)
- load_groth16(vk_source, proof_source, public_source=None)
      -> (VerificationKey, Proof, list[int])
- dump_groth16(vk, proof, public_inputs) -> (vk_json, proof_json, public_json)
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..errors import MalformedProof, MalformedVerificationKey
from ..verifiers.field import parse_fr
from ..verifiers.groth16_bn254 import Proof, VerificationKey, load_proof, load_vk

JsonLike = Union[str, bytes, os.PathLike, Mapping[str, Any], Sequence[Any]]


# -----------------------------------------------------------------------------
# I/O helpers
# -----------------------------------------------------------------------------


def load_json(source: JsonLike) -> Any:
    """
    Load JSON from:
      - dict-like / list: shallow-copied
      - path-like or string path
      - bytes or string containing JSON text

    Raises ValueError on failure.
    """
    if isinstance(source, Mapping):
        return dict(source)
    if isinstance(source, (list, tuple)):
        return list(source)
    if isinstance(source, (bytes, bytearray, memoryview)):
        try:
            return json.loads(bytes(source).decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ValueError(f"Could not decode JSON bytes: {e}") from e
    s = os.fspath(source) if isinstance(source, os.PathLike) else str(source)
    if os.path.isfile(s):
        with open(s, "r", encoding="utf-8") as f:
            return json.load(f)
    try:
        return json.loads(s)
    except json.JSONDecodeError as e:
        raise ValueError(f"Could not load JSON from provided source: {e}") from e


# -----------------------------------------------------------------------------
# Shape detection
# -----------------------------------------------------------------------------


def is_groth16_vk(obj: Any) -> bool:
    if not isinstance(obj, Mapping):
        return False
    keys = set(obj.keys())
    return {"vk_alpha_1", "vk_beta_2", "vk_gamma_2", "vk_delta_2", "IC"} <= keys


def is_groth16_proof(obj: Any) -> bool:
    if not isinstance(obj, Mapping):
        return False
    if "proof" in obj and isinstance(obj.get("proof"), Mapping):
        obj = obj["proof"]
    return all(k in obj for k in ("pi_a", "pi_b", "pi_c"))


def split_proof_bundle(obj: Mapping[str, Any]) -> Tuple[Dict[str, Any], Optional[List[Any]]]:
    """
    Accept either a flat proof dict or a `{proof, publicSignals}` bundle.
    Returns `(proof_dict, public_signals_or_None)`.
    """
    if "proof" in obj and isinstance(obj["proof"], Mapping):
        proof = dict(obj["proof"])
    else:
        proof = dict(obj)
    publics = obj.get("publicSignals")
    if publics is None:
        publics = proof.pop("publicSignals", None)
    if publics is not None and not isinstance(publics, list):
        raise MalformedProof("publicSignals must be a list when present")
    return proof, publics


# -----------------------------------------------------------------------------
# Loaders
# -----------------------------------------------------------------------------


def load_groth16(
    vk_source: JsonLike,
    proof_source: JsonLike,
    public_source: Optional[JsonLike] = None,
) -> Tuple[VerificationKey, Proof, List[int]]:
    """
    Convenience loader:
      vk, proof, inputs = load_groth16("verification_key.json", "proof.json", "public.json")

    Public signals come from `public_source` when given, else from the proof
    bundle. They are validated as Fr elements (InvalidFieldElement if not).
    """
    try:
        raw_vk = load_json(vk_source)
    except ValueError as e:
        raise MalformedVerificationKey(str(e), cause=e) from e
    if not is_groth16_vk(raw_vk):
        raise MalformedVerificationKey("object does not look like a Groth16 verifying key")

    try:
        raw_pf = load_json(proof_source)
    except ValueError as e:
        raise MalformedProof(str(e), cause=e) from e
    if not is_groth16_proof(raw_pf):
        raise MalformedProof("object does not look like a Groth16 proof")
    proof_json, publics = split_proof_bundle(raw_pf)

    if public_source is not None:
        try:
            publics = load_json(public_source)
        except ValueError as e:
            raise MalformedProof(f"public signals: {e}", cause=e) from e
        if not isinstance(publics, list):
            raise MalformedProof("public signals must be a JSON list")
    if publics is None:
        raise MalformedProof("no public signals found (pass public_source or a bundle)")

    vk = load_vk(raw_vk)
    proof = load_proof(proof_json)
    inputs = [parse_fr(v) for v in publics]
    return vk, proof, inputs


def dump_groth16(
    vk: VerificationKey, proof: Proof, public_inputs: Sequence[int]
) -> Tuple[Dict[str, Any], Dict[str, Any], List[str]]:
    """Inverse of `load_groth16`: snarkjs-shaped dicts with decimal strings."""
    return vk.to_json(), proof.to_json(), [str(parse_fr(v)) for v in public_inputs]


__all__ = [
    "load_json",
    "is_groth16_vk",
    "is_groth16_proof",
    "split_proof_bundle",
    "load_groth16",
    "dump_groth16",
]
