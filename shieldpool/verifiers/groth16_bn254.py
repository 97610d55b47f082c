"""
shieldpool.verifiers.groth16_bn254
==================================

Groth16 verifier for BN254 (alt_bn128), compatible with the snarkjs JSON layout.

Verification equation
---------------------
    e(-A, B) · e(alpha1, beta2) · e(vk_x, gamma2) · e(C, delta2) == 1

with `vk_x = IC[0] + Σ inputs[i] · IC[i+1]`. Only `A` is negated; the product
is evaluated as four Miller loops and one final exponentiation.

JSON compatibility (snarkjs)
----------------------------
- Verifying key:
  {
    "protocol": "groth16", "curve": "bn128", "nPublic": n,
    "vk_alpha_1": [ax, ay, "1"],
    "vk_beta_2":  [[bx0, bx1], [by0, by1], ["1", "0"]],
    "vk_gamma_2": ..., "vk_delta_2": ...,
    "IC": [[x, y, "1"], ...]               # length = 1 + nPublic
  }
- Proof:
  { "pi_a": [x, y, "1"], "pi_b": [[x0, x1], [y0, y1], ["1", "0"]], "pi_c": [x, y, "1"] }

All coordinates are base-10 strings. For G2, `[c0, c1]` means `c0 + c1 * i`.

Outcomes
--------
- Structural problems raise: `PublicInputCountMismatch` (checked first, before
  any curve work), `InvalidFieldElement` (public input >= r),
  `MalformedProof` / `MalformedVerificationKey` (parse failures, off-curve VK).
- A proof that does not satisfy the equation returns False. Proof points that
  are off-curve, or a B outside the r-torsion subgroup, also return False:
  they are what a tampered proof looks like.

Verification is pure and stateless; it is safe to call concurrently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple

from py_ecc.optimized_bn128 import add as _add
from py_ecc.optimized_bn128 import multiply as _mul

from ..errors import (InvalidFieldElement, MalformedProof,
                      MalformedVerificationKey, PublicInputCountMismatch)
from .curve import G1Point, G2Point
from .field import IntLike, parse_fr
from .pairing_bn254 import check_pairing_product, is_in_g2_subgroup

_LOG = logging.getLogger("shieldpool.groth16")


# ---------------------------
# Data classes
# ---------------------------


@dataclass(frozen=True)
class VerificationKey:
    alpha1: G1Point
    beta2: G2Point
    gamma2: G2Point
    delta2: G2Point
    ic: Tuple[G1Point, ...]  # [IC0, IC1, ..., ICn]

    @property
    def num_public_inputs(self) -> int:
        return len(self.ic) - 1

    def validate(self) -> None:
        """Raise MalformedVerificationKey if the key is structurally unusable."""
        if len(self.ic) < 1:
            raise MalformedVerificationKey("verification key has an empty IC list")
        bad = [
            name
            for name, pt in (
                ("alpha1", self.alpha1),
                ("beta2", self.beta2),
                ("gamma2", self.gamma2),
                ("delta2", self.delta2),
            )
            if not pt.is_on_curve()
        ]
        bad += [f"ic[{i}]" for i, pt in enumerate(self.ic) if not pt.is_on_curve()]
        if bad:
            raise MalformedVerificationKey(
                "verification key points are not on curve", context={"points": bad}
            )

    def to_json(self) -> dict:
        return {
            "protocol": "groth16",
            "curve": "bn128",
            "nPublic": self.num_public_inputs,
            "vk_alpha_1": self.alpha1.to_decimal(),
            "vk_beta_2": self.beta2.to_decimal(),
            "vk_gamma_2": self.gamma2.to_decimal(),
            "vk_delta_2": self.delta2.to_decimal(),
            "IC": [p.to_decimal() for p in self.ic],
        }


@dataclass(frozen=True)
class Proof:
    a: G1Point
    b: G2Point
    c: G1Point

    def to_json(self) -> dict:
        return {
            "pi_a": self.a.to_decimal(),
            "pi_b": self.b.to_decimal(),
            "pi_c": self.c.to_decimal(),
            "protocol": "groth16",
            "curve": "bn128",
        }


# ---------------------------
# Loaders (snarkjs JSON)
# ---------------------------


def _first(obj: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in obj:
            return obj[k]
    raise KeyError(keys[0])


def load_vk(vk_json: Mapping[str, Any]) -> VerificationKey:
    """
    Parse a snarkjs-style verifying key into a VerificationKey.

    Raises MalformedVerificationKey on missing fields, bad numbers, wrong
    protocol/curve tags, an `nPublic` that disagrees with IC, or off-curve points.
    """
    if not isinstance(vk_json, Mapping):
        raise MalformedVerificationKey("verification key must be a JSON object")
    protocol = vk_json.get("protocol")
    if protocol is not None and str(protocol).lower() != "groth16":
        raise MalformedVerificationKey("unsupported protocol", context={"protocol": protocol})
    curve = vk_json.get("curve")
    if curve is not None and str(curve).lower() not in ("bn128", "bn254", "alt_bn128"):
        raise MalformedVerificationKey("unsupported curve", context={"curve": curve})
    try:
        vk = VerificationKey(
            alpha1=G1Point.from_decimal(_first(vk_json, "vk_alpha_1", "alpha1")),
            beta2=G2Point.from_decimal(_first(vk_json, "vk_beta_2", "beta2")),
            gamma2=G2Point.from_decimal(_first(vk_json, "vk_gamma_2", "gamma2")),
            delta2=G2Point.from_decimal(_first(vk_json, "vk_delta_2", "delta2")),
            ic=tuple(G1Point.from_decimal(p) for p in _first(vk_json, "IC", "ic")),
        )
    except (KeyError, TypeError, ValueError, InvalidFieldElement) as e:
        raise MalformedVerificationKey(f"cannot parse verification key: {e}", cause=e) from e

    n_public = vk_json.get("nPublic")
    if n_public is not None and str(n_public) != str(vk.num_public_inputs):
        raise MalformedVerificationKey(
            "nPublic does not match IC length",
            context={"nPublic": n_public, "ic": len(vk.ic)},
        )
    vk.validate()
    return vk


def load_proof(proof_json: Mapping[str, Any]) -> Proof:
    """
    Parse a snarkjs-style proof into a Proof. A `{proof, publicSignals}`
    bundle is unwrapped. On-curve checks are left to `verify`.
    """
    if not isinstance(proof_json, Mapping):
        raise MalformedProof("proof must be a JSON object")
    if "proof" in proof_json and isinstance(proof_json["proof"], Mapping):
        proof_json = proof_json["proof"]
    try:
        return Proof(
            a=G1Point.from_decimal(_first(proof_json, "pi_a", "a", "A")),
            b=G2Point.from_decimal(_first(proof_json, "pi_b", "b", "B")),
            c=G1Point.from_decimal(_first(proof_json, "pi_c", "c", "C")),
        )
    except (KeyError, TypeError, ValueError, InvalidFieldElement) as e:
        raise MalformedProof(f"cannot parse proof: {e}", cause=e) from e


# ---------------------------
# Core verification
# ---------------------------


def compute_vk_x(ic: Sequence[G1Point], inputs: Sequence[int]) -> Any:
    """
    VK_x = IC[0] + Σ inputs[i] · IC[i+1]  in G1 (py_ecc projective point).
    """
    acc = ic[0].to_backend()
    for point, s in zip(ic[1:], inputs):
        if s != 0:
            acc = _add(acc, _mul(point.to_backend(), s))
    return acc


def _check_g2_subgroup_default() -> bool:
    from ..config import load_config

    return load_config().verifier.check_g2_subgroup


def verify(
    vk: VerificationKey,
    proof: Proof,
    public_inputs: Sequence[IntLike],
    *,
    check_g2_subgroup: Optional[bool] = None,
) -> bool:
    """
    Verify a Groth16 proof.

    Returns True iff the pairing product equals one. Raises on structural
    errors (see module docstring).
    """
    expected = vk.num_public_inputs
    if len(public_inputs) != expected:
        raise PublicInputCountMismatch.expected(expected, len(public_inputs))
    inputs = [parse_fr(v) for v in public_inputs]
    vk.validate()

    if not (proof.a.is_on_curve() and proof.b.is_on_curve() and proof.c.is_on_curve()):
        _LOG.warning("proof rejected: point not on curve")
        return False
    if check_g2_subgroup is None:
        check_g2_subgroup = _check_g2_subgroup_default()
    b = proof.b.to_backend()
    if check_g2_subgroup and not is_in_g2_subgroup(b):
        _LOG.warning("proof rejected: B outside the G2 subgroup")
        return False

    vk_x = compute_vk_x(vk.ic, inputs)
    pairs = [
        (proof.a.negate().to_backend(), b),
        (vk.alpha1.to_backend(), vk.beta2.to_backend()),
        (vk_x, vk.gamma2.to_backend()),
        (proof.c.to_backend(), vk.delta2.to_backend()),
    ]
    ok = check_pairing_product(pairs, validate=False)
    if ok:
        _LOG.debug("groth16 proof verified", extra={"n_public": expected})
    else:
        _LOG.warning("groth16 pairing check failed", extra={"n_public": expected})
    return ok


def verify_json(
    vk_json: Mapping[str, Any],
    proof_json: Mapping[str, Any],
    public_signals: Optional[Sequence[IntLike]] = None,
    *,
    check_g2_subgroup: Optional[bool] = None,
) -> bool:
    """
    String-based convenience overload over snarkjs JSON.

    If `public_signals` is None, `proof_json` must be a `{proof, publicSignals}`
    bundle. Parse failures raise MalformedVerificationKey / MalformedProof
    before any verification work.
    """
    vk = load_vk(vk_json)
    proof = load_proof(proof_json)
    if public_signals is None:
        signals = proof_json.get("publicSignals") if isinstance(proof_json, Mapping) else None
        if not isinstance(signals, (list, tuple)):
            raise MalformedProof("no public signals supplied and none embedded in the proof")
        public_signals = signals
    return verify(vk, proof, public_signals, check_g2_subgroup=check_g2_subgroup)


__all__ = [
    "VerificationKey",
    "Proof",
    "load_vk",
    "load_proof",
    "compute_vk_x",
    "verify",
    "verify_json",
]
