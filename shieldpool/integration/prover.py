"""
Prover boundary.

Proof generation is delegated to an external toolchain (snarkjs, rapidsnark,
a remote service...). This module is the only place where shieldpool awaits:
`prove()` validates the witness, runs the prover under `asyncio.wait_for`
and reports the outcome as a `ProofResult` value instead of raising.

- timeout            -> ProofErr(ProverTimeout)
- prover raised      -> ProofErr(ProverError)
- bad output         -> ProofErr(MalformedProof / PublicInputCountMismatch),
                        including public signals that differ from the witness
- optional local verify failed -> ProofErr(ProverError)
- caller cancelled   -> CancelledError propagates (the prover task is cancelled too)

A malformed witness is a caller bug and raises `MalformedWitness` before the
prover is invoked.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

from ..errors import (InvalidFieldElement, MalformedProof, ProverError,
                      ProverTimeout, PublicInputCountMismatch, ShieldError)
from ..verifiers.field import parse_fr
from ..verifiers.groth16_bn254 import Proof, VerificationKey, load_proof, verify
from .witness import Signals, Witness

_LOG = logging.getLogger("shieldpool.prover")


class Prover(Protocol):
    async def generate_proof(self, witness: Signals, artifact: Any) -> Tuple[Any, Sequence[Any]]:
        """Return `(proof, public_signals)`; the proof may be a Proof or snarkjs JSON."""
        ...


@dataclass(frozen=True)
class ProofOk:
    proof: Proof
    public_signals: List[str]
    elapsed_s: float = 0.0

    ok = True


@dataclass(frozen=True)
class ProofErr:
    error: ShieldError
    elapsed_s: float = 0.0
    context: Mapping[str, Any] = field(default_factory=dict)

    ok = False


ProofResult = Union[ProofOk, ProofErr]


def _default_timeout() -> float:
    from ..config import load_config

    return load_config().prover.timeout_s


def _coerce_output(witness: Witness, raw_proof: Any, raw_signals: Sequence[Any]) -> ProofOk:
    if isinstance(raw_proof, Proof):
        proof = raw_proof
    else:
        proof = load_proof(raw_proof)
    if isinstance(raw_signals, (str, bytes)) or not isinstance(raw_signals, Sequence):
        raise MalformedProof("public signals must be a list")
    try:
        signals = [str(parse_fr(s)) for s in raw_signals]
    except InvalidFieldElement as e:
        raise MalformedProof(f"prover returned a non-field public signal: {e.message}", cause=e) from e
    expected = witness.public_inputs()
    if len(signals) != len(expected):
        raise PublicInputCountMismatch.expected(len(expected), len(signals))
    mismatched = [i for i, (got, want) in enumerate(zip(signals, expected)) if got != str(want)]
    if mismatched:
        raise MalformedProof(
            "prover public signals do not match the witness",
            context={"circuit": witness.circuit, "positions": mismatched},
        )
    return ProofOk(proof=proof, public_signals=signals)


async def prove(
    prover: Prover,
    witness: Witness,
    artifact: Any,
    timeout: Optional[float] = None,
    *,
    vk: Optional[VerificationKey] = None,
) -> ProofResult:
    """
    Run `prover` on `witness` and return ProofOk or ProofErr.

    `timeout` defaults to the configured prover timeout. When `vk` is given the
    proof is verified locally before it is reported as ProofOk.
    """
    witness.validate()
    if timeout is None:
        timeout = _default_timeout()
    signals = witness.to_signals()

    started = time.monotonic()
    try:
        raw_proof, raw_signals = await asyncio.wait_for(prover.generate_proof(signals, artifact), timeout)
    except asyncio.TimeoutError as e:
        elapsed = time.monotonic() - started
        _LOG.warning("prover timed out", extra={"circuit": witness.circuit, "timeout_s": timeout})
        return ProofErr(
            ProverTimeout(f"prover exceeded {timeout}s", context={"circuit": witness.circuit}, cause=e),
            elapsed_s=elapsed,
        )
    except ShieldError as e:
        return ProofErr(e, elapsed_s=time.monotonic() - started)
    except Exception as e:  # external toolchain: any failure is a prover error
        _LOG.warning("prover failed", extra={"circuit": witness.circuit, "error": repr(e)})
        return ProofErr(
            ProverError(f"prover failed: {e}", context={"circuit": witness.circuit}, cause=e),
            elapsed_s=time.monotonic() - started,
        )
    elapsed = time.monotonic() - started

    try:
        result = _coerce_output(witness, raw_proof, raw_signals)
    except ShieldError as e:
        _LOG.warning("prover output rejected", extra={"circuit": witness.circuit, "reason": e.message})
        return ProofErr(e, elapsed_s=elapsed)

    if vk is not None:
        try:
            verified = verify(vk, result.proof, result.public_signals)
        except ShieldError as e:
            return ProofErr(e, elapsed_s=elapsed)
    else:
        verified = True
    if not verified:
        return ProofErr(
            ProverError("generated proof does not verify", context={"circuit": witness.circuit}),
            elapsed_s=elapsed,
        )

    _LOG.info("proof generated", extra={"circuit": witness.circuit, "elapsed_s": round(elapsed, 3)})
    return ProofOk(proof=result.proof, public_signals=result.public_signals, elapsed_s=elapsed)


__all__ = ["Prover", "ProofOk", "ProofErr", "ProofResult", "prove"]
