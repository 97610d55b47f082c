"""
shieldpool errors

Structured exceptions shared by every shieldpool component. Each error carries
a stable integer code (see `ErrorCode`) so callers (wallets, RPC layers, tests)
can classify failures without string-matching.

Design goals
------------
- Stable, integer error codes.
- Human-friendly messages with optional small context dicts.
- Play nicely with `raise ... from cause` and `__cause__`.

Classification
--------------
Parsing and structural failures (out-of-field values, malformed proof/VK JSON,
wrong public-input count, bad tree depth, full tree, unknown leaf index) are
fatal and raised immediately.

A proof that simply does not verify is *not* an error: verifiers return False.
Coin-selection shortfall is reported through the returned total; only the
opt-in `require_spendable` helper raises `InsufficientBalance`.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Dict, Mapping, Optional


class ErrorCode(IntEnum):
    """Stable error codes for shieldpool exceptions."""
    GENERIC                = 3000
    INVALID_FIELD_ELEMENT  = 3001
    INVALID_DEPTH          = 3002
    TREE_FULL              = 3003
    INVALID_LEAF_INDEX     = 3004
    MALFORMED_PROOF        = 3005
    MALFORMED_VK           = 3006
    PUBLIC_INPUT_COUNT     = 3007
    DUPLICATE_COMMITMENT   = 3008
    INSUFFICIENT_BALANCE   = 3009
    STALE_MERKLE_ROOT      = 3010
    NULLIFIER_ALREADY_USED = 3011
    MALFORMED_WITNESS      = 3012
    PROVER                 = 3013
    PROVER_TIMEOUT         = 3014
    INVALID_NOTE           = 3015
    STORAGE                = 3016


class ShieldError(Exception):
    """
    Base class for shieldpool exceptions.

    Parameters
    ----------
    message : str
        Human-readable description.
    code : ErrorCode | int
        Stable code for programmatic handling.
    context : Mapping[str, Any] | None
        Optional structured fields (small dict).
    cause : BaseException | None
        Optional underlying exception; also set via `raise ... from ...`.
    """

    default_code: ErrorCode = ErrorCode.GENERIC

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | int | None = None,
        context: Optional[Mapping[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.code: int = int(code if code is not None else self.default_code)
        self.context: Dict[str, Any] = dict(context) if context else {}
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        tail = f" context={self.context}" if self.context else ""
        return f"[{self.code}] {self.message}{tail}"

    def to_dict(self) -> Dict[str, Any]:
        """Structured view suitable for logs or JSON error payloads."""
        out: Dict[str, Any] = {
            "code": self.code,
            "kind": type(self).__name__,
            "message": self.message,
        }
        if self.context:
            out["context"] = self.context
        return out


# --- field / curve ------------------------------------------------------------


class InvalidFieldElement(ShieldError):
    """A value is not a canonical element of the applicable field."""

    default_code = ErrorCode.INVALID_FIELD_ELEMENT

    @classmethod
    def out_of_range(cls, value: int, modulus: int, *, field: str) -> "InvalidFieldElement":
        return cls(
            f"value is not below the {field} modulus",
            context={"field": field, "value": str(value), "modulus": str(modulus)},
        )


# --- merkle tree --------------------------------------------------------------


class InvalidDepth(ShieldError):
    default_code = ErrorCode.INVALID_DEPTH


class TreeFull(ShieldError):
    default_code = ErrorCode.TREE_FULL


class InvalidLeafIndex(ShieldError):
    default_code = ErrorCode.INVALID_LEAF_INDEX


# --- verifier -----------------------------------------------------------------


class MalformedProof(ShieldError):
    default_code = ErrorCode.MALFORMED_PROOF


class MalformedVerificationKey(ShieldError):
    default_code = ErrorCode.MALFORMED_VK


class PublicInputCountMismatch(ShieldError):
    """`len(public_inputs) != len(vk.ic) - 1`; raised before any pairing work."""

    default_code = ErrorCode.PUBLIC_INPUT_COUNT

    @classmethod
    def expected(cls, expected: int, actual: int) -> "PublicInputCountMismatch":
        return cls(
            f"expected {expected} public inputs, got {actual}",
            context={"expected": expected, "actual": actual},
        )


# --- ledger / notes -----------------------------------------------------------


class DuplicateCommitment(ShieldError):
    """Defined for classification; the note ledger treats duplicates as a no-op."""

    default_code = ErrorCode.DUPLICATE_COMMITMENT


class InsufficientBalance(ShieldError):
    default_code = ErrorCode.INSUFFICIENT_BALANCE


class InvalidNote(ShieldError):
    default_code = ErrorCode.INVALID_NOTE


class StorageError(ShieldError):
    default_code = ErrorCode.STORAGE


# --- ledger-of-record consistency ---------------------------------------------


class StaleMerkleRoot(ShieldError):
    """Local tree root differs from the authoritative remote root."""

    default_code = ErrorCode.STALE_MERKLE_ROOT


class NullifierAlreadyUsed(ShieldError):
    default_code = ErrorCode.NULLIFIER_ALREADY_USED


# --- witness / prover boundary ------------------------------------------------


class MalformedWitness(ShieldError):
    default_code = ErrorCode.MALFORMED_WITNESS


class ProverError(ShieldError):
    default_code = ErrorCode.PROVER


class ProverTimeout(ProverError):
    default_code = ErrorCode.PROVER_TIMEOUT


__all__ = [
    "ErrorCode",
    "ShieldError",
    "InvalidFieldElement",
    "InvalidDepth",
    "TreeFull",
    "InvalidLeafIndex",
    "MalformedProof",
    "MalformedVerificationKey",
    "PublicInputCountMismatch",
    "DuplicateCommitment",
    "InsufficientBalance",
    "InvalidNote",
    "StorageError",
    "StaleMerkleRoot",
    "NullifierAlreadyUsed",
    "MalformedWitness",
    "ProverError",
    "ProverTimeout",
]
