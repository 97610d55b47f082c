"""
Shared fixtures for shieldpool tests.

Groth16 proofs are simulated with a known trapdoor instead of a compiled
circuit: pick alpha, beta, gamma, delta, A = a·G1, B = b·G2 and the IC
scalars, then solve for C so the verification equation holds for the chosen
public inputs. The resulting VK/proof pair is indistinguishable from a
snarkjs one as far as the verifier is concerned.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, List, Sequence

import pytest
from py_ecc.optimized_bn128 import G1, G2, multiply

from shieldpool.config import load_config, reload_config
from shieldpool.notes import MemoryNoteStorage, NoteLedger
from shieldpool.tests import FakeChain
from shieldpool.verifiers.curve import G1Point, G2Point
from shieldpool.verifiers.field import R
from shieldpool.verifiers.groth16_bn254 import Proof, VerificationKey


@dataclass(frozen=True)
class Groth16Case:
    vk: VerificationKey
    proof: Proof
    public_inputs: List[int]


def _g1(k: int) -> G1Point:
    return G1Point.from_backend(multiply(G1, k))


def _g2(k: int) -> G2Point:
    return G2Point.from_backend(multiply(G2, k))


def simulate_groth16(public_inputs: Sequence[int], seed: int = 7) -> Groth16Case:
    rng = random.Random(seed)

    def rnd() -> int:
        return rng.randrange(1, R)

    alpha, beta, gamma, delta, a, b = (rnd() for _ in range(6))
    ic = [rnd() for _ in range(len(public_inputs) + 1)]
    vk_x = (ic[0] + sum(x * s for x, s in zip(public_inputs, ic[1:]))) % R
    c = (a * b - alpha * beta - vk_x * gamma) * pow(delta, -1, R) % R

    vk = VerificationKey(
        alpha1=_g1(alpha),
        beta2=_g2(beta),
        gamma2=_g2(gamma),
        delta2=_g2(delta),
        ic=tuple(_g1(s) for s in ic),
    )
    return Groth16Case(vk=vk, proof=Proof(a=_g1(a), b=_g2(b), c=_g1(c)), public_inputs=list(public_inputs))


@pytest.fixture(scope="session")
def groth16_case() -> Groth16Case:
    return simulate_groth16([33, 12345678901234567890])


@pytest.fixture(scope="session")
def make_groth16() -> Callable[..., Groth16Case]:
    return simulate_groth16


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch: pytest.MonkeyPatch):
    """Every test starts from default config, whatever the host env says."""
    for key in (
        "SHIELDPOOL_TREE_DEPTH",
        "SHIELDPOOL_ZERO_LEAF",
        "SHIELDPOOL_PROVER_TIMEOUT_S",
        "SHIELDPOOL_SYNC_PAGE_SIZE",
        "SHIELDPOOL_NOTES_DB",
        "SHIELDPOOL_CHECK_G2_SUBGROUP",
        "SHIELDPOOL_LOG_LEVEL",
        "SHIELDPOOL_LOG_FORMAT",
    ):
        monkeypatch.delenv(key, raising=False)
    reload_config()
    yield
    load_config.cache_clear()


@pytest.fixture
def ledger() -> NoteLedger:
    return NoteLedger(MemoryNoteStorage())


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()
