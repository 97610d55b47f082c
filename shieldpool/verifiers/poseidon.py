"""
shieldpool.verifiers.poseidon
=============================

Poseidon two-input hash over the BN254 scalar field (Fr), bit-compatible with
circomlib's `Poseidon(2)` template and the on-chain two-input hash.

Parameters
----------
    t = 3 (2 inputs + 1 capacity word), R_F = 8, R_P = 57, alpha = 5

Round constants and the MDS matrix are *derived*, not shipped: they come out of
the Grain LFSR exactly as in the Poseidon reference script
(`generate_parameters_grain.sage`, field=1, sbox=0, n=254, t=3, R_F=8, R_P=57):

- round constants: (R_F + R_P) * t values of 254 bits, MSB first, rejection
  sampled until < r;
- MDS: a Cauchy matrix M[i][j] = 1 / (x_i + y_j), with x/y taken from the
  next 2t 254-bit draws reduced mod r.

Derivation runs once per process (cached).

Public API
----------
- hash2(a, b) -> int
- PoseidonParams(t, R_F, R_P, alpha, mds, rc), get_params()
- poseidon_permute(state, params)

There is deliberately no variable-width hash here. Wider hashes (4-input
commitments, packed public-data hashes) are nested `hash2` calls built by
callers; changing that composition breaks on-chain verification.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, List, Sequence, Tuple

from .field import IntLike, R, inv_mod, parse_fr

_MOD = R

T = 3
R_F = 8
R_P = 57
ALPHA = 5
FIELD_BITS = 254


# ---------------------------
# Parameters
# ---------------------------


@dataclass(frozen=True)
class PoseidonParams:
    t: int  # state width
    R_F: int  # number of full rounds
    R_P: int  # number of partial rounds
    alpha: int  # S-box exponent
    mds: Tuple[Tuple[int, ...], ...]  # t x t
    rc: Tuple[int, ...]  # flat, (R_F + R_P) * t; round r uses rc[r*t : r*t + t]

    def validate(self) -> None:
        if self.t < 2:
            raise ValueError("t must be >= 2")
        if self.R_F % 2 != 0:
            raise ValueError("R_F must be even (split half-before/after partial rounds)")
        if self.alpha < 3 or self.alpha % 2 == 0:
            raise ValueError("alpha must be an odd integer >= 3")
        if len(self.mds) != self.t or any(len(row) != self.t for row in self.mds):
            raise ValueError("mds must be t x t")
        if len(self.rc) != (self.R_F + self.R_P) * self.t:
            raise ValueError(f"rc must hold (R_F+R_P)*t = {(self.R_F + self.R_P) * self.t} values")
        if any(not (0 <= v < _MOD) for v in self.rc):
            raise ValueError("round constants must be canonical Fr elements")


def _grain_bits(field: int, sbox: int, n: int, t: int, r_f: int, r_p: int) -> Callable[[int], int]:
    """
    Grain LFSR in self-shrinking mode, seeded with the parameter description.
    Returns a `draw(k)` function yielding k-bit integers, MSB first.
    """
    state: List[int] = []
    for value, width in ((field, 2), (sbox, 4), (n, 12), (t, 12), (r_f, 10), (r_p, 10)):
        state.extend((value >> (width - 1 - i)) & 1 for i in range(width))
    state.extend([1] * 30)
    assert len(state) == 80

    pos = 0  # ring buffer head; state[pos] is the oldest bit

    def update() -> int:
        nonlocal pos
        s = state
        bit = (
            s[(pos + 62) % 80] ^ s[(pos + 51) % 80] ^ s[(pos + 38) % 80]
            ^ s[(pos + 23) % 80] ^ s[(pos + 13) % 80] ^ s[pos]
        )
        s[pos] = bit
        pos = (pos + 1) % 80
        return bit

    for _ in range(160):
        update()

    def next_bit() -> int:
        while True:
            first = update()
            second = update()
            if first == 1:
                return second

    def draw(k: int) -> int:
        v = 0
        for _ in range(k):
            v = (v << 1) | next_bit()
        return v

    return draw


def derive_params(t: int = T, r_f: int = R_F, r_p: int = R_P) -> PoseidonParams:
    """Derive circomlib-compatible constants for the given shape (alpha = 5)."""
    draw = _grain_bits(1, 0, FIELD_BITS, t, r_f, r_p)

    rc: List[int] = []
    for _ in range((r_f + r_p) * t):
        v = draw(FIELD_BITS)
        while v >= _MOD:
            v = draw(FIELD_BITS)
        rc.append(v)

    raw = [draw(FIELD_BITS) % _MOD for _ in range(2 * t)]
    xs, ys = raw[:t], raw[t:]
    mds = tuple(tuple(inv_mod((xs[i] + ys[j]) % _MOD, _MOD) for j in range(t)) for i in range(t))

    params = PoseidonParams(t=t, R_F=r_f, R_P=r_p, alpha=ALPHA, mds=mds, rc=tuple(rc))
    params.validate()
    return params


@lru_cache(maxsize=1)
def get_params() -> PoseidonParams:
    """The t=3 parameter set used by `hash2` (derived once)."""
    return derive_params()


# ---------------------------
# Permutation
# ---------------------------


def _sbox(x: int) -> int:
    x2 = x * x % _MOD
    return x2 * x2 % _MOD * x % _MOD


def poseidon_permute(state: Sequence[int], params: PoseidonParams) -> List[int]:
    """
    Poseidon permutation.

    Round schedule (each round: add constants, S-box, MDS):
      - first R_F/2 full rounds (S-box on all t elements)
      - R_P partial rounds (S-box on the first element only)
      - last  R_F/2 full rounds
    """
    t = params.t
    if len(state) != t:
        raise ValueError(f"state length {len(state)} != t={t}")

    mds, rc = params.mds, params.rc
    half = params.R_F // 2
    rounds = params.R_F + params.R_P
    x = [int(v) for v in state]

    for r in range(rounds):
        base = r * t
        x = [(x[i] + rc[base + i]) % _MOD for i in range(t)]
        if r < half or r >= half + params.R_P:
            x = [_sbox(v) for v in x]
        else:
            x[0] = _sbox(x[0])
        x = [sum(mds[i][j] * x[j] for j in range(t)) % _MOD for i in range(t)]

    return x


# ---------------------------
# Hash interface
# ---------------------------


def hash2(a: IntLike, b: IntLike) -> int:
    """
    Two-input Poseidon: permute [0, a, b] and return state[0].

    Inputs must be canonical Fr elements (ints, decimal strings, Fr); values
    >= r raise `InvalidFieldElement` rather than being reduced.
    """
    out = poseidon_permute([0, parse_fr(a), parse_fr(b)], get_params())
    return out[0]


__all__ = [
    "T",
    "R_F",
    "R_P",
    "ALPHA",
    "PoseidonParams",
    "derive_params",
    "get_params",
    "poseidon_permute",
    "hash2",
]
