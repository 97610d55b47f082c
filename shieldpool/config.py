"""
shieldpool configuration.

This module defines the configuration surface for the shielded-pool core:
- Merkle mirror shape (depth, zero leaf)
- Prover boundary timeout
- Ledger-of-record sync paging
- Note store location (SQLite)
- Verifier strictness knobs
- Logging level/format

All fields have sensible defaults and can be overridden via environment
variables. Nothing here imports heavy dependencies.

Environment variables (all optional):

  # Merkle mirror
  SHIELDPOOL_TREE_DEPTH=20              # 1..32
  SHIELDPOOL_ZERO_LEAF=0                # decimal or 0x-hex, must be < r

  # Prover boundary
  SHIELDPOOL_PROVER_TIMEOUT_S=120       # seconds, float accepted

  # Sync
  SHIELDPOOL_SYNC_PAGE_SIZE=500         # commitments per ledger request

  # Storage
  SHIELDPOOL_NOTES_DB=./data/notes.sqlite3

  # Verifier
  SHIELDPOOL_CHECK_G2_SUBGROUP=1        # reject proof.B outside the r-torsion

  # Logging
  SHIELDPOOL_LOG_LEVEL=INFO
  SHIELDPOOL_LOG_FORMAT=text            # text | json
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

# Scalar field modulus; duplicated from verifiers.field to keep this module import-light.
_R = 21888242871839275222246405745257275088548364400416034343698204186575808495617

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")


# ------------------------------- helpers ------------------------------------


def _getenv(key: str, default: str | None = None) -> str | None:
    v = os.environ.get(key)
    return v if v is not None and v.strip() != "" else default


def _getenv_int(key: str, default: int) -> int:
    v = _getenv(key)
    if v is None:
        return default
    base = 16 if v.strip().lower().startswith("0x") else 10
    try:
        return int(v.strip(), base)
    except ValueError as e:
        raise ValueError(f"Invalid int for {key}: {v!r}") from e


def _getenv_float(key: str, default: float) -> float:
    v = _getenv(key)
    if v is None:
        return default
    try:
        return float(v)
    except ValueError as e:
        raise ValueError(f"Invalid float for {key}: {v!r}") from e


def _getenv_bool(key: str, default: bool) -> bool:
    v = _getenv(key)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "on"}


# ------------------------------- config -------------------------------------


@dataclass(frozen=True)
class TreeConfig:
    """
    Shape of the local Merkle mirror.

    - depth: tree height; capacity is 2**depth leaves
    - zero_leaf: value of an empty leaf (must match the circuit)
    """
    depth: int = 20
    zero_leaf: int = 0

    def validate(self) -> None:
        if not (1 <= self.depth <= 32):
            raise ValueError("depth must be in 1..32")
        if not (0 <= self.zero_leaf < _R):
            raise ValueError("zero_leaf must be a scalar field element")


@dataclass(frozen=True)
class ProverConfig:
    timeout_s: float = 120.0

    def validate(self) -> None:
        if self.timeout_s <= 0:
            raise ValueError("timeout_s must be > 0")


@dataclass(frozen=True)
class SyncConfig:
    page_size: int = 500

    def validate(self) -> None:
        if self.page_size <= 0:
            raise ValueError("page_size must be > 0")


@dataclass(frozen=True)
class StoreConfig:
    sqlite_path: Path = Path("./data/notes.sqlite3")

    def validate(self) -> None:
        if not str(self.sqlite_path):
            raise ValueError("sqlite_path must not be empty")


@dataclass(frozen=True)
class VerifierConfig:
    check_g2_subgroup: bool = True

    def validate(self) -> None:
        return None


@dataclass(frozen=True)
class LogConfig:
    level: str = "INFO"
    json: bool = False

    def validate(self) -> None:
        if self.level.upper() not in _LOG_LEVELS:
            raise ValueError(f"unknown log level {self.level!r}")


@dataclass(frozen=True)
class Config:
    tree: TreeConfig = field(default_factory=TreeConfig)
    prover: ProverConfig = field(default_factory=ProverConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    verifier: VerifierConfig = field(default_factory=VerifierConfig)
    log: LogConfig = field(default_factory=LogConfig)

    def validate(self) -> None:
        self.tree.validate()
        self.prover.validate()
        self.sync.validate()
        self.store.validate()
        self.verifier.validate()
        self.log.validate()

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["store"]["sqlite_path"] = str(self.store.sqlite_path)
        return d

    @classmethod
    def from_env(cls) -> "Config":
        fmt = (_getenv("SHIELDPOOL_LOG_FORMAT", "text") or "text").strip().lower()
        if fmt not in ("text", "json"):
            raise ValueError(f"SHIELDPOOL_LOG_FORMAT must be text or json, got {fmt!r}")
        cfg = cls(
            tree=TreeConfig(
                depth=_getenv_int("SHIELDPOOL_TREE_DEPTH", 20),
                zero_leaf=_getenv_int("SHIELDPOOL_ZERO_LEAF", 0),
            ),
            prover=ProverConfig(
                timeout_s=_getenv_float("SHIELDPOOL_PROVER_TIMEOUT_S", 120.0),
            ),
            sync=SyncConfig(
                page_size=_getenv_int("SHIELDPOOL_SYNC_PAGE_SIZE", 500),
            ),
            store=StoreConfig(
                sqlite_path=Path(_getenv("SHIELDPOOL_NOTES_DB", "./data/notes.sqlite3") or ""),
            ),
            verifier=VerifierConfig(
                check_g2_subgroup=_getenv_bool("SHIELDPOOL_CHECK_G2_SUBGROUP", True),
            ),
            log=LogConfig(
                level=(_getenv("SHIELDPOOL_LOG_LEVEL", "INFO") or "INFO").upper(),
                json=fmt == "json",
            ),
        )
        cfg.validate()
        return cfg


@lru_cache(maxsize=1)
def load_config() -> Config:
    """Process-wide config, read from the environment once."""
    return Config.from_env()


def reload_config() -> Config:
    """Drop the cached config and re-read the environment (tests)."""
    load_config.cache_clear()
    return load_config()


__all__ = [
    "TreeConfig",
    "ProverConfig",
    "SyncConfig",
    "StoreConfig",
    "VerifierConfig",
    "LogConfig",
    "Config",
    "load_config",
    "reload_config",
]
