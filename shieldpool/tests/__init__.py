"""
shieldpool.tests helpers

Small utilities shared by shieldpool/* tests.

Exports:
- env_flag(name, default=False) -> bool
- configure_test_logging() -> None
- FakeChain: in-memory ledger of record (commitment log + nullifier set)

Environment toggles:
- SHIELDPOOL_TEST_LOG=1   → enable DEBUG logging for shieldpool.*
"""

from __future__ import annotations

import logging
import os
from typing import Any, List, Set


def env_flag(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return str(v).strip().lower() in {"1", "true", "yes", "on"}


def configure_test_logging(level: int = logging.DEBUG) -> None:
    if env_flag("SHIELDPOOL_TEST_LOG", False):
        from shieldpool.logging import configure

        configure(json=False, level=level)


class FakeChain:
    """Ledger of record held in memory; counts range calls for paging tests."""

    def __init__(self) -> None:
        self.commitments: List[int] = []
        self.nullifiers: Set[int] = set()
        self.range_calls = 0

    def get_commitments_range(self, start: int, limit: int) -> List[int]:
        self.range_calls += 1
        return self.commitments[start:start + limit]

    def is_nullifier_used(self, nullifier_hash: Any) -> bool:
        return int(nullifier_hash) in self.nullifiers


configure_test_logging()

__all__ = [
    "env_flag",
    "configure_test_logging",
    "FakeChain",
]
