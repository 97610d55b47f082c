"""
Note storage for the shielded ledger.

The ledger is storage-agnostic: it persists only through the `NoteStorage`
protocol, keyed by the owner's shielded key. Two implementations ship here:

- `MemoryNoteStorage`  : process-local dict (tests, ephemeral wallets)
- `SQLiteNoteStorage`  : durable SQLite file (WAL), one row per note

Ordering contract: `get(owner)` returns notes in the order they were `put`,
which is insertion order. Coin selection relies on it for deterministic
tie-breaks.

Schema (SQLite)
---------------
TABLE notes(
  owner      TEXT NOT NULL,
  seq        INTEGER NOT NULL,           -- position within the owner's list
  commitment TEXT NOT NULL,
  asset_id   TEXT NOT NULL,
  spent      INTEGER NOT NULL,
  body       BLOB NOT NULL,              -- msgspec JSON of the Note
  PRIMARY KEY(owner, commitment)
);
INDEX (owner, seq)
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, Union

import msgspec

from ..errors import StorageError
from .types import Note

_LOG = logging.getLogger("shieldpool.notes.storage")


# ---------------------------
# Interface
# ---------------------------


class NoteStorage(Protocol):
    def get(self, owner: str) -> List[Note]: ...
    def put(self, owner: str, notes: Sequence[Note]) -> None: ...


# ---------------------------
# In-memory implementation
# ---------------------------


class MemoryNoteStorage:
    """Dict-backed storage; lists are copied on the way in and out."""

    __slots__ = ("_data", "_lock")

    def __init__(self) -> None:
        self._data: Dict[str, List[Note]] = {}
        self._lock = threading.Lock()

    def get(self, owner: str) -> List[Note]:
        with self._lock:
            return list(self._data.get(owner, ()))

    def put(self, owner: str, notes: Sequence[Note]) -> None:
        with self._lock:
            self._data[owner] = list(notes)

    def owners(self) -> List[str]:
        with self._lock:
            return sorted(self._data)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(v) for v in self._data.values())


# ---------------------------
# SQLite implementation
# ---------------------------


_ENCODER = msgspec.json.Encoder()
_DECODER = msgspec.json.Decoder(Note)


class SQLiteNoteStorage:
    """
    SQLite-backed implementation.

    Parameters
    ----------
    path : str | Path
        Database file path. Use ':memory:' for in-memory (tests). Parent
        directories are created.
    pragmas : Sequence[Tuple[str, Any]]
        Extra PRAGMAs. WAL and sensible defaults are applied automatically.
    """

    def __init__(
        self, path: Union[str, Path], pragmas: Optional[Sequence[Tuple[str, Any]]] = None
    ) -> None:
        self.path = str(path)
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(
                self.path,
                isolation_level=None,  # autocommit; we manage BEGIN IMMEDIATE
                check_same_thread=False,
            )
        except sqlite3.Error as e:
            raise StorageError(f"cannot open note store: {e}", context={"path": self.path}, cause=e) from e
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._apply_pragmas(pragmas)
        self._migrate()

    def _apply_pragmas(self, pragmas: Optional[Sequence[Tuple[str, Any]]]) -> None:
        cur = self._conn.cursor()
        defaults: Sequence[Tuple[str, Any]] = (
            ("journal_mode", "WAL"),
            ("synchronous", "NORMAL"),
            ("temp_store", "MEMORY"),
        )
        for name, val in (*defaults, *(pragmas or ())):
            cur.execute(f"PRAGMA {name} = {val}")

    def _migrate(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS notes(
              owner TEXT NOT NULL,
              seq INTEGER NOT NULL,
              commitment TEXT NOT NULL,
              asset_id TEXT NOT NULL,
              spent INTEGER NOT NULL,
              body BLOB NOT NULL,
              PRIMARY KEY(owner, commitment)
            )
            """
        )
        cur.execute("CREATE INDEX IF NOT EXISTS idx_notes_owner_seq ON notes(owner, seq)")

    # ---- public API

    def get(self, owner: str) -> List[Note]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT body FROM notes WHERE owner = ? ORDER BY seq ASC", (owner,)
            ).fetchall()
        try:
            return [_DECODER.decode(row["body"]) for row in rows]
        except msgspec.DecodeError as e:
            raise StorageError("corrupt note row", context={"owner": owner}, cause=e) from e

    def put(self, owner: str, notes: Sequence[Note]) -> None:
        rows = [
            (owner, seq, n.commitment, n.asset_id, int(n.spent), _ENCODER.encode(n))
            for seq, n in enumerate(notes)
        ]
        with self._lock:
            cur = self._conn.cursor()
            cur.execute("BEGIN IMMEDIATE")
            try:
                cur.execute("DELETE FROM notes WHERE owner = ?", (owner,))
                cur.executemany(
                    "INSERT INTO notes(owner, seq, commitment, asset_id, spent, body) VALUES(?,?,?,?,?,?)",
                    rows,
                )
                cur.execute("COMMIT")
            except sqlite3.Error as e:
                cur.execute("ROLLBACK")
                raise StorageError(f"cannot persist notes: {e}", context={"owner": owner}, cause=e) from e
        _LOG.debug("notes persisted", extra={"owner": owner, "count": len(rows)})

    def owners(self) -> List[str]:
        with self._lock:
            rows = self._conn.execute("SELECT DISTINCT owner FROM notes ORDER BY owner").fetchall()
        return [r["owner"] for r in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "SQLiteNoteStorage":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


def open_default_storage() -> SQLiteNoteStorage:
    """SQLite store at the configured `SHIELDPOOL_NOTES_DB` path."""
    from ..config import load_config

    return SQLiteNoteStorage(load_config().store.sqlite_path)


__all__ = ["NoteStorage", "MemoryNoteStorage", "SQLiteNoteStorage", "open_default_storage"]
