"""
Snapshot Stores

Explicit get/put/flush interface for the pipeline's output, passed into
the pipeline and the read side instead of living in module state.
``put`` stages a snapshot; ``flush`` persists the staged snapshot.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from core.logging import get_logger
from core.settings import Settings
from schemas.esports import Snapshot


class SnapshotWriteError(Exception):
    """Raised when a snapshot cannot be persisted. Aborts the pipeline run."""

    pass


class SnapshotStore(ABC):
    """Base store: keeps the staged snapshot and delegates persistence."""

    def __init__(self, name: str):
        self.name = name
        self._staged: Optional[Snapshot] = None
        self.log = get_logger("snapshot_store").bind(store=name)

    @abstractmethod
    def _read(self) -> Optional[Snapshot]:
        """Load the last persisted snapshot, or None."""

    @abstractmethod
    def _write(self, snapshot: Snapshot) -> None:
        """Persist one snapshot."""

    def get(self) -> Optional[Snapshot]:
        """The staged snapshot if any, else the last persisted one."""
        if self._staged is not None:
            return self._staged
        return self._read()

    def put(self, snapshot: Snapshot) -> None:
        self._staged = snapshot

    def flush(self) -> None:
        """
        Persist the staged snapshot.

        Raises:
            SnapshotWriteError: If the backend write fails
        """
        if self._staged is None:
            return
        snapshot = self._staged
        try:
            self._write(snapshot)
        except SnapshotWriteError:
            raise
        except Exception as e:
            raise SnapshotWriteError(f"{self.name}: {type(e).__name__}: {e}") from e
        self._staged = None
        self.log.info(
            "snapshot_flushed",
            games=len(snapshot.games),
            player_records=len(snapshot.player_records),
            champion_stats=len(snapshot.champion_stats),
        )

    def save(self, snapshot: Snapshot) -> None:
        """put + flush."""
        self.put(snapshot)
        self.flush()


class FileSnapshotStore(SnapshotStore):
    """Snapshot as a single JSON file, replaced atomically on every flush."""

    def __init__(self, path: str | Path):
        super().__init__("file")
        self.path = Path(path)

    def _read(self) -> Optional[Snapshot]:
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return Snapshot.model_validate(json.load(f))
        except (ValueError, ValidationError) as e:
            self.log.warning("snapshot_unreadable", path=str(self.path), error=str(e))
            return None

    def _write(self, snapshot: Snapshot) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot.to_wire(), f)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


class DatabaseSnapshotStore(SnapshotStore):
    """Snapshot rows in the ``snapshots`` table; the newest row wins."""

    def __init__(self, keep: int = 10):
        super().__init__("database")
        self.keep = keep

    def _read(self) -> Optional[Snapshot]:
        from db.models.snapshot import SnapshotRecord

        record = SnapshotRecord.latest()
        if record is None:
            return None
        try:
            return record.to_snapshot()
        except (ValueError, ValidationError) as e:
            self.log.warning("snapshot_unreadable", snapshot_id=record.id, error=str(e))
            return None

    def _write(self, snapshot: Snapshot) -> None:
        from db.models.snapshot import SnapshotRecord

        SnapshotRecord.store(snapshot)
        SnapshotRecord.prune(self.keep)


def get_snapshot_store(config: Settings) -> SnapshotStore:
    """The store the pipeline writes to and the cache read path reads from."""
    if config.snapshot_backend == "database":
        return DatabaseSnapshotStore()
    return FileSnapshotStore(config.snapshot_path)


def get_seed_store(config: Settings) -> Optional[SnapshotStore]:
    """Bundled seed snapshot (read without a freshness check), if configured."""
    if not config.seed_path:
        return None
    return FileSnapshotStore(config.seed_path)
