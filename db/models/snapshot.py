"""
Snapshot Table

Each row is one persisted pipeline snapshot, stored as its JSON layout.
Rows are append-only; readers take the newest.
"""

import json
from datetime import datetime

from peewee import AutoField, DateTimeField, IntegerField, TextField

from db.base import BaseModel
from schemas.esports import Snapshot


class SnapshotRecord(BaseModel):
    """
    Persisted snapshot.

    Attributes:
        id: Insertion order
        generated_at: Snapshot generation time (UTC, naive)
        game_count: Number of games in the snapshot
        stat_count: Number of champion stats in the snapshot
        payload: Snapshot JSON (camelCase layout)
    """

    id = AutoField()
    generated_at = DateTimeField(index=True)
    game_count = IntegerField(default=0)
    stat_count = IntegerField(default=0)
    payload = TextField()

    class Meta:
        table_name = "snapshots"

    def __repr__(self) -> str:
        return f"<SnapshotRecord(id={self.id}, generated_at={self.generated_at}, games={self.game_count})>"

    @classmethod
    def store(cls, snapshot: Snapshot) -> "SnapshotRecord":
        return cls.create(
            generated_at=snapshot.generated_at.replace(tzinfo=None),
            game_count=len(snapshot.games),
            stat_count=len(snapshot.champion_stats),
            payload=json.dumps(snapshot.to_wire()),
        )

    @classmethod
    def latest(cls) -> "SnapshotRecord | None":
        return cls.select().order_by(cls.id.desc()).first()

    def to_snapshot(self) -> Snapshot:
        return Snapshot.model_validate(json.loads(self.payload))

    @classmethod
    def prune(cls, keep: int) -> int:
        """Delete all but the newest ``keep`` rows. Returns rows deleted."""
        keep_ids = [r.id for r in cls.select(cls.id).order_by(cls.id.desc()).limit(keep)]
        if not keep_ids:
            return 0
        return cls.delete().where(cls.id.not_in(keep_ids)).execute()
