"""
Pipeline run audit table.

One row per snapshot run. A 'running' row that is younger than the
pipeline's timeout blocks a second run from starting.
"""

import uuid
from datetime import datetime, timedelta
from typing import Optional

from peewee import CharField, DateTimeField, IntegerField, TextField, UUIDField

from db.base import BaseModel


RUNNING = "running"
SUCCESS = "success"
FAILED = "failed"


class PipelineRun(BaseModel):
    id = UUIDField(primary_key=True, default=uuid.uuid4)
    pipeline_name = CharField(max_length=50, index=True)
    started_at = DateTimeField()  # naive UTC
    completed_at = DateTimeField(null=True)
    status = CharField(max_length=20, index=True)
    records_processed = IntegerField(default=0)
    error_message = TextField(null=True)

    class Meta:
        table_name = "pipeline_runs"

    @classmethod
    def start_run(cls, pipeline_name: str) -> "PipelineRun":
        return cls.create(
            pipeline_name=pipeline_name,
            started_at=datetime.utcnow(),
            status=RUNNING,
        )

    def finish(
        self,
        status: str,
        records_processed: int = 0,
        error_message: Optional[str] = None,
    ) -> None:
        """Close the run as SUCCESS or FAILED."""
        self.status = status
        self.completed_at = datetime.utcnow()
        self.records_processed = records_processed
        self.error_message = error_message
        self.save()

    @classmethod
    def last_success(cls, pipeline_name: str) -> Optional["PipelineRun"]:
        return (
            cls.select()
            .where((cls.pipeline_name == pipeline_name) & (cls.status == SUCCESS))
            .order_by(cls.completed_at.desc())
            .first()
        )

    @classmethod
    def is_running(cls, pipeline_name: str, stale_after_seconds: Optional[int] = None) -> bool:
        """
        True if ``pipeline_name`` has a 'running' row.

        Rows started more than ``stale_after_seconds`` ago are ignored: a
        crashed run never closes its row.
        """
        query = cls.select().where(
            (cls.pipeline_name == pipeline_name) & (cls.status == RUNNING)
        )
        if stale_after_seconds is not None:
            horizon = datetime.utcnow() - timedelta(seconds=stale_after_seconds)
            query = query.where(cls.started_at >= horizon)
        return query.exists()
