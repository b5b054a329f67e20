"""
Pipeline Context

Per-run state for one pipeline execution: the audit row, a logger bound
to the run id, the record counter and how long each stage took.
"""

from __future__ import annotations

import time
import traceback
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator, Optional

from core.logging import get_logger
from db.models.pipeline_run import FAILED, SUCCESS, PipelineRun
from pipelines.transformers.dates import utc_now
from schemas.common import ApiStatus
from schemas.pipeline import PipelineResult


@dataclass
class PipelineContext:
    """
    State of one pipeline run.

    Usage:
        ctx = PipelineContext("esports_snapshot")
        ctx.start_tracking()
        try:
            with ctx.stage("schedule"):
                matches = fetch_matches()
            ctx.increment_records(len(matches))
            return ctx.mark_success()
        except Exception as e:
            return ctx.mark_failed(e)
    """

    pipeline_name: str
    run_id: uuid.UUID = field(default_factory=uuid.uuid4)
    started_at: datetime = field(default_factory=utc_now)
    records_processed: int = 0
    # stage name -> seconds, in the order the stages ran
    stage_seconds: dict[str, float] = field(default_factory=dict)

    _db_run: Optional[PipelineRun] = field(default=None, repr=False)
    _log: Any = field(default=None, repr=False)

    def __post_init__(self):
        self._log = get_logger("pipeline").bind(
            pipeline=self.pipeline_name,
            run_id=str(self.run_id),
        )

    @property
    def log(self):
        """Logger bound to the pipeline name and run id."""
        return self._log

    def start_tracking(self) -> None:
        """
        Insert the 'running' audit row.

        The row is what the single-writer guard looks for, and its id
        becomes the run id in every log line from here on.
        """
        self._db_run = PipelineRun.start_run(self.pipeline_name)
        self.run_id = self._db_run.id
        self._log = self._log.bind(run_id=str(self.run_id))
        self._log.info("pipeline_started")

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        """Time one stage of the run; recorded even if the stage raises."""
        started = time.perf_counter()
        try:
            yield
        finally:
            self.stage_seconds[name] = round(time.perf_counter() - started, 3)
            self._log.info("stage_finished", stage=name, duration_seconds=self.stage_seconds[name])

    def increment_records(self, count: int = 1) -> None:
        self.records_processed += count

    def _result(
        self, status: ApiStatus, message: str, error: Optional[str] = None
    ) -> PipelineResult:
        completed_at = utc_now()
        return PipelineResult(
            status=status,
            message=message,
            started_at=self.started_at.isoformat(),
            completed_at=completed_at.isoformat(),
            duration_seconds=(completed_at - self.started_at).total_seconds(),
            records_processed=self.records_processed,
            stages=dict(self.stage_seconds),
            error=error,
        )

    def mark_success(self, message: Optional[str] = None) -> PipelineResult:
        """Close the audit row as 'success' and build the result."""
        if self._db_run:
            self._db_run.finish(SUCCESS, records_processed=self.records_processed)

        result = self._result(
            ApiStatus.SUCCESS, message or f"{self.pipeline_name} completed successfully"
        )
        self._log.info(
            "pipeline_completed",
            records_processed=self.records_processed,
            duration_seconds=result.duration_seconds,
            stages=self.stage_seconds,
        )
        return result

    def mark_failed(self, error: Exception) -> PipelineResult:
        """
        Close the audit row as 'failed' and build the error result.

        The traceback goes to the log only; the result and the audit row
        carry the exception type and message.
        """
        error_msg = f"{type(error).__name__}: {error}"

        if self._db_run:
            self._db_run.finish(FAILED, records_processed=self.records_processed, error_message=error_msg)

        self._log.error(
            "pipeline_failed",
            error=error_msg,
            stages=self.stage_seconds,
            traceback=traceback.format_exc(),
        )
        return self._result(ApiStatus.ERROR, f"{self.pipeline_name} failed", error=error_msg)
