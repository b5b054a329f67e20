"""
Base Pipeline

Abstract base class for all data pipelines.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import ClassVar

from db.base import db
from db.models.pipeline_run import PipelineRun
from pipelines.config import PipelineConfig
from pipelines.context import PipelineContext
from schemas.pipeline import PipelineResult


class PipelineAlreadyRunningError(Exception):
    """Raised when a run starts while another run of the same pipeline is live."""

    def __init__(self, pipeline_name: str):
        super().__init__(f"{pipeline_name} is already running")
        self.pipeline_name = pipeline_name


class BasePipeline(ABC):
    """
    Abstract base class for all data pipelines.

    Provides:
    - Automatic run tracking via PipelineContext
    - Structured logging with correlation IDs
    - Standardized error handling
    - Single-writer guard for pipelines that don't allow concurrent runs
    - Thread-based execution to avoid blocking the async event loop

    Subclasses must implement:
    - config: PipelineConfig class attribute
    - execute(): The actual pipeline logic (synchronous)

    Example:
        class EsportsSnapshotPipeline(BasePipeline):
            config = PipelineConfig(
                name="esports_snapshot",
                display_name="Esports Snapshot",
                description="Schedules, drafts and stats into one snapshot",
                target="snapshot",
            )

            def execute(self, ctx: PipelineContext) -> None:
                matches = self.sources.schedule.get_recent_matches(...)
                ctx.increment_records(len(matches))
    """

    # Class-level configuration - must be overridden by subclasses
    config: ClassVar[PipelineConfig]

    def __init__(self):
        """Initialize pipeline and validate configuration."""
        self._validate_config()

    def _validate_config(self) -> None:
        """Validate that config is properly defined."""
        if not hasattr(self.__class__, "config") or self.__class__.config is None:
            raise ValueError(
                f"{self.__class__.__name__} must define a 'config' class attribute"
            )

    @abstractmethod
    def execute(self, ctx: PipelineContext) -> None:
        """
        Execute the pipeline logic.

        This is the main method subclasses implement. It runs in a separate
        thread to avoid blocking the async event loop. All synchronous I/O
        (HTTP requests, database calls) is safe to call directly here.

        Args:
            ctx: Pipeline context with logging, tracking, and timing

        Raises:
            Any exception will be caught and converted to a failed result
        """
        pass

    def check_not_running(self) -> None:
        """
        Enforce the single-writer rule.

        Raises:
            PipelineAlreadyRunningError: If a non-stale run is in progress
        """
        if self.config.allow_concurrent:
            return
        if PipelineRun.is_running(
            self.config.name, stale_after_seconds=self.config.timeout_seconds
        ):
            raise PipelineAlreadyRunningError(self.config.name)

    def run_sync(self) -> PipelineResult:
        """
        Run the full pipeline lifecycle synchronously.

        Called via asyncio.to_thread() from run() so that all blocking I/O
        (Peewee DB calls, HTTP requests) executes in a thread pool worker
        instead of on the async event loop. Also the entry point for the
        command-line script.

        Opens a DB connection if the calling thread has none (Peewee uses
        thread-local connections) and closes only what it opened.

        Raises:
            PipelineAlreadyRunningError: If another run is in progress
        """
        opened = False
        if db.is_closed():
            db.connect()
            opened = True

        try:
            self.check_not_running()

            ctx = PipelineContext(self.config.name)
            ctx.start_tracking()

            try:
                self.before_execute(ctx)
                self.execute(ctx)
                self.after_execute(ctx)
                return ctx.mark_success()
            except Exception as e:
                return ctx.mark_failed(e)
        finally:
            if opened and not db.is_closed():
                db.close()

    async def run(self) -> PipelineResult:
        """
        Run the pipeline with full lifecycle management.

        This is the public entry point. The entire pipeline execution
        (including DB and HTTP I/O) runs in a thread pool worker via
        asyncio.to_thread() to avoid blocking the event loop.

        Returns:
            PipelineResult with status, timing, and records processed
        """
        return await asyncio.to_thread(self.run_sync)

    def before_execute(self, ctx: PipelineContext) -> None:
        """
        Hook called before execute().

        Override for validation or setup tasks.
        """
        pass

    def after_execute(self, ctx: PipelineContext) -> None:
        """
        Hook called after successful execute().

        Override for cleanup tasks.
        """
        pass

    @classmethod
    def get_info(cls) -> dict:
        """Get pipeline information for listing."""
        latest = PipelineRun.last_success(cls.config.name)
        return {
            "name": cls.config.name,
            "display_name": cls.config.display_name,
            "description": cls.config.description,
            "target": cls.config.target,
            "last_success": latest.completed_at.isoformat() if latest else None,
        }

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.config.name})>"
