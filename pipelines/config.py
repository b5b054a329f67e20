"""
Pipeline Configuration

Immutable configuration dataclass for pipeline metadata.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PipelineConfig:
    """
    Immutable configuration for a pipeline.

    Attributes:
        name: Internal name used for tracking (e.g., "esports_snapshot")
        display_name: Human-readable name (e.g., "Esports Snapshot")
        description: What this pipeline does
        target: Where this pipeline writes (e.g., "snapshot")
        max_retries: Override retry count (None uses settings default)
        timeout_seconds: Maximum time for pipeline execution; a 'running'
            record older than this is treated as a crashed run
        allow_concurrent: Whether multiple instances can run simultaneously
    """

    name: str
    display_name: str
    description: str
    target: str

    max_retries: Optional[int] = None

    # Execution constraints
    timeout_seconds: int = 3600
    allow_concurrent: bool = False

    def __post_init__(self):
        """Validate configuration."""
        if not self.name:
            raise ValueError("Pipeline name is required")
        if not self.target:
            raise ValueError("Pipeline target is required")
        if self.timeout_seconds <= 0:
            raise ValueError("Pipeline timeout_seconds must be positive")
