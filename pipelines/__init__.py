"""
Pipeline Registry and Exports

Provides a registry of all available pipelines and helper functions
for running them by name.
"""

from typing import Type

from pipelines.base import BasePipeline, PipelineAlreadyRunningError
from pipelines.config import PipelineConfig
from pipelines.context import PipelineContext
from pipelines.esports_snapshot import EsportsSnapshotPipeline
from schemas.pipeline import PipelineResult


# Registry of all available pipelines
PIPELINE_REGISTRY: dict[str, Type[BasePipeline]] = {
    "esports_snapshot": EsportsSnapshotPipeline,
}


def get_pipeline(name: str) -> BasePipeline:
    """
    Get a pipeline instance by name.

    Args:
        name: Pipeline name (e.g., "esports_snapshot")

    Returns:
        Instantiated pipeline

    Raises:
        KeyError: If pipeline name not found
    """
    if name not in PIPELINE_REGISTRY:
        available = ", ".join(PIPELINE_REGISTRY.keys())
        raise KeyError(f"Unknown pipeline '{name}'. Available: {available}")

    return PIPELINE_REGISTRY[name]()


async def run_pipeline(name: str) -> PipelineResult:
    """
    Run a pipeline by name.

    Raises:
        KeyError: If pipeline name not found
        PipelineAlreadyRunningError: If the pipeline is already running
    """
    pipeline = get_pipeline(name)
    return await pipeline.run()


def list_pipelines() -> list[dict]:
    """
    List all available pipelines with their configurations.

    Returns:
        List of pipeline info dicts
    """
    return [cls.get_info() for cls in PIPELINE_REGISTRY.values()]


__all__ = [
    # Base classes
    "BasePipeline",
    "PipelineAlreadyRunningError",
    "PipelineConfig",
    "PipelineContext",
    # Pipelines
    "EsportsSnapshotPipeline",
    # Registry functions
    "PIPELINE_REGISTRY",
    "get_pipeline",
    "run_pipeline",
    "list_pipelines",
]
