# Import all models to ensure they are registered with the database
from .pipeline_run import PipelineRun
from .snapshot import SnapshotRecord

__all__ = ["PipelineRun", "SnapshotRecord"]
