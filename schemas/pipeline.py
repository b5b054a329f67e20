from pydantic import BaseModel
from typing import Optional

from .common import ApiStatus


class PipelineResult(BaseModel):
    """Result of a single pipeline execution"""

    status: ApiStatus
    message: str
    started_at: str
    completed_at: Optional[str] = None
    duration_seconds: Optional[float] = None
    records_processed: Optional[int] = None
    # stage name -> seconds
    stages: Optional[dict[str, float]] = None
    error: Optional[str] = None

    class Config:
        use_enum_values = True


class PipelineResponse(BaseModel):
    """Response for a single pipeline trigger"""

    status: ApiStatus
    message: str
    data: Optional[PipelineResult] = None

    class Config:
        use_enum_values = True


class PipelineInfo(BaseModel):
    """One registered pipeline, as listed by the internal API"""

    name: str
    display_name: str
    description: str
    target: str
    last_success: Optional[str] = None


class PipelineListResponse(BaseModel):
    """Response for listing pipelines"""

    status: ApiStatus
    message: str
    data: list[PipelineInfo]

    class Config:
        use_enum_values = True
