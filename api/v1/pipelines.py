"""
Pipeline API Routes

Endpoints for triggering data pipelines. Uses token-based authentication
to allow cron jobs and scheduled tasks to trigger pipelines.

The snapshot run is synchronous: the request returns when the run ends.
A second trigger while a run is live gets 409.
"""

import asyncio

from fastapi import APIRouter, HTTPException, Security

from core.logging import get_logger
from core.pipeline_auth import verify_pipeline_token
from pipelines import PipelineAlreadyRunningError, list_pipelines, run_pipeline
from schemas.common import ApiStatus
from schemas.pipeline import PipelineInfo, PipelineListResponse, PipelineResponse

router = APIRouter(prefix="/pipelines", tags=["pipelines"])
log = get_logger("pipeline_api")


@router.get("/", response_model=PipelineListResponse)
async def get_available_pipelines(
    _: str = Security(verify_pipeline_token),
) -> PipelineListResponse:
    """
    List all available pipelines.

    Returns pipeline names, descriptions, targets and last success time.
    """
    pipelines = await asyncio.to_thread(list_pipelines)
    return PipelineListResponse(
        status=ApiStatus.SUCCESS,
        message=f"{len(pipelines)} pipelines available",
        data=[PipelineInfo(**p) for p in pipelines],
    )


@router.post("/esports-snapshot", response_model=PipelineResponse)
async def trigger_esports_snapshot(
    _: str = Security(verify_pipeline_token),
) -> PipelineResponse:
    """
    Trigger the esports snapshot pipeline.

    Fetches schedules, drafts and champion stats for the configured
    leagues and writes a new snapshot.
    """
    try:
        result = await run_pipeline("esports_snapshot")
    except PipelineAlreadyRunningError as e:
        log.warning("pipeline_trigger_rejected", pipeline=e.pipeline_name)
        raise HTTPException(status_code=409, detail=str(e))

    return PipelineResponse(
        status=result.status,
        message=result.message,
        data=result,
    )
