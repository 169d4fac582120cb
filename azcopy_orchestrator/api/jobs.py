"""
AzCopy job endpoints.

Starting a job returns immediately with the engine's job id. Progress, prompts
and the final status are read back by polling ``GET /jobs/{job_id}``.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
import structlog

from ..core.errors import JobStillRunningError, SubprocessSpawnFailure, UnknownJobError
from ..models.job import CopyJobRequest, DeleteJobRequest, JobInfo, JobStartedResponse, PromptResponseRequest
from ..services.azcopy_client import AzCopyClient, get_azcopy_client

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/copy", response_model=JobStartedResponse, status_code=202)
async def start_copy_job(
    request: CopyJobRequest,
    client: AzCopyClient = Depends(get_azcopy_client)
) -> JobStartedResponse:
    """Start an AzCopy copy job."""
    try:
        job_id = await client.start_copy(request.src, request.dst, request.options)
        return JobStartedResponse(job_id=job_id)
    except SubprocessSpawnFailure as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/delete", response_model=JobStartedResponse, status_code=202)
async def start_delete_job(
    request: DeleteJobRequest,
    client: AzCopyClient = Depends(get_azcopy_client)
) -> JobStartedResponse:
    """Start an AzCopy remove job."""
    try:
        job_id = await client.start_delete(request.target, request.options)
        return JobStartedResponse(job_id=job_id)
    except SubprocessSpawnFailure as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("", response_model=List[JobInfo])
async def list_jobs(
    limit: int = Query(50, ge=1, le=1000),
    client: AzCopyClient = Depends(get_azcopy_client)
) -> List[JobInfo]:
    """List known jobs, newest first."""
    return await client.list_jobs(limit)


@router.get("/{job_id}", response_model=JobInfo)
async def get_job(
    job_id: str,
    client: AzCopyClient = Depends(get_azcopy_client)
) -> JobInfo:
    """Get a snapshot of a job."""
    try:
        return await client.get_job_info(job_id)
    except UnknownJobError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{job_id}/cancel")
async def cancel_job(
    job_id: str,
    client: AzCopyClient = Depends(get_azcopy_client)
):
    """Ask AzCopy to cancel the job. Poll the job to see it take effect."""
    try:
        await client.cancel_job(job_id)
    except UnknownJobError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"job_id": job_id, "status": "cancel_requested"}


@router.post("/{job_id}/kill")
async def kill_job(
    job_id: str,
    client: AzCopyClient = Depends(get_azcopy_client)
):
    """Terminate the AzCopy process."""
    try:
        await client.kill_job(job_id)
    except UnknownJobError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"job_id": job_id, "status": "kill_requested"}


@router.post("/{job_id}/prompt")
async def respond_to_prompt(
    job_id: str,
    request: PromptResponseRequest,
    client: AzCopyClient = Depends(get_azcopy_client)
):
    """Answer the job's pending overwrite prompt."""
    try:
        await client.respond_to_prompt(job_id, request.response)
    except UnknownJobError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"job_id": job_id, "response": request.response.value}


@router.delete("/{job_id}", status_code=204)
async def release_job(
    job_id: str,
    client: AzCopyClient = Depends(get_azcopy_client)
) -> None:
    """Forget a finished job."""
    try:
        await client.release_job(job_id)
    except UnknownJobError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except JobStillRunningError as e:
        raise HTTPException(status_code=409, detail=str(e))
