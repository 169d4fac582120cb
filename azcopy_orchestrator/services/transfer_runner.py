"""
Drives a copy job to completion by polling its snapshots.

This is the consumer side of the job controller: start a copy, feed the
progress tracker until AzCopy reports its final status, then turn that status
into either a clean outcome, a warning, or a ``TransferFailedError``.
"""

import asyncio
from typing import Callable, Optional

import structlog
from pydantic import BaseModel, ConfigDict

from ..core.errors import TransferCancelledError, TransferFailedError
from ..models.job import JobInfo
from ..models.options import CopyOptions, FromToOption, OverwriteOption
from ..models.transfer_status import JobStatus
from .azcopy_client import AzCopyClient, Location
from .transfer_progress import LogSink, TransferProgress

logger = structlog.get_logger(__name__)

DEFAULT_EXCLUDE_PATH = ".git/;.vscode/"


class TransferOutcome(BaseModel):
    """Result of a transfer that did not fail outright."""
    model_config = ConfigDict(frozen=True)

    job_id: str
    job_status: Optional[JobStatus] = None
    warning: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.warning is None


def default_copy_options(from_to: Optional[FromToOption] = None) -> CopyOptions:
    """Copy options used for interactive uploads and downloads."""
    # follow_symlinks is left off: it fails downloads and is unreliable for uploads
    return CopyOptions(
        from_to=from_to,
        overwrite=OverwriteOption.TRUE,
        recursive=True,
        exclude_path=DEFAULT_EXCLUDE_PATH,
    )


async def _cancel_and_wait(client: AzCopyClient, job_id: str, poll_interval: float) -> JobInfo:
    await client.cancel_job(job_id)

    loop = asyncio.get_running_loop()
    deadline = loop.time() + client.settings.cancel_timeout_seconds
    while True:
        job_info = await client.get_job_info(job_id)
        if job_info.is_finished:
            return job_info
        if loop.time() >= deadline:
            break
        await asyncio.sleep(poll_interval)

    logger.warning("AzCopy did not acknowledge cancel, killing job", job_id=job_id)
    await client.kill_job(job_id)
    return await client.get_job_info(job_id)


async def start_and_wait_for_transfer(
    client: AzCopyClient,
    src: Location,
    dst: Location,
    options: CopyOptions,
    progress: TransferProgress,
    poll_interval: Optional[float] = None,
    is_cancelled: Optional[Callable[[], bool]] = None,
) -> JobInfo:
    """
    Start a copy and poll it until AzCopy reports its final status.

    Args:
        client: Job controller used to start and poll the job
        src: Source location; a wildcard source is counted in files, otherwise bytes
        dst: Destination location
        options: Copy options
        progress: Tracker fed with every polled status
        poll_interval: Seconds between polls, defaults to the configured interval
        is_cancelled: Checked before every poll; returning True cancels the job

    Returns:
        The final job snapshot, after the output stream has closed

    Raises:
        TransferCancelledError: If ``is_cancelled`` requested a cancel
    """
    if poll_interval is None:
        poll_interval = client.settings.poll_interval_seconds

    job_id = await client.start_copy(src, dst, options)
    # Directory transfers always have use_wildcard set
    count_transfers = src.use_wildcard

    while True:
        if is_cancelled is not None and is_cancelled():
            job_info = await _cancel_and_wait(client, job_id, poll_interval)
            raise TransferCancelledError(
                f"Transfer was cancelled (job {job_id}, status "
                f"{job_info.latest_status.job_status.value if job_info.latest_status else 'Unknown'})"
            )

        job_info = await client.get_job_info(job_id)
        status = job_info.latest_status
        if status is not None:
            if count_transfers:
                total_work, finished_work = status.total_transfers, status.transfers_completed
            else:
                total_work, finished_work = status.total_bytes_enumerated, status.bytes_over_wire
            # Only report once the total is known
            if total_work:
                progress.report(finished_work, total_work)

            if status.is_end_of_job:
                return await client.wait_for_job(job_id)

        if job_info.is_finished:
            return job_info

        await asyncio.sleep(poll_interval)


def handle_job_outcome(
    job_info: JobInfo,
    transfer_label: str,
    log_sink: Optional[LogSink] = None,
) -> TransferOutcome:
    """
    Classify a finished job.

    ``Completed`` is a clean outcome. Other completed statuses produce a
    warning and list the incomplete transfers. Anything else raises.
    """
    status = job_info.latest_status
    job_status = status.job_status if status is not None else None
    if job_status == JobStatus.COMPLETED:
        return TransferOutcome(job_id=job_info.job_id, job_status=job_status)

    def log(line: str) -> None:
        if log_sink is not None:
            log_sink(line)
        else:
            logger.info("AzCopy transfer report", job_id=job_info.job_id, detail=line)

    status_text = job_status.value if job_status is not None else "Unknown"
    message = (
        job_info.error_message
        or (status.error_msg if status is not None else "")
        or f'AzCopy Transfer: "{status_text}".'
    )

    if status is not None and status.has_incomplete_transfers:
        message += " Check the log for a list of incomplete transfers."
        if status.failed_transfers:
            log("Failed transfer(s):")
            for transfer in status.failed_transfers:
                log(f"\t{transfer.dst}")
        if status.skipped_transfers:
            log("Skipped transfer(s):")
            for transfer in status.skipped_transfers:
                log(f"\t{transfer.dst}")
    else:
        log(f'Could not transfer "{transfer_label}"')

    if job_info.log_file_location:
        log(f"Log file: {job_info.log_file_location}")

    if job_status is not None and job_status.is_completed:
        logger.warning("AzCopy transfer completed with problems", job_id=job_info.job_id, job_status=status_text)
        return TransferOutcome(job_id=job_info.job_id, job_status=job_status, warning=message)

    logger.error("AzCopy transfer failed", job_id=job_info.job_id, job_status=status_text, error=message)
    raise TransferFailedError(message, job_info)


async def azcopy_transfer(
    client: AzCopyClient,
    src: Location,
    dst: Location,
    progress: TransferProgress,
    from_to: Optional[FromToOption] = None,
    log_sink: Optional[LogSink] = None,
    poll_interval: Optional[float] = None,
    is_cancelled: Optional[Callable[[], bool]] = None,
) -> TransferOutcome:
    """Copy ``src`` to ``dst`` with the default options and classify the result."""
    job_info = await start_and_wait_for_transfer(
        client,
        src,
        dst,
        default_copy_options(from_to),
        progress,
        poll_interval=poll_interval,
        is_cancelled=is_cancelled,
    )
    return handle_job_outcome(job_info, src.path, log_sink)
