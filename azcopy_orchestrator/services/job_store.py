"""
In-memory store of AzCopy job records.

Records are mutated only by the job controller. Everyone else reads a
``JobInfo`` snapshot. Finished jobs are dropped either explicitly through
``release`` or once they are older than the retention window.
"""

import asyncio
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import structlog

from ..core.errors import JobStillRunningError, UnknownJobError
from ..models.job import JobInfo
from ..models.messages import PromptMessage
from ..models.transfer_status import TransferStatus

logger = structlog.get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class JobRecord:
    """Internal state of one AzCopy job, including its process handle."""
    id: str
    process: Any
    command: str
    created_at: datetime = field(default_factory=utcnow)
    scanning_started: bool = False
    canceled: bool = False
    killed: bool = False
    azcopy_job_id: Optional[str] = None
    log_file_location: Optional[str] = None
    latest_status: Optional[TransferStatus] = None
    error_message: Optional[str] = None
    prompt_message: Optional[PromptMessage] = None
    last_message_time: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    token_refresher: Any = None
    watcher: Optional[asyncio.Task] = None
    # Serializes writes to the process's stdin
    stdin_lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def is_finished(self) -> bool:
        return self.finished_at is not None

    def touch(self) -> None:
        now = utcnow()
        if self.last_message_time is None or now > self.last_message_time:
            self.last_message_time = now

    def to_info(self) -> JobInfo:
        return JobInfo(
            job_id=self.id,
            command=self.command,
            scanning_started=self.scanning_started,
            canceled=self.canceled,
            killed=self.killed,
            azcopy_job_id=self.azcopy_job_id,
            log_file_location=self.log_file_location,
            latest_status=self.latest_status.model_copy(deep=True) if self.latest_status is not None else None,
            error_message=self.error_message,
            prompt_message=self.prompt_message.model_copy(deep=True) if self.prompt_message is not None else None,
            last_message_time=self.last_message_time,
            created_at=self.created_at,
            finished_at=self.finished_at,
        )


class JobStore:
    """Thread-safe map from job id to job record."""

    def __init__(self, retention_seconds: Optional[float] = None):
        self.retention_seconds = retention_seconds
        self._jobs: Dict[str, JobRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def __contains__(self, job_id: object) -> bool:
        with self._lock:
            return job_id in self._jobs

    def add(self, record: JobRecord) -> None:
        with self._lock:
            self._jobs[record.id] = record

    def get(self, job_id: str) -> JobRecord:
        with self._lock:
            record = self._jobs.get(job_id)
        if record is None:
            raise UnknownJobError(job_id)
        return record

    def snapshot(self, job_id: str) -> JobInfo:
        return self.get(job_id).to_info()

    def list_jobs(self, limit: int = 50) -> List[JobInfo]:
        """Snapshots of known jobs, newest first."""
        with self._lock:
            records = list(self._jobs.values())
        records.sort(key=lambda r: r.created_at, reverse=True)
        return [record.to_info() for record in records[:limit]]

    def release(self, job_id: str) -> None:
        """Forget a finished job."""
        record = self.get(job_id)
        if not record.is_finished:
            raise JobStillRunningError(job_id)
        with self._lock:
            self._jobs.pop(job_id, None)
        logger.info("Released job", job_id=job_id)

    def evict_expired(self, now: Optional[datetime] = None) -> List[str]:
        """Drop finished jobs older than the retention window."""
        if self.retention_seconds is None:
            return []
        cutoff = (now or utcnow()) - timedelta(seconds=self.retention_seconds)
        with self._lock:
            expired = [
                job_id for job_id, record in self._jobs.items()
                if record.finished_at is not None and record.finished_at <= cutoff
            ]
            for job_id in expired:
                del self._jobs[job_id]
        if expired:
            logger.info("Evicted finished jobs", count=len(expired))
        return expired
