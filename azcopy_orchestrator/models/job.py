"""
Job models exposed to callers of the engine.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .locations import AzCopyLocation
from .messages import ConflictResponse, PromptMessage
from .options import CopyOptions, DeleteOptions
from .transfer_status import TransferStatus


class JobInfo(BaseModel):
    """Read-only snapshot of a job. Never holds the process handle."""
    model_config = ConfigDict(frozen=True)

    job_id: str
    command: str
    scanning_started: bool = False
    canceled: bool = False
    killed: bool = False
    azcopy_job_id: Optional[str] = None
    log_file_location: Optional[str] = None
    latest_status: Optional[TransferStatus] = None
    error_message: Optional[str] = None
    prompt_message: Optional[PromptMessage] = None
    last_message_time: Optional[datetime] = None
    created_at: datetime
    finished_at: Optional[datetime] = None

    @property
    def is_finished(self) -> bool:
        """True once AzCopy's output stream has closed and the status is reconciled."""
        return self.finished_at is not None

    @property
    def is_terminal(self) -> bool:
        return self.latest_status is not None and self.latest_status.is_end_of_job


class CopyJobRequest(BaseModel):
    """Request model for starting a copy job."""
    src: AzCopyLocation
    dst: AzCopyLocation
    options: CopyOptions = CopyOptions()


class DeleteJobRequest(BaseModel):
    """Request model for starting a remove job."""
    target: AzCopyLocation
    options: DeleteOptions = DeleteOptions()


class PromptResponseRequest(BaseModel):
    """Request model for answering a conflict prompt."""
    response: ConflictResponse


class JobStartedResponse(BaseModel):
    job_id: str
