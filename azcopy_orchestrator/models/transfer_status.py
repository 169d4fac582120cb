"""
Transfer status snapshot models.

AzCopy reports every counter as a string on the wire. The models parse them
into integers on construction and are frozen, so a status is always replaced
wholesale rather than patched field by field.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StatusType(str, Enum):
    """Whether a status is an in-flight progress report or the final one."""
    PROGRESS = "Progress"
    END_OF_JOB = "EndOfJob"


class JobStatus(str, Enum):
    """Job lifecycle state as reported by AzCopy."""
    IN_PROGRESS = "InProgress"
    CANCELLING = "Cancelling"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"
    COMPLETED_WITH_SKIPPED = "CompletedWithSkipped"
    COMPLETED_WITH_ERRORS = "CompletedWithErrors"
    COMPLETED_WITH_ERRORS_AND_SKIPPED = "CompletedWithErrorsAndSkipped"
    FAILED = "Failed"

    @property
    def is_completed(self) -> bool:
        return self in COMPLETED_JOB_STATUSES

    @property
    def is_in_flight(self) -> bool:
        return self in (JobStatus.IN_PROGRESS, JobStatus.CANCELLING)


COMPLETED_JOB_STATUSES = frozenset({
    JobStatus.COMPLETED,
    JobStatus.COMPLETED_WITH_SKIPPED,
    JobStatus.COMPLETED_WITH_ERRORS,
    JobStatus.COMPLETED_WITH_ERRORS_AND_SKIPPED,
})


def parse_wire_int(value: Any) -> int:
    """Parse an AzCopy numeric field, which usually arrives as a string."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    text = str(value).strip()
    try:
        return int(text, 10)
    except ValueError:
        # Percentages come through as decimals, e.g. "42.857"
        return int(float(text))


class TransferDetail(BaseModel):
    """A single failed or skipped transfer reported by AzCopy."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    src: str = Field("", alias="Src")
    dst: str = Field("", alias="Dst")
    transfer_status: str = Field("", alias="TransferStatus")
    error_code: int = Field(0, alias="ErrorCode")
    is_folder_properties: bool = Field(False, alias="IsFolderProperties")

    @field_validator("error_code", mode="before")
    @classmethod
    def _parse_error_code(cls, value: Any) -> int:
        return parse_wire_int(value)


class TransferStatus(BaseModel):
    """Snapshot of a job's progress, taken from a Progress or EndOfJob message."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    status_type: StatusType = Field(StatusType.PROGRESS, alias="StatusType")
    job_status: JobStatus = Field(alias="JobStatus")
    active_connections: int = Field(0, alias="ActiveConnections")
    complete_job_ordered: bool = Field(False, alias="CompleteJobOrdered")
    total_transfers: int = Field(0, alias="TotalTransfers")
    transfers_completed: int = Field(0, alias="TransfersCompleted")
    transfers_failed: int = Field(0, alias="TransfersFailed")
    transfers_skipped: int = Field(0, alias="TransfersSkipped")
    # Number in [0, 100]
    percent_complete: int = Field(0, alias="PercentComplete")
    bytes_over_wire: int = Field(0, alias="BytesOverWire")
    total_bytes_transferred: int = Field(0, alias="TotalBytesTransferred")
    total_bytes_enumerated: int = Field(0, alias="TotalBytesEnumerated")
    failed_transfers: List[TransferDetail] = Field(default_factory=list, alias="FailedTransfers")
    skipped_transfers: List[TransferDetail] = Field(default_factory=list, alias="SkippedTransfers")
    is_disk_constrained: bool = Field(False, alias="IsDiskConstrained")
    # Only set when a job breaks in a very unexpected way
    error_msg: str = Field("", alias="ErrorMsg")
    timestamp: Optional[str] = Field(None, alias="TimeStamp")

    @field_validator(
        "active_connections",
        "total_transfers",
        "transfers_completed",
        "transfers_failed",
        "transfers_skipped",
        "percent_complete",
        "bytes_over_wire",
        "total_bytes_transferred",
        "total_bytes_enumerated",
        mode="before",
    )
    @classmethod
    def _parse_numbers(cls, value: Any) -> int:
        return parse_wire_int(value)

    @field_validator("failed_transfers", "skipped_transfers", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("error_msg", mode="before")
    @classmethod
    def _null_error(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def is_end_of_job(self) -> bool:
        return self.status_type == StatusType.END_OF_JOB

    @property
    def has_incomplete_transfers(self) -> bool:
        return bool(self.failed_transfers or self.skipped_transfers)

    def as_failed_end_of_job(self) -> "TransferStatus":
        """Copy of this status marked as a terminal failure."""
        return self.model_copy(update={
            "status_type": StatusType.END_OF_JOB,
            "job_status": JobStatus.FAILED,
        })

    @classmethod
    def fake_exit_status(cls) -> "TransferStatus":
        """Terminal Failed status for a job that never reported one."""
        return cls(
            status_type=StatusType.END_OF_JOB,
            job_status=JobStatus.FAILED,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
