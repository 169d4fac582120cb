"""
Error taxonomy for the AzCopy job engine.

Only ``UnknownJobError`` and ``SubprocessSpawnFailure`` are raised by the job
controller itself. Lifecycle anomalies are recorded on the job as one of the
``CopyClientErrors`` codes and discovered by polling.
"""

from enum import Enum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..models.job import JobInfo


class CopyClientErrors(str, Enum):
    """Error codes synthesized when AzCopy exits without a clean final status."""
    UNSUCCESSFUL_CANCEL = "UnsuccessfulCancel"
    UNEXPECTED_QUIT = "UnexpectedQuit"
    UNEXPECTED_CANCEL = "UnexpectedCancel"


class AzCopyOrchestratorError(Exception):
    """Base class for all engine errors."""


class UnknownJobError(AzCopyOrchestratorError, KeyError):
    """Raised when an operation references a job id that was never started."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"No job with job Id {job_id} has been started.")

    def __str__(self) -> str:
        return self.args[0]


class SubprocessSpawnFailure(AzCopyOrchestratorError):
    """Raised when the AzCopy executable cannot be found or started."""

    def __init__(self, exe: str, cause: Optional[BaseException] = None):
        self.exe = exe
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to start AzCopy executable '{exe}'{detail}")


class JobStillRunningError(AzCopyOrchestratorError):
    """Raised when releasing a job whose process has not finished."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job {job_id} is still running and cannot be released.")


class TransferFailedError(AzCopyOrchestratorError):
    """A transfer ended in a non-successful terminal state."""

    def __init__(self, message: str, job_info: Optional["JobInfo"] = None):
        self.job_info = job_info
        super().__init__(message)


class TransferCancelledError(AzCopyOrchestratorError):
    """The caller cancelled a transfer that was being waited on."""
