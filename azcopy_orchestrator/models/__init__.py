# Models Module
"""
Pydantic models for AzCopy locations, options, output messages and jobs.
"""

from .locations import (
    AzCopyLocation,
    LocalLocation,
    RemoteAuthLocation,
    RemoteLocation,
    RemoteSasLocation
)

from .options import (
    AccessTier,
    BlobType,
    CheckMd5Option,
    CopyOptions,
    DeleteOptions,
    DeleteSnapshotsOption,
    FromToOption,
    OverwriteOption
)

from .transfer_status import (
    JobStatus,
    StatusType,
    TransferDetail,
    TransferStatus
)

from .messages import (
    AzCopyMessage,
    ConflictResponse,
    EndOfJobMessage,
    ErrorMessage,
    InfoMessage,
    InitMessage,
    MessageType,
    ProgressMessage,
    PromptMessage,
    PromptType
)

from .job import (
    CopyJobRequest,
    DeleteJobRequest,
    JobInfo,
    JobStartedResponse,
    PromptResponseRequest
)

__all__ = [
    # Location models
    "AzCopyLocation",
    "LocalLocation",
    "RemoteAuthLocation",
    "RemoteLocation",
    "RemoteSasLocation",

    # Option models
    "AccessTier",
    "BlobType",
    "CheckMd5Option",
    "CopyOptions",
    "DeleteOptions",
    "DeleteSnapshotsOption",
    "FromToOption",
    "OverwriteOption",

    # Status models
    "JobStatus",
    "StatusType",
    "TransferDetail",
    "TransferStatus",

    # Message models
    "AzCopyMessage",
    "ConflictResponse",
    "EndOfJobMessage",
    "ErrorMessage",
    "InfoMessage",
    "InitMessage",
    "MessageType",
    "ProgressMessage",
    "PromptMessage",
    "PromptType",

    # Job models
    "CopyJobRequest",
    "DeleteJobRequest",
    "JobInfo",
    "JobStartedResponse",
    "PromptResponseRequest"
]
