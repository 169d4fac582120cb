"""
Option records for the AzCopy ``copy`` and ``remove`` commands.

An option left as ``None`` (or ``False`` for plain switches) never produces a
command line flag.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class OverwriteOption(str, Enum):
    TRUE = "true"
    FALSE = "false"
    PROMPT = "prompt"


class CheckMd5Option(str, Enum):
    NO_CHECK = "NoCheck"
    LOG_ONLY = "LogOnly"
    FAIL_IF_DIFFERENT = "FailIfDifferent"
    FAIL_IF_DIFFERENT_OR_MISSING = "FailIfDifferentOrMissing"


class FromToOption(str, Enum):
    LOCAL_BLOB = "LocalBlob"
    BLOB_LOCAL = "BlobLocal"
    LOCAL_BLOB_FS = "LocalBlobFS"
    BLOB_FS_LOCAL = "BlobFSLocal"
    LOCAL_FILE = "LocalFile"
    FILE_LOCAL = "FileLocal"
    BLOB_BLOB = "BlobBlob"


class BlobType(str, Enum):
    BLOCK_BLOB = "BlockBlob"
    PAGE_BLOB = "PageBlob"
    APPEND_BLOB = "AppendBlob"
    DETECT = "Detect"


class AccessTier(str, Enum):
    HOT = "Hot"
    COOL = "Cool"


class DeleteSnapshotsOption(str, Enum):
    # Delete a blob's snapshots along with it. Unset means skip blobs with snapshots.
    INCLUDE = "include"


class CopyOptions(BaseModel):
    """Options for ``azcopy copy``."""
    model_config = ConfigDict(frozen=True)

    overwrite: Optional[OverwriteOption] = None
    list_of_files: Optional[str] = None
    follow_symlinks: bool = False
    recursive: bool = False
    put_md5: bool = False
    check_md5: Optional[CheckMd5Option] = None
    from_to: Optional[FromToOption] = None
    blob_type: Optional[BlobType] = None
    cap_mbps: Optional[float] = None
    preserve_access_tier: Optional[bool] = None
    check_length: Optional[bool] = None
    decompress: bool = False
    preserve_smb_info: Optional[bool] = None
    preserve_smb_permissions: Optional[bool] = None
    access_tier: Optional[AccessTier] = None
    exclude_path: Optional[str] = None


class DeleteOptions(BaseModel):
    """Options for ``azcopy remove``."""
    model_config = ConfigDict(frozen=True)

    list_of_files: Optional[str] = None
    recursive: bool = False
    delete_snapshots: Optional[DeleteSnapshotsOption] = None
