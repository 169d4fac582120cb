"""
AzCopy Orchestrator - runs and supervises AzCopy transfer jobs

Starts AzCopy as a subprocess, follows its JSON output, and exposes job
snapshots, cancellation and progress reporting to callers and over HTTP.
"""

__version__ = "1.0.0"

from .services.azcopy_client import AzCopyClient, get_azcopy_client
from .services.transfer_progress import TransferProgress
from .services.transfer_runner import azcopy_transfer, handle_job_outcome, start_and_wait_for_transfer

__all__ = [
    "AzCopyClient",
    "get_azcopy_client",
    "TransferProgress",
    "azcopy_transfer",
    "handle_job_outcome",
    "start_and_wait_for_transfer",
]
