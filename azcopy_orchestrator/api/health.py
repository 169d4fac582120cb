"""
Health check service endpoints.
"""

import os
import shutil
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..config.settings import get_settings
from ..services.azcopy_client import AzCopyClient, get_azcopy_client

router = APIRouter()


@router.get("/")
async def health_check() -> Dict[str, Any]:
    """Basic health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.app_name,
        "version": settings.app_version
    }


@router.get("/detailed")
async def detailed_health_check(
    client: AzCopyClient = Depends(get_azcopy_client)
) -> Dict[str, Any]:
    """Health check including the AzCopy executable and job store."""
    settings = get_settings()
    exe_found = os.path.isfile(client.exe) or shutil.which(client.exe) is not None
    return {
        "status": "healthy" if exe_found else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.app_name,
        "version": settings.app_version,
        "dependencies": {
            "azcopy": {
                "exe": client.exe,
                "found": exe_found
            },
            "jobs": len(client.store)
        }
    }
