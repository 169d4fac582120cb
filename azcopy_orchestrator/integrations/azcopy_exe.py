"""
Locates the AzCopy executable.
"""

import shutil
import sys
from typing import Optional

from ..config.settings import Settings, get_settings


def get_azcopy_exe(settings: Optional[Settings] = None) -> str:
    """Return the AzCopy executable path, preferring the configured one."""
    settings = settings or get_settings()
    if settings.azcopy_exe_path:
        return settings.azcopy_exe_path

    exe_name = "azcopy.exe" if sys.platform == "win32" else "azcopy"
    # Fall back to the bare name; a missing binary surfaces as a spawn failure
    return shutil.which(exe_name) or exe_name
