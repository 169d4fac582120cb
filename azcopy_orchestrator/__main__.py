"""
Main entry point for the AzCopy orchestrator API.
"""

import uvicorn
from .config.settings import get_settings


def main():
    """Start the AzCopy orchestrator server."""
    settings = get_settings()

    uvicorn.run(
        "azcopy_orchestrator.core.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=False
    )


if __name__ == "__main__":
    main()
