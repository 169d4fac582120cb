"""
Background refresh of OAuth tokens for RemoteAuth locations.

The engine never mints tokens itself. It calls the caller-supplied refresh
callback on a fixed interval and keeps the latest token in a credential store
for as long as the job's output stream is open.
"""

import asyncio
from typing import Awaitable, Callable, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)

TOKEN_SERVICE_NAME = "AzCopyOAuthTokenManager"


class CredentialStore:
    """In-memory credential store keyed by service and account."""

    def __init__(self):
        self._entries: Dict[str, str] = {}

    @staticmethod
    def _key(service: str, account: str) -> str:
        return f"{service}-{account}"

    async def set_entry(self, service: str, account: str, value: str) -> None:
        self._entries[self._key(service, account)] = value

    async def get_entry(self, service: str, account: str) -> Optional[str]:
        return self._entries.get(self._key(service, account))

    async def delete_entry(self, service: str, account: str) -> bool:
        return self._entries.pop(self._key(service, account), None) is not None


class TokenRefresher:
    """Periodically invokes a refresh callback until the cycle is ended."""

    def __init__(
        self,
        refresh_token: Callable[[], Awaitable[str]],
        interval_seconds: float,
        credential_store: Optional[CredentialStore] = None,
        account: str = "",
    ):
        self.refresh_token = refresh_token
        self.interval_seconds = interval_seconds
        self.credential_store = credential_store or CredentialStore()
        self.account = account
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start_refresh_cycle(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run())

    def end_refresh_cycle(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def refresh_once(self) -> None:
        token = await self.refresh_token()
        await self.credential_store.set_entry(TOKEN_SERVICE_NAME, self.account, token)
        logger.info("Refreshed AzCopy OAuth token", account=self.account)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.refresh_once()
            except Exception as e:
                # Keep the cycle alive; AzCopy will report auth failures itself
                logger.warning("Token refresh failed", account=self.account, error=str(e))
