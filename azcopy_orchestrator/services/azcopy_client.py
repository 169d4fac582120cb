"""
AzCopy job controller.

Starts AzCopy as a subprocess, follows its JSON output, and keeps a job record
per process. Every job gets one watcher task that owns the process's stdout.
It processes messages strictly in order and reconciles the final status once
the stream closes. Callers poll ``get_job_info`` for snapshots. Cancel and
kill are requests whose effect shows up in a later snapshot.

Job ids handed out here are generated by this engine. AzCopy's own job id is
informational only and lives in ``JobInfo.azcopy_job_id``.
"""

import asyncio
import json
import os
import uuid
from typing import Any, Dict, List, Optional, Sequence, Union

import structlog

from ..config.settings import Settings, get_settings
from ..core.errors import CopyClientErrors, SubprocessSpawnFailure
from ..integrations.azcopy_exe import get_azcopy_exe
from ..models.job import JobInfo
from ..models.locations import LocalLocation, RemoteAuthLocation, RemoteSasLocation
from ..models.messages import (
    AzCopyMessage,
    ConflictResponse,
    EndOfJobMessage,
    InfoMessage,
    InitMessage,
    ProgressMessage,
    PromptMessage,
)
from ..models.options import CopyOptions, DeleteOptions
from ..models.transfer_status import JobStatus, StatusType, TransferStatus
from .command_builder import (
    OAUTH_TOKEN_ENV_VAR,
    USER_AGENT_ENV_VAR,
    AzCopyCommand,
    build_human_command,
    build_spawn_args,
    location_to_string,
)
from .job_store import JobRecord, JobStore, utcnow
from .message_parser import iter_messages
from .token_refresher import CredentialStore, TokenRefresher

logger = structlog.get_logger(__name__)

Location = Union[LocalLocation, RemoteSasLocation, RemoteAuthLocation]

CANCEL_COMMAND = "cancel\n"
CONFIRM_CANCEL_RESPONSE = "y\n"
AAD_AUTHORITY = "https://login.microsoftonline.com"


def _content_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    return json.dumps(content)


class AzCopyClient:
    """Starts and tracks AzCopy ``copy`` and ``remove`` jobs."""

    def __init__(
        self,
        exe: Optional[str] = None,
        store: Optional[JobStore] = None,
        settings: Optional[Settings] = None,
        credential_store: Optional[CredentialStore] = None,
    ):
        self.settings = settings or get_settings()
        self.exe = exe or get_azcopy_exe(self.settings)
        self.store = store or JobStore(retention_seconds=self.settings.job_retention_seconds)
        self.credential_store = credential_store or CredentialStore()

    async def start_copy(self, src: Location, dst: Location, options: CopyOptions) -> str:
        """
        Start an AzCopy ``copy`` job.

        Returns as soon as the process is spawned; poll ``get_job_info`` for
        progress.
        """
        locations = [
            location_to_string(src, options.from_to),
            location_to_string(dst, options.from_to),
        ]
        return await self._start_job("copy", locations, options, [src, dst])

    async def start_delete(self, target: Location, options: DeleteOptions) -> str:
        """Start an AzCopy ``remove`` job."""
        return await self._start_job("remove", [location_to_string(target)], options, [target])

    async def get_job_info(self, job_id: str) -> JobInfo:
        """Snapshot of the job. Raises ``UnknownJobError`` for unknown ids."""
        return self.store.snapshot(job_id)

    async def list_jobs(self, limit: int = 50) -> List[JobInfo]:
        return self.store.list_jobs(limit)

    async def cancel_job(self, job_id: str) -> None:
        """Ask AzCopy to cancel gracefully. Confirm by polling for a final status."""
        record = self.store.get(job_id)
        record.canceled = True
        logger.info("Cancelling AzCopy job", job_id=job_id)
        await self._write_stdin(record, CANCEL_COMMAND)

    async def kill_job(self, job_id: str) -> None:
        """Forcefully terminate the AzCopy process."""
        record = self.store.get(job_id)
        record.killed = True
        logger.info("Killing AzCopy job", job_id=job_id)
        if record.process.returncode is None:
            try:
                record.process.kill()
            except ProcessLookupError:
                logger.debug("AzCopy process already exited", job_id=job_id)

    async def respond_to_prompt(self, job_id: str, response: Union[ConflictResponse, str]) -> None:
        """Answer the job's pending conflict prompt."""
        record = self.store.get(job_id)
        response = ConflictResponse(response)
        prompt = record.prompt_message
        if prompt is None:
            raise ValueError(f"Job {job_id} has no pending prompt")
        if prompt.prompt_details.response_options:
            allowed = {option.response_string for option in prompt.prompt_details.response_options}
            if response.value not in allowed:
                raise ValueError(f"'{response.value}' is not a valid response to this prompt")
        if await self._write_stdin(record, f"{response.value}\n"):
            record.prompt_message = None

    async def wait_for_job(self, job_id: str) -> JobInfo:
        """Wait until the job's output stream has closed and return the final snapshot."""
        record = self.store.get(job_id)
        if record.watcher is not None:
            await asyncio.shield(record.watcher)
        return record.to_info()

    async def release_job(self, job_id: str) -> None:
        """Drop a finished job's record."""
        self.store.release(job_id)

    async def aclose(self) -> None:
        """Kill every running job and wait for their watchers to finish."""
        watchers = []
        for info in self.store.list_jobs(limit=len(self.store)):
            if info.is_finished:
                continue
            record = self.store.get(info.job_id)
            await self.kill_job(record.id)
            if record.watcher is not None:
                watchers.append(record.watcher)
        if watchers:
            await asyncio.gather(*watchers, return_exceptions=True)

    async def _start_job(
        self,
        command: AzCopyCommand,
        locations: List[str],
        options: Union[CopyOptions, DeleteOptions],
        endpoints: Sequence[Location],
    ) -> str:
        self.store.evict_expired()

        job_id = str(uuid.uuid4())
        auth_location = next((e for e in endpoints if isinstance(e, RemoteAuthLocation)), None)
        env_vars = self._azcopy_env_vars(auth_location)

        spawn_args = build_spawn_args(command, locations, options)
        command_str = build_human_command(command, locations, options, env_vars)

        process = await self._spawn(spawn_args, env_vars)
        record = JobRecord(id=job_id, process=process, command=command_str)

        if auth_location is not None and auth_location.refresh_token is not None:
            record.token_refresher = TokenRefresher(
                auth_location.refresh_token,
                self.settings.token_refresh_interval_seconds,
                self.credential_store,
                account=auth_location.tenant_id,
            )
            record.token_refresher.start_refresh_cycle()

        self.store.add(record)
        record.watcher = asyncio.create_task(self._watch_job(record), name=f"azcopy-job-{job_id}")

        logger.info("Started AzCopy job", job_id=job_id, command=command, pid=process.pid)
        return job_id

    def _azcopy_env_vars(self, auth_location: Optional[RemoteAuthLocation]) -> Dict[str, str]:
        env_vars: Dict[str, str] = {}
        if self.settings.user_agent_prefix:
            env_vars[USER_AGENT_ENV_VAR] = self.settings.user_agent_prefix
        if auth_location is not None:
            # AzCopy accepts a single OAuth identity per process
            env_vars[OAUTH_TOKEN_ENV_VAR] = json.dumps({
                "access_token": auth_location.auth_token,
                "token_type": "Bearer",
                "resource": auth_location.aad_endpoint,
                "_tenant": auth_location.tenant_id,
                "_ad_endpoint": AAD_AUTHORITY,
            })
        return env_vars

    async def _spawn(self, spawn_args: List[str], env_vars: Dict[str, str]) -> asyncio.subprocess.Process:
        blocked = set(self.settings.blocked_env_vars)
        env = {k: v for k, v in os.environ.items() if k not in blocked}
        env.update(env_vars)
        try:
            return await asyncio.create_subprocess_exec(
                self.exe,
                *spawn_args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
                env=env,
            )
        except OSError as e:
            logger.error("Failed to start AzCopy", exe=self.exe, error=str(e))
            raise SubprocessSpawnFailure(self.exe, e) from e

    async def _write_stdin(self, record: JobRecord, data: str) -> bool:
        async with record.stdin_lock:
            stdin = record.process.stdin
            if stdin is None or stdin.is_closing():
                logger.warning("AzCopy stdin is closed", job_id=record.id, command=data.strip())
                return False
            try:
                stdin.write(data.encode("utf-8"))
                await stdin.drain()
            except (BrokenPipeError, ConnectionResetError) as e:
                logger.warning("Failed to write to AzCopy stdin", job_id=record.id, error=str(e))
                return False
        return True

    async def _watch_job(self, record: JobRecord) -> None:
        try:
            async for message in iter_messages(record.process.stdout):
                await self._handle_message(record, message)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Error reading AzCopy output", job_id=record.id, error=str(e))
            self._on_stream_error(record, e)

        self._on_stream_end(record)

        stdin = record.process.stdin
        if stdin is not None and not stdin.is_closing():
            stdin.close()
        return_code = await record.process.wait()
        logger.info("AzCopy process exited", job_id=record.id, return_code=return_code)

    async def _handle_message(self, record: JobRecord, message: AzCopyMessage) -> None:
        if isinstance(message, InfoMessage):
            pass
        elif isinstance(message, InitMessage):
            record.scanning_started = True
            record.log_file_location = message.content.log_file_location
            record.azcopy_job_id = message.content.job_id
        elif isinstance(message, (ProgressMessage, EndOfJobMessage)):
            record.latest_status = message.content.model_copy(update={
                "status_type": StatusType(message.message_type),
                "timestamp": message.timestamp or message.content.timestamp,
            })
        elif isinstance(message, PromptMessage):
            if message.is_cancel_confirmation:
                # Cancelling before enumeration finishes is not resumable, so
                # AzCopy asks for confirmation. The cancel was already requested.
                await self._write_stdin(record, CONFIRM_CANCEL_RESPONSE)
            else:
                record.prompt_message = message
        else:
            record.error_message = _content_text(message.content)

        record.touch()

    def _on_stream_error(self, record: JobRecord, err: BaseException) -> None:
        record.error_message = f"Unexpected error from AzCopy: {err}"

    def _on_stream_end(self, record: JobRecord) -> None:
        status = record.latest_status

        if record.killed:
            # A killed job forfeits any expectation of a clean final status
            pass
        elif record.canceled and status is not None:
            if status.job_status in (JobStatus.IN_PROGRESS, JobStatus.CANCELLING, JobStatus.FAILED):
                record.error_message = record.error_message or CopyClientErrors.UNSUCCESSFUL_CANCEL.value
                record.latest_status = status.as_failed_end_of_job()
        elif status is not None:
            if status.job_status.is_in_flight:
                record.error_message = record.error_message or CopyClientErrors.UNEXPECTED_QUIT.value
                record.latest_status = status.as_failed_end_of_job()
            elif status.job_status == JobStatus.FAILED:
                if not record.error_message and not status.transfers_failed and not status.transfers_skipped:
                    record.error_message = CopyClientErrors.UNEXPECTED_QUIT.value
            elif status.job_status == JobStatus.CANCELLED:
                record.error_message = record.error_message or CopyClientErrors.UNEXPECTED_CANCEL.value
        else:
            error_code = CopyClientErrors.UNSUCCESSFUL_CANCEL if record.canceled else CopyClientErrors.UNEXPECTED_QUIT
            record.error_message = record.error_message or error_code.value
            record.latest_status = TransferStatus.fake_exit_status()

        if record.token_refresher is not None:
            record.token_refresher.end_refresh_cycle()

        record.finished_at = utcnow()
        final_status = record.latest_status.job_status.value if record.latest_status else None
        logger.info(
            "AzCopy output stream closed",
            job_id=record.id,
            job_status=final_status,
            canceled=record.canceled,
            killed=record.killed,
            error=record.error_message,
        )


# Global client instance
_azcopy_client: Optional[AzCopyClient] = None


def get_azcopy_client() -> AzCopyClient:
    """Get the global AzCopy client instance."""
    global _azcopy_client
    if _azcopy_client is None:
        _azcopy_client = AzCopyClient()
    return _azcopy_client
