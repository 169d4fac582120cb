"""
Unit tests for the polling driver and outcome handling.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from azcopy_orchestrator.core.errors import TransferCancelledError, TransferFailedError
from azcopy_orchestrator.models.job import JobInfo
from azcopy_orchestrator.models.locations import LocalLocation, RemoteSasLocation
from azcopy_orchestrator.models.options import CopyOptions, FromToOption, OverwriteOption
from azcopy_orchestrator.models.transfer_status import JobStatus, StatusType, TransferDetail, TransferStatus
from azcopy_orchestrator.services.job_store import utcnow
from azcopy_orchestrator.services.transfer_progress import TransferProgress
from azcopy_orchestrator.services.transfer_runner import (
    azcopy_transfer,
    handle_job_outcome,
    start_and_wait_for_transfer,
)

FILE_SRC = LocalLocation(path="/data/a.bin")
DIR_SRC = LocalLocation(path="/data/dir/", use_wildcard=True)
DST = RemoteSasLocation(resource_uri="https://acct.blob.core.windows.net/c", path="/a.bin", sas_token="sig=x")


def job_info(status=None, finished=False, **kwargs):
    return JobInfo(
        job_id="job-1",
        command="./azcopy copy;\n",
        latest_status=status,
        created_at=utcnow(),
        finished_at=utcnow() if finished else None,
        **kwargs,
    )


def status(job_status, status_type=StatusType.PROGRESS, **kwargs):
    return TransferStatus(status_type=status_type, job_status=job_status, **kwargs)


@pytest.fixture
def mock_client(settings):
    client = MagicMock()
    client.settings = settings
    client.start_copy = AsyncMock(return_value="job-1")
    client.get_job_info = AsyncMock()
    client.wait_for_job = AsyncMock()
    client.cancel_job = AsyncMock()
    client.kill_job = AsyncMock()
    return client


class TestStartAndWaitForTransfer:
    """Test cases for start_and_wait_for_transfer."""

    async def test_bytes_are_reported_for_single_files(self, mock_client):
        final = job_info(status(JobStatus.COMPLETED, StatusType.END_OF_JOB, total_bytes_enumerated=200, bytes_over_wire=200), finished=True)
        mock_client.get_job_info.side_effect = [
            job_info(),
            job_info(status(JobStatus.IN_PROGRESS, total_bytes_enumerated=200, bytes_over_wire=50)),
            job_info(status(JobStatus.COMPLETED, StatusType.END_OF_JOB, total_bytes_enumerated=200, bytes_over_wire=200)),
        ]
        mock_client.wait_for_job.return_value = final
        progress = MagicMock()

        result = await start_and_wait_for_transfer(mock_client, FILE_SRC, DST, CopyOptions(), progress, poll_interval=0)

        assert result is final
        assert [call.args for call in progress.report.call_args_list] == [(50, 200), (200, 200)]
        mock_client.wait_for_job.assert_awaited_once_with("job-1")

    async def test_transfers_are_reported_for_folders(self, mock_client):
        mock_client.get_job_info.side_effect = [
            job_info(status(JobStatus.COMPLETED, StatusType.END_OF_JOB, total_transfers=4, transfers_completed=4, total_bytes_enumerated=999)),
        ]
        progress = MagicMock()

        await start_and_wait_for_transfer(mock_client, DIR_SRC, DST, CopyOptions(), progress, poll_interval=0)

        progress.report.assert_called_once_with(4, 4)

    async def test_finished_job_without_end_of_job_stops_polling(self, mock_client):
        """A killed job never reports EndOfJob but its stream still closes."""
        killed = job_info(status(JobStatus.IN_PROGRESS), finished=True, killed=True)
        mock_client.get_job_info.side_effect = [killed]

        result = await start_and_wait_for_transfer(mock_client, FILE_SRC, DST, CopyOptions(), MagicMock(), poll_interval=0)

        assert result is killed

    async def test_cancellation(self, mock_client):
        mock_client.get_job_info.side_effect = [
            job_info(status(JobStatus.IN_PROGRESS)),
            job_info(status(JobStatus.CANCELLED, StatusType.END_OF_JOB), finished=True, canceled=True),
        ]
        checks = iter([False, True])

        with pytest.raises(TransferCancelledError):
            await start_and_wait_for_transfer(
                mock_client, FILE_SRC, DST, CopyOptions(), MagicMock(),
                poll_interval=0, is_cancelled=lambda: next(checks),
            )

        mock_client.cancel_job.assert_awaited_once_with("job-1")
        mock_client.kill_job.assert_not_called()

    async def test_cancel_escalates_to_kill(self, mock_client):
        mock_client.settings = mock_client.settings.model_copy(update={"cancel_timeout_seconds": 0.05})
        mock_client.get_job_info.return_value = job_info(status(JobStatus.CANCELLING))

        with pytest.raises(TransferCancelledError):
            await start_and_wait_for_transfer(
                mock_client, FILE_SRC, DST, CopyOptions(), MagicMock(),
                poll_interval=0.01, is_cancelled=lambda: True,
            )

        mock_client.kill_job.assert_awaited_once_with("job-1")


class TestHandleJobOutcome:
    """Test cases for handle_job_outcome."""

    def test_completed(self):
        outcome = handle_job_outcome(job_info(status(JobStatus.COMPLETED, StatusType.END_OF_JOB)), "/data/a.bin")
        assert outcome.ok
        assert outcome.job_status == JobStatus.COMPLETED

    def test_completed_with_skipped_is_a_warning(self):
        final = status(
            JobStatus.COMPLETED_WITH_SKIPPED,
            StatusType.END_OF_JOB,
            transfers_skipped=1,
            skipped_transfers=[TransferDetail(src="/data/b", dst="https://x/b")],
        )
        log_sink = MagicMock()

        outcome = handle_job_outcome(job_info(final, log_file_location="/logs/j.log"), "/data", log_sink)

        assert not outcome.ok
        assert outcome.warning.startswith('AzCopy Transfer: "CompletedWithSkipped".')
        assert [call.args[0] for call in log_sink.call_args_list] == [
            "Skipped transfer(s):",
            "\thttps://x/b",
            "Log file: /logs/j.log",
        ]

    def test_failed_prefers_error_message(self):
        info = job_info(status(JobStatus.FAILED, StatusType.END_OF_JOB, error_msg="azcopy said no"), error_message="UnexpectedQuit")

        with pytest.raises(TransferFailedError) as exc_info:
            handle_job_outcome(info, "/data/a.bin", MagicMock())

        assert str(exc_info.value) == "UnexpectedQuit"
        assert exc_info.value.job_info is info

    def test_failed_falls_back_to_error_msg(self):
        info = job_info(status(JobStatus.FAILED, StatusType.END_OF_JOB, error_msg="azcopy said no"))

        with pytest.raises(TransferFailedError, match="azcopy said no"):
            handle_job_outcome(info, "/data/a.bin", MagicMock())

    def test_cancelled_is_an_error(self):
        log_sink = MagicMock()
        info = job_info(status(JobStatus.CANCELLED, StatusType.END_OF_JOB))

        with pytest.raises(TransferFailedError, match='AzCopy Transfer: "Cancelled".'):
            handle_job_outcome(info, "/data/a.bin", log_sink)

        log_sink.assert_called_once_with('Could not transfer "/data/a.bin"')

    def test_no_status(self):
        with pytest.raises(TransferFailedError, match='"Unknown"'):
            handle_job_outcome(job_info(), "/data/a.bin", MagicMock())


class TestAzCopyTransfer:
    """Test cases for azcopy_transfer."""

    async def test_default_options(self, mock_client):
        mock_client.get_job_info.side_effect = [job_info(status(JobStatus.COMPLETED, StatusType.END_OF_JOB))]
        mock_client.wait_for_job.return_value = job_info(status(JobStatus.COMPLETED, StatusType.END_OF_JOB), finished=True)

        outcome = await azcopy_transfer(
            mock_client, FILE_SRC, DST, TransferProgress(update_interval_ms=0),
            from_to=FromToOption.LOCAL_BLOB, poll_interval=0,
        )

        assert outcome.ok
        options = mock_client.start_copy.call_args.args[2]
        assert options.overwrite == OverwriteOption.TRUE
        assert options.recursive is True
        assert options.exclude_path == ".git/;.vscode/"
        assert options.from_to == FromToOption.LOCAL_BLOB
