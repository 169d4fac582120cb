"""
Unit tests for transfer status and location models.
"""

import pytest
from pydantic import TypeAdapter, ValidationError

from azcopy_orchestrator.models.locations import AzCopyLocation, LocalLocation, RemoteAuthLocation
from azcopy_orchestrator.models.transfer_status import (
    JobStatus,
    StatusType,
    TransferStatus,
    parse_wire_int,
)


class TestParseWireInt:
    """Test cases for parse_wire_int."""

    @pytest.mark.parametrize("value,expected", [
        (None, 0),
        ("", 0),
        ("17", 17),
        (" 17 ", 17),
        ("42.857", 42),
        (3.9, 3),
        (5, 5),
    ])
    def test_values(self, value, expected):
        assert parse_wire_int(value) == expected

    def test_garbage_raises(self):
        with pytest.raises(ValueError):
            parse_wire_int("lots")


class TestTransferStatus:
    """Test cases for TransferStatus."""

    def test_wire_aliases(self):
        status = TransferStatus.model_validate({
            "JobStatus": "CompletedWithErrors",
            "TransfersFailed": "1",
            "ErrorMsg": None,
            "SkippedTransfers": None,
        })
        assert status.job_status == JobStatus.COMPLETED_WITH_ERRORS
        assert status.transfers_failed == 1
        assert status.error_msg == ""
        assert status.skipped_transfers == []

    def test_status_is_frozen(self):
        status = TransferStatus(job_status=JobStatus.IN_PROGRESS)
        with pytest.raises(ValidationError):
            status.transfers_completed = 3

    def test_unknown_job_status_is_rejected(self):
        with pytest.raises(ValidationError):
            TransferStatus.model_validate({"JobStatus": "Paused"})

    def test_as_failed_end_of_job(self):
        status = TransferStatus(job_status=JobStatus.IN_PROGRESS, transfers_completed=5)
        failed = status.as_failed_end_of_job()

        assert failed.job_status == JobStatus.FAILED
        assert failed.status_type == StatusType.END_OF_JOB
        assert failed.transfers_completed == 5
        assert status.job_status == JobStatus.IN_PROGRESS

    def test_fake_exit_status(self):
        status = TransferStatus.fake_exit_status()
        assert status.is_end_of_job
        assert status.job_status == JobStatus.FAILED
        assert status.timestamp

    def test_job_status_groups(self):
        assert JobStatus.COMPLETED_WITH_SKIPPED.is_completed
        assert not JobStatus.FAILED.is_completed
        assert JobStatus.CANCELLING.is_in_flight
        assert not JobStatus.CANCELLED.is_in_flight


class TestLocations:
    """Test cases for location models."""

    def test_discriminated_union(self):
        adapter = TypeAdapter(AzCopyLocation)
        location = adapter.validate_python({"type": "Local", "path": "/a"})
        assert isinstance(location, LocalLocation)

    def test_refresh_callback_is_not_serialized(self):
        async def refresh():
            return "token"

        location = RemoteAuthLocation(resource_uri="https://a/c", path="/x", auth_token="t", refresh_token=refresh)
        assert "refresh_token" not in location.model_dump()
        assert location.refresh_token is refresh
