"""
Unit tests for RetentionPolicy and FileSystemReportStorage.
"""

import os
from datetime import timedelta
from pathlib import Path

import pytest

from core.domain.exceptions import (
    InvalidOrganizationIDError,
    InvalidReportPeriodError,
    InvalidRetentionPolicyError,
    ValidationError,
)
from core.domain.value_objects import ExportFormat, ReportPeriod
from reports.domain.retention import DEFAULT_RETENTION_POLICY, RetentionPolicy


def policy(daily=timedelta(days=7), weekly=timedelta(days=30), monthly=timedelta(days=365)):
    return RetentionPolicy(daily_reports=daily, weekly_reports=weekly, monthly_reports=monthly)


class TestRetentionPolicy:
    """Tests for RetentionPolicy validation and thresholds."""

    def test_minimums_accepted(self):
        minimal = policy(timedelta(hours=24), timedelta(days=7), timedelta(days=30))

        assert minimal.validate() is minimal

    @pytest.mark.parametrize(
        "overrides",
        [
            {"daily": timedelta(hours=23)},
            {"weekly": timedelta(days=6)},
            {"monthly": timedelta(days=29)},
        ],
    )
    def test_below_minimum_rejected(self, overrides):
        with pytest.raises(InvalidRetentionPolicyError):
            policy(**overrides).validate()

    def test_thresholds(self):
        assert DEFAULT_RETENTION_POLICY.threshold_for("daily") == timedelta(days=7)
        assert DEFAULT_RETENTION_POLICY.threshold_for(ReportPeriod.WEEKLY) == timedelta(days=30)
        assert DEFAULT_RETENTION_POLICY.threshold_for("monthly") == timedelta(days=365)

    def test_unknown_period(self):
        with pytest.raises(InvalidReportPeriodError):
            DEFAULT_RETENTION_POLICY.threshold_for("hourly")

    def test_to_dict_in_seconds(self):
        assert policy().to_dict()["daily_reports"] == 7 * 86400


class TestFileSystemReportStorage:
    """Tests for FileSystemReportStorage."""

    @pytest.mark.asyncio
    async def test_store_layout(self, report_storage, tmp_path):
        path = await report_storage.store("org1", "{}", ExportFormat.JSON)

        expected = tmp_path / "reports" / "report-org1" / "report-2026-01-15-120000.json"
        assert Path(path) == expected.resolve()
        assert Path(path).read_text(encoding="utf-8") == "{}"

    @pytest.mark.asyncio
    async def test_list_only_reports(self, report_storage, clock):
        first = await report_storage.store("org1", "a", ExportFormat.CSV)
        clock.advance(seconds=1)
        second = await report_storage.store("org1", "b", ExportFormat.JSON)
        (Path(first).parent / "notes.txt").write_text("x")

        assert await report_storage.list("org1") == [first, second]
        assert await report_storage.list("org2") == []

    @pytest.mark.asyncio
    async def test_file_age_and_delete(self, report_storage, clock):
        path = await report_storage.store("org1", "a", ExportFormat.CSV)
        mtime = (clock() - timedelta(days=3)).timestamp()
        os.utime(path, (mtime, mtime))

        assert await report_storage.file_age(path) == timedelta(days=3)

        await report_storage.delete(path)
        assert await report_storage.list("org1") == []

    @pytest.mark.asyncio
    async def test_same_second_reports_kept(self, report_storage):
        """Test two reports stored in the same second both survive."""
        first = await report_storage.store("org1", "a", ExportFormat.JSON)
        second = await report_storage.store("org1", "b", ExportFormat.JSON)

        assert first != second
        assert second.endswith("report-2026-01-15-120000-1.json")
        assert Path(first).read_text(encoding="utf-8") == "a"
        assert Path(second).read_text(encoding="utf-8") == "b"
        assert len(await report_storage.list("org1")) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("organization_id", ["x/../../escaped", "../org1", "org1/sub", ".hidden", ""])
    async def test_malformed_organization_rejected(self, report_storage, tmp_path, organization_id):
        """Test organization IDs cannot steer reports out of the report directory."""
        with pytest.raises(InvalidOrganizationIDError):
            await report_storage.store(organization_id, "{}", ExportFormat.JSON)

        assert not (tmp_path / "escaped").exists()
        assert list(tmp_path.rglob("*.json")) == []

    @pytest.mark.asyncio
    async def test_delete_outside_base_rejected(self, report_storage, tmp_path):
        outside = tmp_path / "keep.json"
        outside.write_text("{}", encoding="utf-8")

        with pytest.raises(ValidationError):
            await report_storage.delete(str(tmp_path / "reports" / ".." / "keep.json"))

        assert outside.exists()
