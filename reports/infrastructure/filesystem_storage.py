"""
Filesystem implementation of ReportStorage port.

Reports are written as <base>/report-<org>/report-<YYYY-MM-DD-HHMMSS>.<format>.
A second report in the same second gets a -1, -2, ... suffix.
"""
import logging
import os
from datetime import datetime, timedelta, timezone as dt_timezone
from pathlib import Path
from typing import Callable, List

from asgiref.sync import sync_to_async
from django.utils import timezone

from core.domain.exceptions import ValidationError
from core.domain.value_objects import ExportFormat, validate_organization_id
from reports.ports.report_storage import ReportStorage

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d-%H%M%S"

MAX_SAME_SECOND_REPORTS = 1000


class FileSystemReportStorage(ReportStorage):
    """Stores reports below a base directory."""

    def __init__(self, base_dir, clock: Callable[[], datetime] = timezone.now):
        self.base_dir = Path(base_dir)
        self.clock = clock

    def _confined(self, path: Path) -> Path:
        """Return path resolved, refusing anything outside the base directory."""
        resolved = path.resolve()
        if not resolved.is_relative_to(self.base_dir.resolve()):
            raise ValidationError(
                f"Report path {path} is outside the report directory", code="INVALID_REPORT_PATH"
            )
        return resolved

    def organization_dir(self, organization_id: str) -> Path:
        """
        Return the directory holding an organization's reports.

        Raises:
            InvalidOrganizationIDError: If the organization ID is malformed
        """
        validate_organization_id(organization_id)
        return self._confined(self.base_dir / f"report-{organization_id}")

    def report_path(
        self, organization_id: str, timestamp: datetime, export_format: ExportFormat, sequence: int = 0
    ) -> Path:
        """Return the path a report generated at timestamp is stored under."""
        stem = f"report-{timestamp.strftime(TIMESTAMP_FORMAT)}"
        if sequence:
            stem = f"{stem}-{sequence}"
        return self.organization_dir(organization_id) / f"{stem}.{export_format.value}"

    @sync_to_async
    def store(self, organization_id: str, content: str, export_format: ExportFormat) -> str:
        now = self.clock()
        directory = self.organization_dir(organization_id)
        directory.mkdir(parents=True, exist_ok=True)
        for sequence in range(MAX_SAME_SECOND_REPORTS):
            path = self.report_path(organization_id, now, export_format, sequence)
            try:
                with open(path, "x", encoding="utf-8") as f:
                    f.write(content)
            except FileExistsError:
                continue
            logger.debug(
                "Stored report", extra={"organization_id": organization_id, "path": str(path)}
            )
            return str(path)
        raise FileExistsError(f"Too many reports for {organization_id} at {now.isoformat()}")

    @sync_to_async
    def list(self, organization_id: str) -> List[str]:
        directory = self.organization_dir(organization_id)
        if not directory.is_dir():
            return []
        suffixes = {f".{fmt.value}" for fmt in ExportFormat}
        return sorted(
            str(path)
            for path in directory.glob("report-*")
            if path.is_file() and path.suffix in suffixes
        )

    @sync_to_async
    def delete(self, path: str) -> None:
        os.remove(self._confined(Path(path)))

    @sync_to_async
    def file_age(self, path: str) -> timedelta:
        modified = datetime.fromtimestamp(
            os.stat(self._confined(Path(path))).st_mtime, tz=dt_timezone.utc
        )
        return self.clock() - modified
