"""Report generation and output to disk."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path

from .models import AuditSummary, Report, utcnow

log = logging.getLogger(__name__)


class ReportError(Exception):
    """A report could not be generated or written.

    ``paths`` holds the files that were written before the failure.
    """

    def __init__(self, message: str, paths=()) -> None:
        super().__init__(message)
        self.paths = list(paths)


def to_utc(value: datetime) -> datetime:
    """Convert to UTC; naive datetimes are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def build_filename(app_name: str, auditor_type: str, extension: str, now: datetime | None = None) -> str:
    """``{app}-{auditor}-{timestamp}{ext}``, or ``{app}-{timestamp}{ext}`` without an auditor."""
    timestamp = to_utc(now or utcnow()).strftime("%Y-%m-%d-%H%M%S")
    if auditor_type:
        return f"{app_name}-{auditor_type}-{timestamp}{extension}"
    return f"{app_name}-{timestamp}{extension}"


class Reporter(ABC):
    """Renders a report in one output format.

    Reporters that also provide ``generate_summary(summary)`` take part in
    summary reports.
    """

    format: str = ""
    extension: str = ""

    @abstractmethod
    def generate(self, report: Report) -> bytes:
        """Render ``report`` as file content."""


class ReportManager:
    """Registered reporters and the directory their files go to."""

    def __init__(self, output_dir) -> None:
        self.output_dir = Path(output_dir)
        self._reporters: dict[str, Reporter] = {}
        self._lock = threading.RLock()

    def register(self, reporter: Reporter) -> None:
        with self._lock:
            self._reporters[reporter.format] = reporter

    def get(self, fmt: str) -> Reporter | None:
        with self._lock:
            return self._reporters.get(fmt)

    def formats(self) -> list[str]:
        with self._lock:
            return list(self._reporters)

    def generate_all(self, report: Report) -> list[str]:
        """Write the report in every registered format; returns the file paths."""
        with self._lock:
            reporters = list(self._reporters.items())
        return self._generate(report, reporters)

    def generate_formats(self, report: Report, formats) -> list[str]:
        """Write the report in the named formats, skipping unknown ones."""
        selected = []
        with self._lock:
            for fmt in formats:
                reporter = self._reporters.get(fmt)
                if reporter is None:
                    log.warning("Unknown report format: %s", fmt)
                    continue
                selected.append((fmt, reporter))
        return self._generate(report, selected)

    def _generate(self, report: Report, reporters) -> list[str]:
        paths: list[str] = []
        for fmt, reporter in reporters:
            try:
                paths.append(self._generate_and_save(report, reporter))
            except ReportError as exc:
                log.error(
                    "Failed to generate report format=%s app=%s error=%s",
                    fmt,
                    report.app_name,
                    exc,
                )
                raise ReportError(str(exc), paths) from exc
        return paths

    def _generate_and_save(self, report: Report, reporter: Reporter) -> str:
        try:
            content = reporter.generate(report)
        except Exception as exc:
            raise ReportError(f"failed to generate {reporter.format} report: {exc}") from exc

        path = self.output_dir / build_filename(report.app_name, report.auditor_type, reporter.extension)
        try:
            path.write_bytes(content)
        except OSError as exc:
            raise ReportError(f"failed to write report file: {exc}") from exc

        log.info(
            "Report generated format=%s app=%s auditor=%s file=%s",
            reporter.format,
            report.app_name,
            report.auditor_type,
            path,
        )
        return str(path)

    def generate_summary_report(self, summary: AuditSummary, formats) -> list[str]:
        """Write a summary in each named format that supports one.

        Failures are logged and skipped; returns the files written.
        """
        paths: list[str] = []
        with self._lock:
            selected = [(fmt, self._reporters.get(fmt)) for fmt in formats]
        for fmt, reporter in selected:
            if reporter is None:
                continue
            generate_summary = getattr(reporter, "generate_summary", None)
            if not callable(generate_summary):
                continue
            try:
                content = generate_summary(summary)
            except Exception as exc:
                log.error("Failed to generate summary report format=%s error=%s", fmt, exc)
                continue

            path = self.output_dir / build_filename("summary", "", reporter.extension)
            try:
                path.write_bytes(content)
            except OSError as exc:
                log.error("Failed to write summary report format=%s error=%s", fmt, exc)
                continue

            log.info("Summary report generated format=%s file=%s", fmt, path)
            paths.append(str(path))
        return paths