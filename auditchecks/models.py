"""Domain objects for audits, apps and reports."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone

SEVERITY_CRITICAL = "critical"
SEVERITY_HIGH = "high"
SEVERITY_MODERATE = "moderate"
SEVERITY_LOW = "low"
SEVERITY_INFO = "info"

SEVERITY_ORDER = {
    SEVERITY_CRITICAL: 4,
    SEVERITY_HIGH: 3,
    SEVERITY_MODERATE: 2,
    SEVERITY_LOW: 1,
    SEVERITY_INFO: 0,
}

_ZERO_TIME = "0001-01-01T00:00:00Z"


def severity_rank(severity: str) -> int:
    """Numeric rank of a severity; unknown values rank as info."""
    return SEVERITY_ORDER.get(severity, 0)


def meets_severity_threshold(severity: str, threshold: str) -> bool:
    """True if ``severity`` is at least as severe as ``threshold``."""
    return severity_rank(severity) >= severity_rank(threshold)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _format_time(value: datetime | None) -> str:
    return value.isoformat() if value is not None else _ZERO_TIME


def _drop_empty(data: dict, keys: tuple[str, ...]) -> dict:
    return {k: v for k, v in data.items() if k not in keys or v}


@dataclass
class Vulnerability:
    package_name: str
    severity: str
    cve_id: str = ""
    title: str = ""
    description: str = ""
    recommendation: str = ""
    vulnerable_versions: str = ""
    patched_versions: str = ""
    url: str = ""
    id: str = ""
    audit_result_id: str = ""
    created_at: datetime | None = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "audit_result_id": self.audit_result_id,
            "package_name": self.package_name,
            "severity": self.severity,
            "cve_id": self.cve_id,
            "title": self.title,
            "description": self.description,
            "recommendation": self.recommendation,
            "vulnerable_versions": self.vulnerable_versions,
            "patched_versions": self.patched_versions,
            "url": self.url,
            "created_at": _format_time(self.created_at),
        }
        return _drop_empty(
            data,
            (
                "cve_id",
                "description",
                "recommendation",
                "vulnerable_versions",
                "patched_versions",
                "url",
            ),
        )


@dataclass
class AuditResult:
    app_name: str = ""
    app_path: str = ""
    auditor_type: str = ""
    vulnerabilities: list[Vulnerability] = field(default_factory=list)
    total_vulnerabilities: int = 0
    critical_count: int = 0
    high_count: int = 0
    moderate_count: int = 0
    low_count: int = 0
    raw_output: str = ""
    ai_summary: str = ""
    id: str = ""
    created_at: datetime | None = None

    def update_counts(self) -> None:
        """Recompute the totals from the vulnerability list."""
        counts = Counter(v.severity for v in self.vulnerabilities)
        self.total_vulnerabilities = len(self.vulnerabilities)
        self.critical_count = counts[SEVERITY_CRITICAL]
        self.high_count = counts[SEVERITY_HIGH]
        self.moderate_count = counts[SEVERITY_MODERATE]
        self.low_count = counts[SEVERITY_LOW]

    def has_vulnerabilities(self) -> bool:
        return self.total_vulnerabilities > 0

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "app_name": self.app_name,
            "app_path": self.app_path,
            "auditor_type": self.auditor_type,
            "total_vulnerabilities": self.total_vulnerabilities,
            "critical_count": self.critical_count,
            "high_count": self.high_count,
            "moderate_count": self.moderate_count,
            "low_count": self.low_count,
            "raw_output": self.raw_output,
            "ai_summary": self.ai_summary,
            "created_at": _format_time(self.created_at),
            "vulnerabilities": [v.to_dict() for v in self.vulnerabilities],
        }
        return _drop_empty(data, ("raw_output", "ai_summary", "vulnerabilities"))


@dataclass
class NotificationConfig:
    email: list[str] = field(default_factory=list)
    telegram_enabled: bool = False
    telegram_topic_id: int = 0
    app_name: str = ""


@dataclass
class AppConfig:
    """In-memory description of an app to audit."""

    name: str
    path: str
    type: str = "auto"
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    enabled: bool = True
    ignore_list: list[str] = field(default_factory=list)


@dataclass
class App:
    """An app as stored in the database."""

    name: str
    path: str
    type: str = "auto"
    email_notifications: list[str] = field(default_factory=list)
    telegram_enabled: bool = False
    telegram_topic_id: int = 0
    ignore_list: list[str] = field(default_factory=list)
    enabled: bool = True
    id: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_app_config(self) -> AppConfig:
        return AppConfig(
            name=self.name,
            path=self.path,
            type=self.type,
            notifications=NotificationConfig(
                email=list(self.email_notifications),
                telegram_enabled=self.telegram_enabled,
                telegram_topic_id=self.telegram_topic_id,
                app_name=self.name,
            ),
            enabled=self.enabled,
            ignore_list=list(self.ignore_list),
        )


@dataclass
class AIAnalysis:
    summary: str = ""
    priority: list[str] = field(default_factory=list)
    remediation: list[str] = field(default_factory=list)
    risk_assessment: str = ""

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "priority": list(self.priority),
            "remediation": list(self.remediation),
            "risk_assessment": self.risk_assessment,
        }


@dataclass(frozen=True)
class Summary:
    total: int = 0
    critical: int = 0
    high: int = 0
    moderate: int = 0
    low: int = 0

    def __add__(self, other: Summary) -> Summary:
        return Summary(
            total=self.total + other.total,
            critical=self.critical + other.critical,
            high=self.high + other.high,
            moderate=self.moderate + other.moderate,
            low=self.low + other.low,
        )


@dataclass
class Report:
    app_name: str
    app_path: str
    auditor_type: str
    audit_result: AuditResult
    vulnerabilities: list[Vulnerability]
    ai_analysis: AIAnalysis | None = None
    generated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def from_result(cls, result: AuditResult, analysis: AIAnalysis | None = None) -> Report:
        return cls(
            app_name=result.app_name,
            app_path=result.app_path,
            auditor_type=result.auditor_type,
            audit_result=result,
            vulnerabilities=result.vulnerabilities,
            ai_analysis=analysis,
        )

    def summary(self) -> Summary:
        r = self.audit_result
        return Summary(
            total=r.total_vulnerabilities,
            critical=r.critical_count,
            high=r.high_count,
            moderate=r.moderate_count,
            low=r.low_count,
        )


@dataclass
class CombinedAppReport:
    """Results of every auditor that ran for one app."""

    app_name: str
    app_path: str
    reports: list[Report] = field(default_factory=list)
    report_files: list[str] = field(default_factory=list)
    generated_at: datetime = field(default_factory=utcnow)

    def add_report(self, report: Report, file_paths) -> None:
        self.reports.append(report)
        self.report_files.extend(file_paths or ())

    def combined_summary(self) -> Summary:
        return sum((r.summary() for r in self.reports), Summary())

    def has_vulnerabilities(self) -> bool:
        return any(r.audit_result.has_vulnerabilities() for r in self.reports)


@dataclass
class AuditSummary:
    """Totals across every audited app."""

    total_apps: int = 0
    apps_with_vulns: int = 0
    total_vulnerabilities: int = 0
    critical_count: int = 0
    high_count: int = 0
    moderate_count: int = 0
    low_count: int = 0
    results: list[AuditResult] = field(default_factory=list)
    generated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def from_results(cls, results) -> AuditSummary:
        results = list(results)
        return cls(
            total_apps=len(results),
            apps_with_vulns=sum(1 for r in results if r.has_vulnerabilities()),
            total_vulnerabilities=sum(r.total_vulnerabilities for r in results),
            critical_count=sum(r.critical_count for r in results),
            high_count=sum(r.high_count for r in results),
            moderate_count=sum(r.moderate_count for r in results),
            low_count=sum(r.low_count for r in results),
            results=results,
        )

    def to_dict(self) -> dict:
        return {
            "total_apps": self.total_apps,
            "apps_with_vulnerabilities": self.apps_with_vulns,
            "total_vulnerabilities": self.total_vulnerabilities,
            "critical_count": self.critical_count,
            "high_count": self.high_count,
            "moderate_count": self.moderate_count,
            "low_count": self.low_count,
            "results": [r.to_dict() for r in self.results],
            "generated_at": _format_time(self.generated_at),
        }