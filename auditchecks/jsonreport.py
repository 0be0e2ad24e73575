"""JSON report output."""

from __future__ import annotations

import json

from .models import AuditResult, AuditSummary, Report
from .reporter import Reporter, to_utc

_TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_OPTIONAL_VULN_FIELDS = (
    "cve_id",
    "description",
    "recommendation",
    "vulnerable_versions",
    "patched_versions",
    "url",
)

# Characters escaped inside JSON strings so the output is safe to embed in HTML.
_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _dumps(data) -> bytes:
    text = json.dumps(data, indent=2, ensure_ascii=False)
    for char, escape in _ESCAPES.items():
        text = text.replace(char, escape)
    return text.encode("utf-8")


def _counts(result: AuditResult) -> dict:
    return {
        "total": result.total_vulnerabilities,
        "critical": result.critical_count,
        "high": result.high_count,
        "moderate": result.moderate_count,
        "low": result.low_count,
    }


def _vulnerability(v) -> dict:
    data = {
        "package_name": v.package_name,
        "severity": v.severity,
        "cve_id": v.cve_id,
        "title": v.title,
        "description": v.description,
        "recommendation": v.recommendation,
        "vulnerable_versions": v.vulnerable_versions,
        "patched_versions": v.patched_versions,
        "url": v.url,
    }
    return {k: val for k, val in data.items() if k not in _OPTIONAL_VULN_FIELDS or val}


class JsonReporter(Reporter):
    """Indented JSON reports."""

    format = "json"
    extension = ".json"

    def generate(self, report: Report) -> bytes:
        data = {
            "app_name": report.app_name,
            "app_path": report.app_path,
            "auditor_type": report.auditor_type,
            "generated_at": to_utc(report.generated_at).strftime(_TIME_FORMAT),
            "summary": _counts(report.audit_result),
            "vulnerabilities": [_vulnerability(v) for v in report.vulnerabilities],
        }
        if report.ai_analysis is not None:
            data["ai_analysis"] = report.ai_analysis.to_dict()
        return _dumps(data)

    def generate_summary(self, summary: AuditSummary) -> bytes:
        data = {
            "generated_at": to_utc(summary.generated_at).strftime(_TIME_FORMAT),
            "total_apps": summary.total_apps,
            "apps_with_vulnerabilities": summary.apps_with_vulns,
            "total_vulnerabilities": summary.total_vulnerabilities,
            "summary": {
                "total": summary.total_vulnerabilities,
                "critical": summary.critical_count,
                "high": summary.high_count,
                "moderate": summary.moderate_count,
                "low": summary.low_count,
            },
            "apps": [
                {
                    "app_name": r.app_name,
                    "auditor_type": r.auditor_type,
                    "summary": _counts(r),
                }
                for r in summary.results
            ],
        }
        return _dumps(data)