"""Markdown report output."""

from __future__ import annotations

from .models import AIAnalysis, AuditResult, AuditSummary, Report, Vulnerability
from .reporter import Reporter, to_utc

_TIME_FORMAT = "%Y-%m-%d %H:%M:%S UTC"
_FOOTER = "\n\n---\n\n*Generated by Audit Checks*\n"


def _title_case(text: str) -> str:
    """Upper-case the first letter of every word."""
    out = []
    boundary = True
    for char in text:
        out.append(char.upper() if boundary else char)
        boundary = not (char.isalnum() or char == "_")
    return "".join(out)


def _or(value: str, default: str) -> str:
    return value if value else default


def _severity_table(result: AuditResult) -> str:
    return (
        "| Severity | Count |\n"
        "|----------|-------|\n"
        f"| Critical | {result.critical_count} |\n"
        f"| High | {result.high_count} |\n"
        f"| Moderate | {result.moderate_count} |\n"
        f"| Low | {result.low_count} |\n"
        f"| **Total** | **{result.total_vulnerabilities}** |\n"
    )


def _vulnerability_section(number: int, v: Vulnerability) -> str:
    text = (
        f"\n### {number}. {v.package_name} - {v.title} ({_title_case(v.severity)})\n\n"
        "| Field | Value |\n"
        "|-------|-------|\n"
        f"| **Severity** | {v.severity.upper()} |\n"
        f"| **CVE** | {_or(v.cve_id, 'N/A')} |\n"
        f"| **Affected Versions** | {_or(v.vulnerable_versions, 'Unknown')} |\n"
        f"| **Patched Versions** | {_or(v.patched_versions, 'Unknown')} |\n"
    )
    if v.url:
        text += f"| **Reference** | [Link]({v.url}) |"
    text += "\n\n"
    if v.description:
        text += f"\n**Description:** {v.description}\n"
    text += "\n\n"
    if v.recommendation:
        text += f"\n**Recommendation:** {v.recommendation}\n"
    text += "\n\n---\n\n"
    return text


def _ai_section(analysis: AIAnalysis) -> str:
    text = f"\n## AI Analysis\n\n### Summary\n\n{analysis.summary}\n\n"
    if analysis.priority:
        text += "\n### Recommended Fix Order\n\n"
        text += "".join(f"\n{i}. {pkg}\n" for i, pkg in enumerate(analysis.priority, start=1))
        text += "\n"
    text += "\n\n"
    if analysis.remediation:
        text += "\n### Remediation Commands\n\n```bash\n"
        text += "".join(f"\n{command}\n" for command in analysis.remediation)
        text += "\n```\n"
    text += "\n\n"
    if analysis.risk_assessment:
        text += f"\n### Risk Assessment\n\n{analysis.risk_assessment}\n"
    text += "\n"
    return text


class MarkdownReporter(Reporter):
    """Human-readable Markdown reports."""

    format = "markdown"
    extension = ".md"

    def generate(self, report: Report) -> bytes:
        result = report.audit_result
        parts = [
            f"# Security Audit Report: {report.app_name}\n\n"
            f"**Generated:** {to_utc(report.generated_at).strftime(_TIME_FORMAT)}\n"
            f"**Auditor:** {report.auditor_type}\n"
            f"**Path:** {report.app_path}\n\n"
            "---\n\n"
            "## Summary\n\n",
            _severity_table(result),
            "\n",
        ]
        if result.total_vulnerabilities == 0:
            parts.append("\nNo vulnerabilities found.\n")
        else:
            parts.append("\n---\n\n## Vulnerabilities\n\n")
            parts.extend(
                _vulnerability_section(i, v) for i, v in enumerate(report.vulnerabilities, start=1)
            )
            parts.append("\n")
        parts.append("\n\n")
        if report.ai_analysis is not None:
            parts.append(_ai_section(report.ai_analysis))
        parts.append(_FOOTER)
        return "".join(parts).encode("utf-8")

    def generate_summary(self, summary: AuditSummary) -> bytes:
        parts = [
            "# Security Audit Summary Report\n\n"
            f"**Generated:** {to_utc(summary.generated_at).strftime(_TIME_FORMAT)}\n\n"
            "---\n\n"
            "## Overview\n\n"
            "| Metric | Value |\n"
            "|--------|-------|\n"
            f"| Total Apps Audited | {summary.total_apps} |\n"
            f"| Apps with Vulnerabilities | {summary.apps_with_vulns} |\n"
            f"| Total Vulnerabilities | {summary.total_vulnerabilities} |\n\n"
            "## Severity Breakdown\n\n"
            "| Severity | Count |\n"
            "|----------|-------|\n"
            f"| Critical | {summary.critical_count} |\n"
            f"| High | {summary.high_count} |\n"
            f"| Moderate | {summary.moderate_count} |\n"
            f"| Low | {summary.low_count} |\n\n"
            "---\n\n"
            "## Per-App Results\n\n"
        ]
        for result in summary.results:
            parts.append(
                f"\n### {result.app_name}\n\n"
                f"**Auditor:** {result.auditor_type}\n\n"
                + _severity_table(result)
                + "\n---\n\n"
            )
        parts.append("\n\n*Generated by Audit Checks*\n")
        return "".join(parts).encode("utf-8")