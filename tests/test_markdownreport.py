from datetime import datetime, timezone

from auditchecks.markdownreport import MarkdownReporter
from auditchecks.models import AIAnalysis, AuditResult, AuditSummary, Report, Vulnerability

FIXED = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def make_result(name="web", auditor="npm", vulns=None):
    result = AuditResult(
        app_name=name,
        app_path="/srv/" + name,
        auditor_type=auditor,
        vulnerabilities=vulns if vulns is not None else [
            Vulnerability(
                package_name="lodash",
                severity="high",
                title="Prototype Pollution",
                url="https://example.com/advisory",
                description="Vulnerable versions: <4.17.19",
                recommendation="Update lodash",
            ),
            Vulnerability(package_name="minimist", severity="moderate", title="Bad parse"),
        ],
    )
    result.update_counts()
    return result


def render(analysis=None, **kwargs):
    report = Report.from_result(make_result(**kwargs), analysis)
    report.generated_at = FIXED
    return MarkdownReporter().generate(report).decode()


def test_format_and_extension():
    reporter = MarkdownReporter()
    assert (reporter.format, reporter.extension) == ("markdown", ".md")


def test_header_and_footer():
    text = render()
    assert text.startswith("# Security Audit Report: web\n\n**Generated:** 2024-01-02 03:04:05 UTC\n")
    assert "**Auditor:** npm\n**Path:** /srv/web\n" in text
    assert text.endswith("\n---\n\n*Generated by Audit Checks*\n")


def test_no_vulnerabilities():
    text = render(vulns=[])
    assert "\nNo vulnerabilities found.\n" in text
    assert "## Vulnerabilities" not in text
    assert "| **Total** | **0** |" in text


def test_vulnerability_sections_numbered_and_titled():
    text = render()
    assert "### 1. lodash - Prototype Pollution (High)" in text
    assert "### 2. minimist - Bad parse (Moderate)" in text
    assert text.index("### 1.") < text.index("### 2.")
    assert "| **Severity** | HIGH |" in text


def test_defaults_for_missing_fields():
    text = render()
    second = text[text.index("### 2."):]
    assert "| **CVE** | N/A |" in second
    assert "| **Affected Versions** | Unknown |" in second
    assert "| **Patched Versions** | Unknown |" in second
    assert "[Link]" not in second
    assert "**Description:**" not in second


def test_optional_lines_present_when_set():
    text = render()
    first = text[text.index("### 1."):text.index("### 2.")]
    assert "| **Reference** | [Link](https://example.com/advisory) |" in first
    assert "**Description:** Vulnerable versions: <4.17.19" in first
    assert "**Recommendation:** Update lodash" in first


def test_ai_section_absent_without_analysis():
    assert "## AI Analysis" not in render()


def test_ai_section_content():
    analysis = AIAnalysis(
        summary="Two issues.",
        priority=["lodash", "minimist"],
        remediation=["npm update lodash"],
        risk_assessment="Data theft possible.",
    )
    text = render(analysis)
    ai = text[text.index("## AI Analysis"):]
    assert "### Summary\n\nTwo issues.\n" in ai
    assert "\n1. lodash\n" in ai and "\n2. minimist\n" in ai
    assert "```bash\n\nnpm update lodash\n\n```" in ai
    assert "### Risk Assessment\n\nData theft possible.\n" in ai


def test_ai_section_skips_empty_parts():
    text = render(AIAnalysis(summary="Only summary."))
    assert "Only summary." in text
    assert "Recommended Fix Order" not in text
    assert "```bash" not in text
    assert "Risk Assessment" not in text


def test_generate_summary():
    results = [make_result("alpha"), make_result("beta", "composer", vulns=[])]
    summary = AuditSummary.from_results(results)
    summary.generated_at = FIXED
    text = MarkdownReporter().generate_summary(summary).decode()
    assert text.startswith("# Security Audit Summary Report\n")
    assert f"| Total Apps Audited | {summary.total_apps} |" in text
    assert f"| Apps with Vulnerabilities | {summary.apps_with_vulns} |" in text
    assert text.index("### alpha") < text.index("### beta")
    assert "**Auditor:** composer" in text
    assert text.endswith("\n*Generated by Audit Checks*\n")