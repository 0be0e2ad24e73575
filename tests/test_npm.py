import json
import subprocess
from unittest.mock import patch

import pytest

from auditchecks.auditor import AuditError
from auditchecks.models import AppConfig
from auditchecks.npm import (
    FIX_AVAILABLE_TEXT,
    NpmAuditor,
    build_npm_recommendation,
    normalize_severity,
)

SAMPLE = json.dumps(
    {
        "auditReportVersion": 2,
        "vulnerabilities": {
            "lodash": {
                "name": "lodash",
                "severity": "high",
                "isDirect": True,
                "via": [
                    {
                        "title": "Prototype Pollution",
                        "url": "https://github.com/advisories/GHSA-aaaa",
                        "range": "<4.17.21",
                    }
                ],
                "range": "<4.17.21",
                "fixAvailable": {"name": "lodash", "version": "4.17.21", "isSemVerMajor": False},
            },
            "minimist": {
                "name": "minimist",
                "severity": "critical",
                "isDirect": False,
                "via": ["other-pkg"],
                "range": "*",
                "fixAvailable": True,
            },
            "debug": {
                "name": "debug",
                "severity": "medium",
                "isDirect": False,
                "via": [{"title": "ReDoS", "url": "https://nvd.example.com/vuln/detail/CVE-2017-16137"}],
                "range": "<2.6.9",
                "fixAvailable": False,
            },
        },
        "metadata": {},
    }
)


def _app(path="/tmp/app", ignore=None):
    return AppConfig(name="web", path=str(path), ignore_list=ignore or [])


def _by_name(result):
    return {v.package_name: v for v in result.vulnerabilities}


@pytest.mark.parametrize(
    "raw, expected",
    [("CRITICAL", "critical"), ("high", "high"), ("medium", "moderate"),
     ("moderate", "moderate"), ("Low", "low"), ("weird", "info"), ("", "info")],
)
def test_normalize_severity(raw, expected):
    assert normalize_severity(raw) == expected


def test_parse_output_object_via():
    vulns = _by_name(NpmAuditor().parse_output(SAMPLE, _app()))
    lodash = vulns["lodash"]
    assert lodash.severity == "high"
    assert lodash.title == "Prototype Pollution"
    assert lodash.description == "Vulnerable versions: <4.17.21"
    assert lodash.patched_versions == "4.17.21"
    assert lodash.vulnerable_versions == "<4.17.21"
    assert lodash.cve_id == ""
    assert lodash.recommendation == (
        "Update lodash to version 4.17.21. "
        "Run 'npm audit fix' to automatically update. "
        "This is a direct dependency."
    )


def test_parse_output_string_via_and_fix_true():
    minimist = _by_name(NpmAuditor().parse_output(SAMPLE, _app()))["minimist"]
    assert minimist.description == "Vulnerability via dependency: other-pkg"
    assert minimist.patched_versions == FIX_AVAILABLE_TEXT
    assert minimist.recommendation.endswith("This is a transitive dependency.")


def test_parse_output_cve_from_url_and_no_fix():
    debug = _by_name(NpmAuditor().parse_output(SAMPLE, _app()))["debug"]
    assert debug.cve_id == "CVE-2017-16137"
    assert debug.severity == "moderate"
    assert debug.patched_versions == ""
    assert "No automatic fix available" in debug.recommendation


def test_parse_output_counts_match_vulnerabilities():
    result = NpmAuditor().parse_output(SAMPLE, _app())
    assert result.total_vulnerabilities == len(result.vulnerabilities)
    assert result.critical_count + result.high_count + result.moderate_count + result.low_count == 3


def test_parse_output_ignore_list_by_package_and_cve():
    result = NpmAuditor().parse_output(SAMPLE, _app(ignore=["lodash", "CVE-2017-16137"]))
    assert [v.package_name for v in result.vulnerabilities] == ["minimist"]
    assert result.total_vulnerabilities == 1


def test_parse_output_invalid_json():
    with pytest.raises(AuditError):
        NpmAuditor().parse_output("not json", _app())


def test_recommendation_without_patch_or_fix():
    text = build_npm_recommendation("pkg", False, None, "")
    assert text == (
        "No automatic fix available. Manual intervention required. "
        "This is a transitive dependency."
    )


def test_detect(tmp_path):
    auditor = NpmAuditor()
    assert auditor.detect(str(tmp_path)) is False
    (tmp_path / "package-lock.json").write_text("{}")
    assert auditor.detect(str(tmp_path)) is True


def test_audit_requires_npm(tmp_path):
    with patch("shutil.which", return_value=None):
        with pytest.raises(AuditError, match="not found in PATH"):
            NpmAuditor().audit(_app(tmp_path))


def test_audit_requires_package_json(tmp_path):
    with patch("shutil.which", return_value="/usr/bin/npm"):
        with pytest.raises(AuditError, match="package.json not found"):
            NpmAuditor().audit(_app(tmp_path))


def test_audit_parses_command_output(tmp_path):
    (tmp_path / "package.json").write_text("{}")
    (tmp_path / "package-lock.json").write_text("{}")
    done = subprocess.CompletedProcess(["npm"], 1, stdout=SAMPLE, stderr="")
    with patch("shutil.which", return_value="/usr/bin/npm"), patch(
        "subprocess.run", return_value=done
    ) as run:
        result = NpmAuditor().audit(_app(tmp_path))
    assert run.call_args.args[0] == ["npm", "audit", "--json"]
    assert run.call_args.kwargs["cwd"] == str(tmp_path)
    assert result.auditor_type == "npm"
    assert result.app_name == "web"
    assert result.app_path == str(tmp_path)
    assert result.raw_output == SAMPLE
    assert len(result.vulnerabilities) == 3


def test_audit_empty_output(tmp_path):
    (tmp_path / "package.json").write_text("{}")
    done = subprocess.CompletedProcess(["npm"], 0, stdout="  \n", stderr="")
    with patch("shutil.which", return_value="/usr/bin/npm"), patch("subprocess.run", return_value=done):
        result = NpmAuditor().audit(_app(tmp_path))
    assert result.vulnerabilities == []
    assert result.auditor_type == "npm"


def test_audit_failure_exit_code(tmp_path):
    (tmp_path / "package.json").write_text("{}")
    done = subprocess.CompletedProcess(["npm"], 2, stdout="", stderr="boom\n")
    with patch("shutil.which", return_value="/usr/bin/npm"), patch("subprocess.run", return_value=done):
        with pytest.raises(AuditError, match=r"npm audit failed \(exit 2\): boom"):
            NpmAuditor().audit(_app(tmp_path))


def test_audit_bad_output(tmp_path):
    (tmp_path / "package.json").write_text("{}")
    done = subprocess.CompletedProcess(["npm"], 1, stdout="oops", stderr="")
    with patch("shutil.which", return_value="/usr/bin/npm"), patch("subprocess.run", return_value=done):
        with pytest.raises(AuditError, match="failed to parse npm audit output"):
            NpmAuditor().audit(_app(tmp_path))