"""composer audit integration."""

from __future__ import annotations

import json
import logging
import os
import shutil
import subprocess

from .auditor import AuditError, Auditor, filter_ignored
from .models import (
    SEVERITY_CRITICAL,
    SEVERITY_HIGH,
    SEVERITY_MODERATE,
    AppConfig,
    AuditResult,
    Vulnerability,
)
from .npm import normalize_severity

log = logging.getLogger(__name__)

# 1: advisories, 2: abandoned packages, 3: both.
_EXPECTED_EXIT_CODES = {0, 1, 2, 3}

_CRITICAL_TITLE_HINTS = ("remote code execution", "rce", "sql injection")
_HIGH_TITLE_HINTS = ("xss", "cross-site", "authentication bypass")


def determine_severity(advisory) -> str:
    """Severity of a composer advisory: explicit, then from sources, then from the title."""
    severity = advisory.get("severity") or ""
    if severity:
        return normalize_severity(severity)

    for source in advisory.get("sources") or []:
        name = str((source or {}).get("name") or "").lower()
        if "critical" in name:
            return SEVERITY_CRITICAL
        if "high" in name:
            return SEVERITY_HIGH

    title = str(advisory.get("title") or "").lower()
    if any(hint in title for hint in _CRITICAL_TITLE_HINTS):
        return SEVERITY_CRITICAL
    if any(hint in title for hint in _HIGH_TITLE_HINTS):
        return SEVERITY_HIGH
    return SEVERITY_MODERATE


def build_composer_recommendation(package: str, affected_versions: str, link: str) -> str:
    """Advice text for one composer advisory."""
    text = (
        f"Update {package} to a patched version. "
        f"Affected versions: {affected_versions}. "
        f"Run 'composer update {package}' to update the package. "
    )
    if link:
        text += f"See {link} for more details."
    return text


def _failure_message(proc: subprocess.CompletedProcess) -> str:
    message = (proc.stderr or "").strip() or (proc.stdout or "").strip()
    return message or f"exit code {proc.returncode}"


def _advisories_by_package(raw) -> dict:
    if raw is None:
        return {}
    if isinstance(raw, list):
        return {}
    if not isinstance(raw, dict):
        raise AuditError("failed to parse advisories: expected an object or an array")
    for package, advisories in raw.items():
        if advisories is None:
            continue
        if not isinstance(advisories, list) or not all(isinstance(a, dict) for a in advisories):
            raise AuditError(f"failed to parse advisories: bad entry for {package}")
    return raw


class ComposerAuditor(Auditor):
    """Runs ``composer audit`` and reads its JSON report."""

    name = "composer"

    def detect(self, path: str) -> bool:
        return os.path.exists(os.path.join(path, "composer.json")) or os.path.exists(
            os.path.join(path, "composer.lock")
        )

    def audit(self, app: AppConfig) -> AuditResult:
        log.info("Running composer audit for app=%s path=%s", app.name, app.path)

        if shutil.which("composer") is None:
            raise AuditError("composer not found in PATH")
        if not os.path.exists(os.path.join(app.path, "composer.json")):
            raise AuditError(f"composer.json not found in {app.path}")
        if not os.path.exists(os.path.join(app.path, "composer.lock")):
            log.warning("composer.lock not found in %s, auditing from composer.json only", app.path)

        try:
            proc = subprocess.run(
                ["composer", "audit", "--format=json", "--no-interaction"],
                cwd=app.path,
                capture_output=True,
                text=True,
            )
        except OSError as exc:
            raise AuditError(f"failed to run composer audit: {exc}") from exc

        if proc.returncode not in _EXPECTED_EXIT_CODES:
            raise AuditError(
                f"composer audit failed (exit {proc.returncode}): {_failure_message(proc)}"
            )

        output = proc.stdout or ""
        if not output.strip():
            log.debug("composer audit returned empty output for app=%s", app.name)
            return AuditResult(auditor_type=self.name, app_name=app.name, app_path=app.path)

        try:
            result = self.parse_output(output, app)
        except AuditError as exc:
            log.debug("composer audit raw output: %s", output)
            raise AuditError(f"failed to parse composer audit output: {exc}") from exc

        result.raw_output = output
        result.auditor_type = self.name
        result.app_name = app.name
        result.app_path = app.path

        log.info(
            "composer audit completed for app=%s total=%d critical=%d high=%d",
            app.name,
            result.total_vulnerabilities,
            result.critical_count,
            result.high_count,
        )
        return result

    def parse_output(self, output: str, app: AppConfig) -> AuditResult:
        """Turn ``composer audit --format=json`` output into an AuditResult."""
        if not output.strip() or output in ("{}", "[]"):
            return AuditResult()

        try:
            data = json.loads(output)
        except json.JSONDecodeError as exc:
            raise AuditError(f"failed to parse JSON: {exc}") from exc

        if data is None:
            data = {}
        if isinstance(data, list):
            if not data:
                return AuditResult()
            raise AuditError("failed to parse JSON: unexpected array")
        if not isinstance(data, dict):
            raise AuditError("failed to parse JSON: expected an object")

        vulns = []
        for package, advisories in _advisories_by_package(data.get("advisories")).items():
            for advisory in advisories or []:
                affected = advisory.get("affectedVersions") or ""
                link = advisory.get("link") or ""
                vulns.append(
                    Vulnerability(
                        package_name=package,
                        severity=determine_severity(advisory),
                        cve_id=advisory.get("cve") or "",
                        title=advisory.get("title") or "",
                        description=f"Advisory: {advisory.get('advisoryId') or ''}",
                        recommendation=build_composer_recommendation(package, affected, link),
                        vulnerable_versions=affected,
                        patched_versions="",
                        url=link,
                    )
                )

        result = AuditResult(vulnerabilities=filter_ignored(vulns, app.ignore_list))
        result.update_counts()
        return result