"""npm audit integration."""

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
    SEVERITY_INFO,
    SEVERITY_LOW,
    SEVERITY_MODERATE,
    AppConfig,
    AuditResult,
    Vulnerability,
)

log = logging.getLogger(__name__)

_SEVERITY_ALIASES = {
    "critical": SEVERITY_CRITICAL,
    "high": SEVERITY_HIGH,
    "moderate": SEVERITY_MODERATE,
    "medium": SEVERITY_MODERATE,
    "low": SEVERITY_LOW,
}

FIX_AVAILABLE_TEXT = "Fix available (run npm audit fix)"


def normalize_severity(severity: str) -> str:
    """Map a reported severity onto the standard names; unknown values become info."""
    return _SEVERITY_ALIASES.get((severity or "").lower(), SEVERITY_INFO)


def build_npm_recommendation(package: str, is_direct: bool, fix_available, patched_versions: str) -> str:
    """Advice text for one npm vulnerability."""
    parts = []
    if patched_versions:
        parts.append(f"Update {package} to version {patched_versions}. ")
    if fix_available is not None and fix_available is not False:
        parts.append("Run 'npm audit fix' to automatically update. ")
    else:
        parts.append("No automatic fix available. Manual intervention required. ")
    if is_direct:
        parts.append("This is a direct dependency.")
    else:
        parts.append("This is a transitive dependency.")
    return "".join(parts)


def _cve_from_url(url: str) -> str:
    if "CVE-" not in url:
        return ""
    return next((p for p in url.split("/") if p.startswith("CVE-")), "")


def _failure_message(proc: subprocess.CompletedProcess) -> str:
    message = (proc.stderr or "").strip() or (proc.stdout or "").strip()
    return message or f"exit code {proc.returncode}"


class NpmAuditor(Auditor):
    """Runs ``npm audit`` and reads its JSON report."""

    name = "npm"

    def detect(self, path: str) -> bool:
        return os.path.exists(os.path.join(path, "package.json")) or os.path.exists(
            os.path.join(path, "package-lock.json")
        )

    def audit(self, app: AppConfig) -> AuditResult:
        log.info("Running npm audit for app=%s path=%s", app.name, app.path)

        if shutil.which("npm") is None:
            raise AuditError("npm not found in PATH")
        if not os.path.exists(os.path.join(app.path, "package.json")):
            raise AuditError(f"package.json not found in {app.path}")
        if not os.path.exists(os.path.join(app.path, "package-lock.json")):
            log.warning("package-lock.json not found in %s, npm audit may fail or generate one", app.path)

        try:
            proc = subprocess.run(
                ["npm", "audit", "--json"],
                cwd=app.path,
                capture_output=True,
                text=True,
            )
        except OSError as exc:
            raise AuditError(f"failed to run npm audit: {exc}") from exc

        # Exit code 1 only means vulnerabilities were found.
        if proc.returncode > 1:
            raise AuditError(f"npm audit failed (exit {proc.returncode}): {_failure_message(proc)}")

        output = proc.stdout or ""
        if not output.strip():
            log.debug("npm audit returned empty output for app=%s", app.name)
            return AuditResult(auditor_type=self.name, app_name=app.name, app_path=app.path)

        try:
            result = self.parse_output(output, app)
        except AuditError as exc:
            log.debug("npm audit raw output: %s", output)
            raise AuditError(f"failed to parse npm audit output: {exc}") from exc

        result.raw_output = output
        result.auditor_type = self.name
        result.app_name = app.name
        result.app_path = app.path

        log.info(
            "npm audit completed for app=%s total=%d critical=%d high=%d",
            app.name,
            result.total_vulnerabilities,
            result.critical_count,
            result.high_count,
        )
        return result

    def parse_output(self, output: str, app: AppConfig) -> AuditResult:
        """Turn ``npm audit --json`` output into an AuditResult."""
        try:
            data = json.loads(output)
        except json.JSONDecodeError as exc:
            raise AuditError(f"failed to parse JSON: {exc}") from exc
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise AuditError("failed to parse JSON: expected an object")
        entries = data.get("vulnerabilities") or {}
        if not isinstance(entries, dict):
            raise AuditError("failed to parse JSON: vulnerabilities is not an object")

        vulns = [self._vulnerability(name, entry or {}) for name, entry in entries.items()]
        result = AuditResult(vulnerabilities=filter_ignored(vulns, app.ignore_list))
        result.update_counts()
        return result

    @staticmethod
    def _vulnerability(package: str, entry: dict) -> Vulnerability:
        title = description = url = cve_id = patched = ""

        for via in entry.get("via") or []:
            if isinstance(via, dict):
                if isinstance(via.get("title"), str):
                    title = via["title"]
                if isinstance(via.get("url"), str):
                    url = via["url"]
                    cve_id = _cve_from_url(url) or cve_id
                if isinstance(via.get("range"), str) and not description:
                    description = f"Vulnerable versions: {via['range']}"
            elif isinstance(via, str) and not description:
                description = f"Vulnerability via dependency: {via}"

        fix = entry.get("fixAvailable")
        if isinstance(fix, dict):
            if isinstance(fix.get("version"), str):
                patched = fix["version"]
        elif fix is True:
            patched = FIX_AVAILABLE_TEXT

        return Vulnerability(
            package_name=package,
            severity=normalize_severity(entry.get("severity", "")),
            cve_id=cve_id,
            title=title,
            description=description,
            recommendation=build_npm_recommendation(package, bool(entry.get("isDirect")), fix, patched),
            vulnerable_versions=entry.get("range") or "",
            patched_versions=patched,
            url=url,
        )