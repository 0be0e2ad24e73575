"""Auditor interface, registry and vulnerability filters."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod

from .models import AppConfig, AuditResult, Vulnerability, meets_severity_threshold


class AuditError(Exception):
    """An audit could not be run or its output could not be read."""


class Auditor(ABC):
    """A package-manager specific security auditor."""

    name: str = ""

    @abstractmethod
    def detect(self, path: str) -> bool:
        """True if the project at ``path`` uses this package manager."""

    @abstractmethod
    def audit(self, app: AppConfig) -> AuditResult:
        """Run the audit for ``app``; raises AuditError on failure."""


class AuditorRegistry:
    """Auditors by name, in registration order."""

    def __init__(self) -> None:
        self._auditors: dict[str, Auditor] = {}
        self._lock = threading.RLock()

    def register(self, auditor: Auditor) -> None:
        with self._lock:
            self._auditors[auditor.name] = auditor

    def get(self, name: str) -> Auditor | None:
        with self._lock:
            return self._auditors.get(name)

    def detect(self, path: str) -> Auditor | None:
        """The first auditor that recognises ``path``."""
        return next(iter(self.detect_all(path)), None)

    def detect_all(self, path: str) -> list[Auditor]:
        with self._lock:
            return [a for a in self._auditors.values() if a.detect(path)]

    def auditor_for_app(self, app: AppConfig) -> Auditor:
        auditors = self.auditors_for_app(app)
        if not auditors:
            raise AuditError(f"no auditors found for: {app.path}")
        return auditors[0]

    def auditors_for_app(self, app: AppConfig) -> list[Auditor]:
        """Auditors named by the app's type, or detected when the type is auto."""
        if app.type and app.type != "auto":
            auditors = []
            for name in split_types(app.type):
                auditor = self.get(name)
                if auditor is None:
                    raise AuditError(f"unknown auditor type: {name}")
                auditors.append(auditor)
            return auditors

        auditors = self.detect_all(app.path)
        if not auditors:
            raise AuditError(f"could not detect package manager for: {app.path}")
        return auditors

    def all(self) -> list[Auditor]:
        with self._lock:
            return list(self._auditors.values())

    def names(self) -> list[str]:
        with self._lock:
            return list(self._auditors)


def split_types(value: str) -> list[str]:
    """Split a comma-separated type list, trimming spaces and tabs."""
    parts = (part.strip(" \t") for part in value.split(","))
    return [part for part in parts if part]


def filter_vulnerabilities(vulns, threshold: str) -> list[Vulnerability]:
    """Keep vulnerabilities at or above the severity threshold."""
    return [v for v in vulns if meets_severity_threshold(v.severity, threshold)]


def is_ignored(vuln: Vulnerability, ignore_list) -> bool:
    """True if the CVE or package name is on the ignore list."""
    return any(entry in (vuln.cve_id, vuln.package_name) for entry in ignore_list)


def filter_ignored(vulns, ignore_list) -> list[Vulnerability]:
    """Remove vulnerabilities on the ignore list."""
    if not ignore_list:
        return list(vulns)
    return [v for v in vulns if not is_ignored(v, ignore_list)]