"""SQLite persistence for apps and audit results."""

from __future__ import annotations

import json
import sqlite3
import threading
from datetime import datetime

from .models import App, AuditResult, Vulnerability, utcnow
from .ulid import new_ulid

_SCHEMA = """
CREATE TABLE IF NOT EXISTS apps (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    path TEXT NOT NULL,
    type TEXT DEFAULT 'auto',
    email_notifications TEXT,
    telegram_enabled INTEGER DEFAULT 0,
    telegram_topic_id INTEGER DEFAULT 0,
    ignore_list TEXT,
    enabled INTEGER DEFAULT 1,
    created_at TEXT,
    updated_at TEXT
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_apps_name ON apps(name);
CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT,
    updated_at TEXT
);
CREATE TABLE IF NOT EXISTS audit_results (
    id TEXT PRIMARY KEY,
    app_name TEXT,
    app_path TEXT,
    auditor_type TEXT,
    total_vulnerabilities INTEGER,
    critical_count INTEGER,
    high_count INTEGER,
    moderate_count INTEGER,
    low_count INTEGER,
    raw_output TEXT,
    ai_summary TEXT,
    created_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_audit_results_app_name ON audit_results(app_name);
CREATE TABLE IF NOT EXISTS vulnerabilities (
    id TEXT PRIMARY KEY,
    audit_result_id TEXT,
    package_name TEXT,
    severity TEXT,
    cve_id TEXT,
    title TEXT,
    description TEXT,
    recommendation TEXT,
    vulnerable_versions TEXT,
    patched_versions TEXT,
    url TEXT,
    created_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_vulnerabilities_audit_result_id ON vulnerabilities(audit_result_id);
CREATE INDEX IF NOT EXISTS idx_vulnerabilities_severity ON vulnerabilities(severity);
"""

_APP_COLUMNS = (
    "id", "name", "path", "type", "email_notifications", "telegram_enabled",
    "telegram_topic_id", "ignore_list", "enabled", "created_at", "updated_at",
)
_RESULT_COLUMNS = (
    "id", "app_name", "app_path", "auditor_type", "total_vulnerabilities",
    "critical_count", "high_count", "moderate_count", "low_count",
    "raw_output", "ai_summary", "created_at",
)
_VULN_COLUMNS = (
    "id", "audit_result_id", "package_name", "severity", "cve_id", "title",
    "description", "recommendation", "vulnerable_versions", "patched_versions",
    "url", "created_at",
)


class AppNotFoundError(LookupError):
    """No app with the given name exists."""

    def __init__(self, name: str) -> None:
        super().__init__(f"app '{name}' not found")
        self.name = name


def _insert_sql(table: str, columns: tuple[str, ...]) -> str:
    return (
        f"INSERT INTO {table} ({', '.join(columns)}) "
        f"VALUES ({', '.join(':' + c for c in columns)})"
    )


def _dump_list(values) -> str:
    return json.dumps(list(values or []))


def _load_list(text) -> list[str]:
    if not text:
        return []
    return list(json.loads(text))


def _dump_time(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _load_time(text) -> datetime | None:
    return datetime.fromisoformat(text) if text else None


class Store:
    """Database of configured apps and past audit results."""

    def __init__(self, path) -> None:
        self.path = str(path)
        self._conn = sqlite3.connect(self.path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()

    def migrate(self) -> None:
        """Create any missing tables and indexes."""
        with self._lock:
            self._conn.executescript(_SCHEMA)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> Store:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    # Apps

    @staticmethod
    def _app_params(app: App) -> dict:
        return {
            "id": app.id,
            "name": app.name,
            "path": app.path,
            "type": app.type,
            "email_notifications": _dump_list(app.email_notifications),
            "telegram_enabled": int(app.telegram_enabled),
            "telegram_topic_id": app.telegram_topic_id,
            "ignore_list": _dump_list(app.ignore_list),
            "enabled": int(app.enabled),
            "created_at": _dump_time(app.created_at),
            "updated_at": _dump_time(app.updated_at),
        }

    @staticmethod
    def _app_from_row(row: sqlite3.Row) -> App:
        return App(
            id=row["id"],
            name=row["name"],
            path=row["path"],
            type=row["type"],
            email_notifications=_load_list(row["email_notifications"]),
            telegram_enabled=bool(row["telegram_enabled"]),
            telegram_topic_id=row["telegram_topic_id"] or 0,
            ignore_list=_load_list(row["ignore_list"]),
            enabled=bool(row["enabled"]),
            created_at=_load_time(row["created_at"]),
            updated_at=_load_time(row["updated_at"]),
        )

    def _query(self, sql: str, params=()) -> list[sqlite3.Row]:
        with self._lock:
            return self._conn.execute(sql, params).fetchall()

    def _modify(self, sql: str, params=()) -> int:
        with self._lock, self._conn:
            return self._conn.execute(sql, params).rowcount

    def list_apps(self) -> list[App]:
        """All apps, ordered by name."""
        return [self._app_from_row(r) for r in self._query("SELECT * FROM apps ORDER BY name")]

    def get_app(self, name: str) -> App | None:
        rows = self._query("SELECT * FROM apps WHERE name = ? LIMIT 1", (name,))
        return self._app_from_row(rows[0]) if rows else None

    def find_app_by_path(self, path: str) -> App | None:
        rows = self._query("SELECT * FROM apps WHERE path = ? LIMIT 1", (path,))
        return self._app_from_row(rows[0]) if rows else None

    def add_app(self, app: App) -> App:
        """Insert a new app; raises sqlite3.IntegrityError if the name is taken."""
        now = utcnow()
        if not app.id:
            app.id = new_ulid()
        if not app.type:
            app.type = "auto"
        if app.created_at is None:
            app.created_at = now
        if app.updated_at is None:
            app.updated_at = now
        self._modify(_insert_sql("apps", _APP_COLUMNS), self._app_params(app))
        return app

    def save_app(self, app: App) -> App:
        """Insert or update an app by its ID."""
        if not app.id:
            return self.add_app(app)
        app.updated_at = utcnow()
        if app.created_at is None:
            app.created_at = app.updated_at
        updates = ", ".join(f"{c} = excluded.{c}" for c in _APP_COLUMNS if c not in ("id", "created_at"))
        sql = _insert_sql("apps", _APP_COLUMNS) + f" ON CONFLICT(id) DO UPDATE SET {updates}"
        self._modify(sql, self._app_params(app))
        return app

    def delete_app(self, name: str) -> None:
        if self._modify("DELETE FROM apps WHERE name = ?", (name,)) == 0:
            raise AppNotFoundError(name)

    def _update_app_field(self, name: str, column: str, value) -> None:
        sql = f"UPDATE apps SET {column} = ?, updated_at = ? WHERE name = ?"
        if self._modify(sql, (value, _dump_time(utcnow()), name)) == 0:
            raise AppNotFoundError(name)

    def set_enabled(self, name: str, enabled: bool) -> None:
        self._update_app_field(name, "enabled", int(enabled))

    def set_telegram_topic(self, name: str, topic_id: int) -> None:
        self._update_app_field(name, "telegram_topic_id", topic_id)

    # Audit results

    def save_audit_result(self, result: AuditResult) -> AuditResult:
        """Store a result together with its vulnerabilities."""
        now = utcnow()
        if not result.id:
            result.id = new_ulid()
        if result.created_at is None:
            result.created_at = now
        result_params = {c: getattr(result, c) for c in _RESULT_COLUMNS}
        result_params["created_at"] = _dump_time(result.created_at)
        vuln_params = []
        for vuln in result.vulnerabilities:
            if not vuln.id:
                vuln.id = new_ulid()
            vuln.audit_result_id = result.id
            if vuln.created_at is None:
                vuln.created_at = now
            params = {c: getattr(vuln, c) for c in _VULN_COLUMNS}
            params["created_at"] = _dump_time(vuln.created_at)
            vuln_params.append(params)
        with self._lock, self._conn:
            self._conn.execute(_insert_sql("audit_results", _RESULT_COLUMNS), result_params)
            self._conn.executemany(_insert_sql("vulnerabilities", _VULN_COLUMNS), vuln_params)
        return result

    def audit_results(self, app_name: str) -> list[AuditResult]:
        """Stored results for an app, oldest first."""
        rows = self._query(
            "SELECT * FROM audit_results WHERE app_name = ? ORDER BY created_at, id", (app_name,)
        )
        results = []
        for row in rows:
            vuln_rows = self._query(
                "SELECT * FROM vulnerabilities WHERE audit_result_id = ? ORDER BY rowid", (row["id"],)
            )
            vulns = [
                Vulnerability(
                    **{c: v[c] or "" for c in _VULN_COLUMNS if c != "created_at"},
                    created_at=_load_time(v["created_at"]),
                )
                for v in vuln_rows
            ]
            fields = {c: row[c] for c in _RESULT_COLUMNS if c != "created_at"}
            for text_field in ("app_name", "app_path", "auditor_type", "raw_output", "ai_summary"):
                fields[text_field] = fields[text_field] or ""
            results.append(
                AuditResult(**fields, vulnerabilities=vulns, created_at=_load_time(row["created_at"]))
            )
        return results