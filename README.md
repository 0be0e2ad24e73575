# auditchecks

A library for running `npm audit` and `composer audit` over projects,
turning their JSON output into a common set of vulnerability records,
filtering those records by severity and ignore lists, keeping apps and
audit results in a SQLite database, and writing JSON and Markdown reports.

It has no dependencies outside the standard library.

## Installation

```
pip install .
```

The `npm` and `composer` executables must be on your `PATH` for the
projects that use them.

## Auditing a project

```python
from auditchecks.auditor import AuditorRegistry, AuditError, filter_vulnerabilities
from auditchecks.composer import ComposerAuditor
from auditchecks.models import AppConfig
from auditchecks.npm import NpmAuditor

registry = AuditorRegistry()
registry.register(NpmAuditor())
registry.register(ComposerAuditor())

app = AppConfig(name="shop", path="/var/www/shop", ignore_list=["CVE-2021-0000"])

for auditor in registry.auditors_for_app(app):
    try:
        result = auditor.audit(app)
    except AuditError as exc:
        print(f"{auditor.name}: {exc}")
        continue
    result.vulnerabilities = filter_vulnerabilities(result.vulnerabilities, "moderate")
    result.update_counts()
    print(auditor.name, result.total_vulnerabilities, result.critical_count)
```

An app's `type` is `auto` (every registered auditor whose `detect(path)`
finds `package.json`/`package-lock.json` or `composer.json`/`composer.lock`),
a single auditor name, or a comma-separated list such as `npm,composer`.
`auditors_for_app` raises `AuditError` for an unknown type or when nothing
is detected.

`NpmAuditor.audit` treats exit code 1 as "vulnerabilities found";
`ComposerAuditor.audit` accepts exit codes 0 to 3. Any other exit code, a
missing executable, a missing `package.json`/`composer.json` or unreadable
output raises `AuditError`. Both auditors also expose
`parse_output(output, app)` for output you already have.

Entries in `ignore_list` match a vulnerability's CVE identifier or package
name (`auditchecks.auditor.filter_ignored`).

Severity levels, from highest to lowest, are `critical`, `high`,
`moderate`, `low` and `info` (`auditchecks.models.severity_rank`,
`meets_severity_threshold`).

## Reports

```python
from auditchecks.jsonreport import JsonReporter
from auditchecks.markdownreport import MarkdownReporter
from auditchecks.models import AuditSummary, Report
from auditchecks.reporter import ReportManager

manager = ReportManager("./reports")   # the directory must already exist
manager.register(JsonReporter())
manager.register(MarkdownReporter())

report = Report.from_result(result)
paths = manager.generate_formats(report, ["json", "markdown"])

manager.generate_summary_report(AuditSummary.from_results([result]), ["json", "markdown"])
```

Files are named `{app}-{auditor}-{YYYY-MM-DD-HHMMSS}{ext}` in UTC, and
`summary-{timestamp}{ext}` for summaries. Unknown formats are skipped with
a warning. A failing reporter raises `auditchecks.reporter.ReportError`,
whose `paths` lists the files already written; summary failures are only
logged.

A `Report` may carry an `AIAnalysis` (summary, priority list, remediation
commands, risk assessment); both reporters include it when present.
`CombinedAppReport` collects the reports of several auditors for one app.

## Storage

```python
from auditchecks.models import App
from auditchecks.store import Store

with Store("./audit.db") as store:
    store.migrate()
    store.add_app(App(name="shop", path="/var/www/shop", type="npm,composer"))
    store.set_enabled("shop", False)
    for app in store.list_apps():
        print(app.name, app.to_app_config())
    store.save_audit_result(result)
    history = store.audit_results("shop")
```

App and result IDs are ULIDs (`auditchecks.ulid.new_ulid`). App names are
unique; `delete_app`, `set_enabled` and `set_telegram_topic` raise
`AppNotFoundError` for an unknown name.

## Prompts

`auditchecks.prompts` has small terminal helpers: `prompt`,
`prompt_with_default`, `prompt_yes_no`, `prompt_select`, and
`split_and_trim` for comma-separated input.

## What it does not do

- There is no command-line program; everything is used from Python.
- Settings are not read from environment variables or `.env` files; pass
  paths, thresholds and formats to the functions yourself.
- There is no driver that audits every stored app, runs audits
  concurrently or retries them; combine the pieces above for that.
- No e-mail, chat or other notifications are sent, and no AI analysis is
  requested; an `AIAnalysis` only appears in reports if you supply one.