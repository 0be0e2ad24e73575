[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "auditchecks"
version = "0.1.0"
description = "Run npm and composer security audits, filter findings by severity, store results in SQLite and write JSON and Markdown reports"
requires-python = ">=3.10"
dependencies = []
keywords = ["security", "audit", "npm", "composer", "vulnerabilities", "cve", "sqlite"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
    "Topic :: Software Development :: Quality Assurance",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["auditchecks"]

[tool.pytest.ini_options]
addopts = "-ra"
