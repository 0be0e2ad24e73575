"""Interactive terminal prompts and input helpers."""

from __future__ import annotations

import logging
import re
import sys

log = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def prompt(message: str) -> str:
    """Print ``message`` and read one trimmed line; "" when input ends early."""
    sys.stdout.write(message)
    sys.stdout.flush()
    line = sys.stdin.readline()
    if not line.endswith("\n"):
        log.error("Failed to read input: end of input")
        return ""
    return line.strip()


def prompt_with_default(message: str, default: str) -> str:
    """Ask for a value; an empty answer gives ``default``."""
    if default:
        message = f"{message} [{default}]: "
    else:
        message = f"{message}: "
    answer = prompt(message)
    return answer if answer else default


def prompt_yes_no(message: str, default_yes: bool) -> bool:
    suffix = " (Y/n): " if default_yes else " (y/N): "
    answer = prompt(message + suffix).lower()
    if not answer:
        return default_yes
    return answer in ("y", "yes")


def prompt_select(message: str, options, default_index: int) -> int:
    """Show numbered options and return the chosen zero-based index."""
    options = list(options)
    print(message)
    for index, option in enumerate(options):
        marker = "> " if index == default_index else "  "
        print(f"{marker}{index + 1}. {option}")

    while True:
        answer = prompt(f"Enter choice (1-{len(options)}) [{default_index + 1}]: ")
        if not answer:
            return default_index
        match = _LEADING_INT.match(answer)
        if match:
            choice = int(match.group(1))
            if 1 <= choice <= len(options):
                return choice - 1
        print("Invalid choice, please try again.")


def split_and_trim(value: str) -> list[str]:
    """Split on commas, trim whitespace and drop empty parts."""
    parts = (part.strip(" \t\n\r") for part in value.split(",")) if value else ()
    return [part for part in parts if part]