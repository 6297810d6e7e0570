"""mirabs Output Formatters — human-friendly terminal output.

Provides multiple output modes:
    pretty   — colored, one block per function with its summary and state (default)
    summary  — one-line pass/fail per function
    json     — machine-readable
"""

from __future__ import annotations

import json
import os
import sys
from typing import List

from mirabs.analysis import CrateReport, FunctionReport


# ── ANSI color helpers ───────────────────────────────────────────────────

_NO_COLOR = os.environ.get("NO_COLOR") is not None or not sys.stdout.isatty()


def _c(code: str, text: str) -> str:
    if _NO_COLOR:
        return text
    return f"\033[{code}m{text}\033[0m"


def red(t: str) -> str:
    return _c("31", t)


def yellow(t: str) -> str:
    return _c("33", t)


def green(t: str) -> str:
    return _c("32", t)


def cyan(t: str) -> str:
    return _c("36", t)


def bold(t: str) -> str:
    return _c("1", t)


def dim(t: str) -> str:
    return _c("2", t)


ICON_ERROR = red("✖")
ICON_WARNING = yellow("▲")
ICON_OK = green("✔")


# ── Pretty formatter (default) ──────────────────────────────────────────

def format_function(report: FunctionReport) -> str:
    lines: List[str] = []
    icon = ICON_OK if report.ok else ICON_ERROR
    lines.append(f"\n {icon}  {bold(report.name)}")

    if report.summary is not None:
        lines.append(f"      {dim('summary')} {cyan(str(report.summary))}")
    if report.state:
        for local, value in sorted(report.state.items()):
            lines.append(f"      {f'_{local}':6s} {value}")

    for err in report.errors:
        lines.append(f"   {ICON_ERROR}  {red(err.get('message', 'Unknown error'))}")
    for err in report.statement_errors:
        lines.append(f"   {ICON_WARNING}  {yellow(err.get('message', 'Unknown error'))}")
    for diag in report.diagnostics:
        lines.append(f"   {ICON_WARNING}  {dim(diag.location)} {yellow(diag.message)}")

    return "\n".join(lines)


def format_pretty(report: CrateReport) -> str:
    lines: List[str] = [f"\n {bold('Analysis results')} {dim('(' + report.crate + ')')}"]
    lines.append(f" {dim('─' * 50)}")
    for fr in report.functions:
        lines.append(format_function(fr))

    failed = len(report.failed)
    total = len(report.functions)
    if failed == 0:
        lines.append(f"\n   {green(f'{total} function(s) analyzed.')} {dim(f'{report.duration_ms}ms')}\n")
    else:
        lines.append(
            f"\n   {red(f'{failed} of {total} function(s) failed.')} {dim(f'{report.duration_ms}ms')}\n"
        )
    return "\n".join(lines)


# ── Summary formatter ───────────────────────────────────────────────────

def format_summary(report: CrateReport) -> str:
    """One line per function."""
    lines = []
    for fr in report.functions:
        if fr.ok:
            lines.append(f"{ICON_OK} {fr.name}: {fr.summary}")
        else:
            reason = fr.errors[0]["message"] if fr.errors else "failed"
            lines.append(f"{ICON_ERROR} {fr.name}: {reason}")
    return "\n".join(lines)


def format_json(report: CrateReport) -> str:
    return json.dumps(report.to_dict(), indent=2)


def format_report(report: CrateReport, fmt: str = "pretty") -> str:
    """Format a crate report in the requested output mode."""
    if fmt == "json":
        return format_json(report)
    if fmt == "summary":
        return format_summary(report)
    return format_pretty(report)
