#!/usr/bin/env python3
"""Disk usage report and run summary tables."""
from __future__ import annotations

import os
from typing import List, Tuple

from rich.table import Table

from ..core import constants
from ..utils.disk import du_path, filesystem_usage, human_size
from ..utils.output import console
from .context import StageResult, StageStatus

STATUS_STYLES = {
    StageStatus.COMPLETED: "green",
    StageStatus.SKIPPED: "dim",
    StageStatus.FAILED: "red",
}


def disk_usage_rows(root: str = "/") -> List[Tuple[str, str]]:
    rows = []
    usage = filesystem_usage(root)
    if usage:
        total, used, free = usage
        pct = (used / total * 100) if total else 0
        rows.append(("/ (filesystem)", f"{human_size(used)} used of {human_size(total)} ({pct:.0f}%), {human_size(free)} free"))
    for d in constants.REPORT_DIRS:
        full = os.path.join(root, d.lstrip("/"))
        if os.path.exists(full):
            rows.append((d, human_size(du_path(full))))
    return rows


def print_disk_report(root: str = "/", title: str = "Disk usage") -> List[Tuple[str, str]]:
    rows = disk_usage_rows(root)
    table = Table(title=title, show_header=True, header_style="bold cyan", box=None, padding=(0, 2))
    table.add_column("Path", style="")
    table.add_column("Size", justify="right", style="yellow")
    for path, size in rows:
        table.add_row(path, size)
    console.print()
    console.print(table)
    return rows


def print_summary(results: List[StageResult]) -> None:
    table = Table(show_header=True, header_style="bold cyan", box=None, padding=(0, 2))
    table.add_column("Stage", style="")
    table.add_column("Status", style="")
    table.add_column("Soft failures", justify="right")
    for r in results:
        style = STATUS_STYLES[r.status]
        table.add_row(r.title, f"[{style}]{r.status.value}[/]", str(r.soft_failures) if r.soft_failures else "")
    console.print()
    console.print(table)
    failures = sum(r.soft_failures for r in results)
    if failures:
        console.print(f"\n  [yellow]{failures} soft failure(s) were logged and skipped.[/]")
