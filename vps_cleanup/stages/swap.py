#!/usr/bin/env python3
"""Swap removal: disable swap, delete the swapfile, comment out fstab entries."""
from __future__ import annotations

import os
import re
from typing import List, Tuple

from ..core import constants
from ..services.context import StageContext
from ..utils import output

FSTAB_SWAP_RE = re.compile(r"^([^#].*\s+swap\s+.*)$")


def active_swap(text: str) -> List[Tuple[str, str]]:
    """(device, type) pairs from /proc/swaps."""
    out = []
    for line in text.splitlines()[1:]:
        parts = line.split()
        if len(parts) >= 2:
            out.append((parts[0], parts[1]))
    return out


def comment_swap_entries(text: str) -> Tuple[str, int]:
    lines = []
    changed = 0
    for line in text.splitlines(keepends=True):
        body = line.rstrip("\n")
        if FSTAB_SWAP_RE.match(body):
            lines.append(f"# {body}\n")
            changed += 1
        else:
            lines.append(line)
    return "".join(lines), changed


def _read(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError:
        return ""


def remove_swap(ctx: StageContext) -> None:
    partitions = [dev for dev, kind in active_swap(_read(ctx.path(constants.PROC_SWAPS))) if kind == "partition"]
    ctx.executor.run(["swapoff", "-a"])

    swapfile = ctx.path(constants.SWAPFILE)
    if os.path.isfile(swapfile):
        output.info(f"Removing {constants.SWAPFILE}")
        ctx.executor.run(["chattr", "-i", constants.SWAPFILE], quiet=True)
        ctx.executor.remove_path(swapfile)

    fstab = ctx.path(constants.FSTAB)
    if os.path.isfile(fstab):
        content, changed = comment_swap_entries(_read(fstab))
        if changed:
            ctx.executor.backup(fstab)
            ctx.executor.write_text(fstab, content, summary=f"comment out {changed} swap entr{'y' if changed == 1 else 'ies'}")

    if partitions:
        output.warn(f"Swap partitions were only disabled: {', '.join(partitions)}. Remove them manually if needed.")
    else:
        output.warn("Dedicated swap partitions, if any, are only disabled. Remove them manually if needed.")
    output.ok("Swap disabled.")
