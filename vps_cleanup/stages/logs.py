#!/usr/bin/env python3
"""Journald retention policy and plain-text log trimming."""
from __future__ import annotations

import os

from ..core import constants
from ..services.context import StageContext
from ..utils import output
from ..utils.disk import human_size, older_than_days

JOURNALD_POLICY = (
    "[Journal]\n"
    f"SystemMaxUse={constants.JOURNAL_MAX_SIZE}\n"
    f"SystemMaxFileSize={constants.JOURNAL_MAX_FILE}\n"
    f"MaxRetentionSec={constants.JOURNAL_MAX_AGE}\n"
)


def vacuum_journal(ctx: StageContext) -> None:
    ctx.executor.run(["journalctl", f"--vacuum-time={constants.JOURNAL_MAX_AGE}"], quiet=True)
    ctx.executor.run(["journalctl", f"--vacuum-size={constants.JOURNAL_MAX_SIZE}"], quiet=True)


def tune_journald(ctx: StageContext) -> None:
    dropin = ctx.path(constants.JOURNALD_DROPIN)
    ctx.executor.makedirs(os.path.dirname(dropin))
    ctx.executor.write_text(
        dropin,
        JOURNALD_POLICY,
        summary=f"max {constants.JOURNAL_MAX_SIZE} total, {constants.JOURNAL_MAX_FILE} per file, {constants.JOURNAL_MAX_AGE}",
    )
    ctx.executor.run(["systemctl", "restart", "systemd-journald"], quiet=True)
    vacuum_journal(ctx)
    output.ok("journald configured.")


def oversized_logs(log_dir: str, limit: int = constants.LOG_TRIM_BYTES) -> list:
    """Regular files under log_dir larger than limit, outside the journal, not compressed."""
    journal = os.path.join(log_dir, "journal")
    out = []
    for dirpath, dirs, files in os.walk(log_dir, followlinks=False):
        if dirpath == journal or dirpath.startswith(journal + os.sep):
            dirs[:] = []
            continue
        for name in sorted(files):
            if name.endswith(constants.COMPRESSED_LOG_SUFFIXES):
                continue
            fp = os.path.join(dirpath, name)
            try:
                if os.path.islink(fp) or not os.path.isfile(fp):
                    continue
                if os.path.getsize(fp) > limit:
                    out.append(fp)
            except OSError:
                continue
    return sorted(out)


def trim_var_logs(ctx: StageContext) -> None:
    log_dir = ctx.path(constants.VAR_LOG)
    for fp in oversized_logs(log_dir):
        output.info(f"Trimming to {human_size(constants.LOG_TRIM_BYTES)}: {ctx.host_path(fp)}")
        ctx.executor.truncate_tail(fp, constants.LOG_TRIM_BYTES)

    ctx.executor.delete_files(
        log_dir,
        lambda fp, st: fp.endswith(".gz") and older_than_days(st.st_mtime, 1),
        label="*.gz older than 1 day",
    )
    ctx.executor.delete_files(log_dir, lambda fp, st: fp.endswith(".old"), label="*.old")
    output.ok(f"{constants.VAR_LOG} trimmed.")
