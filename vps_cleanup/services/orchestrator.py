#!/usr/bin/env python3
"""Runs the cleanup pipeline: preconditions, host detection, stages, reports."""
from __future__ import annotations

import os
from typing import Callable, List, Optional, Sequence

from ..core.config import RunConfig
from ..core.errors import NotRootError
from ..core.profile import HostProfile, detect_host_profile
from ..stages import PIPELINE
from ..utils import output
from .context import Stage, StageContext, StageResult, StageStatus
from .executor import Executor
from .package_manager import backend_for
from .report import print_disk_report, print_summary


def require_root(geteuid: Callable[[], int] = os.geteuid) -> None:
    if geteuid() != 0:
        raise NotRootError("Please run as root (sudo).")


def build_context(
    config: RunConfig,
    profile: Optional[HostProfile] = None,
    executor: Optional[Executor] = None,
    kernel_release: Optional[str] = None,
) -> StageContext:
    profile = profile or detect_host_profile(config.root)
    executor = executor or Executor(dry_run=config.dry_run)
    return StageContext(
        profile=profile,
        config=config,
        executor=executor,
        backend=backend_for(profile, executor, config.root),
        kernel_release=kernel_release or os.uname().release,
    )


def run_stage(ctx: StageContext, stage: Stage) -> StageResult:
    if not stage.enabled(ctx):
        if stage.skip_message:
            output.info(stage.skip_message)
        return StageResult(stage.key, stage.title, StageStatus.SKIPPED, stage.skip_message)

    output.step(stage.title)
    before = len(ctx.executor.failures)
    try:
        stage.func(ctx)
    except Exception as e:  # a stage must never take the run down with it
        output.error(f"{stage.title} failed: {e}")
        return StageResult(stage.key, stage.title, StageStatus.FAILED, str(e), len(ctx.executor.failures) - before)
    return StageResult(stage.key, stage.title, StageStatus.COMPLETED, "", len(ctx.executor.failures) - before)


def run_stages(ctx: StageContext, stages: Sequence[Stage]) -> List[StageResult]:
    return [run_stage(ctx, stage) for stage in stages]


def run_cleanup(ctx: StageContext, stages: Optional[Sequence[Stage]] = None, report: bool = True) -> List[StageResult]:
    """Disk report, every stage in order, disk report again, summary."""
    if stages is None:
        stages = PIPELINE
    mode = " (dry run)" if ctx.dry_run else ""
    output.step(f"Starting cleanup on {ctx.profile.describe()}{mode}")
    if report:
        print_disk_report(ctx.config.root, "Disk usage before cleanup")
    results = run_stages(ctx, stages)
    output.ok("All stages finished.")
    if report:
        print_disk_report(ctx.config.root, "Disk usage after cleanup")
        print_summary(results)
    return results
