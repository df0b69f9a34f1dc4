#!/usr/bin/env python3
"""Old-kernel purge and orphaned module/header directory cleanup."""
from __future__ import annotations

import glob
import os

from ..core import constants
from ..services import kernels as planner
from ..services.context import StageContext
from ..utils import output


def _report(plan: planner.KernelPlan) -> None:
    if plan.backup:
        output.info(f"Keeping backup kernel: {plan.backup}")
    if plan.remove_versions:
        output.info(f"Removing kernel versions: {' '.join(plan.remove_versions)}")


def plan_old_kernels(ctx: StageContext) -> planner.KernelPlan:
    backend = ctx.backend
    keep_backup = ctx.config.keep_one_backup_kernel
    if ctx.profile.is_debian_like:
        return planner.plan_apt(backend.list_installed("linux-image-*"), ctx.kernel_release, keep_backup, backend.is_installed)
    versions = planner.rpm_versions(backend.list_installed("kernel-core-*"), "kernel-core")
    if not versions:
        versions = planner.rpm_versions(backend.list_installed("kernel-[0-9]*"), "kernel")
    return planner.plan_rpm(versions, ctx.kernel_release, keep_backup, backend.is_installed)


def update_bootloader(ctx: StageContext) -> None:
    ex = ctx.executor
    if ctx.profile.is_debian_like:
        if not ex.run(["update-grub"], quiet=True).ok:
            ex.run(["update-grub2"], quiet=True)
        return
    for cfg in constants.RPM_GRUB_CONFIGS:
        if os.path.isfile(ctx.path(cfg)):
            ex.run(["grub2-mkconfig", "-o", cfg], quiet=True)
            return


def orphan_candidates(ctx: StageContext) -> list:
    """Module/header directories on disk, excluding the running kernel's modules."""
    out = []
    modules = ctx.path(constants.MODULES_DIR)
    if os.path.isdir(modules):
        for name in sorted(os.listdir(modules)):
            full = os.path.join(modules, name)
            if name != ctx.kernel_release and os.path.isdir(full):
                out.append(full)
    src = ctx.path(constants.SRC_DIR)
    for pattern in ("linux-headers-*", "kernels/*"):
        out.extend(sorted(glob.glob(os.path.join(src, pattern))))
    return out


def remove_orphans(ctx: StageContext) -> int:
    removed = 0
    for full in orphan_candidates(ctx):
        host = ctx.host_path(full)
        if ctx.backend.owns_path(host):
            output.info(f"Keeping {host} (owned by a package).")
            continue
        output.info(f"Removing orphan: {host}")
        if ctx.executor.remove_path(full):
            removed += 1
    return removed


def purge_old_kernels(ctx: StageContext) -> None:
    output.info(f"Running kernel: {ctx.kernel_release}")
    plan = plan_old_kernels(ctx)
    _report(plan)
    if plan.empty:
        output.info("No old kernels to remove.")
    else:
        output.info(f"Purging kernel packages: {' '.join(plan.packages)}")
        ctx.backend.purge(plan.packages)
        ctx.backend.autoremove()
        update_bootloader(ctx)

    if ctx.profile.is_debian_like:
        residual = ctx.backend.residual_config()
        if residual:
            ctx.backend.purge(residual)

    remove_orphans(ctx)
    output.ok("Old kernels purged and orphaned directories cleaned.")
