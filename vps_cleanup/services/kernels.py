#!/usr/bin/env python3
"""Old-kernel planning: which kernel packages may go, and which must stay.

The running kernel is never a candidate. Versions are compared exactly, after
normalising the RPM architecture suffix, never by substring.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from ..core import constants

APT_IMAGE_RE = re.compile(r"^linux-image-[0-9]")
RPM_ARCH_RE = re.compile(r"\.(x86_64|aarch64|ppc64le|s390x|i686|noarch)$")
_TOKEN_RE = re.compile(r"[0-9]+|[^0-9]+")


def version_key(version: str) -> tuple:
    """Natural sort key, like `sort -V`: numeric runs compare as numbers."""
    return tuple((0, int(t), "") if t.isdigit() else (1, 0, t) for t in _TOKEN_RE.findall(version))


def sort_versions(versions: Iterable[str]) -> List[str]:
    return sorted(set(versions), key=version_key)


def strip_arch(version: str) -> str:
    return RPM_ARCH_RE.sub("", version)


def strip_flavour(version: str) -> str:
    for flavour in constants.APT_KERNEL_FLAVOURS:
        if version.endswith(flavour):
            return version[: -len(flavour)]
    return version


@dataclass
class KernelPlan:
    running: str
    remove_versions: List[str] = field(default_factory=list)
    backup: Optional[str] = None
    packages: List[str] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.packages


def apt_related_packages(version: str) -> List[str]:
    return [
        f"linux-image-{version}",
        f"linux-image-unsigned-{version}",
        f"linux-modules-{version}",
        f"linux-modules-extra-{version}",
        f"linux-headers-{version}",
        f"linux-headers-{strip_flavour(version)}",
    ]


def plan_apt(
    installed_images: Iterable[str],
    running: str,
    keep_backup: bool,
    is_installed: Callable[[str], bool],
) -> KernelPlan:
    """Plan a Debian-family purge from the installed linux-image-* names."""
    plan = KernelPlan(running=running)
    versions = []
    for pkg in installed_images:
        if not APT_IMAGE_RE.match(pkg) or any(meta in pkg for meta in constants.APT_KERNEL_META):
            continue
        version = pkg[len("linux-image-"):]
        if version != running:
            versions.append(version)
    versions = sort_versions(versions)
    if keep_backup and versions:
        plan.backup = versions.pop()
    plan.remove_versions = versions

    protected = set(apt_related_packages(running))
    if plan.backup:
        protected.update(apt_related_packages(plan.backup))
    packages = []
    for version in versions:
        for pkg in apt_related_packages(version):
            if pkg in protected or pkg in packages:
                continue
            if pkg == f"linux-image-{version}" or is_installed(pkg):
                packages.append(pkg)
    plan.packages = packages
    return plan


def rpm_versions(installed: Iterable[str], prefix: str) -> List[str]:
    """Version strings from installed <prefix>-<version> package names."""
    lead = prefix + "-"
    return sort_versions(p[len(lead):] for p in installed if p.startswith(lead) and p[len(lead):][:1].isdigit())


def plan_rpm(
    versions: Iterable[str],
    running: str,
    keep_backup: bool,
    is_installed: Callable[[str], bool],
) -> KernelPlan:
    """Plan an RPM-family purge from installed kernel version-release strings."""
    plan = KernelPlan(running=running)
    current = strip_arch(running)
    candidates = [v for v in sort_versions(versions) if strip_arch(v) != current]
    if keep_backup and candidates:
        plan.backup = candidates.pop()
    plan.remove_versions = candidates
    packages = []
    for version in candidates:
        for prefix in constants.RPM_KERNEL_PREFIXES:
            pkg = f"{prefix}-{version}"
            if pkg not in packages and is_installed(pkg):
                packages.append(pkg)
    plan.packages = packages
    return plan
