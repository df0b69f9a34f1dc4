"""Host detection: which distro family and package manager this machine uses."""
from __future__ import annotations

import enum
import os
import re
import shutil
from dataclasses import dataclass
from typing import Callable, Optional

from . import constants
from .errors import UnsupportedDistroError


class DistroFamily(enum.Enum):
    DEBIAN_LIKE = "debian"
    RPM_LIKE = "rpm"


class PackageManagerKind(enum.Enum):
    APT = "apt"
    DNF = "dnf"
    YUM = "yum"


DEBIAN_IDS = frozenset({"ubuntu", "debian"})
RPM_IDS = frozenset({"almalinux", "centos", "rocky", "rhel", "fedora"})

# Checked in this order against /etc/redhat-release; anything else is "rhel".
LEGACY_RPM_NAMES = ("almalinux", "centos", "rocky")
LEGACY_VERSION_RE = re.compile(r"[0-9]+\.[0-9]+")


@dataclass(frozen=True)
class HostProfile:
    distro_family: DistroFamily
    distro_id: str
    distro_version: str
    package_manager: PackageManagerKind

    @property
    def is_debian_like(self) -> bool:
        return self.distro_family is DistroFamily.DEBIAN_LIKE

    def describe(self) -> str:
        return f"{self.distro_id} {self.distro_version} (package manager: {self.package_manager.value})"


def parse_os_release(text: str) -> dict:
    """Parse KEY=value lines of an os-release file, unquoting values."""
    out = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        out[key.strip()] = value
    return out


def parse_redhat_release(text: str) -> tuple:
    lowered = text.lower()
    distro_id = "rhel"
    for name in LEGACY_RPM_NAMES:
        if name in lowered:
            distro_id = name
            break
    m = LEGACY_VERSION_RE.search(text)
    return distro_id, m.group(0) if m else ""


def _read(path: str) -> Optional[str]:
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            return f.read()
    except OSError:
        return None


def profile_for(distro_id: str, version: str, which: Callable[[str], Optional[str]] = shutil.which) -> HostProfile:
    """Map a distro id onto its family and package manager."""
    distro_id = distro_id.lower()
    if distro_id in DEBIAN_IDS:
        return HostProfile(DistroFamily.DEBIAN_LIKE, distro_id, version, PackageManagerKind.APT)
    if distro_id in RPM_IDS:
        kind = PackageManagerKind.DNF if which("dnf") else PackageManagerKind.YUM
        return HostProfile(DistroFamily.RPM_LIKE, distro_id, version, kind)
    raise UnsupportedDistroError(f"Unsupported distro: {distro_id or 'unknown'}")


def detect_host_profile(root: str = "/", which: Callable[[str], Optional[str]] = shutil.which) -> HostProfile:
    """Inspect os-release (falling back to redhat-release) under root."""
    os_release = _read(os.path.join(root, constants.OS_RELEASE.lstrip("/")))
    if os_release is not None:
        fields = parse_os_release(os_release)
        return profile_for(fields.get("ID", ""), fields.get("VERSION_ID", ""), which)
    legacy = _read(os.path.join(root, constants.REDHAT_RELEASE.lstrip("/")))
    if legacy is not None:
        distro_id, version = parse_redhat_release(legacy)
        return profile_for(distro_id, version, which)
    raise UnsupportedDistroError("Cannot determine the distro: no os-release or redhat-release file.")
