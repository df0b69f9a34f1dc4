#!/usr/bin/env python3
"""Package manager backends.

Stages are written once against PackageBackend; only the subclasses here know
apt-get/dpkg or dnf/yum/rpm syntax. Removal is best-effort: a missing package
must not stop a stage, so failures are returned, not raised.
"""
from __future__ import annotations

import fnmatch
import os
from typing import Iterable, List

from ..core.profile import HostProfile, PackageManagerKind
from .executor import CommandResult, Executor

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


def _names(names: Iterable[str]) -> List[str]:
    seen = []
    for n in names:
        if n and n not in seen:
            seen.append(n)
    return seen


class PackageBackend:
    """Seven-verb interface plus the few extra queries the stages need."""

    name = ""
    cache_dirs: List[str] = []

    def __init__(self, executor: Executor, root: str = "/"):
        self.executor = executor
        self.root = root

    def _skip(self) -> CommandResult:
        return CommandResult((self.name,), 0, message="nothing to do")

    def install(self, names: Iterable[str]) -> CommandResult:
        raise NotImplementedError

    def remove(self, names: Iterable[str]) -> CommandResult:
        raise NotImplementedError

    def purge(self, names: Iterable[str]) -> CommandResult:
        return self.remove(names)

    def autoremove(self) -> CommandResult:
        raise NotImplementedError

    def clean(self) -> CommandResult:
        raise NotImplementedError

    def update(self) -> CommandResult:
        raise NotImplementedError

    def upgrade(self) -> CommandResult:
        raise NotImplementedError

    def is_installed(self, name: str) -> bool:
        raise NotImplementedError

    def list_installed(self, pattern: str) -> List[str]:
        raise NotImplementedError

    def installed_of(self, names: Iterable[str]) -> List[str]:
        """Filter a candidate list down to what is installed right now."""
        return [n for n in _names(names) if self.is_installed(n)]

    def owns_path(self, path: str) -> bool:
        """True if some installed package owns path (host path, not rooted)."""
        raise NotImplementedError

    def reinstall(self, names: Iterable[str]) -> CommandResult:
        raise NotImplementedError

    def residual_config(self) -> List[str]:
        return []

    def group_installed(self, group: str) -> bool:
        return False

    def group_remove(self, group: str) -> CommandResult:
        return self._skip()

    def list_extras(self) -> List[str]:
        return []

    def clean_metadata(self) -> CommandResult:
        return self._skip()

    def _clear_cache_dirs(self) -> None:
        for d in self.cache_dirs:
            self.executor.clear_dir(os.path.join(self.root, d.lstrip("/")))


class AptBackend(PackageBackend):
    name = "apt"
    cache_dirs = ["/var/cache/apt/archives", "/var/lib/apt/lists"]

    def _apt(self, *args: str, quiet: bool = False) -> CommandResult:
        return self.executor.run(["apt-get", *args], env=APT_ENV, quiet=quiet)

    def install(self, names):
        names = _names(names)
        if not names:
            return self._skip()
        return self._apt("install", "-y", *names)

    def remove(self, names):
        names = _names(names)
        if not names:
            return self._skip()
        return self._apt("remove", "-y", *names)

    def purge(self, names):
        names = _names(names)
        if not names:
            return self._skip()
        return self._apt("purge", "-y", *names)

    def autoremove(self):
        return self._apt("autoremove", "-y", "--purge")

    def clean(self):
        result = self._apt("clean")
        self._clear_cache_dirs()
        for d in self.cache_dirs:
            self.executor.makedirs(os.path.join(self.root, d.lstrip("/"), "partial"))
        return result

    def update(self):
        return self._apt("update", "-y")

    def upgrade(self):
        return self._apt("-y", "full-upgrade")

    def reinstall(self, names):
        names = _names(names)
        if not names:
            return self._skip()
        return self._apt("install", "-y", "--reinstall", *names)

    def _dpkg_states(self, pattern: str) -> List[tuple]:
        res = self.executor.query(["dpkg-query", "-W", "--showformat=${db:Status-Abbrev} ${Package}\n", pattern])
        if not res.ok:
            return []
        out = []
        for line in res.lines():
            parts = line.split()
            if len(parts) >= 2:
                out.append((parts[0], parts[-1]))
        return out

    def is_installed(self, name):
        return any(state.startswith("ii") and pkg == name for state, pkg in self._dpkg_states(name))

    def list_installed(self, pattern):
        return [pkg for state, pkg in self._dpkg_states(pattern) if state.startswith("ii") and fnmatch.fnmatchcase(pkg, pattern)]

    def residual_config(self):
        res = self.executor.query(["dpkg", "-l"])
        if not res.ok:
            return []
        return [line.split()[1] for line in res.lines() if line.startswith("rc") and len(line.split()) > 1]

    def owns_path(self, path):
        return self.executor.query(["dpkg", "-S", path]).ok


class DnfBackend(PackageBackend):
    name = "dnf"
    cache_dirs = ["/var/cache/dnf", "/var/cache/yum"]

    def _mgr(self, *args: str, quiet: bool = False) -> CommandResult:
        return self.executor.run([self.name, *args], quiet=quiet)

    def install(self, names):
        names = _names(names)
        if not names:
            return self._skip()
        return self._mgr("install", "-y", *names)

    def remove(self, names):
        names = _names(names)
        if not names:
            return self._skip()
        return self._mgr("remove", "-y", *names)

    def autoremove(self):
        return self._mgr("autoremove", "-y")

    def clean(self):
        result = self._mgr("clean", "all")
        self._clear_cache_dirs()
        return result

    def update(self):
        return self._mgr("makecache")

    def upgrade(self):
        return self._mgr("-y", "upgrade")

    def reinstall(self, names):
        names = _names(names)
        if not names:
            return self._skip()
        return self._mgr("reinstall", "-y", *names)

    def is_installed(self, name):
        return self.executor.query(["rpm", "-q", name]).ok

    def list_installed(self, pattern):
        res = self.executor.query(["rpm", "-qa", pattern])
        if not res.ok:
            return []
        return res.lines()

    def owns_path(self, path):
        return self.executor.query(["rpm", "-qf", path]).ok

    def group_installed(self, group):
        res = self.executor.query([self.name, "group", "list", "installed"])
        return res.ok and group.lower() in res.stdout.lower()

    def group_remove(self, group):
        return self._mgr("groupremove", "-y", group)

    def list_extras(self):
        res = self.executor.query([self.name, "repoquery", "--extras"])
        return res.lines() if res.ok else []

    def clean_metadata(self):
        return self._mgr("clean", "dbcache", "metadata", "expire-cache", quiet=True)


class YumBackend(DnfBackend):
    name = "yum"

    def upgrade(self):
        return self._mgr("-y", "update")


BACKENDS = {
    PackageManagerKind.APT: AptBackend,
    PackageManagerKind.DNF: DnfBackend,
    PackageManagerKind.YUM: YumBackend,
}


def backend_for(profile: HostProfile, executor: Executor, root: str = "/") -> PackageBackend:
    return BACKENDS[profile.package_manager](executor, root)
