#!/usr/bin/env python3
"""Snap removal.

snapd runs its own asynchronous changes; removing a snap while a change is in
flight fails or leaves the state half-applied. The remover therefore holds
refreshes, aborts what is running and waits (bounded) for quiescence before
each destructive step. Every removal is best-effort: a partially cleaned
system is acceptable, a crashed run is not.
"""
from __future__ import annotations

import enum
import math
import os
import re
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from ..core import constants
from ..utils import output
from .executor import Executor
from .package_manager import PackageBackend

RESERVED_RE = re.compile(r"^(core[0-9]*|snapd)$")
BASE_RE = re.compile(r"^core([0-9]*)$")
LXD_SNAP = "lxd"


class SnapState(enum.Enum):
    IDLE = "idle"
    REFRESH_HELD = "refresh-held"
    CONFLICTS_ABORTED = "conflicts-aborted"
    QUIESCED = "quiesced"
    SERVICES_STOPPED = "services-stopped"
    REMOVING_APPS = "removing-apps"
    REMOVING_BASES = "removing-bases"
    UNMOUNTING = "unmounting"
    REMOVING_LEFTOVERS = "removing-leftovers"
    SERVICES_DISABLED = "services-disabled"
    PACKAGE_PURGED = "package-purged"
    DONE = "done"


class QuiesceStatus(enum.Enum):
    CLEARED = "cleared"
    TIMED_OUT = "timed-out"
    # dry-run: nothing was aborted, so waiting would only burn the timeout
    NOT_WAITED = "not-waited"


def parse_snap_list(text: str) -> List[str]:
    """Names from `snap list` output (header skipped)."""
    names = []
    for line in text.splitlines():
        parts = line.split()
        if not parts or parts[0] == "Name":
            continue
        names.append(parts[0])
    return names


def parse_inflight_changes(text: str, statuses=constants.SNAP_INFLIGHT_STATUSES) -> List[str]:
    """Change ids from `snap changes` whose status is still in flight."""
    ids = []
    for line in text.splitlines():
        parts = line.split()
        if len(parts) < 2 or parts[0] == "ID":
            continue
        if parts[1] in statuses:
            ids.append(parts[0])
    return ids


def parse_snap_mounts(text: str) -> List[str]:
    """Mount points owned by snapd, deepest first."""
    points = []
    for line in text.splitlines():
        parts = line.split()
        if len(parts) < 3:
            continue
        mp, fstype = parts[1], parts[2]
        if (fstype == "squashfs" and mp.startswith("/snap/")) or mp.startswith("/var/snap/lxd/common"):
            if mp not in points:
                points.append(mp)
    return sorted(points, key=len, reverse=True)


def is_reserved(name: str) -> bool:
    return bool(RESERVED_RE.match(name))


def bases_newest_first(names: List[str]) -> List[str]:
    bases = [n for n in names if BASE_RE.match(n)]
    return sorted(bases, key=lambda n: int(BASE_RE.match(n).group(1) or 0), reverse=True)


class SnapRemover:
    """Drives snapd from 'installed' to 'gone', one state at a time."""

    def __init__(
        self,
        executor: Executor,
        backend: PackageBackend,
        root: str = "/",
        wait_seconds: int = constants.SNAP_WAIT_SECONDS,
        poll_seconds: int = constants.SNAP_POLL_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.executor = executor
        self.backend = backend
        self.root = root
        self.wait_seconds = wait_seconds
        self.poll_seconds = max(1, poll_seconds)
        self._sleep = sleep
        self._clock = clock
        self._now = now or (lambda: datetime.now(timezone.utc))
        self.state = SnapState.IDLE
        self.history: List[SnapState] = [SnapState.IDLE]
        self.waits: List[QuiesceStatus] = []
        self.removed: List[str] = []

    def _enter(self, state: SnapState) -> None:
        self.state = state
        self.history.append(state)

    def _rooted(self, path: str) -> str:
        return os.path.join(self.root, path.lstrip("/"))

    # -- queries -----------------------------------------------------------

    def installed_snaps(self) -> List[str]:
        res = self.executor.query(["snap", "list"])
        return parse_snap_list(res.stdout) if res.ok else []

    def inflight_changes(self) -> List[str]:
        res = self.executor.query(["snap", "changes"])
        return parse_inflight_changes(res.stdout) if res.ok else []

    def snap_mounts(self) -> List[str]:
        try:
            with open(self._rooted(constants.PROC_MOUNTS), "r", encoding="utf-8") as f:
                return parse_snap_mounts(f.read())
        except OSError:
            return []

    # -- steps -------------------------------------------------------------

    def hold_refresh(self) -> None:
        hold = (self._now() + timedelta(days=constants.SNAP_HOLD_DAYS)).isoformat(timespec="seconds")
        self.executor.run(["snap", "set", "system", f"refresh.hold={hold}"], quiet=True)

    def abort_conflicts(self) -> int:
        ids = self.inflight_changes()
        for change_id in ids:
            self.executor.run(["snap", "abort", change_id], quiet=True)
        return len(ids)

    def wait_quiescent(self) -> QuiesceStatus:
        """Poll `snap changes` until nothing is in flight or the deadline passes."""
        deadline = self._clock() + self.wait_seconds
        max_polls = math.ceil(self.wait_seconds / self.poll_seconds)
        status = QuiesceStatus.TIMED_OUT
        for attempt in range(max_polls + 1):
            busy = self.inflight_changes()
            if not busy:
                status = QuiesceStatus.CLEARED
                break
            if self.executor.dry_run:
                output.dry(f"wait up to {self.wait_seconds}s for {len(busy)} snap change(s) to finish")
                status = QuiesceStatus.NOT_WAITED
                break
            remaining = deadline - self._clock()
            if attempt == max_polls or remaining <= 0:
                output.warn(f"Snap changes still in flight after {self.wait_seconds}s; continuing anyway.")
                break
            output.info(f"Waiting for {len(busy)} snap change(s) to finish...")
            self._sleep(min(self.poll_seconds, remaining))
        self.waits.append(status)
        return status

    def settle(self) -> QuiesceStatus:
        self.abort_conflicts()
        return self.wait_quiescent()

    def stop_services(self) -> None:
        self.executor.run(["systemctl", "stop", *constants.SNAP_SERVICES], quiet=True)
        self.executor.run(["systemctl", "stop", constants.SNAP_LXD_SERVICE], quiet=True)

    def disable_services(self) -> None:
        self.executor.run(["systemctl", "disable", *constants.SNAP_SERVICES], quiet=True)
        self.executor.run(["systemctl", "disable", constants.SNAP_LXD_SERVICE], quiet=True)
        self.executor.run(["systemctl", "mask", *constants.SNAP_MASK_SERVICES], quiet=True)

    def unmount(self) -> None:
        for mp in self.snap_mounts():
            self.executor.run(["umount", "-l", mp], quiet=True)

    def remove_snap(self, name: str) -> bool:
        self.removed.append(name)
        return self.executor.run(["snap", "remove", "--purge", name]).ok

    def _pending(self, names: List[str]) -> List[str]:
        # Real runs re-read snap list, so only dry runs can see a snap twice.
        if not self.executor.dry_run:
            return names
        return [n for n in names if n not in self.removed]

    def remove_container_runtime(self, snaps: List[str]) -> None:
        if LXD_SNAP not in snaps:
            return
        output.info("Found the lxd snap; stopping it and removing it first.")
        self.executor.run(["systemctl", "stop", constants.SNAP_LXD_SERVICE], quiet=True)
        if self.executor.has_command("lxc"):
            self.executor.run(["lxc", "stop", "-f", "--all"], quiet=True)
        self.settle()
        self.remove_snap(LXD_SNAP)

    # -- driver ------------------------------------------------------------

    def run(self) -> bool:
        """Remove every snap and snapd itself. False if snap is not present."""
        if not self.executor.has_command("snap"):
            output.info("snap is not installed on this system.")
            return False

        self.hold_refresh()
        self._enter(SnapState.REFRESH_HELD)

        self.abort_conflicts()
        self._enter(SnapState.CONFLICTS_ABORTED)

        self.wait_quiescent()
        self._enter(SnapState.QUIESCED)

        self.stop_services()
        self._enter(SnapState.SERVICES_STOPPED)

        self._enter(SnapState.REMOVING_APPS)
        self.remove_container_runtime(self.installed_snaps())
        for name in self._pending([s for s in self.installed_snaps() if not is_reserved(s)]):
            self.settle()
            self.remove_snap(name)

        self._enter(SnapState.REMOVING_BASES)
        for name in self._pending(bases_newest_first(self.installed_snaps())):
            self.settle()
            self.remove_snap(name)

        self._enter(SnapState.UNMOUNTING)
        self.unmount()
        self.settle()

        self._enter(SnapState.REMOVING_LEFTOVERS)
        for name in self._pending(self.installed_snaps()):
            self.remove_snap(name)

        self.disable_services()
        self._enter(SnapState.SERVICES_DISABLED)
        self.stop_services()
        self.unmount()
        self.settle()

        self.backend.purge(["snapd"])
        for d in constants.SNAP_DIRS:
            self.executor.remove_path(self._rooted(d))
        self._enter(SnapState.PACKAGE_PURGED)

        self._enter(SnapState.DONE)
        return True
