"""Tests for the snap remover."""
import tempfile
import unittest
from datetime import datetime, timezone

from vps_cleanup.services.executor import Executor
from vps_cleanup.services.package_manager import AptBackend
from vps_cleanup.services.snap import (
    QuiesceStatus,
    SnapRemover,
    SnapState,
    bases_newest_first,
    is_reserved,
    parse_inflight_changes,
    parse_snap_list,
    parse_snap_mounts,
)
from vps_cleanup.stages.snap import remove_snap

from fakes import ALMA, FakeRunner, make_context, no_commands, write_file

SNAP_LIST_HEADER = "Name    Version   Rev    Tracking       Publisher   Notes\n"
BUSY_CHANGES = (
    "ID   Status  Spawn               Ready  Summary\n"
    "12   Doing   today at 10:00 UTC  -      Auto-refresh snap \"lxd\"\n"
)


def has_snap(name):
    return "/usr/bin/" + name if name in ("snap", "lxc") else None


class FakeClock:
    def __init__(self, advance=True):
        self.now = 0.0
        self.advance = advance
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        if self.advance:
            self.now += seconds


class FakeSnapd:
    """Installed snaps that disappear when `snap remove` runs."""

    def __init__(self, names):
        self.names = list(names)

    def snap_list(self, args):
        return (0, SNAP_LIST_HEADER + "".join(f"{n}  1.0  1  latest/stable  canonical  -\n" for n in self.names))

    def remove(self, args):
        if args[-1] in self.names:
            self.names.remove(args[-1])
        return (0, "")

    def runner(self):
        return FakeRunner({
            ("snap", "list"): self.snap_list,
            ("snap", "remove"): self.remove,
            ("snap", "changes"): (0, ""),
        })


class TestParsers(unittest.TestCase):
    def test_snap_list(self) -> None:
        text = SNAP_LIST_HEADER + "core22  20240111  1122  latest/stable  canonical  base\nlxd  5.0.3  27037  5.0/stable  canonical  -\n"
        self.assertEqual(parse_snap_list(text), ["core22", "lxd"])

    def test_inflight_changes(self) -> None:
        text = BUSY_CHANGES + "13   Done    today at 09:00 UTC  today  Install\n14   Error   today  today  x\n15   Wait    today  -  y\n"
        self.assertEqual(parse_inflight_changes(text), ["12", "15"])

    def test_mounts_deepest_first(self) -> None:
        text = (
            "/dev/loop0 /snap/core22/1122 squashfs ro 0 0\n"
            "/dev/loop1 /snap/lxd/27037 squashfs ro 0 0\n"
            "tmpfs /var/snap/lxd/common/ns tmpfs rw 0 0\n"
            "/dev/sda1 /snapshots ext4 rw 0 0\n"
            "tmpfs /snap/fake tmpfs rw 0 0\n"
        )
        self.assertEqual(
            parse_snap_mounts(text),
            ["/var/snap/lxd/common/ns", "/snap/core22/1122", "/snap/lxd/27037"],
        )

    def test_bases(self) -> None:
        self.assertEqual(bases_newest_first(["core18", "core", "lxd", "core22", "snapd"]), ["core22", "core18", "core"])
        self.assertTrue(is_reserved("snapd"))
        self.assertTrue(is_reserved("core20"))
        self.assertFalse(is_reserved("corepy"))


class TestQuiescence(unittest.TestCase):
    def _remover(self, runner, clock, dry_run=False):
        ex = Executor(dry_run=dry_run, runner=runner, which=has_snap)
        return SnapRemover(ex, AptBackend(ex), wait_seconds=10, poll_seconds=5, sleep=clock.sleep, clock=clock)

    def test_permanently_busy_times_out_within_bound(self) -> None:
        clock = FakeClock()
        remover = self._remover(FakeRunner({("snap", "changes"): (0, BUSY_CHANGES)}), clock)
        self.assertEqual(remover.wait_quiescent(), QuiesceStatus.TIMED_OUT)
        self.assertLessEqual(clock.now, 10)
        self.assertLessEqual(sum(clock.sleeps), 10)

    def test_stuck_clock_still_terminates(self) -> None:
        clock = FakeClock(advance=False)
        runner = FakeRunner({("snap", "changes"): (0, BUSY_CHANGES)})
        remover = self._remover(runner, clock)
        self.assertEqual(remover.wait_quiescent(), QuiesceStatus.TIMED_OUT)
        self.assertEqual(len(runner.calls), 3)

    def test_clears_when_changes_finish(self) -> None:
        answers = [(0, BUSY_CHANGES), (0, "")]
        clock = FakeClock()
        remover = self._remover(FakeRunner({("snap", "changes"): lambda args: answers.pop(0)}), clock)
        self.assertEqual(remover.wait_quiescent(), QuiesceStatus.CLEARED)
        self.assertEqual(clock.sleeps, [5])

    def test_dry_run_never_sleeps(self) -> None:
        clock = FakeClock()
        remover = self._remover(FakeRunner({("snap", "changes"): (0, BUSY_CHANGES)}), clock, dry_run=True)
        self.assertEqual(remover.wait_quiescent(), QuiesceStatus.NOT_WAITED)
        self.assertEqual(clock.sleeps, [])


class TestSnapRemover(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.root = self.tmp.name
        write_file(self.root, "/proc/mounts", "/dev/loop0 /snap/core22/1122 squashfs ro 0 0\n")

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def _remover(self, snapd, dry_run=False):
        runner = snapd.runner()
        ex = Executor(dry_run=dry_run, runner=runner, which=has_snap)
        now = lambda: datetime(2024, 1, 1, tzinfo=timezone.utc)
        return SnapRemover(ex, AptBackend(ex), root=self.root, now=now), runner

    def test_full_run(self) -> None:
        snapd = FakeSnapd(["core20", "core22", "hello", "lxd", "snapd"])
        remover, runner = self._remover(snapd)
        self.assertTrue(remover.run())
        self.assertEqual(
            remover.history,
            [
                SnapState.IDLE, SnapState.REFRESH_HELD, SnapState.CONFLICTS_ABORTED, SnapState.QUIESCED,
                SnapState.SERVICES_STOPPED, SnapState.REMOVING_APPS, SnapState.REMOVING_BASES,
                SnapState.UNMOUNTING, SnapState.REMOVING_LEFTOVERS, SnapState.SERVICES_DISABLED,
                SnapState.PACKAGE_PURGED, SnapState.DONE,
            ],
        )
        self.assertEqual(remover.removed, ["lxd", "hello", "core22", "core20", "snapd"])
        self.assertEqual(snapd.names, [])
        self.assertIn(("snap", "set", "system", "refresh.hold=2024-01-08T00:00:00+00:00"), runner.calls)
        self.assertIn(("umount", "-l", "/snap/core22/1122"), runner.calls)
        self.assertIn(("apt-get", "purge", "-y", "snapd"), runner.calls)
        self.assertTrue(all(w is QuiesceStatus.CLEARED for w in remover.waits))

    def test_dry_run_lists_each_snap_once(self) -> None:
        snapd = FakeSnapd(["core22", "hello", "lxd", "snapd"])
        remover, runner = self._remover(snapd, dry_run=True)
        remover.run()
        removals = [a for a in remover.executor.actions if a.startswith("snap remove")]
        self.assertEqual(len(removals), 4)
        self.assertEqual(snapd.names, ["core22", "hello", "lxd", "snapd"])
        self.assertFalse(any(c[:2] == ("snap", "remove") for c in runner.calls))

    def test_snap_not_installed(self) -> None:
        ex = Executor(runner=FakeRunner(), which=no_commands)
        remover = SnapRemover(ex, AptBackend(ex), root=self.root)
        self.assertFalse(remover.run())
        self.assertEqual(remover.history, [SnapState.IDLE])
        self.assertEqual(ex.actions, [])

    def test_stage_skips_rpm_hosts(self) -> None:
        runner = FakeRunner()
        remover = remove_snap(make_context(self.root, profile=ALMA, runner=runner, which=has_snap))
        self.assertEqual(remover.history, [SnapState.IDLE])
        self.assertEqual(runner.calls, [])


if __name__ == "__main__":
    unittest.main()
