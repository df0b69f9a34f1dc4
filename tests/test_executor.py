"""Tests for the action executor."""
import os
import subprocess
import tempfile
import unittest
from datetime import datetime
from unittest import mock

from vps_cleanup.core.errors import CommandError
from vps_cleanup.services.executor import Executor

from fakes import FakeRunner


class TestDryRun(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.runner = FakeRunner()
        self.ex = Executor(dry_run=True, runner=self.runner)

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def test_run_is_reported_not_executed(self) -> None:
        result = self.ex.run(["apt-get", "purge", "-y", "gcc"])
        self.assertTrue(result.ok)
        self.assertTrue(result.dry_run)
        self.assertEqual(self.runner.calls, [])
        self.assertEqual(self.ex.actions, ["apt-get purge -y gcc"])

    def test_query_still_runs(self) -> None:
        self.ex.query(["snap", "changes"])
        self.assertEqual(self.runner.calls, [("snap", "changes")])
        self.assertEqual(self.ex.actions, [])

    def test_filesystem_is_untouched(self) -> None:
        path = os.path.join(self.tmp.name, "file.txt")
        with open(path, "w") as f:
            f.write("keep me")
        self.assertTrue(self.ex.remove_path(path))
        self.ex.write_text(path, "changed")
        self.ex.truncate_tail(path, 2)
        self.ex.backup(path)
        with open(path) as f:
            self.assertEqual(f.read(), "keep me")
        self.assertEqual(os.listdir(self.tmp.name), ["file.txt"])
        self.assertEqual(len(self.ex.actions), 4)

    def test_missing_path_is_not_an_action(self) -> None:
        self.assertFalse(self.ex.remove_path(os.path.join(self.tmp.name, "nope")))
        self.assertEqual(self.ex.actions, [])


class TestRealRun(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = self.tmp.name

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def test_failure_is_soft(self) -> None:
        ex = Executor(runner=FakeRunner(default=(100, "")))
        result = ex.run(["apt-get", "purge", "-y", "missing"])
        self.assertFalse(result.ok)
        self.assertEqual(result.message, "error: failed")
        self.assertEqual(len(ex.failures), 1)

    def test_quiet_failure_is_not_counted(self) -> None:
        ex = Executor(runner=FakeRunner(default=(1, "")))
        ex.run(["systemctl", "stop", "snapd.service"], quiet=True)
        self.assertEqual(ex.failures, [])

    def test_missing_binary(self) -> None:
        ex = Executor(runner=FakeRunner(default=FileNotFoundError()))
        result = ex.run(["update-grub"], quiet=True)
        self.assertEqual(result.returncode, 127)

    def test_timeout(self) -> None:
        ex = Executor(runner=FakeRunner(default=subprocess.TimeoutExpired("snap", 5)))
        self.assertEqual(ex.query(["snap", "changes"], timeout=5).returncode, 124)

    def test_check_escalates(self) -> None:
        ex = Executor(runner=FakeRunner(default=(2, "")))
        with self.assertRaises(CommandError) as cm:
            ex.run(["locale-gen"]).check()
        self.assertIn("locale-gen", str(cm.exception))

    def test_real_commands_are_echoed(self) -> None:
        with mock.patch("vps_cleanup.utils.output.running") as running:
            ex = Executor(runner=FakeRunner())
            ex.run(["apt-get", "-y", "full-upgrade"])
            ex.query(["dpkg", "-l"])
            Executor(dry_run=True, runner=FakeRunner()).run(["apt-get", "clean"])
        running.assert_called_once_with("apt-get -y full-upgrade")

    def test_env_is_merged(self) -> None:
        runner = FakeRunner()
        Executor(runner=runner).run(["apt-get", "clean"], env={"DEBIAN_FRONTEND": "noninteractive"})
        env = runner.envs[0]
        self.assertEqual(env["DEBIAN_FRONTEND"], "noninteractive")
        if "PATH" in os.environ:
            self.assertEqual(env["PATH"], os.environ["PATH"])

    def test_truncate_tail_keeps_newest_bytes(self) -> None:
        path = os.path.join(self.dir, "syslog")
        with open(path, "wb") as f:
            f.write(b"old" * 100 + b"newest")
        Executor().truncate_tail(path, 6)
        with open(path, "rb") as f:
            self.assertEqual(f.read(), b"newest")

    def test_backup_name(self) -> None:
        path = os.path.join(self.dir, "fstab")
        with open(path, "w") as f:
            f.write("/swapfile none swap sw 0 0\n")
        dest = Executor().backup(path, now=datetime(2024, 1, 2, 3, 4, 5))
        self.assertEqual(dest, path + ".bak.2024-01-02-030405")
        with open(dest) as f:
            self.assertEqual(f.read(), "/swapfile none swap sw 0 0\n")

    def test_clear_dir_keeps_parent(self) -> None:
        os.makedirs(os.path.join(self.dir, "tmp", "sub"))
        with open(os.path.join(self.dir, "tmp", "a"), "w"):
            pass
        self.assertEqual(Executor().clear_dir(os.path.join(self.dir, "tmp")), 2)
        self.assertEqual(os.listdir(os.path.join(self.dir, "tmp")), [])

    def test_delete_files_by_predicate(self) -> None:
        for name in ("a.old", "b.log"):
            with open(os.path.join(self.dir, name), "w"):
                pass
        n = Executor().delete_files(self.dir, lambda fp, st: fp.endswith(".old"))
        self.assertEqual(n, 1)
        self.assertEqual(os.listdir(self.dir), ["b.log"])


if __name__ == "__main__":
    unittest.main()
