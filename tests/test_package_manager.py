"""Tests for the package manager backends."""
import os
import tempfile
import unittest

from vps_cleanup.core.profile import HostProfile, DistroFamily, PackageManagerKind
from vps_cleanup.services.executor import Executor
from vps_cleanup.services.package_manager import AptBackend, DnfBackend, YumBackend, backend_for

from fakes import ALMA, UBUNTU, FakeRunner, dpkg_query


class TestAptBackend(unittest.TestCase):
    def setUp(self) -> None:
        self.runner = FakeRunner({("dpkg-query",): dpkg_query({"vim": "ii", "gcc": "rc", "git": "ii"})})
        self.apt = AptBackend(Executor(runner=self.runner))

    def test_purge_is_noninteractive(self) -> None:
        self.apt.purge(["gcc", "make", "gcc"])
        self.assertEqual(self.runner.calls[-1], ("apt-get", "purge", "-y", "gcc", "make"))
        self.assertEqual(self.runner.envs[-1]["DEBIAN_FRONTEND"], "noninteractive")

    def test_empty_removal_runs_nothing(self) -> None:
        self.assertTrue(self.apt.purge([]).ok)
        self.assertEqual(self.runner.calls, [])

    def test_verbs(self) -> None:
        self.apt.autoremove()
        self.apt.update()
        self.apt.upgrade()
        self.assertEqual(
            self.runner.commands(),
            ["apt-get autoremove -y --purge", "apt-get update -y", "apt-get -y full-upgrade"],
        )

    def test_only_fully_installed_counts(self) -> None:
        self.assertTrue(self.apt.is_installed("vim"))
        self.assertFalse(self.apt.is_installed("gcc"))
        self.assertFalse(self.apt.is_installed("nano"))
        self.assertEqual(self.apt.installed_of(["gcc", "vim", "nano", "git"]), ["vim", "git"])
        self.assertEqual(self.apt.list_installed("*"), ["git", "vim"])

    def test_residual_config(self) -> None:
        runner = FakeRunner({("dpkg", "-l"): (0, (
            "Desired=Unknown/Install/Remove/Purge/Hold\n"
            "ii  vim      2:8.2  amd64  Vi IMproved\n"
            "rc  linux-image-5.15.0-10-generic  5.15.0-10.10  amd64  Linux kernel image\n"
        ))})
        self.assertEqual(AptBackend(Executor(runner=runner)).residual_config(), ["linux-image-5.15.0-10-generic"])

    def test_clean_recreates_partial_dirs(self) -> None:
        with tempfile.TemporaryDirectory() as root:
            archives = os.path.join(root, "var/cache/apt/archives")
            os.makedirs(archives)
            with open(os.path.join(archives, "gcc.deb"), "w"):
                pass
            AptBackend(Executor(runner=FakeRunner()), root=root).clean()
            self.assertEqual(os.listdir(archives), ["partial"])
            self.assertTrue(os.path.isdir(os.path.join(root, "var/lib/apt/lists/partial")))


class TestRpmBackends(unittest.TestCase):
    def test_dnf_and_yum_upgrade_syntax(self) -> None:
        runner = FakeRunner()
        DnfBackend(Executor(runner=runner)).upgrade()
        YumBackend(Executor(runner=runner)).upgrade()
        self.assertEqual(runner.commands(), ["dnf -y upgrade", "yum -y update"])

    def test_rpm_queries(self) -> None:
        runner = FakeRunner({
            ("rpm", "-q", "gcc"): (0, "gcc-11.4.1-2.el9.x86_64\n"),
            ("rpm", "-q"): (1, "package nano is not installed\n"),
            ("rpm", "-qa"): (0, "kernel-core-5.14.0-362.el9.x86_64\n"),
        })
        dnf = DnfBackend(Executor(runner=runner))
        self.assertTrue(dnf.is_installed("gcc"))
        self.assertFalse(dnf.is_installed("nano"))
        self.assertEqual(dnf.list_installed("kernel-core-*"), ["kernel-core-5.14.0-362.el9.x86_64"])

    def test_groups(self) -> None:
        runner = FakeRunner({("dnf", "group", "list"): (0, "Installed Groups:\n   Development Tools\n")})
        dnf = DnfBackend(Executor(runner=runner))
        self.assertTrue(dnf.group_installed("Development Tools"))
        dnf.group_remove("Development Tools")
        self.assertEqual(runner.calls[-1], ("dnf", "groupremove", "-y", "Development Tools"))

    def test_backend_for_profile(self) -> None:
        ex = Executor()
        yum_host = HostProfile(DistroFamily.RPM_LIKE, "centos", "7.9", PackageManagerKind.YUM)
        self.assertIsInstance(backend_for(UBUNTU, ex), AptBackend)
        self.assertIs(type(backend_for(ALMA, ex)), DnfBackend)
        self.assertIsInstance(backend_for(yum_host, ex), YumBackend)


if __name__ == "__main__":
    unittest.main()
