"""Tests for vps_cleanup.core.config."""
import dataclasses
import json
import os
import tempfile
import unittest

from vps_cleanup.core import config as config_module
from vps_cleanup.core.config import RunConfig


class TestConfig(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, "config.json")

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def _write(self, data) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(data if isinstance(data, str) else json.dumps(data))

    def test_load_returns_dict(self) -> None:
        cfg = config_module.load(paths=[])
        self.assertIsInstance(cfg, dict)

    def test_load_has_expected_keys(self) -> None:
        cfg = config_module.load(paths=[])
        for key in ("keep_locales", "user_cache_days", "snap_wait_seconds", "remove_cloud_init"):
            self.assertIn(key, cfg)

    def test_load_applies_valid_overrides(self) -> None:
        self._write({"keep_locales": ["en", "de_DE"], "user_cache_days": 7, "remove_cloud_init": False})
        cfg = config_module.load(paths=[self.path])
        self.assertEqual(cfg["keep_locales"], ["en", "de_DE"])
        self.assertEqual(cfg["user_cache_days"], 7)
        self.assertFalse(cfg["remove_cloud_init"])

    def test_load_ignores_invalid_values(self) -> None:
        self._write({
            "keep_locales": ["en", "../etc", 5],
            "user_cache_days": 0,
            "snap_wait_seconds": 9999,
            "do_system_update": "no",
            "unknown": 1,
        })
        cfg = config_module.load(paths=[self.path])
        self.assertEqual(cfg["keep_locales"], ["en"])
        self.assertEqual(cfg["user_cache_days"], config_module.DEFAULTS["user_cache_days"])
        self.assertEqual(cfg["snap_wait_seconds"], config_module.DEFAULTS["snap_wait_seconds"])
        self.assertTrue(cfg["do_system_update"])
        self.assertNotIn("unknown", cfg)

    def test_load_skips_broken_json(self) -> None:
        self._write("{not json")
        self.assertEqual(config_module.load(paths=[self.path]), config_module.load(paths=[]))

    def test_init_config_writes_defaults(self) -> None:
        path = config_module.init_config(os.path.join(self.tmp.name, "sub", "rc.json"))
        self.assertTrue(os.path.isfile(path))
        self.assertEqual(config_module.load(paths=[path]), config_module.load(paths=[]))

    def test_flags_override_file(self) -> None:
        cfg = dict(config_module.DEFAULTS, keep_one_backup_kernel=True)
        run = config_module.build_run_config(cfg, dry_run=True, keep_cloud_init=True, no_update=True)
        self.assertTrue(run.dry_run)
        self.assertFalse(run.remove_cloud_init)
        self.assertFalse(run.do_system_update)
        self.assertTrue(run.keep_one_backup_kernel)
        self.assertEqual(run.keep_locales, ("en", "en_US"))

    def test_run_config_is_immutable(self) -> None:
        run = RunConfig()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            run.dry_run = True
        self.assertTrue(run.with_overrides(dry_run=True).dry_run)
        self.assertFalse(run.dry_run)


if __name__ == "__main__":
    unittest.main()
