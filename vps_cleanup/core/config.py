#!/usr/bin/env python3
"""Configuration for vps-cleanup: optional JSON rc file plus the per-run settings."""
from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from . import constants

HOME = str(Path.home())
CONFIG_PATHS = [
    "/etc/vps-cleanup.json",
    os.path.join(HOME, ".vpscleanuprc"),
    os.path.join(HOME, ".config", "vps-cleanup", "config.json"),
]

DEFAULTS: dict[str, Any] = {
    "keep_locales": list(constants.DEFAULT_KEEP_LOCALES),
    "user_cache_days": constants.USER_CACHE_DAYS,
    "snap_wait_seconds": constants.SNAP_WAIT_SECONDS,
    "remove_cloud_init": True,
    "do_system_update": True,
    "keep_one_backup_kernel": False,
}

VALID_KEYS = frozenset(DEFAULTS.keys())
LOCALE_CODE_RE = re.compile(r"^[A-Za-z]{2,3}(_[A-Z]{2})?$")
BOOL_KEYS = ("remove_cloud_init", "do_system_update", "keep_one_backup_kernel")


@dataclass(frozen=True)
class RunConfig:
    """Settings for one cleanup run. Built once, read by every stage."""

    dry_run: bool = False
    remove_cloud_init: bool = True
    do_system_update: bool = True
    keep_one_backup_kernel: bool = False
    keep_locales: tuple = constants.DEFAULT_KEEP_LOCALES
    user_cache_days: int = constants.USER_CACHE_DAYS
    snap_wait_seconds: int = constants.SNAP_WAIT_SECONDS
    snap_poll_seconds: int = constants.SNAP_POLL_SECONDS
    root: str = "/"

    def with_overrides(self, **changes: Any) -> "RunConfig":
        return replace(self, **changes)


def config_path() -> str:
    """Preferred config file path: system-wide when running as root."""
    if hasattr(os, "geteuid") and os.geteuid() == 0:
        return CONFIG_PATHS[0]
    return CONFIG_PATHS[1]


def config_exists() -> bool:
    """True if any known config file exists."""
    for p in CONFIG_PATHS:
        if os.path.isfile(p):
            return True
    return False


def _apply(out: dict[str, Any], raw: dict) -> None:
    for k, v in raw.items():
        if k not in VALID_KEYS:
            continue
        if k == "keep_locales" and isinstance(v, list):
            codes = [x for x in v if isinstance(x, str) and LOCALE_CODE_RE.match(x)][:50]
            if codes:
                out[k] = codes
        elif k == "user_cache_days" and isinstance(v, (int, float)) and not isinstance(v, bool):
            val = int(v)
            if 1 <= val <= 365:
                out[k] = val
        elif k == "snap_wait_seconds" and isinstance(v, (int, float)) and not isinstance(v, bool):
            val = int(v)
            if 5 <= val <= 600:
                out[k] = val
        elif k in BOOL_KEYS and isinstance(v, bool):
            out[k] = v


def load(paths: list[str] | None = None) -> dict[str, Any]:
    """Load config from first readable file. Returns defaults + overrides."""
    out = dict(DEFAULTS)
    out["keep_locales"] = list(DEFAULTS["keep_locales"])
    for p in paths if paths is not None else CONFIG_PATHS:
        if not os.path.isfile(p):
            continue
        try:
            with open(p, "r", encoding="utf-8") as f:
                raw = json.load(f)
            if not isinstance(raw, dict):
                continue
            _apply(out, raw)
            return out
        except (OSError, json.JSONDecodeError):
            continue
    return out


def save(cfg: dict[str, Any], path: str | None = None) -> None:
    """Write config to path (default: config_path()). Creates parent dirs."""
    p = path or config_path()
    dirname = os.path.dirname(p)
    if dirname:
        os.makedirs(dirname, exist_ok=True)
    to_write = {k: cfg.get(k, DEFAULTS[k]) for k in sorted(VALID_KEYS)}
    with open(p, "w", encoding="utf-8") as f:
        json.dump(to_write, f, indent=2)


def init_config(path: str | None = None) -> str:
    """Create default config file. Returns path used."""
    p = path or config_path()
    save(DEFAULTS, p)
    return p


def build_run_config(
    cfg: dict[str, Any],
    dry_run: bool = False,
    keep_cloud_init: bool = False,
    no_update: bool = False,
    keep_one_backup: bool = False,
    root: str = "/",
) -> RunConfig:
    """Merge file settings with command-line flags. Flags only ever switch behavior off/on relative to the file."""
    return RunConfig(
        dry_run=dry_run,
        remove_cloud_init=bool(cfg.get("remove_cloud_init", True)) and not keep_cloud_init,
        do_system_update=bool(cfg.get("do_system_update", True)) and not no_update,
        keep_one_backup_kernel=bool(cfg.get("keep_one_backup_kernel", False)) or keep_one_backup,
        keep_locales=tuple(cfg.get("keep_locales") or constants.DEFAULT_KEEP_LOCALES),
        user_cache_days=int(cfg.get("user_cache_days") or constants.USER_CACHE_DAYS),
        snap_wait_seconds=int(cfg.get("snap_wait_seconds") or constants.SNAP_WAIT_SECONDS),
        root=root,
    )
