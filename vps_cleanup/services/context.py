"""Shared types passed between the orchestrator and the stages."""
from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from typing import Callable

from ..core.config import RunConfig
from ..core.profile import HostProfile
from .executor import Executor
from .package_manager import PackageBackend


@dataclass
class StageContext:
    """Everything a stage may read. Built once per run."""

    profile: HostProfile
    config: RunConfig
    executor: Executor
    backend: PackageBackend
    kernel_release: str

    @property
    def dry_run(self) -> bool:
        return self.config.dry_run

    def path(self, host_path: str) -> str:
        """Resolve an absolute host path against the configured root."""
        if self.config.root in ("", "/"):
            return host_path
        return os.path.join(self.config.root, host_path.lstrip("/"))

    def host_path(self, real_path: str) -> str:
        """Inverse of path(): what the host's own tools call this file."""
        if self.config.root in ("", "/"):
            return real_path
        rel = os.path.relpath(real_path, self.config.root)
        return "/" + ("" if rel == "." else rel)


class StageStatus(enum.Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class StageResult:
    key: str
    title: str
    status: StageStatus
    message: str = ""
    soft_failures: int = 0


def _always(ctx: StageContext) -> bool:
    return True


@dataclass(frozen=True)
class Stage:
    key: str
    title: str
    func: Callable[[StageContext], None]
    enabled: Callable[[StageContext], bool] = _always
    skip_message: str = ""
