#!/usr/bin/env python3
"""Action executor: the one place where commands run and files are touched.

Every mutating operation goes through an Executor. In dry-run mode the
operation is printed with a DRY-RUN marker and nothing happens; read-only
queries still run so later decisions are based on the real host state.
Failures never raise here: callers get a CommandResult and decide.
"""
from __future__ import annotations

import fnmatch
import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from ..core.errors import CommandError
from ..utils import output

QUERY_TIMEOUT = 120


@dataclass
class CommandResult:
    args: tuple
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    dry_run: bool = False
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def command_line(self) -> str:
        return shlex.join(self.args)

    def lines(self) -> List[str]:
        return [ln for ln in self.stdout.splitlines() if ln.strip()]

    def check(self) -> "CommandResult":
        """Escalate a failure into CommandError."""
        if not self.ok:
            raise CommandError(self)
        return self


def subprocess_runner(args: Sequence[str], env: Optional[dict] = None, timeout: Optional[int] = None):
    return subprocess.run(
        list(args),
        capture_output=True,
        text=True,
        env=env,
        timeout=timeout,
        check=False,
    )


class Executor:
    """Runs (or, in dry-run mode, reports) commands and filesystem changes."""

    def __init__(self, dry_run: bool = False, runner: Optional[Callable] = None, which: Callable = shutil.which):
        self.dry_run = dry_run
        self._runner = runner or subprocess_runner
        self._which = which
        self.actions: List[str] = []
        self.failures: List[str] = []

    # -- bookkeeping -------------------------------------------------------

    def _record(self, description: str) -> None:
        self.actions.append(description)
        if self.dry_run:
            output.dry(description)

    def _soft_fail(self, message: str) -> None:
        self.failures.append(message)
        output.warn(message)

    def has_command(self, name: str) -> bool:
        return self._which(name) is not None

    # -- commands ----------------------------------------------------------

    def _execute(self, args: tuple, env: Optional[dict], timeout: Optional[int]) -> CommandResult:
        full_env = None
        if env:
            full_env = dict(os.environ)
            full_env.update(env)
        try:
            proc = self._runner(args, full_env, timeout)
        except FileNotFoundError:
            return CommandResult(args, 127, message=f"{args[0]}: command not found")
        except subprocess.TimeoutExpired:
            return CommandResult(args, 124, message=f"timed out after {timeout}s")
        except OSError as e:
            return CommandResult(args, 126, message=str(e))
        result = CommandResult(args, proc.returncode, proc.stdout or "", proc.stderr or "")
        if not result.ok:
            tail = (result.stderr or result.stdout).strip().splitlines()
            result.message = tail[-1] if tail else f"exit code {result.returncode}"
        return result

    def run(
        self,
        args: Sequence[str],
        quiet: bool = False,
        env: Optional[dict] = None,
        timeout: Optional[int] = None,
    ) -> CommandResult:
        """Run a mutating command. quiet=True for commands expected to fail harmlessly."""
        args = tuple(args)
        if self.dry_run:
            self._record(shlex.join(args))
            return CommandResult(args, 0, dry_run=True)
        self.actions.append(shlex.join(args))
        output.running(shlex.join(args))
        result = self._execute(args, env, timeout)
        if not result.ok and not quiet:
            self._soft_fail(f"{result.command_line()} failed: {result.message}")
        return result

    def query(self, args: Sequence[str], env: Optional[dict] = None, timeout: Optional[int] = QUERY_TIMEOUT) -> CommandResult:
        """Run a read-only command. Runs in dry-run mode too."""
        return self._execute(tuple(args), env, timeout)

    # -- filesystem --------------------------------------------------------

    def remove_path(self, path: str) -> bool:
        """rm -rf path. Missing paths are a no-op."""
        if not os.path.lexists(path):
            return False
        self._record(f"rm -rf {shlex.quote(path)}")
        if self.dry_run:
            return True
        try:
            if os.path.isdir(path) and not os.path.islink(path):
                shutil.rmtree(path)
            else:
                os.remove(path)
        except OSError as e:
            self._soft_fail(f"Could not remove {path}: {e}")
            return False
        return True

    def clear_dir(self, parent: str, pattern: str = "*") -> int:
        """Delete the children of parent matching pattern, keeping parent itself."""
        if not os.path.isdir(parent):
            return 0
        count = 0
        try:
            names = sorted(os.listdir(parent))
        except OSError as e:
            self._soft_fail(f"Could not list {parent}: {e}")
            return 0
        for name in names:
            if fnmatch.fnmatch(name, pattern) and self.remove_path(os.path.join(parent, name)):
                count += 1
        return count

    def delete_files(self, top: str, predicate: Callable[[str, os.stat_result], bool], label: str = "") -> int:
        """find top -type f <predicate> -delete."""
        if not os.path.isdir(top):
            return 0
        matched = []
        for dirpath, _dirs, files in os.walk(top, followlinks=False):
            for name in files:
                fp = os.path.join(dirpath, name)
                try:
                    st = os.lstat(fp)
                except OSError:
                    continue
                if predicate(fp, st):
                    matched.append(fp)
        if not matched:
            return 0
        if self.dry_run:
            self._record(f"delete {len(matched)} file(s) under {top}{' (' + label + ')' if label else ''}")
            return len(matched)
        self.actions.append(f"delete {len(matched)} file(s) under {top}")
        deleted = 0
        for fp in matched:
            try:
                os.remove(fp)
                deleted += 1
            except OSError as e:
                self._soft_fail(f"Could not delete {fp}: {e}")
        return deleted

    def makedirs(self, path: str) -> None:
        if os.path.isdir(path):
            return
        self._record(f"mkdir -p {shlex.quote(path)}")
        if not self.dry_run:
            try:
                os.makedirs(path, exist_ok=True)
            except OSError as e:
                self._soft_fail(f"Could not create {path}: {e}")

    def write_text(self, path: str, content: str, summary: str = "") -> bool:
        self._record(f"write {path}" + (f": {summary}" if summary else ""))
        if self.dry_run:
            return True
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(content)
        except OSError as e:
            self._soft_fail(f"Could not write {path}: {e}")
            return False
        return True

    def append_text(self, path: str, line: str) -> bool:
        self._record(f"append to {path}: {line}")
        if self.dry_run:
            return True
        try:
            with open(path, "a", encoding="utf-8") as f:
                f.write(line if line.endswith("\n") else line + "\n")
        except OSError as e:
            self._soft_fail(f"Could not append to {path}: {e}")
            return False
        return True

    def backup(self, path: str, now: Optional[datetime] = None) -> Optional[str]:
        """cp -a path path.bak.<timestamp>. Returns the backup path."""
        if not os.path.isfile(path):
            return None
        stamp = (now or datetime.now()).strftime("%Y-%m-%d-%H%M%S")
        dest = f"{path}.bak.{stamp}"
        self._record(f"cp -a {shlex.quote(path)} {shlex.quote(dest)}")
        if self.dry_run:
            return dest
        try:
            shutil.copy2(path, dest)
        except OSError as e:
            self._soft_fail(f"Could not back up {path}: {e}")
            return None
        return dest

    def truncate_tail(self, path: str, keep_bytes: int) -> bool:
        """Keep only the last keep_bytes of a file, in place."""
        self._record(f"truncate {path} to its last {keep_bytes} bytes")
        if self.dry_run:
            return True
        try:
            with open(path, "r+b") as f:
                f.seek(0, os.SEEK_END)
                size = f.tell()
                if size <= keep_bytes:
                    return True
                f.seek(size - keep_bytes)
                tail = f.read(keep_bytes)
                f.seek(0)
                f.write(tail)
                f.truncate()
        except OSError as e:
            self._soft_fail(f"Could not truncate {path}: {e}")
            return False
        return True
