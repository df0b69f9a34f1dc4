"""Package manager and per-user cache clearing."""
from __future__ import annotations

import glob
import os
from typing import List

from ..core import constants
from ..services.context import StageContext
from ..utils import output
from ..utils.disk import older_than_days


def home_dirs(ctx: StageContext) -> List[str]:
    homes = [ctx.path("/root")] + sorted(glob.glob(os.path.join(ctx.path("/home"), "*")))
    return [h for h in homes if os.path.isdir(h) and not os.path.islink(h)]


def clean_home(ctx: StageContext, home: str) -> None:
    for rel in constants.HOME_CACHE_PATHS:
        ctx.executor.remove_path(os.path.join(home, rel))
    cache = os.path.join(home, ".cache")
    thumbnails = os.path.join(cache, "thumbnails")
    days = ctx.config.user_cache_days
    ctx.executor.delete_files(
        cache,
        lambda fp, st: older_than_days(st.st_mtime, days) and not fp.startswith(thumbnails + os.sep),
        label=f"older than {ctx.config.user_cache_days} day(s)",
    )
    ctx.executor.delete_files(thumbnails, lambda fp, st: True, label="thumbnails")


def clean_caches(ctx: StageContext) -> None:
    ctx.backend.clean()
    for home in home_dirs(ctx):
        clean_home(ctx, home)
    output.ok("Caches cleared.")
