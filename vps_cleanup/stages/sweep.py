"""Final sweep: journal vacuum, temp dirs, core dumps and crash reports."""
from ..core import constants
from ..services.context import StageContext
from ..utils import output
from .logs import vacuum_journal


def final_sweep(ctx: StageContext) -> None:
    vacuum_journal(ctx)
    for d in constants.TMP_DIRS + constants.CRASH_DIRS:
        ctx.executor.clear_dir(ctx.path(d))
    output.ok("Final sweep done.")
