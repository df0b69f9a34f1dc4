"""Snap removal stage (Debian family only)."""
from ..services.context import StageContext
from ..services.snap import SnapRemover
from ..utils import output


def remove_snap(ctx: StageContext) -> SnapRemover:
    remover = SnapRemover(
        ctx.executor,
        ctx.backend,
        root=ctx.config.root,
        wait_seconds=ctx.config.snap_wait_seconds,
        poll_seconds=ctx.config.snap_poll_seconds,
    )
    if not ctx.profile.is_debian_like:
        output.info(f"Snap is not used on {ctx.profile.distro_id}, skipping.")
        return remover
    if remover.run():
        output.ok("Snap removed.")
    return remover
