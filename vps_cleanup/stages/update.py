"""System update stage."""
from ..services.context import StageContext
from ..utils import output


def system_update(ctx: StageContext) -> None:
    backend = ctx.backend
    backend.update()
    backend.upgrade()
    backend.autoremove()
    output.ok("System updated.")
