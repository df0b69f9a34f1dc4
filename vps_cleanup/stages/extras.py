"""RPM-family extra cleanup."""
import os

from ..services.context import StageContext
from ..utils import output

PACKAGE_CACHE_GLOBS = ["/var/cache/dnf", "/var/cache/yum"]


def cleanup_rpm_extras(ctx: StageContext) -> None:
    backend = ctx.backend
    extras = backend.list_extras()
    if extras:
        output.warn(f"Packages not provided by any repository (check manually): {' '.join(extras)}")

    rescue = backend.list_installed("kernel*rescue*")
    if rescue:
        output.info(f"Removing rescue kernel: {' '.join(rescue)}")
        backend.remove(rescue)

    backend.clean_metadata()
    for cache in PACKAGE_CACHE_GLOBS:
        top = ctx.path(cache)
        if not os.path.isdir(top):
            continue
        for repo in sorted(os.listdir(top)):
            ctx.executor.clear_dir(os.path.join(top, repo, "packages"))
    output.ok("RPM extras cleaned.")
