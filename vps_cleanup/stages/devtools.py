"""Development tool purge."""
from ..core import constants
from ..services.context import StageContext
from ..utils import output


def dev_package_candidates(ctx: StageContext) -> list:
    if ctx.profile.is_debian_like:
        return constants.DEV_PKGS_APT + [f"linux-headers-{ctx.kernel_release}"]
    return list(constants.DEV_PKGS_RPM)


def purge_dev_tools(ctx: StageContext) -> None:
    backend = ctx.backend
    installed = backend.installed_of(dev_package_candidates(ctx))
    if installed:
        output.info(f"Removing: {' '.join(installed)}")
        backend.purge(installed)
        backend.autoremove()
    else:
        output.info("None of the listed dev tools are installed.")

    if not ctx.profile.is_debian_like and backend.group_installed(constants.RPM_DEV_GROUP):
        output.info(f"Removing group '{constants.RPM_DEV_GROUP}'...")
        backend.group_remove(constants.RPM_DEV_GROUP)
    output.ok("Dev tools removed.")
