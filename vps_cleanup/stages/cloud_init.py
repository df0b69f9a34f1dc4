"""Cloud-init removal."""
from ..core import constants
from ..services.context import StageContext
from ..utils import output


def remove_cloud_init(ctx: StageContext) -> None:
    ex = ctx.executor
    ex.run(["systemctl", "stop", *constants.CLOUD_INIT_SERVICES], quiet=True)
    ex.run(["cloud-init", "clean", "--logs"], quiet=True)

    if ctx.profile.is_debian_like:
        netcfg, packages = constants.CLOUD_INIT_NETCFG_APT, constants.CLOUD_INIT_PKGS_APT
    else:
        netcfg, packages = constants.CLOUD_INIT_NETCFG_RPM, constants.CLOUD_INIT_PKGS_RPM
    ex.backup(ctx.path(netcfg))
    ctx.backend.purge(packages)

    for path in constants.CLOUD_INIT_PATHS:
        ex.remove_path(ctx.path(path))
    ex.run(["systemctl", "disable", *constants.CLOUD_INIT_SERVICES], quiet=True)
    output.ok("cloud-init removed.")
