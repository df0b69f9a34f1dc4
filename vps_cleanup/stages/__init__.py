"""Cleanup stages, in the order the orchestrator runs them."""

from ..services.context import Stage
from .caches import clean_caches
from .cloud_init import remove_cloud_init
from .devtools import purge_dev_tools
from .extras import cleanup_rpm_extras
from .kernels import purge_old_kernels
from .locales import minimize_locales
from .logs import trim_var_logs, tune_journald
from .network import prefer_ipv4
from .snap import remove_snap
from .swap import remove_swap
from .sweep import final_sweep
from .update import system_update

PIPELINE = [
    Stage(
        "system_update",
        "System update",
        system_update,
        enabled=lambda ctx: ctx.config.do_system_update,
        skip_message="Skipping system update.",
    ),
    Stage("locales", "Minimize locales", minimize_locales),
    Stage("journald", "Limit journald logs", tune_journald),
    Stage("var_log", "Trim /var/log", trim_var_logs),
    Stage("dev_tools", "Remove dev tools", purge_dev_tools),
    Stage("caches", "Clear caches", clean_caches),
    Stage("swap", "Disable and remove swap", remove_swap),
    Stage("snap", "Remove all snaps", remove_snap),
    Stage("gai_conf", "Prefer IPv4 in gai.conf", prefer_ipv4),
    Stage(
        "cloud_init",
        "Remove cloud-init",
        remove_cloud_init,
        enabled=lambda ctx: ctx.config.remove_cloud_init,
        skip_message="Keeping cloud-init as requested.",
    ),
    Stage("kernels", "Purge old kernels", purge_old_kernels),
    Stage(
        "rpm_extras",
        "Extra cleanup for RHEL-family",
        cleanup_rpm_extras,
        enabled=lambda ctx: not ctx.profile.is_debian_like,
        skip_message="",
    ),
    Stage("final_sweep", "Final sweep", final_sweep),
]

STAGE_KEYS = [s.key for s in PIPELINE]

__all__ = ["PIPELINE", "STAGE_KEYS"]
