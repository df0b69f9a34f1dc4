"""Services (business logic) for vps-cleanup."""

from . import executor
from . import package_manager
from . import kernels
from . import snap

__all__ = ["executor", "package_manager", "kernels", "snap"]
