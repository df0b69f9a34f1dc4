"""Core constants, config, host profile and errors for vps-cleanup."""

from . import constants
from . import config
from .config import RunConfig
from .errors import (
    CleanupError,
    CommandError,
    NotRootError,
    PreconditionError,
    UnsupportedDistroError,
)
from .profile import DistroFamily, HostProfile, PackageManagerKind, detect_host_profile

__all__ = [
    "constants",
    "config",
    "RunConfig",
    "CleanupError",
    "CommandError",
    "NotRootError",
    "PreconditionError",
    "UnsupportedDistroError",
    "DistroFamily",
    "HostProfile",
    "PackageManagerKind",
    "detect_host_profile",
]
