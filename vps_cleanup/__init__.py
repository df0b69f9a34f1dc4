"""vps-cleanup: staged, distro-aware cleanup for freshly provisioned Linux hosts."""

__version__ = "1.0.0"

from . import core
from . import services
from . import utils
from .core import config

__all__ = ["cli", "config", "core", "services", "stages", "utils", "__version__"]
