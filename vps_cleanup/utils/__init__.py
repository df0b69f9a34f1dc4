"""Utility helpers for vps-cleanup."""

from . import disk
from . import output

__all__ = ["disk", "output"]
