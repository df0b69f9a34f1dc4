"""Prefer IPv4 in getaddrinfo on dual-stack hosts (gai.conf)."""
from __future__ import annotations

import os
import re
from typing import Optional

from ..core import constants
from ..services.context import StageContext
from ..utils import output

PRECEDENCE_RE = re.compile(r"^[ \t]*#?[ \t]*(precedence[ \t]+::ffff:0:0/96[ \t]+100)", re.MULTILINE)
ACTIVE_RE = re.compile(r"^[ \t]*precedence[ \t]+::ffff:0:0/96[ \t]+100", re.MULTILINE)


def enable_ipv4_precedence(text: str) -> Optional[str]:
    """New gai.conf content, or None when the line is already active."""
    if ACTIVE_RE.search(text):
        return None
    if PRECEDENCE_RE.search(text):
        return PRECEDENCE_RE.sub(r"\1", text, count=1)
    if text and not text.endswith("\n"):
        text += "\n"
    return text + constants.GAI_PRECEDENCE_LINE + "\n"


def prefer_ipv4(ctx: StageContext) -> None:
    gai = ctx.path(constants.GAI_CONF)
    current = ""
    if os.path.isfile(gai):
        with open(gai, "r", encoding="utf-8", errors="replace") as f:
            current = f.read()
    updated = enable_ipv4_precedence(current)
    if updated is None:
        output.info("IPv4 precedence already enabled.")
        return
    ctx.executor.backup(gai)
    ctx.executor.write_text(gai, updated, summary=constants.GAI_PRECEDENCE_LINE)
    output.ok("IPv4 preferred for address resolution.")
