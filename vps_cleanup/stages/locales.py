#!/usr/bin/env python3
"""Locale minimization: keep only the allow-listed locales."""
from __future__ import annotations

import os
import re
from typing import Iterable, List

from ..core import constants
from ..services.context import StageContext
from ..utils import output

LOCALE_ALIAS = "locale.alias"


def languages(codes: Iterable[str]) -> List[str]:
    """Base languages of the allow-list: ("en", "en_US") -> ["en"]."""
    out = []
    for code in codes:
        lang = code.split("_", 1)[0]
        if lang not in out:
            out.append(lang)
    return out


def supported_regex(codes: Iterable[str]) -> re.Pattern:
    return re.compile(r"^(%s)([.@]|$)" % "|".join(re.escape(c) for c in codes))


def filter_supported(text: str, codes: Iterable[str]) -> str:
    """locale.gen content: the SUPPORTED lines whose locale matches the allow-list."""
    regex = supported_regex(codes)
    lines = []
    for line in text.splitlines():
        fields = line.split()
        if len(fields) >= 2 and regex.match(fields[0]):
            lines.append(f"{fields[0]} {fields[1]}")
    return "\n".join(lines) + ("\n" if lines else "")


def keeps_locale_dir(name: str, codes: Iterable[str]) -> bool:
    if name == LOCALE_ALIAS:
        return True
    for code in codes:
        if name == code or name.startswith((code + "_", code + ".", code + "@")):
            return True
    return False


def unwanted_language_packs(installed: Iterable[str], langs: Iterable[str]) -> List[str]:
    keep = re.compile(r"^language-pack-(%s)(-|$)" % "|".join(re.escape(lang) for lang in langs))
    return [p for p in installed if not keep.match(p)]


def unwanted_langpacks_rpm(installed: Iterable[str], langs: Iterable[str]) -> List[str]:
    keep = {f"glibc-langpack-{lang}" for lang in langs}
    out = []
    for pkg in installed:
        # rpm -qa prints name-version-release.arch; compare on the name part
        name = re.sub(r"-[0-9][^-]*-[^-]+$", "", pkg)
        if name not in keep:
            out.append(pkg)
    return out


def _minimize_debian(ctx: StageContext) -> None:
    backend = ctx.backend
    codes = ctx.config.keep_locales
    if backend.is_installed("locales-all"):
        backend.purge(["locales-all"])

    locale_gen = ctx.path(constants.LOCALE_GEN)
    supported = ctx.path(constants.I18N_SUPPORTED)
    ctx.executor.backup(locale_gen)
    if os.path.isfile(supported):
        with open(supported, "r", encoding="utf-8", errors="replace") as f:
            content = filter_supported(f.read(), codes)
        ctx.executor.write_text(locale_gen, content, summary=f"locales matching {supported_regex(codes).pattern}")
        ctx.executor.run(["locale-gen"])

    packs = unwanted_language_packs(backend.list_installed("language-pack-*"), languages(codes))
    if packs:
        backend.purge(packs)


def _minimize_rpm(ctx: StageContext) -> None:
    backend = ctx.backend
    langs = languages(ctx.config.keep_locales)
    output.info(f"Installing langpacks: {', '.join(langs)}")
    backend.install([f"glibc-langpack-{lang}" for lang in langs])
    extra = unwanted_langpacks_rpm(backend.list_installed("glibc-langpack-*"), langs)
    if extra:
        output.info(f"Removing langpacks: {' '.join(extra)}")
        backend.remove(extra)
    # Reinstalling glibc-common rebuilds locale-archive through its own
    # trigger; build-locale-archive by hand can crash low-memory hosts.
    output.info("Rebuilding the locale archive via glibc-common reinstall...")
    backend.reinstall(["glibc-common"])


def prune_locale_dirs(ctx: StageContext) -> int:
    locale_dir = ctx.path(constants.LOCALE_DIR)
    if not os.path.isdir(locale_dir):
        return 0
    removed = 0
    for name in sorted(os.listdir(locale_dir)):
        full = os.path.join(locale_dir, name)
        if not os.path.isdir(full) or keeps_locale_dir(name, ctx.config.keep_locales):
            continue
        if ctx.executor.remove_path(full):
            removed += 1
    return removed


def minimize_locales(ctx: StageContext) -> None:
    if ctx.profile.is_debian_like:
        _minimize_debian(ctx)
    else:
        _minimize_rpm(ctx)
    removed = prune_locale_dirs(ctx)
    if removed:
        output.info(f"Removed {removed} locale directories from {constants.LOCALE_DIR}.")
    output.ok("Locales minimized.")
