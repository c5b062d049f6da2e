"""
sudoshim.links - Install and remove the front-end symlinks.

The wrapper is installed once under its canonical name; ``sudo``,
``visudo`` and ``sudoedit`` are symlinks to it in the same directory.
A regular file under one of those names is a real tool and is only
replaced when explicitly forced.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from sudoshim.frontend import CANONICAL_NAME, FRONTEND_NAMES


class LinkError(Exception):
    """The links cannot be (un)installed as requested."""


@dataclass
class LinkAction:
    """One step of a link (un)installation, for reporting."""

    link: Path
    action: str  # "create" | "replace" | "keep" | "skip" | "remove"
    detail: str = ""


def wrapper_path(bindir: Path) -> Path:
    return bindir / CANONICAL_NAME


def _points_at(link: Path, wrapper: Path) -> bool:
    if not link.is_symlink():
        return False
    target = Path(os.readlink(link))
    if not target.is_absolute():
        target = link.parent / target
    return os.path.normpath(target) == os.path.normpath(wrapper)


def plan_links(bindir: Path, force: bool = False) -> list[LinkAction]:
    """Decide what ``install_links`` would do, without touching anything.

    Raises
    ------
    LinkError
        If the canonical wrapper is missing or not executable.
    """
    wrapper = wrapper_path(bindir)
    if not (wrapper.is_file() and os.access(wrapper, os.X_OK)):
        raise LinkError(f"{wrapper} does not exist or is not executable")

    actions: list[LinkAction] = []
    for name in FRONTEND_NAMES:
        link = bindir / name
        if _points_at(link, wrapper):
            actions.append(LinkAction(link, "keep", "already linked"))
        elif link.is_symlink():
            actions.append(LinkAction(link, "replace", f"was -> {os.readlink(link)}"))
        elif link.exists():
            if force:
                actions.append(LinkAction(link, "replace", "regular file (forced)"))
            else:
                actions.append(LinkAction(link, "skip", "regular file; use --force to replace"))
        else:
            actions.append(LinkAction(link, "create"))
    return actions


def install_links(bindir: Path, force: bool = False) -> list[LinkAction]:
    """Point ``sudo``, ``visudo`` and ``sudoedit`` in *bindir* at the wrapper."""
    wrapper = wrapper_path(bindir)
    actions = plan_links(bindir, force=force)
    for step in actions:
        if step.action == "replace":
            step.link.unlink()
        if step.action in ("create", "replace"):
            step.link.symlink_to(wrapper)
    return actions


def remove_links(bindir: Path) -> list[LinkAction]:
    """Remove the front-end links in *bindir* that point at the wrapper.

    Anything else under those names is left alone.
    """
    wrapper = wrapper_path(bindir)
    actions: list[LinkAction] = []
    for name in FRONTEND_NAMES:
        link = bindir / name
        if _points_at(link, wrapper):
            link.unlink()
            actions.append(LinkAction(link, "remove"))
        elif link.exists() or link.is_symlink():
            actions.append(LinkAction(link, "skip", "not linked to the wrapper"))
    return actions
