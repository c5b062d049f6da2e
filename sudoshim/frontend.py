"""
sudoshim.frontend - Invocation identity and mode dispatch.

The same executable is reachable as ``sudo``, ``visudo`` and ``sudoedit``
through symbolic links to the canonical ``sudo-wrapper``.  Which
compatibility mode to enter depends only on the basename it was invoked
under, resolved once at startup.
"""

from __future__ import annotations

import os
from enum import Enum

from sudoshim.errors import UnknownFrontendError

CANONICAL_NAME = "sudo-wrapper"


class Mode(str, Enum):
    """What the redirector has been asked to do."""

    RUN = "run"
    EDIT = "edit"
    POLICY_EDIT = "policy-edit"
    HELP = "help"
    VERSION = "version"


class Frontend(str, Enum):
    """The privilege-escalation command the caller believes it is running."""

    SUDO = "sudo"
    VISUDO = "visudo"
    SUDOEDIT = "sudoedit"
    CANONICAL = CANONICAL_NAME

    @property
    def mode(self) -> Mode:
        """Base mode before any mode-switching flag (``-e``, ``--help``) is seen."""
        return _BASE_MODES[self]


_BASE_MODES: dict[Frontend, Mode] = {
    Frontend.SUDO: Mode.RUN,
    Frontend.CANONICAL: Mode.RUN,
    Frontend.VISUDO: Mode.POLICY_EDIT,
    Frontend.SUDOEDIT: Mode.EDIT,
}

FRONTEND_NAMES: tuple[str, ...] = (
    Frontend.SUDO.value,
    Frontend.VISUDO.value,
    Frontend.SUDOEDIT.value,
)


def resolve_frontend(invoked: str) -> Frontend:
    """Map the invoked program name to a ``Frontend``.

    Only the basename is inspected; directories in *invoked* are ignored.

    Raises
    ------
    UnknownFrontendError
        If the basename is none of the recognized names.
    """
    name = os.path.basename(invoked.rstrip("/"))
    try:
        return Frontend(name)
    except ValueError:
        raise UnknownFrontendError(name) from None
