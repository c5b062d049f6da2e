"""
sudoshim.system.probe - Host discovery.

Locates privilege tools on the caller's ``PATH`` and picks the target
for ``SUDOSHIM_TARGET=auto``.  Every lookup takes the environment as an
explicit argument so results depend only on what the caller passed in.
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from sudoshim.targets import get_all_targets
from sudoshim.targets.run0 import VISUDO_PATHS

log = logging.getLogger(__name__)

# Preference order for auto-selection on hosts other than OpenBSD
_AUTO_ORDER: tuple[str, ...] = ("run0", "doas")


def _same_file(candidate: str, exclude: str | None) -> bool:
    if not exclude:
        return False
    try:
        return os.path.samefile(candidate, exclude)
    except OSError:
        return False


def find_executable(
    name: str,
    environ: Mapping[str, str],
    exclude: str | None = None,
) -> str | None:
    """Resolve *name* on ``environ["PATH"]``.

    Candidates that are the same file as *exclude* (the running shim) are
    skipped, so a link named after the target can never recurse into us.
    """
    if os.sep in name:
        if os.path.isfile(name) and os.access(name, os.X_OK) and not _same_file(name, exclude):
            return name
        return None

    search_path = environ.get("PATH", os.defpath)
    for directory in search_path.split(os.pathsep):
        found = shutil.which(name, path=directory or os.curdir)
        if found is None:
            continue
        if _same_file(found, exclude):
            log.debug("skipping %s: it is this wrapper", found)
            continue
        return found
    return None


def find_policy_editor(
    candidates: Sequence[str],
    environ: Mapping[str, str],
    exclude: str | None = None,
) -> str | None:
    """Return the real ``visudo``: fixed *candidates* first, then ``PATH``."""
    for path in candidates:
        if os.path.isfile(path) and os.access(path, os.X_OK) and not _same_file(path, exclude):
            return path
    return find_executable("visudo", environ, exclude=exclude)


def select_target(
    preference: str,
    environ: Mapping[str, str],
    platform: str | None = None,
    exclude: str | None = None,
) -> str:
    """Return the name of the target tool to delegate to.

    An explicit *preference* always wins.  ``"auto"`` picks doas on
    OpenBSD, otherwise the first of run0 / doas present on ``PATH``,
    falling back to run0 so the missing-tool error names something real.
    """
    if preference != "auto":
        return preference

    platform = platform if platform is not None else sys.platform
    if platform.startswith("openbsd"):
        return "doas"

    for name in _AUTO_ORDER:
        if find_executable(name, environ, exclude=exclude):
            return name
    return _AUTO_ORDER[0]


@dataclass
class HostProbe:
    """Snapshot of which privilege tools the caller can reach."""

    platform: str = ""
    search_path: str = ""
    tools: dict[str, str] = field(default_factory=dict)
    missing_tools: list[str] = field(default_factory=list)
    policy_editor: str | None = None

    @classmethod
    def detect(
        cls,
        environ: Mapping[str, str],
        exclude: str | None = None,
    ) -> HostProbe:
        """Probe every registered target and return a populated snapshot."""
        probe = cls(platform=sys.platform, search_path=environ.get("PATH", ""))

        for name, target in get_all_targets().items():
            found = find_executable(target.executable, environ, exclude=exclude)
            if found:
                probe.tools[name] = found
            else:
                probe.missing_tools.append(name)

        probe.policy_editor = find_policy_editor(VISUDO_PATHS, environ, exclude=exclude)
        return probe
