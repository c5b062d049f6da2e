"""
sudoshim.delegate - Hand the translated call to the target tool.

Two strategies:

``exec``
    Replace this process with the target (``os.execv``).  Signals, job
    control and the terminal belong to the target from then on.
``spawn``
    Run the target as a child with inherited stdio and wait for it,
    forwarding termination signals.  Used where replacing the process is
    undesirable (tests, embedding).

Either way the caller's environment is passed through untouched.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
from typing import Any, Mapping

from sudoshim.errors import TargetMissingError
from sudoshim.system.probe import find_executable
from sudoshim.translate import Plan

log = logging.getLogger(__name__)

# Forwarded to the child while waiting on it.  SIGINT is not forwarded:
# the terminal already delivers it to the whole foreground process group.
_FORWARDED_SIGNALS: tuple[signal.Signals, ...] = tuple(
    getattr(signal, name)
    for name in ("SIGTERM", "SIGHUP", "SIGQUIT")
    if hasattr(signal, name)
)


def returncode_to_exit_status(returncode: int) -> int:
    """Map a ``Popen.returncode`` to a shell-style exit status.

    Negative codes mean the child died from a signal; report ``128 + N``.
    """
    if returncode < 0:
        return 128 + (-returncode)
    return returncode


def resolve_target(plan: Plan, environ: Mapping[str, str], exclude: str | None = None) -> str:
    """Return the absolute path of ``plan.argv[0]`` or raise ``TargetMissingError``."""
    path = find_executable(plan.argv[0], environ, exclude=exclude)
    if path is None:
        raise TargetMissingError(plan.argv[0])
    return path


def _exec(path: str, argv: list[str], environ: Mapping[str, str]) -> int:
    try:
        os.execve(path, argv, dict(environ))
    except OSError as exc:
        raise TargetMissingError(argv[0], exc.strerror) from None
    raise AssertionError("os.execve returned")  # pragma: no cover


def _spawn(path: str, argv: list[str], environ: Mapping[str, str]) -> int:
    try:
        child = subprocess.Popen(argv, executable=path, env=dict(environ))
    except OSError as exc:
        raise TargetMissingError(argv[0], exc.strerror) from None

    def _forward(signum: int, _frame: Any) -> None:
        log.debug("forwarding signal %d to pid %d", signum, child.pid)
        child.send_signal(signum)

    previous: dict[int, Any] = {}
    try:
        for sig in _FORWARDED_SIGNALS:
            previous[sig] = signal.signal(sig, _forward)
        previous[signal.SIGINT] = signal.signal(signal.SIGINT, signal.SIG_IGN)
    except ValueError:
        # signal handlers can only be installed from the main thread
        log.debug("not in main thread; signals are not forwarded")

    try:
        returncode = child.wait()
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    return returncode_to_exit_status(returncode)


def delegate(
    plan: Plan,
    environ: Mapping[str, str],
    exec_mode: str = "exec",
    self_path: str | None = None,
) -> int:
    """Run ``plan.argv`` through the target tool and return its exit status.

    In ``exec`` mode this only returns by raising.

    Raises
    ------
    TargetMissingError
        If the target is not on ``PATH`` or cannot be executed.
    """
    path = resolve_target(plan, environ, exclude=self_path)
    log.debug("delegating (%s) to %s: %s", exec_mode, path, plan.argv)

    if exec_mode == "exec":
        return _exec(path, plan.argv, environ)
    return _spawn(path, plan.argv, environ)
