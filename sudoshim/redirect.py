"""
sudoshim.redirect - Entry point for ``sudo``, ``visudo``, ``sudoedit``
and the canonical ``sudo-wrapper``.

One invocation goes through three steps:

1. **dispatch**  resolve the invoked name, load settings, pick the target
2. **plan**      translate the argument vector (pure, no side effects)
3. **delegate**  exec or spawn the target, exit with its status

Any ``ShimError`` on the way is printed to stderr and becomes the exit code.
Help and version requests are answered here and never reach the target.
"""

from __future__ import annotations

import os
import sys
from shutil import which
from typing import Mapping, Sequence

from rich.console import Console
from rich.markup import escape

from sudoshim import __version__
from sudoshim.config import configure_logging, load_settings
from sudoshim.delegate import delegate
from sudoshim.errors import ShimError
from sudoshim.frontend import CANONICAL_NAME, Frontend, Mode, resolve_frontend
from sudoshim.system.probe import select_target
from sudoshim.targets import TargetTool, require_target
from sudoshim.translate import Plan, build_plan

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

_USAGE: dict[Frontend, str] = {
    Frontend.SUDO: "sudo [-u user] [-g group] [-n] [-E|--preserve-env=list] [-D dir] command [args ...]\n"
    "       sudo -s | -e file ... | -k | -V | --help",
    Frontend.CANONICAL: f"{CANONICAL_NAME} [sudo options] command [args ...]",
    Frontend.VISUDO: "visudo [visudo options]",
    Frontend.SUDOEDIT: "sudoedit [-u user] [-n] file ...",
}


def _own_path(invoked: str, environ: Mapping[str, str]) -> str | None:
    """Best-effort path of the running shim, used to avoid self-recursion."""
    if os.sep in invoked:
        return invoked if os.path.exists(invoked) else None
    return which(invoked, path=environ.get("PATH", os.defpath))


def _print_help(frontend: Frontend, target: TargetTool) -> None:
    console.print(f"usage: {escape(_USAGE[frontend])}")
    console.print()
    console.print(
        f"This {escape(frontend.value)} is a compatibility wrapper: privilege "
        f"escalation is performed by [bold]{escape(target.executable)}[/bold] "
        f"({escape(target.description or target.name)})."
    )
    if frontend is Frontend.SUDOEDIT:
        console.print(
            "The editor comes from SUDO_EDITOR, VISUAL or EDITOR and runs "
            "elevated on the given files."
        )
    elif frontend is Frontend.VISUDO and target.policy_editor is None:
        console.print(f"visudo is not available with {escape(target.name)}.")
    else:
        console.print("Options without an equivalent are rejected; unknown options are passed through.")


def _print_version(target: TargetTool) -> None:
    console.print(f"{CANONICAL_NAME} {__version__} (delegating to {escape(target.name)})")


def _report(invoked: str, exc: ShimError) -> None:
    err_console.print(f"[red]{escape(invoked)}:[/red] {escape(exc.message)}")


def main(
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> int:
    """Run one redirector invocation and return the process exit status.

    Parameters
    ----------
    argv : Sequence[str] | None
        Full argument vector including the program name; defaults to
        ``sys.argv``.
    environ : Mapping[str, str] | None
        Caller's environment; defaults to ``os.environ``.
    """
    argv = list(sys.argv if argv is None else argv)
    environ = os.environ if environ is None else environ
    invoked = os.path.basename(argv[0]) if argv else CANONICAL_NAME

    try:
        frontend = resolve_frontend(invoked)
        settings = load_settings(environ)
        log = configure_logging(settings)

        self_path = _own_path(argv[0], environ) if argv else None
        target_name = select_target(settings.target, environ, exclude=self_path)
        target = require_target(target_name)
        log.debug("invoked as %s, target %s", frontend.value, target.name)

        plan: Plan = build_plan(
            frontend,
            argv[1:],
            target,
            environ,
            editor_fallback=settings.editor_fallback,
            exclude=self_path,
        )

        if plan.mode is Mode.HELP:
            _print_help(frontend, target)
            return 0
        if plan.mode is Mode.VERSION:
            _print_version(target)
            return 0

        return delegate(plan, environ, exec_mode=settings.exec_mode, self_path=self_path)

    except ShimError as exc:
        _report(invoked, exc)
        return exc.exit_code


def run() -> None:
    """Console-script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
