"""
sudoshim.cli - Typer-based administration CLI.

This is what runs when an administrator types ``sudoshim``.  It is never
one of the front-end names; the redirector itself lives in
:mod:`sudoshim.redirect`.  Sub-commands:

    sudoshim info                       → selected target and capabilities
    sudoshim plan sudo -u www id        → dry-run: show the delegated argv
    sudoshim link --bindir /usr/local/bin
    sudoshim unlink --bindir /usr/local/bin
"""

from __future__ import annotations

import os
import shlex
import shutil
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from sudoshim import __version__
from sudoshim.config import ShimSettings, get_settings
from sudoshim.errors import ShimError
from sudoshim.frontend import CANONICAL_NAME, resolve_frontend
from sudoshim.links import LinkError, install_links, plan_links, remove_links
from sudoshim.system.probe import HostProbe, select_target
from sudoshim.targets import get_target, require_target
from sudoshim.translate import build_plan

# ---------------------------------------------------------------------------
# Typer app
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="sudoshim",
    help="sudoshim: run sudo, visudo and sudoedit through doas or run0.",
    no_args_is_help=True,
    add_completion=False,
)
console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def _fail(exc: ShimError) -> None:
    err_console.print(f"[red]✗ {escape(exc.message)}[/red]")
    raise typer.Exit(code=exc.exit_code)


def _settings_or_exit() -> ShimSettings:
    get_settings.cache_clear()
    try:
        return get_settings()
    except ShimError as exc:
        _fail(exc)


# ---------------------------------------------------------------------------
# Callbacks (version flag)
# ---------------------------------------------------------------------------

def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold cyan]sudoshim[/bold cyan] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Inspect and install the sudo compatibility wrapper."""


# ---------------------------------------------------------------------------
# sudoshim info
# ---------------------------------------------------------------------------

@app.command()
def info() -> None:
    """Print the selected target tool and what it supports."""
    settings = _settings_or_exit()
    probe = HostProbe.detect(os.environ)
    try:
        target = require_target(select_target(settings.target, os.environ))
    except ShimError as exc:
        _fail(exc)
        return

    location = probe.tools.get(target.name)
    if target.policy_editor is None:
        visudo = ("unsupported", "red")
    elif probe.policy_editor:
        visudo = (f"via {probe.policy_editor}", "green")
    else:
        visudo = ("real visudo not found", "yellow")

    body = Text.assemble(
        ("Target:    ", "bold"),
        (f"{target.name} ({settings.target})", "green"),
        "\n",
        ("Path:      ", "bold"),
        (location or "missing", "green" if location else "red"),
        "\n",
        ("Mode:      ", "bold"),
        (settings.exec_mode, "cyan"),
        "\n",
        ("sudoedit:  ", "bold"),
        ("native" if target.edit_flags else "elevated editor", "cyan"),
        "\n",
        ("visudo:    ", "bold"),
        visudo,
        "\n",
        ("Available: ", "bold"),
        (", ".join(sorted(probe.tools)) or "(none)", "cyan"),
        "\n",
        ("Searched:  ", "bold"),
        (probe.search_path or "(empty PATH)", "dim"),
    )

    console.print(
        Panel(body, title=f"[bold]{CANONICAL_NAME} v{__version__}[/bold]", border_style="bright_blue")
    )


# ---------------------------------------------------------------------------
# sudoshim plan  (dry run)
# ---------------------------------------------------------------------------

@app.command(
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True, "allow_interspersed_args": False},
)
def plan(
    name: str = typer.Argument(..., help="Name to simulate: sudo, visudo, sudoedit or sudo-wrapper."),
    args: Optional[List[str]] = typer.Argument(None, help="Arguments as the caller would pass them."),  # noqa: UP007
    fmt: str = typer.Option("text", "--format", "-f", help="Output format: text or yaml."),
    target_name: Optional[str] = typer.Option(  # noqa: UP007
        None, "--target", "-t", help="Override the target (doas or run0)."
    ),
) -> None:
    """Show what an invocation would delegate, without running anything."""
    settings = _settings_or_exit()
    if fmt not in ("text", "yaml"):
        err_console.print(f"[red]✗ Unknown format: {escape(fmt)}[/red]")
        raise typer.Exit(code=2)

    try:
        frontend = resolve_frontend(name)
        chosen = target_name or select_target(settings.target, os.environ)
        target = get_target(chosen)
        if target is None:
            err_console.print(f"[red]✗ Unknown target: {escape(chosen)}[/red]")
            raise typer.Exit(code=2)
        result = build_plan(
            frontend,
            args or [],
            target,
            os.environ,
            editor_fallback=settings.editor_fallback,
        )
    except ShimError as exc:
        _fail(exc)
        return

    if fmt == "yaml":
        doc = {
            "frontend": result.frontend.value,
            "mode": result.mode.value,
            "target": result.target,
            "escalates": result.escalates,
            "argv": result.argv,
        }
        text = yaml.safe_dump(doc, default_flow_style=False, sort_keys=False)
        console.print(text, end="", markup=False, soft_wrap=True)
        return

    if not result.escalates:
        console.print(f"{escape(result.mode.value)}: answered by the wrapper, nothing is delegated")
        return
    console.print(shlex.join(result.argv), markup=False, soft_wrap=True)


# ---------------------------------------------------------------------------
# sudoshim link / unlink
# ---------------------------------------------------------------------------

def _default_bindir() -> Path:
    found = shutil.which(CANONICAL_NAME)
    if found is None:
        err_console.print(
            f"[red]✗ {CANONICAL_NAME} is not on PATH; pass --bindir explicitly.[/red]"
        )
        raise typer.Exit(code=1)
    return Path(found).parent


@app.command()
def link(
    bindir: Optional[Path] = typer.Option(  # noqa: UP007
        None, "--bindir", "-d", help="Directory holding sudo-wrapper (default: where it is on PATH)."
    ),
    force: bool = typer.Option(False, "--force", help="Replace regular files named sudo/visudo/sudoedit."),
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Only show what would be done."),
) -> None:
    """Symlink sudo, visudo and sudoedit to the canonical wrapper."""
    bindir = bindir or _default_bindir()
    wrapper = bindir / CANONICAL_NAME

    try:
        actions = plan_links(bindir, force=force) if dry_run else install_links(bindir, force=force)
    except LinkError as exc:
        err_console.print(f"[red]✗ {escape(str(exc))}[/red]")
        raise typer.Exit(code=1)
    except OSError as exc:
        err_console.print(f"[red]✗ {type(exc).__name__}: {escape(str(exc))}[/red]")
        raise typer.Exit(code=1)

    skipped = False
    for step in actions:
        if step.action in ("create", "replace"):
            console.print(f"Symlinking {step.link} -> {wrapper}", markup=False)
        elif step.action == "skip":
            skipped = True
            console.print(f"[yellow]Skipping {step.link}: {escape(step.detail)}[/yellow]")
        else:
            console.print(f"[dim]{step.link}: {escape(step.detail)}[/dim]")

    if skipped:
        raise typer.Exit(code=1)


@app.command()
def unlink(
    bindir: Optional[Path] = typer.Option(  # noqa: UP007
        None, "--bindir", "-d", help="Directory holding sudo-wrapper (default: where it is on PATH)."
    ),
) -> None:
    """Remove front-end symlinks that point at the canonical wrapper."""
    bindir = bindir or _default_bindir()
    try:
        actions = remove_links(bindir)
    except OSError as exc:
        err_console.print(f"[red]✗ {type(exc).__name__}: {escape(str(exc))}[/red]")
        raise typer.Exit(code=1)

    for step in actions:
        if step.action == "remove":
            console.print(f"[green]✓[/green] Removed {step.link}")
        else:
            console.print(f"[dim]{step.link}: {escape(step.detail)}[/dim]")


# ---------------------------------------------------------------------------
# Entry-point (for `python -m sudoshim.cli`)
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()
