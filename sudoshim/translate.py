"""
sudoshim.translate - Turn a sudo-style argument vector into a target call.

Parsing follows sudo's own getopt conventions:

- options stop at the first operand or at ``--`` (which is kept);
- short flags may be clustered (``-nu root``, ``-uroot``);
- ``-h`` alone means help, ``-h HOST`` selects a remote host.

Recognized flags are looked up in the target's ``FlagRule`` table.  A flag
the table does not mention, and any flag the parser does not know, is
passed through exactly as the caller wrote it.  Operands are never
reordered.
"""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass, field
from typing import Literal, Mapping, Sequence

from sudoshim.errors import TranslationError, UnsupportedModeError, UsageError
from sudoshim.frontend import Frontend, Mode
from sudoshim.system.probe import find_policy_editor
from sudoshim.targets.registry import RuleKind, TargetTool

log = logging.getLogger(__name__)

# Editor variables consulted by sudoedit, highest priority first
EDITOR_VARIABLES: tuple[str, ...] = ("SUDO_EDITOR", "VISUAL", "EDITOR")


# ---------------------------------------------------------------------------
# sudo's flag table
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SudoFlag:
    """One option understood by the sudo front-end.

    ``value`` is ``"none"``, ``"required"`` or ``"optional"``; an optional
    value can only be attached as ``--long=value`` and then selects
    ``value_key`` instead of ``key``.
    """

    key: str
    short: str | None = None
    long: str | None = None
    value: Literal["none", "required", "optional"] = "none"
    value_key: str | None = None


SUDO_FLAGS: tuple[SudoFlag, ...] = (
    SudoFlag("user", "u", "user", "required"),
    SudoFlag("group", "g", "group", "required"),
    SudoFlag("preserve_env", "E", "preserve-env", "optional", value_key="preserve_env_list"),
    SudoFlag("set_home", "H", "set-home"),
    SudoFlag("non_interactive", "n", "non-interactive"),
    SudoFlag("shell", "s", "shell"),
    SudoFlag("login", "i", "login"),
    SudoFlag("edit", "e", "edit"),
    SudoFlag("reset_timestamp", "k", "reset-timestamp"),
    SudoFlag("remove_timestamp", "K", "remove-timestamp"),
    SudoFlag("validate", "v", "validate"),
    SudoFlag("list", "l", "list"),
    SudoFlag("chdir", "D", "chdir", "required"),
    SudoFlag("background", "b", "background"),
    SudoFlag("askpass", "A", "askpass"),
    SudoFlag("stdin", "S", "stdin"),
    SudoFlag("prompt", "p", "prompt", "required"),
    SudoFlag("close_from", "C", "close-from", "required"),
    SudoFlag("command_timeout", "T", "command-timeout", "required"),
    SudoFlag("chroot", "R", "chroot", "required"),
    SudoFlag("other_user", "U", "other-user", "required"),
    SudoFlag("role", "r", "role", "required"),
    SudoFlag("type", "t", "type", "required"),
    SudoFlag("host", None, "host", "required"),
    SudoFlag("help", None, "help"),
    SudoFlag("version", "V", "version"),
)

_SHORT: dict[str, SudoFlag] = {f.short: f for f in SUDO_FLAGS if f.short}
_LONG: dict[str, SudoFlag] = {f.long: f for f in SUDO_FLAGS if f.long}

# Flags that switch the mode instead of being translated
_MODE_KEYS: dict[str, Mode] = {
    "help": Mode.HELP,
    "version": Mode.VERSION,
    "edit": Mode.EDIT,
}

# Flags that make sense without a command
_STANDALONE_KEYS = frozenset(
    {"shell", "login", "reset_timestamp", "remove_timestamp", "validate", "list"}
)

# Flags that cannot be combined with editing
_NOT_WITH_EDIT = frozenset({"shell", "login"})


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FlagUse:
    """A flag occurrence in the caller's argv.

    ``key`` is ``None`` for flags the parser does not know.  ``raw`` holds
    the caller's own tokens so unmapped flags pass through unchanged.
    """

    key: str | None
    spelling: str
    raw: tuple[str, ...]
    value: str | None = None


@dataclass
class ParsedArguments:
    flags: list[FlagUse] = field(default_factory=list)
    operands: list[str] = field(default_factory=list)
    separator: bool = False

    def keys(self) -> set[str]:
        return {use.key for use in self.flags if use.key}


def _parse_long(token: str, argv: Sequence[str], i: int, parsed: ParsedArguments) -> int:
    name, eq, attached = token[2:].partition("=")
    flag = _LONG.get(name)
    if flag is None:
        parsed.flags.append(FlagUse(None, token, (token,)))
        return i + 1

    if flag.value == "none":
        if eq:
            raise UsageError(f"option '--{name}' doesn't allow an argument")
        parsed.flags.append(FlagUse(flag.key, token, (token,)))
    elif flag.value == "optional":
        if eq:
            key = flag.value_key or flag.key
            parsed.flags.append(FlagUse(key, f"--{name}", (token,), attached))
        else:
            parsed.flags.append(FlagUse(flag.key, token, (token,)))
    elif eq:
        parsed.flags.append(FlagUse(flag.key, f"--{name}", (token,), attached))
    else:
        if i + 1 >= len(argv):
            raise UsageError(f"option '--{name}' requires an argument")
        value = argv[i + 1]
        parsed.flags.append(FlagUse(flag.key, f"--{name}", (token, value), value))
        return i + 2
    return i + 1


def _parse_cluster(token: str, argv: Sequence[str], i: int, parsed: ParsedArguments) -> int:
    cluster = token[1:]
    for j, ch in enumerate(cluster):
        rest = cluster[j + 1:]

        if ch == "h":
            # sudo: bare -h is help, -h HOST / -hHOST is a remote host
            if rest:
                parsed.flags.append(FlagUse("host", "-h", (f"-h{rest}",), rest))
            elif i + 1 < len(argv) and not argv[i + 1].startswith("-"):
                host = argv[i + 1]
                parsed.flags.append(FlagUse("host", "-h", ("-h", host), host))
                return i + 2
            else:
                parsed.flags.append(FlagUse("help", "-h", ("-h",)))
            return i + 1

        flag = _SHORT.get(ch)
        if flag is None:
            unknown = f"-{cluster[j:]}"
            parsed.flags.append(FlagUse(None, unknown, (unknown,)))
            return i + 1

        if flag.value == "required":
            if rest:
                parsed.flags.append(FlagUse(flag.key, f"-{ch}", (f"-{ch}{rest}",), rest))
                return i + 1
            if i + 1 >= len(argv):
                raise UsageError(f"option requires an argument -- '{ch}'")
            value = argv[i + 1]
            parsed.flags.append(FlagUse(flag.key, f"-{ch}", (f"-{ch}", value), value))
            return i + 2

        parsed.flags.append(FlagUse(flag.key, f"-{ch}", (f"-{ch}",)))
    return i + 1


def parse_arguments(argv: Sequence[str]) -> ParsedArguments:
    """Split *argv* into flags and operands the way sudo does.

    Raises
    ------
    UsageError
        When a value-taking flag is missing its value.
    """
    parsed = ParsedArguments()
    i = 0
    while i < len(argv):
        token = argv[i]
        if token == "--":
            parsed.separator = True
            parsed.operands = list(argv[i + 1:])
            break
        if token.startswith("--"):
            i = _parse_long(token, argv, i, parsed)
        elif token.startswith("-") and token != "-":
            i = _parse_cluster(token, argv, i, parsed)
        else:
            parsed.operands = list(argv[i:])
            break
    return parsed


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


@dataclass
class Plan:
    """The outcome of translation.

    ``argv[0]`` is the target's executable *name*; the delegate resolves it
    on ``PATH``.  ``HELP`` and ``VERSION`` plans have an empty ``argv``.
    """

    frontend: Frontend
    mode: Mode
    target: str
    argv: list[str] = field(default_factory=list)

    @property
    def escalates(self) -> bool:
        return self.mode not in (Mode.HELP, Mode.VERSION)


def resolve_editor(environ: Mapping[str, str], fallback: str = "vi") -> list[str]:
    """Return the editor command sudoedit should elevate, split into words.

    ``SUDO_EDITOR``, ``VISUAL`` and ``EDITOR`` are tried in that order; an
    empty or blank variable counts as unset.
    """
    for var in EDITOR_VARIABLES:
        value = environ.get(var, "").strip()
        if not value:
            continue
        try:
            words = shlex.split(value)
        except ValueError as exc:
            raise UsageError(f"cannot parse {var}={value!r}: {exc}") from None
        if words:
            return words
    return shlex.split(fallback) or ["vi"]


def translate_flags(
    parsed: ParsedArguments,
    target: TargetTool,
    *,
    has_command: bool,
) -> list[str]:
    """Render the caller's flags for *target*, in the caller's order.

    Raises
    ------
    TranslationError
        When a flag has a ``REJECT`` rule, a per-item flag has an empty
        list, or a standalone-only flag is combined with a command.
    """
    out: list[str] = []
    for use in parsed.flags:
        if use.key in _MODE_KEYS:
            continue

        rule = target.rule_for(use.key) if use.key else None
        if rule is None:
            out.extend(use.raw)
            continue

        if rule.kind is RuleKind.REJECT:
            raise TranslationError(use.spelling, target.name, rule.reason)
        if rule.standalone and has_command:
            raise TranslationError(
                f"{use.spelling} with a command",
                target.name,
                f"{target.name} only supports {use.spelling} on its own",
            )
        rendered = rule.render(use.value)
        if rule.per_item and not rendered:
            raise TranslationError(use.spelling, target.name, "an empty list names no variables")
        out.extend(rendered)
    return out


def _detect_mode(frontend: Frontend, parsed: ParsedArguments) -> Mode:
    mode = frontend.mode
    keys = parsed.keys()
    if "help" in keys:
        return Mode.HELP
    if "version" in keys:
        return Mode.VERSION
    if "edit" in keys:
        return Mode.EDIT
    return mode


def _policy_edit_mode(argv: Sequence[str]) -> Mode:
    for token in argv:
        if token == "--":
            break
        if token in ("-h", "--help"):
            return Mode.HELP
        if token in ("-V", "--version"):
            return Mode.VERSION
    return Mode.POLICY_EDIT


def build_plan(
    frontend: Frontend,
    argv: Sequence[str],
    target: TargetTool,
    environ: Mapping[str, str],
    *,
    editor_fallback: str = "vi",
    exclude: str | None = None,
) -> Plan:
    """Translate one invocation into the call the target should receive.

    Parameters
    ----------
    frontend : Frontend
        Name the shim was invoked under.
    argv : Sequence[str]
        Caller's arguments, without the program name.
    target : TargetTool
        Tool to delegate to.
    environ : Mapping[str, str]
        Caller's environment (editor variables, ``PATH``).
    exclude : str | None
        Path of the running shim, never chosen as the real ``visudo``.
    """
    if frontend is Frontend.VISUDO:
        mode = _policy_edit_mode(argv)
        if mode is not Mode.POLICY_EDIT:
            return Plan(frontend, mode, target.name)
        if target.policy_editor is None:
            raise UnsupportedModeError(
                "visudo", target.name, f"{target.name} has no policy-editing mode"
            )
        visudo = find_policy_editor(target.policy_editor, environ, exclude=exclude)
        if visudo is None:
            raise UnsupportedModeError(
                "visudo", target.name, "could not locate the real visudo binary"
            )
        return Plan(frontend, mode, target.name, [target.executable, visudo, *argv])

    parsed = parse_arguments(argv)
    mode = _detect_mode(frontend, parsed)
    log.debug("frontend=%s mode=%s parsed=%s", frontend.value, mode.value, parsed)

    if mode in (Mode.HELP, Mode.VERSION):
        return Plan(frontend, mode, target.name)

    separator = ["--"] if parsed.separator else []

    if mode is Mode.EDIT:
        conflicting = parsed.keys() & _NOT_WITH_EDIT
        if conflicting:
            use = next(u for u in parsed.flags if u.key in conflicting)
            raise TranslationError(
                f"{use.spelling} with edit mode", target.name, "cannot edit and start a shell"
            )
        if not parsed.operands:
            raise UsageError("no files given to edit")
        flags = translate_flags(parsed, target, has_command=True)
        if target.edit_flags is not None:
            argv_out = [target.executable, *flags, *target.edit_flags, *separator, *parsed.operands]
        else:
            editor = resolve_editor(environ, editor_fallback)
            argv_out = [target.executable, *flags, *editor, *separator, *parsed.operands]
        return Plan(frontend, mode, target.name, argv_out)

    has_command = bool(parsed.operands)
    flags = translate_flags(parsed, target, has_command=has_command)
    # unknown flags may be meaningful on their own to the target
    passthrough = any(use.key is None for use in parsed.flags)
    if not has_command and not passthrough and not (parsed.keys() & _STANDALONE_KEYS):
        raise UsageError("no command given")
    return Plan(
        frontend, mode, target.name, [target.executable, *flags, *separator, *parsed.operands]
    )
