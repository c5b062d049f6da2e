"""
sudoshim.targets.registry - Target tool registration and lookup.

A *target* is the privilege tool actually present on the host.  Each one
is described by a ``TargetTool`` holding an explicit translation table:
sudo flag key → ``FlagRule``.  Flags absent from the table are passed
through unmodified by the translator.

Example
-------
::

    register_target(TargetTool(
        name="doas",
        executable="doas",
        flags={"user": emit("-u", "{value}")},
    ))

Importing :mod:`sudoshim.targets` registers the built-in targets.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from sudoshim.errors import ConfigError


class RuleKind(str, Enum):
    """How a recognized sudo flag is rendered for a target."""

    EMIT = "emit"
    DROP = "drop"
    REJECT = "reject"


@dataclass(frozen=True)
class FlagRule:
    """Translation of one sudo flag for one target.

    Attributes
    ----------
    kind : RuleKind
        ``EMIT`` renders ``template``; ``DROP`` omits a flag whose meaning
        is already the target's default; ``REJECT`` aborts translation.
    template : tuple[str, ...]
        Target arguments; ``{value}`` is replaced with the flag's value.
    per_item : bool
        Render ``template`` once per comma-separated item of the value.
    standalone : bool
        The flag is only translatable when no command follows it.
    reason : str
        Why a ``REJECT`` flag cannot be translated.
    """

    kind: RuleKind
    template: tuple[str, ...] = ()
    per_item: bool = False
    standalone: bool = False
    reason: str = ""

    def render(self, value: str | None = None) -> list[str]:
        """Return the target arguments for this flag."""
        if self.kind is not RuleKind.EMIT:
            return []
        values = [value or ""]
        if self.per_item:
            values = [item for item in (value or "").split(",") if item]
        return [part.format(value=v) for v in values for part in self.template]


def emit(*template: str, per_item: bool = False, standalone: bool = False) -> FlagRule:
    return FlagRule(RuleKind.EMIT, tuple(template), per_item=per_item, standalone=standalone)


def drop(*, standalone: bool = False) -> FlagRule:
    return FlagRule(RuleKind.DROP, standalone=standalone)


def reject(reason: str) -> FlagRule:
    return FlagRule(RuleKind.REJECT, reason=reason)


@dataclass
class TargetTool:
    """A privilege tool the shim can delegate to.

    Attributes
    ----------
    name : str
        Short name used in settings and messages (``"doas"``).
    executable : str
        Command looked up on the caller's ``PATH``.
    flags : dict[str, FlagRule]
        Translation table keyed by sudo flag key (see ``translate.SUDO_FLAGS``).
    edit_flags : tuple[str, ...] | None
        Native "edit files with privilege" mode, if the tool has one.
    policy_editor : tuple[str, ...] | None
        Candidate paths of the real ``visudo`` to elevate; ``None`` when the
        target has no policy-editing equivalent.
    """

    name: str
    executable: str
    flags: dict[str, FlagRule] = field(default_factory=dict)
    edit_flags: tuple[str, ...] | None = None
    policy_editor: tuple[str, ...] | None = None
    description: str = ""

    def rule_for(self, key: str) -> FlagRule | None:
        return self.flags.get(key)


# The global registry: maps target name → TargetTool
_TARGET_REGISTRY: dict[str, TargetTool] = {}


def register_target(target: TargetTool) -> TargetTool:
    """Add *target* to the registry, replacing any entry with the same name."""
    _TARGET_REGISTRY[target.name] = target
    return target


def get_target(name: str) -> TargetTool | None:
    """Look up a target by name.  Returns ``None`` if not found."""
    return _TARGET_REGISTRY.get(name)


def require_target(name: str) -> TargetTool:
    """Like ``get_target`` but raise ``ConfigError`` for an unknown *name*."""
    target = _TARGET_REGISTRY.get(name)
    if target is None:
        raise ConfigError(f"unknown target '{name}' (known: {', '.join(sorted(_TARGET_REGISTRY))})")
    return target


def get_all_targets() -> dict[str, TargetTool]:
    """Return a copy of the full registry."""
    return dict(_TARGET_REGISTRY)
