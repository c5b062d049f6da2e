"""Tests for sudoshim.targets — registry and flag rules."""

from __future__ import annotations

import pytest

import sudoshim.targets  # noqa: F401 - registers targets
from sudoshim.errors import EXIT_CONFIG, ConfigError
from sudoshim.targets.registry import (
    FlagRule,
    RuleKind,
    TargetTool,
    drop,
    emit,
    get_all_targets,
    get_target,
    reject,
    require_target,
)
from sudoshim.translate import SUDO_FLAGS

_KNOWN_KEYS = {f.key for f in SUDO_FLAGS} | {f.value_key for f in SUDO_FLAGS if f.value_key}


class TestRegistry:
    def test_builtin_targets_registered(self) -> None:
        targets = get_all_targets()
        assert "doas" in targets
        assert "run0" in targets

    def test_unknown_target_is_none(self) -> None:
        assert get_target("pkexec") is None

    def test_require_target(self) -> None:
        assert require_target("run0").name == "run0"
        with pytest.raises(ConfigError) as excinfo:
            require_target("pkexec")
        assert excinfo.value.exit_code == EXIT_CONFIG
        assert "pkexec" in excinfo.value.message

    def test_get_all_targets_returns_copy(self) -> None:
        targets = get_all_targets()
        targets.pop("doas")
        assert get_target("doas") is not None

    def test_tables_only_use_known_flag_keys(self) -> None:
        """A typo in a table key would silently turn a rule into passthrough."""
        for target in get_all_targets().values():
            unknown = set(target.flags) - _KNOWN_KEYS
            assert not unknown, f"{target.name}: {unknown}"

    def test_capabilities(self) -> None:
        doas = get_target("doas")
        run0 = get_target("run0")
        assert doas is not None and run0 is not None
        assert doas.policy_editor is None
        assert run0.policy_editor is not None
        assert doas.edit_flags is None
        assert run0.edit_flags is None


class TestFlagRule:
    def test_emit_substitutes_value(self) -> None:
        assert emit("-u", "{value}").render("root") == ["-u", "root"]
        assert emit("--user={value}").render("bob") == ["--user=bob"]

    def test_emit_without_value(self) -> None:
        assert emit("-n").render() == ["-n"]

    def test_per_item_expansion(self) -> None:
        rule = emit("--setenv={value}", per_item=True)
        assert rule.render("PATH,HOME") == ["--setenv=PATH", "--setenv=HOME"]
        assert rule.render("PATH,,LANG") == ["--setenv=PATH", "--setenv=LANG"]
        assert rule.render("") == []
        assert rule.render(",") == []

    def test_drop_and_reject_render_nothing(self) -> None:
        assert drop().render() == []
        assert reject("no").render("x") == []

    def test_kinds(self) -> None:
        assert emit("-x").kind is RuleKind.EMIT
        assert drop(standalone=True).standalone is True
        rule = reject("because")
        assert rule.kind is RuleKind.REJECT
        assert rule.reason == "because"

    def test_rule_lookup(self) -> None:
        tool = TargetTool(name="t", executable="t", flags={"user": FlagRule(RuleKind.DROP)})
        assert tool.rule_for("user") is not None
        assert tool.rule_for("group") is None
