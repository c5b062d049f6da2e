"""Tests for sudoshim.config — settings loading and validation."""

from __future__ import annotations

import logging

import pytest

from sudoshim.config import ShimSettings, configure_logging, get_settings, load_settings
from sudoshim.errors import EXIT_CONFIG, ConfigError


class TestShimSettings:
    """Unit tests for the environment-driven loader."""

    def test_defaults(self) -> None:
        settings = load_settings({})
        assert settings.target == "auto"
        assert settings.exec_mode == "exec"
        assert settings.debug is False
        assert settings.editor_fallback == "vi"

    def test_environment_overrides(self) -> None:
        settings = load_settings(
            {
                "SUDOSHIM_TARGET": "doas",
                "SUDOSHIM_EXEC_MODE": "spawn",
                "SUDOSHIM_DEBUG": "1",
                "SUDOSHIM_EDITOR_FALLBACK": "mg",
            }
        )
        assert settings.target == "doas"
        assert settings.exec_mode == "spawn"
        assert settings.debug is True
        assert settings.editor_fallback == "mg"

    def test_empty_variable_is_unset(self) -> None:
        assert load_settings({"SUDOSHIM_TARGET": ""}).target == "auto"

    def test_invalid_value_raises_config_error(self) -> None:
        with pytest.raises(ConfigError) as excinfo:
            load_settings({"SUDOSHIM_TARGET": "pkexec"})
        assert excinfo.value.exit_code == EXIT_CONFIG
        assert "SUDOSHIM_TARGET" in excinfo.value.message

    def test_unrelated_variables_ignored(self) -> None:
        assert load_settings({"SUDO_USER": "x", "EDITOR": "nano"}) == ShimSettings()

    def test_get_settings_is_cached(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SUDOSHIM_EXEC_MODE", "spawn")
        first = get_settings()
        assert first.exec_mode == "spawn"
        assert get_settings() is first

    def test_settings_are_frozen(self) -> None:
        settings = ShimSettings()
        with pytest.raises(Exception):
            settings.target = "doas"  # type: ignore[misc]


class TestLogging:
    def test_level_follows_debug_flag(self) -> None:
        logger = configure_logging(ShimSettings(debug=True))
        assert logger.level == logging.DEBUG
        logger = configure_logging(ShimSettings())
        assert logger.level == logging.WARNING

    def test_handler_added_once(self) -> None:
        configure_logging(ShimSettings())
        logger = configure_logging(ShimSettings())
        assert len(logger.handlers) == 1
