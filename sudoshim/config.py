"""
sudoshim.config - Load, validate, and expose runtime settings.

The redirector deliberately reads no configuration file of its own.
Settings are layered as:

1. Built-in Pydantic defaults
2. ``SUDOSHIM_*`` environment variables

``SUDOSHIM_TARGET``           auto | doas | run0
``SUDOSHIM_EXEC_MODE``        exec | spawn
``SUDOSHIM_DEBUG``            1 / true / yes enables debug logging
``SUDOSHIM_EDITOR_FALLBACK``  editor used by sudoedit when none is set
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ValidationError
from rich.console import Console
from rich.logging import RichHandler

from sudoshim.errors import ConfigError

# Environment variable → settings field
_ENV_OVERRIDES: dict[str, str] = {
    "SUDOSHIM_TARGET": "target",
    "SUDOSHIM_EXEC_MODE": "exec_mode",
    "SUDOSHIM_DEBUG": "debug",
    "SUDOSHIM_EDITOR_FALLBACK": "editor_fallback",
}


# ---------------------------------------------------------------------------
# Pydantic schema
# ---------------------------------------------------------------------------


class ShimSettings(BaseModel):
    """Top-level settings object for the redirector."""

    model_config = {"frozen": True}

    target: Literal["auto", "doas", "run0"] = "auto"
    exec_mode: Literal["exec", "spawn"] = "exec"
    debug: bool = False
    editor_fallback: str = "vi"


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def load_settings(environ: Mapping[str, str]) -> ShimSettings:
    """Build settings from *environ* without caching.

    Empty variables are treated as unset, matching ``${VAR:-default}``.

    Raises
    ------
    ConfigError
        If a variable holds a value the schema rejects.
    """
    raw: dict[str, Any] = {}
    for var, field_name in _ENV_OVERRIDES.items():
        value = environ.get(var, "").strip()
        if value:
            raw[field_name] = value

    try:
        return ShimSettings(**raw)
    except ValidationError as exc:
        bad = ", ".join(
            f"{_env_name(err['loc'][0])}={raw.get(str(err['loc'][0]))!r}"
            for err in exc.errors()
        )
        raise ConfigError(f"invalid configuration: {bad}") from exc


def _env_name(field_name: Any) -> str:
    for var, name in _ENV_OVERRIDES.items():
        if name == field_name:
            return var
    return str(field_name)


@lru_cache(maxsize=1)
def get_settings() -> ShimSettings:
    """Return the validated, cached settings for the current process."""
    return load_settings(os.environ)


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def configure_logging(settings: ShimSettings) -> logging.Logger:
    """Attach a stderr ``RichHandler`` to the ``sudoshim`` logger.

    Diagnostics only ever go to the caller's terminal; nothing is written
    to a file or to syslog.
    """
    logger = logging.getLogger("sudoshim")
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=Console(stderr=True),
            show_time=False,
            show_path=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if settings.debug else logging.WARNING)
    logger.propagate = False
    return logger
