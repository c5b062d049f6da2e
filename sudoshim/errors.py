"""
sudoshim.errors - Failure taxonomy and reserved exit codes.

Every error the shim itself can produce is a ``ShimError`` carrying the
exit code the process should terminate with.  Failures of the delegated
tool are not errors of the shim; their exit code is passed through.
"""

from __future__ import annotations

# Reserved exit codes (sysexits-style, plus the shell's "not found")
EXIT_USAGE = 64
EXIT_UNSUPPORTED = 69
EXIT_CONFIG = 78
EXIT_TARGET_MISSING = 127


class ShimError(Exception):
    """Base class for every failure raised by the redirector."""

    exit_code: int = 1

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UsageError(ShimError):
    """The caller's invocation is malformed (e.g. ``sudoedit`` without files)."""

    exit_code = EXIT_USAGE


class UnknownFrontendError(UsageError):
    """Invoked under a name that is not one of the recognized front-ends."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"invoked as '{name}', which is not a recognized name "
            "(expected sudo, visudo, sudoedit or sudo-wrapper)"
        )
        self.name = name


class TranslationError(UsageError):
    """A flag (or flag combination) has no lossless translation."""

    def __init__(self, flag: str, target: str, reason: str) -> None:
        super().__init__(f"cannot translate '{flag}' for {target}: {reason}")
        self.flag = flag
        self.target = target
        self.reason = reason


class UnsupportedModeError(ShimError):
    """The requested front-end mode has no equivalent on the target tool."""

    exit_code = EXIT_UNSUPPORTED

    def __init__(self, mode: str, target: str, detail: str = "") -> None:
        message = f"'{mode}' is not supported with {target}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.mode = mode
        self.target = target


class TargetMissingError(ShimError):
    """The target privilege tool is not installed or not executable."""

    exit_code = EXIT_TARGET_MISSING

    def __init__(self, tool: str, detail: str | None = None) -> None:
        message = f"'{tool}' is not installed or not in PATH"
        if detail:
            message = f"'{tool}' cannot be executed: {detail}"
        super().__init__(message)
        self.tool = tool


class ConfigError(ShimError):
    """A ``SUDOSHIM_*`` environment variable holds an invalid value."""

    exit_code = EXIT_CONFIG
