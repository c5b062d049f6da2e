"""
sudoshim.targets - Target tool registry and built-in targets.

Importing this package registers every built-in target.
"""

# Import target modules so their register_target calls execute
from sudoshim.targets import doas  # noqa: F401
from sudoshim.targets import run0  # noqa: F401

from sudoshim.targets.registry import (
    FlagRule,
    RuleKind,
    TargetTool,
    get_all_targets,
    get_target,
    register_target,
    require_target,
)

__all__ = [
    "FlagRule",
    "RuleKind",
    "TargetTool",
    "get_all_targets",
    "get_target",
    "register_target",
    "require_target",
]
