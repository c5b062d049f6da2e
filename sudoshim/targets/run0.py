"""
sudoshim.targets.run0 - systemd ``run0(1)``.

run0 takes long options with ``=`` values and starts a shell when no
command is given.  Permission is decided by polkit rather than sudoers,
but the real ``visudo`` can still be run elevated through it.
"""

from __future__ import annotations

from sudoshim.targets.registry import TargetTool, drop, emit, register_target, reject

# Where distributions install the real visudo
VISUDO_PATHS: tuple[str, ...] = ("/usr/sbin/visudo", "/usr/bin/visudo")

RUN0 = register_target(
    TargetTool(
        name="run0",
        executable="run0",
        description="systemd run0",
        flags={
            "user": emit("--user={value}"),
            "group": emit("--group={value}"),
            "chdir": emit("--chdir={value}"),
            "non_interactive": emit("--no-ask-password"),
            "preserve_env_list": emit("--setenv={value}", per_item=True),
            # no command already means "start a shell"
            "shell": drop(standalone=True),
            "set_home": drop(),
            "preserve_env": reject("run0 can only pass named variables; use --preserve-env=VAR,..."),
            "login": reject("run0 cannot start a login shell"),
            "reset_timestamp": reject("run0 keeps no credential cache"),
            "remove_timestamp": reject("run0 keeps no credential cache"),
            "list": reject("run0 permissions come from polkit and cannot be listed"),
            "validate": reject("run0 keeps no credential cache"),
            "background": reject("run0 cannot background the command"),
            "askpass": reject("run0 authenticates through polkit agents"),
            "stdin": reject("run0 cannot read the password from stdin"),
            "prompt": reject("run0 does not accept a custom prompt"),
            "close_from": reject("run0 has no close-from option"),
            "host": reject("remote hosts are not supported"),
        },
        edit_flags=None,
        policy_editor=VISUDO_PATHS,
    )
)
