"""
sudoshim.targets.doas - OpenBSD ``doas(1)``.

doas understands ``-u user``, ``-n`` and ``-s`` directly and clears
persisted authentication with ``-L``.  Everything else sudo offers is
either doas's default behaviour or configured in ``doas.conf``.
"""

from __future__ import annotations

from sudoshim.targets.registry import TargetTool, drop, emit, register_target, reject

DOAS = register_target(
    TargetTool(
        name="doas",
        executable="doas",
        description="OpenBSD doas",
        flags={
            "user": emit("-u", "{value}"),
            "non_interactive": emit("-n"),
            "shell": emit("-s", standalone=True),
            "reset_timestamp": emit("-L", standalone=True),
            "remove_timestamp": emit("-L", standalone=True),
            # doas always sets HOME for the target user
            "set_home": drop(),
            "group": reject("doas has no option to select a group"),
            "preserve_env": reject("environment passing is set by 'keepenv' in doas.conf"),
            "preserve_env_list": reject("environment passing is set by 'setenv' in doas.conf"),
            "login": reject("doas cannot start a login shell"),
            "chdir": reject("doas has no working-directory option"),
            "list": reject("doas cannot list privileges; use 'doas -C /etc/doas.conf'"),
            "validate": reject("doas has no credential-only validation"),
            "background": reject("doas cannot background the command"),
            "askpass": reject("doas has no askpass helper"),
            "stdin": reject("doas cannot read the password from stdin"),
            "prompt": reject("doas does not accept a custom prompt"),
            "close_from": reject("doas has no close-from option"),
            "host": reject("remote hosts are not supported"),
        },
        edit_flags=None,
        policy_editor=None,
    )
)
