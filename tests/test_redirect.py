"""End-to-end tests for sudoshim.redirect — the sudo/visudo/sudoedit entry point.

A stub target records the arguments it was given and exits with
``$STUB_EXIT``; the redirector runs in spawn mode so the test process
survives delegation.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from sudoshim.errors import EXIT_CONFIG, EXIT_TARGET_MISSING, EXIT_UNSUPPORTED, EXIT_USAGE
from sudoshim.redirect import main


class TestDispatch:
    def test_sudo_forwards_verbatim(self, stub_env: dict[str, str], recorded) -> None:
        assert main(["sudo", "id", "-un"], stub_env) == 0
        assert recorded() == ["id", "-un"]

    def test_canonical_name_behaves_like_sudo(self, stub_env: dict[str, str], recorded) -> None:
        assert main(["/usr/local/bin/sudo-wrapper", "-u", "bob", "id"], stub_env) == 0
        assert recorded() == ["--user=bob", "id"]

    def test_doas_target(self, stub_env: dict[str, str], recorded) -> None:
        env = {**stub_env, "SUDOSHIM_TARGET": "doas"}
        assert main(["sudo", "-u", "root", "ls", "/root"], env) == 0
        assert recorded() == ["-u", "root", "ls", "/root"]

    def test_unknown_name(self, stub_env: dict[str, str], recorded, capsys) -> None:
        assert main(["please", "id"], stub_env) == EXIT_USAGE
        assert recorded() is None
        assert "please" in capsys.readouterr().err


class TestHelpNeverEscalates:
    @pytest.mark.parametrize("name", ["sudo", "visudo", "sudoedit", "sudo-wrapper"])
    @pytest.mark.parametrize("flag", ["--help", "-h", "-V"])
    def test_help_and_version(
        self, stub_env: dict[str, str], recorded, capsys, name: str, flag: str
    ) -> None:
        assert main([name, flag], stub_env) == 0
        assert recorded() is None
        assert capsys.readouterr().out != ""

    def test_help_works_without_target_installed(self, bindir: Path, capsys) -> None:
        env = {"PATH": str(bindir), "SUDOSHIM_TARGET": "doas"}
        assert main(["sudo", "--help"], env) == 0
        assert "doas" in capsys.readouterr().out


class TestExitCodes:
    @pytest.mark.parametrize("code", [0, 1, 2, 64, 127, 200, 255])
    def test_exit_code_fidelity(self, stub_env: dict[str, str], code: int) -> None:
        env = {**stub_env, "STUB_EXIT": str(code)}
        assert main(["sudo", "true"], env) == code

    def test_missing_target(self, bindir: Path, stub_log: Path, capsys) -> None:
        env = {
            "PATH": str(bindir),
            "STUB_LOG": str(stub_log),
            "SUDOSHIM_EXEC_MODE": "spawn",
            "SUDOSHIM_TARGET": "run0",
        }
        assert main(["sudo", "id"], env) == EXIT_TARGET_MISSING
        assert "run0" in capsys.readouterr().err

    def test_unexecutable_target(self, stub_env: dict[str, str], bindir: Path, make_stub, capsys) -> None:
        make_stub(bindir / "run0", "\x7fELFgarbage")
        assert main(["sudo", "id"], stub_env) == EXIT_TARGET_MISSING
        assert "run0" in capsys.readouterr().err

    def test_empty_preserve_env_list(self, stub_env: dict[str, str], recorded) -> None:
        assert main(["sudo", "--preserve-env=", "id"], stub_env) == EXIT_USAGE
        assert recorded() is None

    def test_auto_target_missing_names_a_tool(self, bindir: Path, capsys) -> None:
        env = {"PATH": str(bindir), "SUDOSHIM_EXEC_MODE": "spawn"}
        assert main(["sudo", "id"], env) == EXIT_TARGET_MISSING
        err = capsys.readouterr().err
        assert "doas" in err or "run0" in err

    def test_translation_error(self, stub_env: dict[str, str], recorded, capsys) -> None:
        env = {**stub_env, "SUDOSHIM_TARGET": "doas"}
        assert main(["sudo", "-g", "wheel", "id"], env) == EXIT_USAGE
        assert recorded() is None
        assert "-g" in capsys.readouterr().err

    def test_bad_configuration(self, stub_env: dict[str, str], recorded) -> None:
        env = {**stub_env, "SUDOSHIM_EXEC_MODE": "fork"}
        assert main(["sudo", "id"], env) == EXIT_CONFIG
        assert recorded() is None


class TestSudoedit:
    def test_editor_is_elevated(self, stub_env: dict[str, str], recorded) -> None:
        env = {**stub_env, "EDITOR": "myeditor"}
        assert main(["sudoedit", "file.txt"], env) == 0
        assert recorded() == ["myeditor", "file.txt"]

    def test_visual_preferred_over_editor(self, stub_env: dict[str, str], recorded) -> None:
        env = {**stub_env, "EDITOR": "nano", "VISUAL": "code -w"}
        assert main(["sudoedit", "-u", "www", "a", "b"], env) == 0
        assert recorded() == ["--user=www", "code", "-w", "a", "b"]

    def test_default_editor(self, stub_env: dict[str, str], recorded) -> None:
        assert main(["sudoedit", "/etc/hosts"], stub_env) == 0
        assert recorded() == ["vi", "/etc/hosts"]

    def test_no_files(self, stub_env: dict[str, str], recorded) -> None:
        assert main(["sudoedit"], stub_env) == EXIT_USAGE
        assert recorded() is None


class TestVisudo:
    def test_unsupported_under_doas(self, stub_env: dict[str, str], recorded, capsys) -> None:
        env = {**stub_env, "SUDOSHIM_TARGET": "doas"}
        assert main(["visudo"], env) == EXIT_UNSUPPORTED
        assert recorded() is None
        assert "visudo" in capsys.readouterr().err

    def test_real_visudo_elevated_under_run0(
        self,
        stub_env: dict[str, str],
        recorded,
        monkeypatch: pytest.MonkeyPatch,
        tmp_path: Path,
        make_stub,
    ) -> None:
        real = make_stub(tmp_path / "real-visudo")
        monkeypatch.setattr("sudoshim.targets.run0.RUN0.policy_editor", (str(real),))
        assert main(["visudo", "-c"], stub_env) == 0
        assert recorded() == [str(real), "-c"]
