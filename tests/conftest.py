from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import pytest

from hyprarch_installer.config import GpuVendor, ProvisioningConfig, SessionConfig
from hyprarch_installer.lib.env import Paths
from hyprarch_installer.lib.manifests import load_package_manifest


@dataclass
class Call:
    argv: List[str]
    input: Optional[str]
    cwd: Optional[str]


class FakeRun:
    """Stand-in for subprocess.run that records every call.

    Responses are matched by argv prefix; the first match wins. A few
    privileged file operations (sudo tee/cat/mkdir/mv) act on the real
    filesystem so tests can point them at tmp_path.
    """

    def __init__(self, sandbox: Optional[Path] = None) -> None:
        self.sandbox = sandbox
        self.calls: List[Call] = []
        self._responses: List[Tuple[Tuple[str, ...], Callable[[List[str], Optional[str]], Tuple[int, str, str]]]] = []

    def respond(self, prefix, *, rc: int = 0, stdout: str = "", stderr: str = "") -> None:
        self._responses.append((tuple(prefix), lambda argv, inp: (rc, stdout, stderr)))

    def respond_with(self, prefix, fn) -> None:
        self._responses.append((tuple(prefix), fn))

    def argvs(self) -> List[List[str]]:
        return [c.argv for c in self.calls]

    def commands(self) -> List[str]:
        return [" ".join(c.argv) for c in self.calls]

    def _inside(self, path: str) -> bool:
        if self.sandbox is None:
            return False
        try:
            Path(path).resolve().relative_to(self.sandbox.resolve())
        except ValueError:
            return False
        return True

    def _builtin(self, argv: List[str], inp: Optional[str]) -> Optional[Tuple[int, str, str]]:
        if argv[:1] != ["sudo"] or len(argv) < 3:
            return None
        cmd, args = argv[1], argv[2:]
        if not all(self._inside(a) for a in args if a.startswith("/")):
            return None
        if cmd == "tee":
            p = Path(args[-1])
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_text(inp or "", encoding="utf-8")
            return 0, inp or "", ""
        if cmd == "cat":
            p = Path(args[-1])
            if not p.is_file():
                return 1, "", f"cat: {p}: No such file or directory"
            return 0, p.read_text(encoding="utf-8"), ""
        if cmd == "mkdir":
            Path(args[-1]).mkdir(parents=True, exist_ok=True)
            return 0, "", ""
        if cmd == "rmdir":
            Path(args[-1]).rmdir()
            return 0, "", ""
        if cmd == "mv":
            if not Path(args[0]).exists():
                return 1, "", f"mv: cannot stat '{args[0]}'"
            Path(args[1]).parent.mkdir(parents=True, exist_ok=True)
            shutil.move(args[0], args[1])
            return 0, "", ""
        if cmd == "cp" and args[0] == "-rT":
            shutil.copytree(args[1], args[2], dirs_exist_ok=True)
            return 0, "", ""
        return None

    def __call__(self, argv, input=None, text=None, stdout=None, stderr=None, cwd=None, env=None, **kw):
        argv = list(argv)
        self.calls.append(Call(argv=argv, input=input, cwd=cwd))
        for prefix, fn in self._responses:
            if tuple(argv[: len(prefix)]) == prefix:
                rc, out, err = fn(argv, input)
                return subprocess.CompletedProcess(argv, rc, out, err)
        builtin = self._builtin(argv, input)
        if builtin is not None:
            rc, out, err = builtin
            return subprocess.CompletedProcess(argv, rc, out, err)
        return subprocess.CompletedProcess(argv, 0, "", "")


@pytest.fixture
def fake_run(monkeypatch, tmp_path):
    fake = FakeRun(sandbox=tmp_path)
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


@pytest.fixture
def manifest():
    return load_package_manifest()


@pytest.fixture
def paths(tmp_path) -> Paths:
    target = tmp_path / "mnt"
    system = tmp_path / "root"
    mapper = tmp_path / "dev-mapper"
    for d in (target, system, mapper):
        d.mkdir()
    return Paths(
        target_root=str(target),
        system_root=str(system),
        mapper_dir=str(mapper),
        install_state_default=str(tmp_path / "install-state.json"),
        install_log_default=str(tmp_path / "install.log"),
    )


@pytest.fixture
def provisioning() -> ProvisioningConfig:
    return ProvisioningConfig(
        disk="/dev/vda",
        username="alice",
        user_password="hunter2",
        luks_password="correct horse",
        hostname="archlinux",
    )


@pytest.fixture
def session(tmp_path) -> SessionConfig:
    home = tmp_path / "home" / "alice"
    home.mkdir(parents=True)
    assets = tmp_path / "checkout" / "assets"
    (assets / "plymouth-theme").mkdir(parents=True)
    (assets / "plymouth-theme" / "hyprarch.plymouth").write_text("[Plymouth Theme]\n")
    (assets / "uwsm/.config/uwsm").mkdir(parents=True)
    (assets / "uwsm/.config/uwsm" / "env").write_text("export XDG_SESSION_TYPE=wayland\n")
    return SessionConfig(username="alice", home=home, gpu=GpuVendor.AMD, assets_dir=assets)


class ScriptedPrompter:
    """Answers prompts from fixed queues and keeps everything it printed."""

    def __init__(self, answers=(), secrets=()) -> None:
        self.answers = list(answers)
        self.secrets = list(secrets)
        self.output: List[str] = []

    def input(self, prompt: str) -> str:
        return self.answers.pop(0)

    def secret(self, prompt: str) -> str:
        return self.secrets.pop(0)

    def say(self, text: str) -> None:
        self.output.append(text)


@pytest.fixture
def scripted():
    from hyprarch_installer.prompts import Prompter

    def make(answers=(), secrets=()) -> Tuple[Prompter, ScriptedPrompter]:
        s = ScriptedPrompter(answers, secrets)
        return Prompter(input_fn=s.input, secret_fn=s.secret, output_fn=s.say), s

    return make

