"""共享测试夹具

FakeGit 是脚本化的 VCS 执行器：按 (仓库, 子命令前缀) 匹配规则返回预设结果，
未匹配的命令一律成功且无输出；ls-files 默认返回 tracked 中登记的文件。
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable

import pytest

from gitover.core.config import Config
from gitover.services.container import ServiceContainer
from gitover.utils.shell import CommandResult

Effect = Callable[[str, list[str]], None]


class FakeGit:
    """脚本化 git 执行器"""

    def __init__(self) -> None:
        self.calls: list[tuple[str, list[str]]] = []
        self.tracked: dict[str, list[str]] = {}
        self.last_env: dict[str, str] | None = None
        self._rules: list[tuple[str | None, tuple[str, ...], CommandResult, Effect | None]] = []
        self._lock = threading.Lock()

    def on(
        self,
        *prefix: str,
        repo: str | None = None,
        rc: int = 0,
        stdout: str = "",
        stderr: str = "",
        effect: Effect | None = None,
    ) -> None:
        """登记规则；后登记的规则优先"""
        self._rules.append((repo, prefix, CommandResult(rc, stdout, stderr), effect))

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        assert cmd[0] == "git"
        git_dir = Path(cmd[1].split("=", 1)[1])
        repo = "." if git_dir.name == ".git" else git_dir.name
        args = list(cmd[3:])
        with self._lock:
            self.calls.append((repo, args))
            self.last_env = env

        for rule_repo, prefix, result, effect in reversed(self._rules):
            if rule_repo not in (None, repo):
                continue
            if tuple(args[: len(prefix)]) != prefix:
                continue
            if effect is not None:
                effect(repo, args)
            return result

        if args and args[0] == "ls-files":
            files = self.tracked.get(repo, [])
            return CommandResult(0, "".join(f"{f}\0" for f in files), "")
        return CommandResult(0, "", "")

    def commands(self, repo: str | None = None) -> list[list[str]]:
        return [args for r, args in self.calls if repo is None or r == repo]

    def subcommands(self, repo: str | None = None) -> list[str]:
        return [args[0] for args in self.commands(repo)]


@pytest.fixture()
def fake_git() -> FakeGit:
    return FakeGit()


@pytest.fixture()
def work_root(tmp_path: Path) -> Path:
    root = tmp_path / "work"
    root.mkdir()
    return root


@pytest.fixture()
def config(work_root: Path) -> Config:
    return Config(root=str(work_root))


@pytest.fixture()
def container(config: Config, fake_git: FakeGit) -> ServiceContainer:
    return ServiceContainer(config, executor=fake_git)


@pytest.fixture()
def make_cloned(container: ServiceContainer, fake_git: FakeGit) -> Callable[..., Path]:
    """创建已克隆仓库的元数据目录（可同时登记跟踪文件和 origin）"""

    def _make(name: str, files: list[str] | None = None, origin: str = "") -> Path:
        git_dir = container.store.git_dir(name)
        git_dir.mkdir(parents=True, exist_ok=True)
        if files is not None:
            fake_git.tracked[name] = list(files)
        if origin:
            container.registry.set_origin(name, origin)
        return git_dir

    return _make


def write_files(root: Path, *paths: str) -> None:
    for rel in paths:
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(rel, encoding="utf-8")


@pytest.fixture()
def touch() -> Callable[..., None]:
    return write_files
