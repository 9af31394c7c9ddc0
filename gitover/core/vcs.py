"""VCS 客户端 — 外部版本控制工具的类型化接口

每个请求都限定在一个仓库的私有元数据目录和共享工作树上：

    git --git-dir=<store> --work-tree=<root> <args...>   (cwd=<root>)

以退出码判定成功与否，stdout 为唯一的结构化输出（按行）。
底层执行器通过 CommandExecutor 协议注入，测试时替换为脚本化实现。
"""

from __future__ import annotations

import logging
import os

from gitover.core.exceptions import ExecutionError
from gitover.core.models import RepoContext
from gitover.utils.shell import CommandExecutor, CommandResult, LocalExecutor

logger = logging.getLogger(__name__)

# 批量 fetch 在后台线程中执行，凭据缺失时必须直接失败而不是等待终端输入
NON_INTERACTIVE_ENV = {"GIT_TERMINAL_PROMPT": "0"}


class VcsClient:
    """git 命令接口"""

    def __init__(
        self,
        executor: CommandExecutor | None = None,
        *,
        binary: str = "git",
        remote: str = "origin",
        timeout: int | None = None,
    ) -> None:
        self._executor = executor or LocalExecutor()
        self.binary = binary
        self.remote = remote
        self.timeout = timeout
        self.env = {**os.environ, **NON_INTERACTIVE_ENV}

    # ---- 基础调用 ----

    def command(self, ctx: RepoContext, *args: str) -> list[str]:
        return [
            self.binary,
            f"--git-dir={ctx.git_dir}",
            f"--work-tree={ctx.work_tree}",
            *args,
        ]

    def run(self, ctx: RepoContext, *args: str, check: bool = True) -> CommandResult:
        """执行一条 VCS 命令；check=True 时非零退出码抛 ExecutionError"""
        cmd = self.command(ctx, *args)
        r = self._executor.execute(
            cmd, cwd=str(ctx.work_tree), env=self.env, timeout=self.timeout,
        )
        if check and not r.success:
            raise ExecutionError(
                f"[{ctx.name}] {self.binary} {' '.join(args)} 失败 "
                f"(rc={r.returncode}): {r.stderr.strip()[:300]}",
                cmd=cmd, returncode=r.returncode, stderr=r.stderr,
            )
        return r

    def lines(self, ctx: RepoContext, *args: str) -> list[str]:
        return self.run(ctx, *args).lines()

    # ---- 元数据目录 ----

    def init(self, ctx: RepoContext) -> None:
        self.run(ctx, "init", "-q")

    def config_set(self, ctx: RepoContext, key: str, value: str) -> None:
        self.run(ctx, "config", key, value)

    def config_get(self, ctx: RepoContext, key: str) -> str | None:
        r = self.run(ctx, "config", "--get", key, check=False)
        value = r.stdout.strip()
        return value if r.success and value else None

    def remote_add(self, ctx: RepoContext, url: str) -> None:
        self.run(ctx, "remote", "add", self.remote, url)

    def set_remote_url(self, ctx: RepoContext, url: str) -> None:
        self.config_set(ctx, f"remote.{self.remote}.url", url)

    # ---- 网络 / 检出 ----

    def fetch(self, ctx: RepoContext) -> None:
        self.run(ctx, "fetch", "-q", self.remote)

    def remote_default_branch(self, ctx: RepoContext) -> str | None:
        """远端默认分支；远端尚无提交时返回 None"""
        for line in self.lines(ctx, "ls-remote", "--symref", self.remote, "HEAD"):
            if line.startswith("ref:"):
                ref = line.split()[1]
                return ref.removeprefix("refs/heads/")
        return None

    def checkout(self, ctx: RepoContext, revision: str) -> None:
        self.run(ctx, "checkout", "-q", revision)

    def checkout_branch(self, ctx: RepoContext, branch: str, start: str) -> None:
        """checkout -B <branch> <remote-branch>"""
        self.run(ctx, "checkout", "-q", "-B", branch, start)

    def branch_track(self, ctx: RepoContext, branch: str, upstream: str) -> None:
        self.run(ctx, "branch", "-q", "--track", branch, upstream)

    def merge_ff_only(self, ctx: RepoContext, upstream: str) -> None:
        self.run(ctx, "merge", "-q", "--ff-only", upstream)

    def set_head(self, ctx: RepoContext, branch: str) -> None:
        self.run(ctx, "symbolic-ref", "HEAD", f"refs/heads/{branch}")

    # ---- 查询 ----

    def resolve_commit(self, ctx: RepoContext, revision: str) -> str | None:
        r = self.run(ctx, "rev-parse", "--verify", "-q", f"{revision}^{{commit}}", check=False)
        sha = r.stdout.strip()
        return sha if r.success and sha else None

    def rev_list_count(self, ctx: RepoContext, rev_range: str) -> int:
        out = self.run(ctx, "rev-list", rev_range, "--count").stdout.strip()
        return int(out or 0)

    def describe(self, ctx: RepoContext, *options: str) -> str | None:
        r = self.run(ctx, "describe", "--tags", *options, check=False)
        value = r.stdout.strip()
        return value if r.success and value else None

    def ls_files(self, ctx: RepoContext) -> list[str]:
        # -z: 路径原样输出，不做 C 风格引号转义
        out = self.run(ctx, "ls-files", "-z").stdout
        return [path for path in out.split("\0") if path]

    def status_porcelain(self, ctx: RepoContext) -> list[str]:
        # -uno: 共享工作树里其余仓库的文件都不应算作本仓库的改动
        return self.lines(ctx, "status", "--porcelain", "-uno")
