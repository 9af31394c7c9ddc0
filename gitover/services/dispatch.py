"""多仓库命令分发

- 在一个、多个（逗号分隔）或全部已克隆仓库上执行任意 VCS 子命令
- 计算仓库当前版本（tag / 缩写提交号 / 最近 tag）
"""

from __future__ import annotations

import logging
from typing import Iterable

from gitover.core.exceptions import PreconditionError, ValidationError
from gitover.core.models import DispatchResult, RepoContext, validate_name
from gitover.core.scheduler import Scheduler
from gitover.core.store import MetadataStore
from gitover.core.vcs import VcsClient

logger = logging.getLogger(__name__)

ALL_TARGETS = "all"


def parse_describe(described: str) -> str:
    """解析 describe --long --always 输出

    "v1.2-0-gabc123" -> "v1.2"（恰好位于 tag 上）
    "v1.2-3-gabc123" -> "abc123"
    "abc123"         -> "abc123"（无 tag）
    """
    parts = described.rsplit("-", 2)
    if len(parts) == 3 and parts[1].isdigit() and parts[2].startswith("g"):
        tag, distance, abbrev = parts
        return tag if distance == "0" else abbrev[1:]
    return described


class MultiRepoDispatcher:
    """多仓库命令分发器"""

    def __init__(self, store: MetadataStore, vcs: VcsClient, max_workers: int = 1) -> None:
        self.store = store
        self.vcs = vcs
        self.max_workers = max_workers

    def select(self, targets: str) -> list[str]:
        """解析目标：all / 单个仓库名 / 逗号分隔的仓库名"""
        self.store.require_meta_root()
        if targets == ALL_TARGETS:
            return self.store.cloned()
        names = [t.strip() for t in targets.split(",") if t.strip()]
        if not names:
            raise ValidationError("未指定目标仓库")
        for name in names:
            validate_name(name)
            if not self.store.is_cloned(name):
                raise PreconditionError(f"仓库未克隆: {name}")
        return names

    def run(self, targets: str, args: list[str], jobs: int | None = None) -> list[DispatchResult]:
        """在目标仓库上执行 VCS 子命令，单个仓库失败不影响其余仓库"""
        if not args:
            raise ValidationError("未指定要执行的 VCS 子命令")
        names = self.select(targets)

        def _one(name: str) -> DispatchResult:
            r = self.vcs.run(self.store.context(name), *args, check=False)
            if not r.success:
                logger.error("[%s] 命令失败 (rc=%d)", name, r.returncode, extra={"repo": name})
            return DispatchResult(name=name, returncode=r.returncode,
                                  stdout=r.stdout, stderr=r.stderr)

        return Scheduler(jobs or self.max_workers).run_all(names, _one)

    # ---- 版本 ----

    def current_version(self, name: str, tag_mode: bool = False) -> str:
        """计算仓库当前版本"""
        ctx = self.store.require_cloned(name)
        return self._version(ctx, tag_mode)

    def _version(self, ctx: RepoContext, tag_mode: bool) -> str:
        if tag_mode:
            tag = self.vcs.describe(ctx, "--abbrev=0")
            if tag:
                return tag
            logger.warning("[%s] 无可达 tag，改用提交号", ctx.name)
        described = self.vcs.describe(ctx, "--long", "--always")
        if not described:
            raise PreconditionError(f"仓库没有任何提交: {ctx.name}")
        return parse_describe(described)

    def versions(
        self, tag_mode: bool = False, *, exclude: Iterable[str] = (),
    ) -> list[tuple[str, str]]:
        """所有已克隆仓库的当前版本（跳过 exclude 中的仓库）"""
        self.store.require_meta_root()
        skipped = set(exclude)
        return [
            (name, self._version(self.store.context(name), tag_mode))
            for name in self.store.cloned()
            if name not in skipped
        ]
