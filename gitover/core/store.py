"""元数据目录适配器

将仓库名映射到其私有的 VCS 元数据目录：

    <root>/.gitover/repos/<name>/     元数据目录（git dir）
    <root>/.gitover/repos/<name>.exclude

元数据目录位于工作树根目录下三层，所有仓库检出到同一个物理目录。
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from gitover.core.exceptions import PreconditionError
from gitover.core.models import (
    ROOT_REPO,
    RepoContext,
    RepoState,
    is_valid_name,
    validate_name,
)
from gitover.core.vcs import VcsClient

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDE = "*\n"


class MetadataStore:
    """元数据目录管理"""

    def __init__(self, meta_root: Path, vcs: VcsClient) -> None:
        self.meta_root = Path(meta_root)
        self.vcs = vcs

    @property
    def work_tree(self) -> Path:
        return self.meta_root.parents[1]

    # ---- 路径 ----

    def git_dir(self, name: str) -> Path:
        return self.meta_root / validate_name(name)

    def exclude_file(self, name: str) -> Path:
        return self.meta_root / f"{validate_name(name)}.exclude"

    def context(self, name: str) -> RepoContext:
        git_dir = self.git_dir(name)
        return RepoContext(name=name, git_dir=git_dir, work_tree=git_dir.parents[2])

    def root_context(self) -> RepoContext | None:
        """根目录自身若是普通仓库（<root>/.git），返回其上下文"""
        git_dir = self.work_tree / ".git"
        if not git_dir.is_dir():
            return None
        return RepoContext(name=ROOT_REPO, git_dir=git_dir, work_tree=self.work_tree)

    # ---- 状态 ----

    def require_meta_root(self) -> None:
        if not self.meta_root.is_dir():
            raise PreconditionError(
                f"未找到元数据目录: {self.meta_root}（请先执行 gitover setup 或 clone）"
            )

    def is_cloned(self, name: str) -> bool:
        return self.git_dir(name).is_dir()

    def state(self, name: str, known: set[str]) -> RepoState:
        if self.is_cloned(name):
            return RepoState.CLONED
        if name in known:
            return RepoState.REGISTERED
        return RepoState.UNKNOWN

    def cloned(self) -> list[str]:
        """所有已克隆仓库（按名称排序）"""
        if not self.meta_root.is_dir():
            return []
        return sorted(
            p.name for p in self.meta_root.iterdir()
            if p.is_dir() and is_valid_name(p.name)
        )

    def require_cloned(self, name: str) -> RepoContext:
        if not self.is_cloned(name):
            raise PreconditionError(f"仓库未克隆: {name}")
        return self.context(name)

    # ---- 生命周期 ----

    def init(self, name: str, *, install_exclude: bool = True) -> bool:
        """创建元数据目录并绑定共享工作树，返回是否新建了 exclude 文件"""
        ctx = self.context(name)
        if ctx.git_dir.exists():
            raise PreconditionError(f"元数据目录已存在: {ctx.git_dir}")

        ctx.git_dir.mkdir(parents=True)
        self.vcs.init(ctx)
        self.bind(ctx)
        created = self.ensure_exclude(name) if install_exclude else False
        logger.info("元数据目录已创建: %s -> %s", name, ctx.git_dir)
        return created

    def bind(self, ctx: RepoContext) -> None:
        """绑定工作树与 exclude 文件"""
        self.vcs.config_set(ctx, "core.bare", "false")
        self.vcs.config_set(ctx, "core.worktree", str(ctx.work_tree))
        self.vcs.config_set(ctx, "core.excludesfile", str(self.exclude_file(ctx.name)))
        self.vcs.config_set(ctx, "core.quotepath", "false")

    def ensure_exclude(self, name: str) -> bool:
        """exclude 文件不存在时写入默认内容（排除一切未显式跟踪的文件）"""
        path = self.exclude_file(name)
        if path.exists():
            return False
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(DEFAULT_EXCLUDE, encoding="utf-8")
        return True

    def destroy(self, name: str, *, remove_exclude: bool = True) -> None:
        """删除元数据目录（及 exclude 文件）"""
        git_dir = self.git_dir(name)
        if git_dir.exists():
            shutil.rmtree(git_dir)
        exclude = self.exclude_file(name)
        if remove_exclude and exclude.exists():
            exclude.unlink()
        logger.info("元数据目录已删除: %s", name)
