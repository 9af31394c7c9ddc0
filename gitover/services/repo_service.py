"""仓库生命周期服务

支持:
  - 列出已知 / 已克隆 / 未克隆仓库
  - 在叠加层中新建空仓库
  - 删除仓库（工作树中的跟踪文件 + 元数据目录，origin 记录保留）
  - 将根目录下的普通仓库原地转换为叠加层成员
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from gitover.core.exceptions import PreconditionError
from gitover.core.models import validate_name
from gitover.core.registry import RepoRegistry
from gitover.core.store import MetadataStore
from gitover.core.vcs import VcsClient

logger = logging.getLogger(__name__)


class RepoService:
    """仓库生命周期管理"""

    def __init__(
        self,
        registry: RepoRegistry,
        store: MetadataStore,
        vcs: VcsClient,
        *,
        default_branch: str = "master",
    ) -> None:
        self.registry = registry
        self.store = store
        self.vcs = vcs
        self.default_branch = default_branch

    # ---- 列表 ----

    def list_known(self) -> list[str]:
        return sorted(self.registry.list_known() | set(self.store.cloned()))

    def list_cloned(self) -> list[str]:
        return self.store.cloned()

    def list_uncloned(self) -> list[str]:
        return sorted(self.registry.list_known() - set(self.store.cloned()))

    # ---- 新建 / 删除 ----

    def init(self, name: str, *, install_exclude: bool = True) -> None:
        """在叠加层中新建一个空仓库"""
        self.store.init(validate_name(name), install_exclude=install_exclude)
        self.vcs.set_head(self.store.context(name), self.default_branch)

    def remove(self, name: str) -> int:
        """删除仓库，返回从工作树中删除的文件数"""
        ctx = self.store.require_cloned(validate_name(name))
        files = self.vcs.ls_files(ctx)

        removed = 0
        dirs: set[Path] = set()
        for rel in files:
            path = ctx.work_tree / rel
            if path.is_file() or path.is_symlink():
                path.unlink()
                removed += 1
            dirs.update(p for p in path.parents if ctx.work_tree in p.parents)
        # 自深向浅删除已空的目录
        for d in sorted(dirs, key=lambda p: len(p.parts), reverse=True):
            if d.is_dir() and not any(d.iterdir()):
                d.rmdir()

        self.store.destroy(name)
        logger.info("仓库已删除: %s（%d 个文件）", name, removed)
        return removed

    # ---- 原地转换 ----

    def convert(self, name: str, source: Path | None = None) -> str | None:
        """将普通仓库的 git 目录移入元数据区，返回登记的 origin"""
        validate_name(name)
        source = Path(source) if source else self.store.work_tree / ".git"
        if not source.is_dir():
            raise PreconditionError(f"未找到待转换的 git 目录: {source}")
        if self.store.is_cloned(name):
            raise PreconditionError(f"元数据目录已存在: {self.store.git_dir(name)}")

        target = self.store.git_dir(name)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(source), str(target))

        ctx = self.store.context(name)
        self.store.bind(ctx)
        self.store.ensure_exclude(name)

        origin = self.vcs.config_get(ctx, f"remote.{self.vcs.remote}.url")
        if origin:
            self.registry.set_origin(name, origin)
        logger.info("已转换: %s -> %s", source, target)
        return origin
