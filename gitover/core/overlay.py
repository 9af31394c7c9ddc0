"""叠加层解析

在共享工作树上计算各仓库跟踪文件的并集与差集：

- 未跟踪文件：磁盘上存在但不属于任何仓库
- 重复跟踪文件：被多个仓库同时跟踪（冲突，只报告不处理）
- 单文件归属：哪个仓库跟踪了给定路径

归属查询采用两级策略：先按文件名推导候选仓库名，只查这些仓库；
未命中再逐个扫描所有已克隆仓库。
"""

from __future__ import annotations

import logging
import os
from collections import Counter
from pathlib import Path
from typing import Callable, Iterator

from gitover.core.exceptions import ExecutionError
from gitover.core.models import RepoContext, is_valid_name
from gitover.core.store import MetadataStore
from gitover.core.vcs import VcsClient

logger = logging.getLogger(__name__)

# 文件名 -> 候选仓库名 的变换，按顺序尝试
NameCandidate = Callable[[str], str]


def _strip_extension(filename: str) -> str:
    stem, dot, _ = filename.rpartition(".")
    return stem if dot else filename


def _strip_last_segment(filename: str) -> str:
    head, sep, _ = _strip_extension(filename).rpartition("_")
    return head if sep else ""


NAME_CANDIDATES: tuple[NameCandidate, ...] = (
    _strip_extension,
    _strip_last_segment,
)


def sorted_difference(left: list[str], right: list[str]) -> list[str]:
    """有序列表差集 left - right（归并，两者须已排序）"""
    result: list[str] = []
    j = 0
    for item in left:
        while j < len(right) and right[j] < item:
            j += 1
        if j < len(right) and right[j] == item:
            continue
        result.append(item)
    return result


class OverlayResolver:
    """叠加层文件归属解析器"""

    def __init__(
        self,
        store: MetadataStore,
        vcs: VcsClient,
        candidates: tuple[NameCandidate, ...] = NAME_CANDIDATES,
        ignore: tuple[Path, ...] = (),
    ) -> None:
        self.store = store
        self.vcs = vcs
        self.candidates = candidates
        # 工具自身的文件（如配置文件），不参与未跟踪统计
        self.ignore = {Path(p).resolve() for p in ignore}

    @property
    def root(self) -> Path:
        return self.store.work_tree

    def _contexts(self) -> list[RepoContext]:
        """所有参与叠加的仓库：已克隆仓库 + 根目录自身的仓库"""
        contexts = [self.store.context(name) for name in self.store.cloned()]
        root_ctx = self.store.root_context()
        if root_ctx is not None:
            contexts.append(root_ctx)
        return contexts

    def _listings(self) -> Iterator[tuple[str, list[str]]]:
        self.store.require_meta_root()
        for ctx in self._contexts():
            yield ctx.name, self.vcs.ls_files(ctx)

    # ---- 跟踪文件 ----

    def tracked_files(self, dedupe: bool = False) -> list[str]:
        """所有仓库跟踪文件的并集；dedupe=True 时只返回出现多次的路径"""
        counts: Counter[str] = Counter()
        for _, files in self._listings():
            counts.update(files)
        if dedupe:
            return sorted(path for path, n in counts.items() if n > 1)
        return sorted(counts.elements())

    def all_files(self) -> list[str]:
        """工作树下所有普通文件（跳过元数据区和根目录 .git）"""
        skip = {self.store.meta_root.resolve(), (self.root / ".git").resolve()}
        result: list[str] = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            base = Path(dirpath)
            dirnames[:] = [d for d in dirnames if (base / d).resolve() not in skip]
            for filename in filenames:
                path = base / filename
                if path.is_symlink() or not path.is_file() or path.resolve() in self.ignore:
                    continue
                result.append(path.relative_to(self.root).as_posix())
        return sorted(result)

    def untracked_files(self) -> list[str]:
        """磁盘上存在但不被任何仓库跟踪的文件"""
        tracked = self.tracked_files(dedupe=False)
        return sorted_difference(self.all_files(), tracked)

    def double_tracked_report(self) -> list[tuple[str, str]]:
        """每个重复跟踪路径的全部 (仓库, 路径) 对"""
        listings = list(self._listings())
        counts: Counter[str] = Counter()
        for _, files in listings:
            counts.update(files)
        dupes = {path for path, n in counts.items() if n > 1}

        report = [
            (repo, path)
            for repo, files in listings
            for path in files
            if path in dupes
        ]
        # 按路径排序；同一路径内保持仓库枚举顺序（sorted 稳定）
        report.sort(key=lambda pair: pair[1])
        for repo, path in report:
            logger.warning("重复跟踪: %s (%s)", path, repo)
        return report

    # ---- 归属 ----

    def normalize(self, path: str | Path) -> str:
        p = Path(path)
        if p.is_absolute():
            p = Path(os.path.relpath(p.resolve(), self.root))
        return p.as_posix()

    def candidate_names(self, path: str) -> list[str]:
        """由文件名推导的候选仓库名（已去重、已过滤非法名）"""
        filename = Path(path).name
        names: list[str] = []
        for transform in self.candidates:
            name = transform(filename)
            if name and is_valid_name(name) and name not in names:
                names.append(name)
        return names

    def owner_of(self, path: str | Path) -> str | None:
        """返回跟踪该路径的第一个仓库，无人跟踪返回 None"""
        self.store.require_meta_root()
        rel = self.normalize(path)
        cloned = self.store.cloned()

        checked: set[str] = set()
        for name in self.candidate_names(rel):
            if name not in cloned:
                continue
            checked.add(name)
            if rel in self.vcs.ls_files(self.store.context(name)):
                logger.debug("归属命中候选: %s -> %s", rel, name)
                return name

        for ctx in self._contexts():
            if ctx.name in checked:
                continue
            if rel in self.vcs.ls_files(ctx):
                return ctx.name
        return None

    # ---- 状态报告 ----

    def modified_files(self) -> list[tuple[str, str]]:
        """各仓库中已修改的跟踪文件 (仓库, porcelain 状态行)"""
        self.store.require_meta_root()
        return [
            (ctx.name, line)
            for ctx in self._contexts()
            for line in self.vcs.status_porcelain(ctx)
        ]

    def unpushed(self) -> list[tuple[str, int]]:
        """本地领先上游的仓库及领先提交数；无上游的仓库跳过"""
        self.store.require_meta_root()
        result: list[tuple[str, int]] = []
        for ctx in self._contexts():
            try:
                count = self.vcs.rev_list_count(ctx, "@{u}..HEAD")
            except (ExecutionError, ValueError) as e:
                logger.debug("跳过无上游仓库 %s: %s", ctx.name, e)
                continue
            if count:
                result.append((ctx.name, count))
        return result

