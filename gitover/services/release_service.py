"""发布快照管理

将叠加层中各仓库的版本锁定为一个有序的 (仓库, 版本) 列表，
并可将工作叠加层恢复为快照描述的状态。

快照文件 <name>.release，每行 "<仓库> <版本>"；
版本为 "*" 的仓库承载快照文件本身，恢复时既不删除也不检出。
"""

from __future__ import annotations

import logging
from pathlib import Path

from gitover.core.exceptions import BatchError, PreconditionError, ValidationError
from gitover.core.models import (
    SELF_VERSION,
    CloneResult,
    ReleaseEntry,
    VersionChange,
    is_valid_name,
    validate_name,
)
from gitover.core.store import MetadataStore
from gitover.services.dispatch import MultiRepoDispatcher
from gitover.services.orchestrator import CloneOrchestrator
from gitover.services.repo_service import RepoService
from gitover.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)

RELEASE_SUFFIX = ".release"


def parse_release(content: str, source: str = "") -> list[ReleaseEntry]:
    """解析快照内容，忽略空行与 # 注释"""
    entries: list[ReleaseEntry] = []
    seen: set[str] = set()
    for lineno, raw in enumerate(content.splitlines(), 1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        if len(parts) != 2 or not is_valid_name(parts[0]):
            raise ValidationError(f"快照格式错误 {source}:{lineno}: {raw!r}")
        if parts[0] in seen:
            raise ValidationError(f"快照中仓库重复 {source}:{lineno}: {parts[0]}")
        seen.add(parts[0])
        entries.append(ReleaseEntry(repo=parts[0], version=parts[1]))
    return entries


def format_release(entries: list[ReleaseEntry]) -> str:
    return "".join(f"{e.to_line()}\n" for e in entries)


class ReleaseManager:
    """发布快照管理器"""

    def __init__(
        self,
        releases_dir: Path,
        store: MetadataStore,
        dispatcher: MultiRepoDispatcher,
        orchestrator: CloneOrchestrator,
        repos: RepoService,
    ) -> None:
        self.releases_dir = Path(releases_dir)
        self.store = store
        self.dispatcher = dispatcher
        self.orchestrator = orchestrator
        self.repos = repos

    # ---- 定位 / 读取 ----

    def resolve(self, name_or_path: str, *, must_exist: bool = True) -> Path:
        """快照名 -> <releases_dir>/<name>.release；显式存在的 .release 路径直接使用"""
        explicit = Path(name_or_path)
        if name_or_path.endswith(RELEASE_SUFFIX):
            if explicit.is_file():
                return explicit
            # 带目录部分的显式路径允许 update 新建
            if not must_exist and "/" in name_or_path:
                return explicit
        if not is_valid_name(name_or_path):
            raise ValidationError(f"快照名或路径无效: {name_or_path}")
        path = self.releases_dir / f"{validate_name(name_or_path)}{RELEASE_SUFFIX}"
        if must_exist and not path.is_file():
            raise PreconditionError(f"快照不存在: {name_or_path}")
        return path

    def show(self, name_or_path: str) -> str:
        return self.resolve(name_or_path).read_text(encoding="utf-8")

    def read(self, name_or_path: str) -> list[ReleaseEntry]:
        path = self.resolve(name_or_path)
        return parse_release(path.read_text(encoding="utf-8"), str(path))

    def list_releases(self) -> list[str]:
        if not self.releases_dir.is_dir():
            return []
        return sorted(p.name.removesuffix(RELEASE_SUFFIX)
                      for p in self.releases_dir.glob(f"*{RELEASE_SUFFIX}"))

    # ---- 创建 / 更新 ----

    def update(
        self,
        name_or_path: str,
        *,
        tag_mode: bool = False,
        carrier: str | None = None,
    ) -> list[VersionChange]:
        """按各仓库当前版本更新快照；快照不存在时从所有已克隆仓库创建"""
        self.store.require_meta_root()
        path = self.resolve(name_or_path, must_exist=False)

        if not path.is_file():
            entries = self._create_entries(tag_mode, carrier)
            atomic_write(path, format_release(entries))
            logger.info("快照已创建: %s（%d 个仓库）", path, len(entries))
            return []

        changes: list[VersionChange] = []
        entries = []
        for entry in parse_release(path.read_text(encoding="utf-8"), str(path)):
            if entry.is_self:
                entries.append(entry)
                continue
            current = self.dispatcher.current_version(entry.repo, tag_mode)
            if current != entry.version:
                changes.append(VersionChange(entry.repo, entry.version, current))
                logger.warning("%s: %s -> %s", entry.repo, entry.version, current)
            entries.append(ReleaseEntry(entry.repo, current))

        atomic_write(path, format_release(entries))
        logger.info("快照已更新: %s（%d 处变化）", path, len(changes))
        return changes

    def _create_entries(self, tag_mode: bool, carrier: str | None) -> list[ReleaseEntry]:
        if carrier is not None:
            self.store.require_cloned(validate_name(carrier))
        versions = dict(self.dispatcher.versions(tag_mode, exclude=[carrier] if carrier else []))
        return [
            ReleaseEntry(repo, SELF_VERSION if repo == carrier else versions[repo])
            for repo in self.store.cloned()
        ]

    # ---- 恢复 ----

    def clone(self, name_or_path: str, jobs: int | None = None) -> list[CloneResult]:
        """将叠加层恢复为快照状态

        1. 删除已克隆但不在快照中的仓库（不询问确认）
        2. 为每个非 "*" 条目生成 仓库=版本 请求
        3. 经协调器批量执行；"*" 仓库不受影响

        已执行的删除在后续失败时不回滚。
        """
        entries = self.read(name_or_path)
        wanted = {e.repo for e in entries}

        for name in self.store.cloned():
            if name not in wanted:
                logger.info("删除不在快照中的仓库: %s", name)
                self.repos.remove(name)

        requests = [f"{e.repo}={e.version}" for e in entries if not e.is_self]
        results = self.orchestrator.clone_batch(requests, jobs)
        failed = [r.name for r in results if not r.success]
        if failed:
            raise BatchError(f"快照恢复失败: {', '.join(failed)}", failed=failed)
        return results

    # ---- 删除 ----

    def remove(self, name_or_path: str) -> Path:
        path = self.resolve(name_or_path)
        path.unlink()
        logger.info("快照已删除: %s", path)
        return path
