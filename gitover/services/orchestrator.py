"""克隆/检出协调器

职责：
- 解析仓库描述符 [origin/]name[=version] 或 URL[=version]
- 经注册表解析 origin 与拉取地址
- 首次克隆（失败时清理残留的元数据目录）或增量 fetch + checkout
- 有界并行的批量执行，单个仓库失败相互隔离

单个仓库内的步骤严格顺序执行：
    创建元数据目录 -> 登记远端 -> fetch -> checkout -> 确保 exclude -> 更新注册表
"""

from __future__ import annotations

import logging
import time
from typing import IO, Iterable

from gitover.core.exceptions import GitoverError, ValidationError
from gitover.core.models import (
    CloneResult,
    RepoContext,
    RepoSpecifier,
    RepoState,
    ResolvedSpec,
    is_url,
    validate_name,
    validate_token,
)
from gitover.core.registry import RepoRegistry
from gitover.core.scheduler import Scheduler
from gitover.core.store import MetadataStore
from gitover.core.vcs import VcsClient

logger = logging.getLogger(__name__)


def parse_specifier(text: str) -> RepoSpecifier:
    """解析仓库描述符"""
    validate_token(text, "仓库描述符")
    head, _, version = text.partition("=")
    if not head:
        raise ValidationError(f"仓库描述符缺少仓库名: {text!r}")

    if is_url(head):
        name = head.rstrip("/").rsplit("/", 1)[-1].removesuffix(".git")
        return RepoSpecifier(name=validate_name(name), url=head, version=version)

    origin, sep, name = head.rpartition("/")
    if sep and not origin:
        raise ValidationError(f"仓库描述符 origin 为空: {text!r}")
    return RepoSpecifier(name=validate_name(name), origin=origin, version=version)


def read_specifiers(stream: IO[str]) -> list[str]:
    """按行读取仓库描述符，忽略空行与 # 注释"""
    result: list[str] = []
    for line in stream:
        line = line.strip()
        if line and not line.startswith("#"):
            result.append(line)
    return result


class CloneOrchestrator:
    """克隆/检出协调器"""

    def __init__(
        self,
        registry: RepoRegistry,
        store: MetadataStore,
        vcs: VcsClient,
        *,
        default_branch: str = "master",
        max_workers: int = 1,
    ) -> None:
        self.registry = registry
        self.store = store
        self.vcs = vcs
        self.default_branch = default_branch
        self.max_workers = max_workers

    # ---- 解析 ----

    def resolve(self, spec: RepoSpecifier) -> ResolvedSpec:
        """确定 origin 与拉取地址，解析阶段不修改文件系统"""
        state = self.store.state(spec.name, self.registry.list_known())
        registered = self.registry.get_origin(spec.name)
        explicit = spec.url or spec.origin

        if state is RepoState.CLONED:
            origin = explicit or registered or ""
            changed = bool(explicit and registered and explicit != registered)
            if changed:
                logger.warning("[%s] origin 变更: %s -> %s", spec.name, registered, explicit)
            url = self._fetch_url(spec, origin) if changed else ""
            return ResolvedSpec(spec=spec, state=state, origin=origin, url=url,
                                origin_changed=changed)

        origin = explicit or registered
        if not origin:
            raise ValidationError(
                f"仓库 {spec.name} 没有已知的 origin，请使用 <origin>/{spec.name} 或完整 URL"
            )
        return ResolvedSpec(spec=spec, state=state, origin=origin,
                            url=self._fetch_url(spec, origin))

    def _fetch_url(self, spec: RepoSpecifier, origin: str) -> str:
        if spec.url:
            return spec.url
        baseurl = self.registry.get_baseurl(origin)
        if baseurl:
            return f"{baseurl}{spec.name}"
        if is_url(origin):
            return origin
        raise ValidationError(
            f"无法确定 {spec.name} 的拉取地址: origin {origin!r} 没有登记 base URL 且不是 URL。"
            f"请执行 gitover baseurl set {origin} <url/>"
        )

    # ---- 单个仓库 ----

    def clone(self, text: str) -> CloneResult:
        """克隆或更新单个仓库，失败以异常抛出"""
        spec = parse_specifier(text)
        resolved = self.resolve(spec)
        if resolved.state is RepoState.CLONED:
            status = self._update(resolved)
        else:
            status = self._clone(resolved)
        self._register(resolved)
        return CloneResult(name=spec.name, status=status, version=spec.version)

    def _update(self, resolved: ResolvedSpec) -> str:
        ctx = self.store.context(resolved.name)
        version = resolved.version

        if version and not resolved.origin_changed and self._at_version(ctx, version):
            logger.info("[%s] 已处于 %s，跳过", ctx.name, version)
            return "unchanged"

        if resolved.origin_changed:
            self.vcs.set_remote_url(ctx, resolved.url)
        self.vcs.fetch(ctx)

        if version:
            self.vcs.checkout(ctx, version)
            logger.info("[%s] 已检出 %s", ctx.name, version)
            return "updated"

        branch = self.vcs.remote_default_branch(ctx)
        if branch is None:
            logger.info("[%s] 远端为空，无需更新", ctx.name)
            return "unchanged"
        self.vcs.checkout(ctx, branch)
        self.vcs.merge_ff_only(ctx, f"{self.vcs.remote}/{branch}")
        logger.info("[%s] 已快进到 %s/%s", ctx.name, self.vcs.remote, branch)
        return "updated"

    def _at_version(self, ctx: RepoContext, version: str) -> bool:
        head = self.vcs.resolve_commit(ctx, "HEAD")
        return head is not None and head == self.vcs.resolve_commit(ctx, version)

    def _clone(self, resolved: ResolvedSpec) -> str:
        name = resolved.name
        ctx = self.store.context(name)
        exclude_existed = self.store.exclude_file(name).exists()

        logger.info("[%s] 克隆 %s", name, resolved.url)
        try:
            self.store.init(name)
            self.vcs.remote_add(ctx, resolved.url)
            self.vcs.fetch(ctx)
        except (GitoverError, OSError):
            # 删除本次创建的元数据目录；预先存在的 exclude 文件保留
            self.store.destroy(name, remove_exclude=not exclude_existed)
            logger.error("[%s] 克隆失败，已清理元数据目录", name)
            raise

        branch = self.vcs.remote_default_branch(ctx)
        if branch is None:
            self.vcs.set_head(ctx, self.default_branch)
            logger.info("[%s] 远端为空，已创建本地分支 %s", name, self.default_branch)
        elif resolved.version:
            self.vcs.branch_track(ctx, branch, f"{self.vcs.remote}/{branch}")
            self.vcs.checkout(ctx, resolved.version)
        else:
            self.vcs.checkout_branch(ctx, branch, f"{self.vcs.remote}/{branch}")

        # 检出内容中的 exclude 文件优先于默认内容
        self.store.ensure_exclude(name)
        logger.info("[%s] 克隆完成", name)
        return "cloned"

    def _register(self, resolved: ResolvedSpec) -> None:
        if not resolved.origin:
            return
        if self.registry.get_origin(resolved.name) != resolved.origin:
            self.registry.set_origin(resolved.name, resolved.origin)

    # ---- 批量 ----

    def _clone_isolated(self, text: str) -> CloneResult:
        start = time.monotonic()
        try:
            result = self.clone(text)
        except (GitoverError, OSError) as e:
            try:
                name = parse_specifier(text).name
            except ValidationError:
                name = text
            logger.error("[%s] %s", name, e, extra={"repo": name})
            return CloneResult(name=name, status="failed", message=str(e),
                               duration=time.monotonic() - start)
        result.duration = time.monotonic() - start
        return result

    def clone_batch(self, specs: Iterable[str], jobs: int | None = None) -> list[CloneResult]:
        """批量克隆/更新，结果与输入顺序一致"""
        items = list(specs)
        scheduler = Scheduler(jobs or self.max_workers)
        results = scheduler.run_all(items, self._clone_isolated)
        failed = sum(1 for r in results if not r.success)
        logger.info("批量完成: %d 个仓库, 失败 %d", len(results), failed)
        return results

    def clone_all(self, jobs: int | None = None) -> list[CloneResult]:
        """克隆或更新所有已知仓库"""
        names = sorted(self.registry.list_known() | set(self.store.cloned()))
        return self.clone_batch(names, jobs)
