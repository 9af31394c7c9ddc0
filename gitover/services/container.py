"""服务容器 — 统一依赖注入

所有服务和核心组件通过容器获取，同一容器内的实例共享状态。
容器持有显式的 Config 与命令执行器，不依赖任何进程级全局状态。

依赖关系图（→ 表示依赖）:
  store        → vcs
  overlay      → store, vcs
  dispatcher   → store, vcs
  orchestrator → registry, store, vcs
  repos        → registry, store, vcs
  releases     → store, dispatcher, orchestrator, repos

用法:
    container = ServiceContainer(Config.for_root("/work"))
    container.orchestrator.clone_batch(["acme/util=v1.2.0"])

    # 测试中注入脚本化执行器
    container = ServiceContainer(cfg, executor=FakeExecutor())
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gitover.core.config import CONFIG_FILE, Config

if TYPE_CHECKING:
    from gitover.core.overlay import OverlayResolver
    from gitover.core.registry import RepoRegistry
    from gitover.core.store import MetadataStore
    from gitover.core.vcs import VcsClient
    from gitover.services.dispatch import MultiRepoDispatcher
    from gitover.services.orchestrator import CloneOrchestrator
    from gitover.services.release_service import ReleaseManager
    from gitover.services.repo_service import RepoService
    from gitover.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器"""

    def __init__(self, config: Config | None = None, executor: CommandExecutor | None = None) -> None:
        self._instances: dict[str, object] = {}
        self._config = config or Config.for_root()
        self._executor = executor

    @property
    def config(self) -> Config:
        return self._config

    # ---- 核心层 ----

    @property
    def vcs(self) -> VcsClient:
        if "vcs" not in self._instances:
            from gitover.core.vcs import VcsClient
            self._instances["vcs"] = VcsClient(
                self._executor,
                binary=self._config.vcs_binary,
                remote=self._config.remote_name,
                timeout=self._config.command_timeout,
            )
        return self._instances["vcs"]  # type: ignore[return-value]

    @property
    def registry(self) -> RepoRegistry:
        if "registry" not in self._instances:
            from gitover.core.registry import RepoRegistry
            self._instances["registry"] = RepoRegistry(self._config.meta_root)
        return self._instances["registry"]  # type: ignore[return-value]

    @property
    def store(self) -> MetadataStore:
        if "store" not in self._instances:
            from gitover.core.store import MetadataStore
            self._instances["store"] = MetadataStore(self._config.meta_root, self.vcs)
        return self._instances["store"]  # type: ignore[return-value]

    @property
    def overlay(self) -> OverlayResolver:
        if "overlay" not in self._instances:
            from gitover.core.overlay import OverlayResolver
            self._instances["overlay"] = OverlayResolver(
                self.store, self.vcs,
                ignore=(self._config.root_path / CONFIG_FILE,),
            )
        return self._instances["overlay"]  # type: ignore[return-value]

    # ---- 服务层 ----

    @property
    def dispatcher(self) -> MultiRepoDispatcher:
        if "dispatcher" not in self._instances:
            from gitover.services.dispatch import MultiRepoDispatcher
            self._instances["dispatcher"] = MultiRepoDispatcher(
                self.store, self.vcs, max_workers=self._config.max_workers,
            )
        return self._instances["dispatcher"]  # type: ignore[return-value]

    @property
    def orchestrator(self) -> CloneOrchestrator:
        if "orchestrator" not in self._instances:
            from gitover.services.orchestrator import CloneOrchestrator
            self._instances["orchestrator"] = CloneOrchestrator(
                self.registry, self.store, self.vcs,
                default_branch=self._config.default_branch,
                max_workers=self._config.max_workers,
            )
        return self._instances["orchestrator"]  # type: ignore[return-value]

    @property
    def repos(self) -> RepoService:
        if "repos" not in self._instances:
            from gitover.services.repo_service import RepoService
            self._instances["repos"] = RepoService(
                self.registry, self.store, self.vcs,
                default_branch=self._config.default_branch,
            )
        return self._instances["repos"]  # type: ignore[return-value]

    @property
    def releases(self) -> ReleaseManager:
        if "releases" not in self._instances:
            from gitover.services.release_service import ReleaseManager
            self._instances["releases"] = ReleaseManager(
                self._config.releases_path, self.store,
                self.dispatcher, self.orchestrator, self.repos,
            )
        return self._instances["releases"]  # type: ignore[return-value]
