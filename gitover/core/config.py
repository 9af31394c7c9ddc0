"""集中配置管理

替代各模块散落的默认常量，提供统一的配置入口。
支持从 YAML 文件加载 + 编程式覆盖。配置文件位于 <root>/.gitover/config.yml。
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path

import yaml

from gitover.core.exceptions import ConfigError
from gitover.utils.yaml_io import load_yaml, save_yaml

logger = logging.getLogger(__name__)

CONFIG_FILE = ".gitover/config.yml"
ROOT_ENV = "GITOVER_ROOT"


@dataclass
class Config:
    """全局配置"""

    # 目录
    root: str = "."
    meta_dir: str = ".gitover/repos"
    releases_dir: str = ""

    # 执行
    max_workers: int = 1
    command_timeout: int | None = None

    # VCS
    vcs_binary: str = "git"
    remote_name: str = "origin"
    default_branch: str = "master"

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    @property
    def root_path(self) -> Path:
        return Path(self.root).resolve()

    @property
    def meta_root(self) -> Path:
        return self.root_path / self.meta_dir

    @property
    def releases_path(self) -> Path:
        if not self.releases_dir:
            return self.meta_root
        return self.root_path / self.releases_dir

    @classmethod
    def from_file(cls, path: str | Path, *, root: str = ".") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        try:
            data = load_yaml(path)
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigError(f"配置文件无效: {path}: {e}") from e
        known = {f.name for f in cls.__dataclass_fields__.values()} - {"root", "extra"}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        try:
            cfg = cls(root=root, **matched)
        except TypeError as e:
            raise ConfigError(f"配置项无效: {path}: {e}") from e
        if not isinstance(cfg.max_workers, int) or cfg.max_workers < 1:
            raise ConfigError(f"max_workers 必须为正整数: {cfg.max_workers!r}")
        # 元数据目录必须位于工作树根目录下三层（<root>/<a>/<b>/<name>）
        if len(Path(cfg.meta_dir).parts) != 2 or Path(cfg.meta_dir).is_absolute():
            raise ConfigError(f"meta_dir 必须是两级相对路径: {cfg.meta_dir!r}")
        cfg.extra = extra
        return cfg

    @classmethod
    def for_root(cls, root: str = "") -> Config:
        """按 --root / GITOVER_ROOT / 当前目录 的顺序确定根目录并加载配置"""
        root = root or os.getenv(ROOT_ENV, "") or "."
        return cls.from_file(Path(root) / CONFIG_FILE, root=root)

    def to_dict(self) -> dict:
        data = asdict(self)
        data.pop("root")
        extra = data.pop("extra")
        return {**data, **extra}

    def save(self) -> Path:
        """写回 <root>/.gitover/config.yml"""
        path = self.root_path / CONFIG_FILE
        save_yaml(path, self.to_dict())
        logger.info("配置已保存: %s", path)
        return path
