"""核心数据模型

所有核心数据类集中定义，各模块统一从此处导入。
包含仓库名校验、仓库状态枚举、执行上下文及批量结果等领域实体。
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from gitover.core.exceptions import ValidationError

_NAME_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9._-]*$")
_WHITESPACE_RE = re.compile(r"\s")

# 快照中标记"承载快照文件的仓库"的版本占位符
SELF_VERSION = "*"

# 根目录自身的普通仓库（<root>/.git）在报告中的名称
ROOT_REPO = "."


def is_valid_name(name: str) -> bool:
    return bool(_NAME_RE.match(name))


def validate_name(name: str) -> str:
    """校验仓库名：字母、数字、. - _，且不能以 . 或 - 开头"""
    if not is_valid_name(name):
        raise ValidationError(f"仓库名不合法: {name!r}")
    return name


def validate_token(value: str, what: str) -> str:
    """校验 origin 等记录值：非空且不含空白字符"""
    if not value or _WHITESPACE_RE.search(value):
        raise ValidationError(f"{what} 不能为空或包含空白字符: {value!r}")
    return value


def is_url(token: str) -> bool:
    """含 scheme 分隔符即视为 URL"""
    return "://" in token


# =========================================================================
# 仓库状态 / 上下文
# =========================================================================


class RepoState(Enum):
    """仓库状态，每次操作只推导一次"""

    UNKNOWN = "unknown"        # 既无 origin 记录也无元数据目录
    REGISTERED = "registered"  # 有 origin 记录，未克隆
    CLONED = "cloned"          # 元数据目录存在


@dataclass(frozen=True)
class RepoContext:
    """一次 VCS 调用的显式上下文：仓库名 + 私有元数据目录 + 共享工作树"""

    name: str
    git_dir: Path
    work_tree: Path


# =========================================================================
# 克隆 / 检出
# =========================================================================


@dataclass(frozen=True)
class RepoSpecifier:
    """解析后的仓库描述符：[origin/]name[=version] 或 URL[=version]"""

    name: str
    origin: str = ""
    url: str = ""
    version: str = ""

    def __str__(self) -> str:
        head = self.url or (f"{self.origin}/{self.name}" if self.origin else self.name)
        return f"{head}={self.version}" if self.version else head


@dataclass
class ResolvedSpec:
    """解析完成的克隆/更新请求"""

    spec: RepoSpecifier
    state: RepoState
    origin: str
    url: str
    origin_changed: bool = False

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def version(self) -> str:
        return self.spec.version


@dataclass
class CloneResult:
    """单个仓库克隆/更新的执行结果"""

    name: str
    status: str  # "cloned", "updated", "unchanged", "failed"
    version: str = ""
    message: str = ""
    duration: float = 0.0  # 秒

    @property
    def success(self) -> bool:
        return self.status != "failed"


@dataclass
class DispatchResult:
    """多仓库命令分发中单个仓库的结果"""

    name: str
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


# =========================================================================
# 发布快照
# =========================================================================


@dataclass(frozen=True)
class ReleaseEntry:
    """快照中的一行：仓库名 + 版本"""

    repo: str
    version: str

    @property
    def is_self(self) -> bool:
        return self.version == SELF_VERSION

    def to_line(self) -> str:
        return f"{self.repo} {self.version}"


@dataclass(frozen=True)
class VersionChange:
    """快照更新时的版本变化"""

    repo: str
    old: str
    new: str
