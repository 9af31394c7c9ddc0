"""仓库注册表

职责：
- 仓库名 -> origin 的映射（<name>.origin）
- origin -> base URL 的映射（<origin>.baseurl）
- 列出所有已知仓库（有 origin 记录即视为已知，与是否克隆无关）

两类映射相互独立：仓库可以引用没有 base URL 的 origin，
此时 origin 本身必须是 URL。
"""

from __future__ import annotations

import logging
from pathlib import Path

from gitover.core.exceptions import ValidationError
from gitover.core.models import is_url, validate_name, validate_token
from gitover.core.records import RecordStore

logger = logging.getLogger(__name__)

# CLI 约定：值为 "-" 表示删除记录
DELETE_SENTINEL = "-"


class OriginRecords(RecordStore):
    suffix = ".origin"


class BaseUrlRecords(RecordStore):
    suffix = ".baseurl"


class RepoRegistry:
    """仓库注册表"""

    def __init__(self, meta_root: Path) -> None:
        self.meta_root = Path(meta_root)
        self._origins = OriginRecords(self.meta_root)
        self._baseurls = BaseUrlRecords(self.meta_root)

    # ---- origin ----

    def get_origin(self, name: str) -> str | None:
        validate_name(name)
        return self._origins._get_raw(name)

    def set_origin(self, name: str, origin: str) -> str | None:
        """注册仓库的 origin，值为 "-" 时删除记录"""
        validate_name(name)
        validate_token(origin, "origin")
        if origin == DELETE_SENTINEL:
            self.delete_origin(name)
            return None
        self._origins._put(name, origin)
        logger.info("origin 已登记: %s -> %s", name, origin)
        return origin

    def delete_origin(self, name: str) -> bool:
        validate_name(name)
        if not self._origins._remove(name):
            return False
        logger.info("origin 已删除: %s", name)
        return True

    # ---- base URL ----

    def get_baseurl(self, origin: str) -> str | None:
        validate_token(origin, "origin")
        if is_url(origin):
            return None
        self._check_origin_key(origin)
        return self._baseurls._get_raw(origin)

    def set_baseurl(self, origin: str, url: str) -> str | None:
        """登记 origin 的 base URL（必须以 / 结尾），值为 "-" 时删除记录"""
        validate_token(origin, "origin")
        validate_token(url, "base URL")
        self._check_origin_key(origin)
        if url == DELETE_SENTINEL:
            self.delete_baseurl(origin)
            return None
        if not url.endswith("/"):
            raise ValidationError(f"base URL 必须以 / 结尾: {url}")
        self._baseurls._put(origin, url)
        logger.info("base URL 已登记: %s -> %s", origin, url)
        return url

    def delete_baseurl(self, origin: str) -> bool:
        validate_token(origin, "origin")
        self._check_origin_key(origin)
        if not self._baseurls._remove(origin):
            return False
        logger.info("base URL 已删除: %s", origin)
        return True

    # ---- 枚举 ----

    def list_known(self) -> set[str]:
        """所有登记了 origin 的仓库名"""
        return set(self._origins._keys())

    def list_baseurls(self) -> dict[str, str]:
        result: dict[str, str] = {}
        for origin in self._baseurls._keys():
            url = self._baseurls._get_raw(origin)
            if url:
                result[origin] = url
        return result

    @staticmethod
    def _check_origin_key(origin: str) -> None:
        """作为文件名使用的 origin 不能含路径分隔符"""
        if "/" in origin or origin.startswith("."):
            raise ValidationError(f"origin 不能含 / 或以 . 开头: {origin}")
