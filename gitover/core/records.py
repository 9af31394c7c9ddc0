"""元数据记录存储基类 — 平铺的键值文件

元数据目录下每个键对应一个文件 <key><suffix>，文件内容为单行值。
所有记录类（origin、baseurl）共享相同的读取、原子写入、删除、枚举逻辑，
子类只需指定 suffix。

各键相互独立，写入为单值覆盖，不提供跨键事务。
"""

from __future__ import annotations

import logging
from pathlib import Path

from gitover.utils.yaml_io import atomic_write, read_first_line

logger = logging.getLogger(__name__)


class RecordStore:
    """键值文件存储基类

    子类用法:
        class OriginRecords(RecordStore):
            suffix = ".origin"
    """

    suffix: str = ".record"

    def __init__(self, meta_root: Path) -> None:
        self.meta_root = Path(meta_root)

    def _path(self, key: str) -> Path:
        return self.meta_root / f"{key}{self.suffix}"

    def _get_raw(self, key: str) -> str | None:
        """读取首行值，记录不存在或为空时返回 None"""
        return read_first_line(self._path(key))

    def _put(self, key: str, value: str) -> str:
        """写入记录（原子覆盖）"""
        atomic_write(self._path(key), f"{value}\n")
        return value

    def _remove(self, key: str) -> bool:
        path = self._path(key)
        if not path.is_file():
            return False
        path.unlink()
        return True

    def _keys(self) -> list[str]:
        """列出所有键（按名称排序）"""
        if not self.meta_root.is_dir():
            return []
        return sorted(
            p.name[: -len(self.suffix)]
            for p in self.meta_root.glob(f"*{self.suffix}")
            if p.is_file()
        )
