"""文件读写工具

- 元数据记录（.origin / .baseurl / .exclude / .release）按单行或整文件原子替换
- 配置文件 .gitover/config.yml 用 YAML 读写，顶层必须是映射
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# 配置文件只有少量标量项，超过此大小视为误指向了其他文件
MAX_CONFIG_SIZE = 1024 * 1024


def atomic_write(path: Path, content: str) -> None:
    """同目录临时文件 + os.replace，读者只会看到旧内容或新内容"""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", dir=path.parent,
        prefix=f".{path.name}.", suffix=".tmp", delete=False,
    )
    try:
        with tmp:
            tmp.write(content)
        os.replace(tmp.name, path)
    except Exception:
        with contextlib.suppress(OSError):
            os.unlink(tmp.name)
        raise


def read_first_line(path: Path) -> str | None:
    """返回首行（去除首尾空白）；文件不存在或首行为空时返回 None"""
    if not path.is_file():
        return None
    with open(path, encoding="utf-8") as f:
        line = f.readline().strip()
    return line or None


def load_yaml(path: str | Path) -> dict[str, Any]:
    """读取 YAML 映射

    文件不存在或为空时返回空字典。

    异常:
        yaml.YAMLError: 语法错误
        ValueError: 文件过大，或顶层不是映射
    """
    p = Path(path)
    if not p.is_file():
        return {}

    size = p.stat().st_size
    if size > MAX_CONFIG_SIZE:
        raise ValueError(f"文件过大: {p} ({size} 字节，上限 {MAX_CONFIG_SIZE})")

    with open(p, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error("YAML 解析失败: %s: %s", p, e)
            raise

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"顶层必须是映射，实际为 {type(data).__name__}: {p}")
    return data


def save_yaml(path: str | Path, data: dict[str, Any]) -> None:
    text = yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)
    atomic_write(Path(path), text)
