"""批量调度器 - 有界并行执行

每个工作线程把一个单元（一个仓库）完整执行完毕后再取下一个。
单元之间相互隔离：任务函数负责把自身失败转换为结果对象，
调度器只保证并行度上限和结果顺序与输入一致。
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class Scheduler:
    """可配置并行度的调度器（默认 1，即顺序执行）"""

    def __init__(self, max_workers: int = 1) -> None:
        self.max_workers = max(1, max_workers)

    def run_all(self, items: Sequence[T], task: Callable[[T], R]) -> list[R]:
        """并行控制下执行所有单元，返回结果与输入顺序一致"""
        if self.max_workers == 1 or len(items) <= 1:
            return [task(item) for item in items]

        workers = min(self.max_workers, len(items))
        logger.debug("并行执行 %d 个单元 (workers=%d)", len(items), workers)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(task, item) for item in items]
            return [future.result() for future in futures]
