"""外部命令执行 — VCS 客户端与子进程之间的唯一接缝

VcsClient 只依赖 CommandExecutor 协议；测试注入脚本化实现，
生产环境使用 LocalExecutor。执行器从不抛出命令失败，
退出码原样交给调用方判定。
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

# shell 约定的退出码
RC_NOT_FOUND = 127
RC_CANNOT_EXECUTE = 126
RC_TIMEOUT = 124


@dataclass
class CommandResult:
    """一次命令执行的退出码与输出"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0

    def lines(self) -> list[str]:
        """stdout 的非空行"""
        return [line for line in self.stdout.splitlines() if line.strip()]


class CommandExecutor(Protocol):
    """执行一条 argv 形式的命令"""

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        ...


class LocalExecutor:
    """在本机以子进程执行（不经过 shell）"""

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        logger.debug("执行: %s (cwd=%s)", " ".join(cmd), cwd)
        try:
            proc = subprocess.run(
                cmd, cwd=cwd, env=env, timeout=timeout,
                capture_output=True, text=True, check=False,
            )
        except FileNotFoundError as e:
            return CommandResult(RC_NOT_FOUND, "", str(e))
        except subprocess.TimeoutExpired:
            return CommandResult(RC_TIMEOUT, "", f"超时（{timeout}秒）: {cmd[0]}")
        except OSError as e:
            # 无执行权限、cwd 不可用等
            return CommandResult(RC_CANNOT_EXECUTE, "", str(e))
        return CommandResult(proc.returncode, proc.stdout, proc.stderr)

