"""统一异常体系

所有业务异常继承 GitoverError，替代散落的 ValueError / RuntimeError。
CLI 层据此输出友好提示，并按 exit_code 返回非零退出码。
"""

from __future__ import annotations


class GitoverError(Exception):
    """基础异常"""

    code: str = "UNKNOWN"
    exit_code: int = 1

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ValidationError(GitoverError):
    """用法错误：名称、origin、URL 或仓库描述符不合法"""

    code = "VALIDATION_ERROR"
    exit_code = 2

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class PreconditionError(GitoverError):
    """前置条件不满足：元数据目录缺失、仓库未克隆、快照不存在等"""

    code = "PRECONDITION_FAILED"
    exit_code = 3


class ExecutionError(GitoverError):
    """外部 VCS 命令以非零状态退出"""

    code = "EXECUTION_ERROR"
    exit_code = 4

    def __init__(self, message: str, *, cmd: list[str] | None = None,
                 returncode: int = 1, stderr: str = "") -> None:
        super().__init__(message)
        self.cmd = cmd or []
        self.returncode = returncode
        self.stderr = stderr


class BatchError(GitoverError):
    """批量操作中有单元失败"""

    code = "BATCH_FAILED"
    exit_code = 5

    def __init__(self, message: str, failed: list[str] | None = None) -> None:
        super().__init__(message)
        self.failed = failed or []


class ConfigError(GitoverError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"
    exit_code = 6
