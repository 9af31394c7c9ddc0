"""gitover 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
业务异常统一在 main group 中转换为错误提示和非零退出码。
"""

from __future__ import annotations

import sys
from typing import Any

import click

from gitover import __version__
from gitover.core.config import Config
from gitover.core.exceptions import GitoverError
from gitover.services.container import ServiceContainer
from gitover.utils.logger import level_from_verbosity, setup_logging


def _svc() -> ServiceContainer:
    """获取当前命令的服务容器"""
    return click.get_current_context().find_object(ServiceContainer)


class _MainGroup(click.Group):
    """将 GitoverError 映射为 stderr 提示 + 退出码"""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except GitoverError as e:
            click.echo(f"错误: {e}", err=True)
            for detail in getattr(e, "details", []):
                click.echo(f"  - {detail}", err=True)
            sys.exit(e.exit_code)


@click.group(cls=_MainGroup)
@click.version_option(version=__version__)
@click.option("--root", "-C", default="", envvar="GITOVER_ROOT",
              help="共享工作树根目录（默认当前目录）")
@click.option("--verbose", "-v", count=True, help="-v 输出 INFO，-vv 输出 DEBUG")
@click.pass_context
def main(ctx: click.Context, root: str, verbose: int) -> None:
    """gitover - 多仓库共享工作树叠加管理"""
    setup_logging(level_from_verbosity(verbose))
    if ctx.obj is None:
        ctx.obj = ServiceContainer(Config.for_root(root))


# 注册各领域子命令
from gitover.cli.cmd_exec import register as _reg_exec  # noqa: E402
from gitover.cli.cmd_files import register as _reg_files  # noqa: E402
from gitover.cli.cmd_registry import register as _reg_registry  # noqa: E402
from gitover.cli.cmd_release import register as _reg_release  # noqa: E402
from gitover.cli.cmd_repos import register as _reg_repos  # noqa: E402

_reg_repos(main)
_reg_files(main)
_reg_registry(main)
_reg_release(main)
_reg_exec(main)
