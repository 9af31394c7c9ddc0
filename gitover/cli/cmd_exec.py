"""CLI — 在多个仓库上执行任意 VCS 子命令，查询当前版本"""

from __future__ import annotations

import click

from gitover.cli import _svc
from gitover.core.exceptions import BatchError


def register(group: click.Group) -> None:
    group.add_command(exec_cmd)
    group.add_command(versions_cmd)


@click.command(name="exec", context_settings={"ignore_unknown_options": True})
@click.option("--jobs", "-j", type=click.IntRange(min=1), default=None, help="并行数")
@click.argument("targets")
@click.argument("args", nargs=-1, required=True, type=click.UNPROCESSED)
def exec_cmd(jobs: int | None, targets: str, args: tuple[str, ...]) -> None:
    """在 TARGETS（all / 仓库名 / 逗号分隔）上执行 VCS 子命令"""
    results = _svc().dispatcher.run(targets, list(args), jobs)
    for r in results:
        click.echo(f"== {r.name} ==")
        if r.stdout:
            click.echo(r.stdout, nl=not r.stdout.endswith("\n"))
        if r.stderr:
            click.echo(r.stderr, nl=not r.stderr.endswith("\n"), err=True)
    failed = [r.name for r in results if not r.success]
    if failed:
        raise BatchError(f"命令在 {len(failed)} 个仓库失败: {', '.join(failed)}", failed=failed)


@click.command(name="versions")
@click.option("--tag", "tag_mode", is_flag=True, help="输出可达的最近 tag")
def versions_cmd(tag_mode: bool) -> None:
    """输出所有已克隆仓库的当前版本"""
    for name, version in _svc().dispatcher.versions(tag_mode):
        click.echo(f"{name} {version}")
