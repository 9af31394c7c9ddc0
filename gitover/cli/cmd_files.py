"""CLI — 文件查询（跟踪 / 未跟踪 / 重复跟踪 / 已修改 / 未推送 / 归属）"""

from __future__ import annotations

import click

from gitover.cli import _svc


def register(group: click.Group) -> None:
    group.add_command(files_group)
    group.add_command(owner)


@click.group(name="files")
def files_group() -> None:
    """叠加层文件查询"""


@files_group.command(name="tracked")
@click.option("--dupes", is_flag=True, help="只列出被多个仓库跟踪的路径")
def files_tracked(dupes: bool) -> None:
    """列出所有仓库跟踪的文件"""
    for path in _svc().overlay.tracked_files(dedupe=dupes):
        click.echo(path)


@files_group.command(name="untracked")
def files_untracked() -> None:
    """列出不属于任何仓库的文件"""
    for path in _svc().overlay.untracked_files():
        click.echo(path)


@files_group.command(name="double-tracked")
def files_double_tracked() -> None:
    """列出重复跟踪的文件及其全部归属仓库"""
    for repo, path in _svc().overlay.double_tracked_report():
        click.echo(f"{repo}: {path}")


@files_group.command(name="modified")
def files_modified() -> None:
    """列出各仓库中已修改的文件"""
    for repo, line in _svc().overlay.modified_files():
        click.echo(f"{repo}: {line}")


@files_group.command(name="unpushed")
def files_unpushed() -> None:
    """列出有未推送提交的仓库"""
    for repo, count in _svc().overlay.unpushed():
        click.echo(f"{repo}: {count}")


@click.command()
@click.argument("path")
def owner(path: str) -> None:
    """查询跟踪指定文件的仓库"""
    name = _svc().overlay.owner_of(path)
    if name is None:
        click.echo(f"未被跟踪: {path}", err=True)
        raise SystemExit(1)
    click.echo(name)
