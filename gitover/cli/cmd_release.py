"""CLI — 发布快照命令"""

from __future__ import annotations

import click

from gitover.cli import _svc


def register(group: click.Group) -> None:
    group.add_command(release_group)


@click.group(name="release")
def release_group() -> None:
    """发布快照管理"""


@release_group.command(name="list")
def release_list() -> None:
    """列出所有快照"""
    for name in _svc().releases.list_releases():
        click.echo(name)


@release_group.command(name="show")
@click.argument("name")
def release_show(name: str) -> None:
    """输出快照内容"""
    click.echo(_svc().releases.show(name), nl=False)


@release_group.command(name="update")
@click.argument("name")
@click.option("--tag", "tag_mode", is_flag=True, help="记录可达的最近 tag 而非精确版本")
@click.option("--carrier", default=None, help="新建快照时标记为 * 的承载仓库")
def release_update(name: str, tag_mode: bool, carrier: str | None) -> None:
    """按当前版本创建或更新快照"""
    changes = _svc().releases.update(name, tag_mode=tag_mode, carrier=carrier)
    for c in changes:
        click.echo(f"{c.repo}: {c.old} -> {c.new}", err=True)


@release_group.command(name="clone")
@click.argument("name")
@click.option("--jobs", "-j", type=click.IntRange(min=1), default=None, help="并行数")
def release_clone(name: str, jobs: int | None) -> None:
    """将叠加层恢复为快照状态"""
    results = _svc().releases.clone(name, jobs)
    for r in results:
        click.echo(f"  {r.name:24s} {r.status:9s} {r.version}")


@release_group.command(name="remove")
@click.argument("name")
def release_remove(name: str) -> None:
    """删除快照"""
    path = _svc().releases.remove(name)
    click.echo(f"快照已删除: {path}")
