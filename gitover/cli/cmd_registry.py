"""CLI — 注册表命令（origin / baseurl 的查询、登记、删除）"""

from __future__ import annotations

import click

from gitover.cli import _svc


def register(group: click.Group) -> None:
    group.add_command(origin_group)
    group.add_command(baseurl_group)


# ---- origin ----

@click.group(name="origin")
def origin_group() -> None:
    """仓库 origin 管理"""


@origin_group.command(name="get")
@click.argument("name")
def origin_get(name: str) -> None:
    """查询仓库登记的 origin"""
    value = _svc().registry.get_origin(name)
    if value is None:
        raise SystemExit(1)
    click.echo(value)


@origin_group.command(name="set")
@click.argument("name")
@click.argument("origin")
def origin_set(name: str, origin: str) -> None:
    """登记仓库的 origin（ORIGIN 为 - 时删除）"""
    if _svc().registry.set_origin(name, origin) is None:
        click.echo(f"origin 已删除: {name}")
    else:
        click.echo(f"origin 已登记: {name} -> {origin}")


@origin_group.command(name="delete")
@click.argument("name")
def origin_delete(name: str) -> None:
    """删除仓库的 origin 记录"""
    if not _svc().registry.delete_origin(name):
        click.echo(f"没有 origin 记录: {name}", err=True)
        raise SystemExit(1)
    click.echo(f"origin 已删除: {name}")


# ---- base URL ----

@click.group(name="baseurl")
def baseurl_group() -> None:
    """origin 的 base URL 管理"""


@baseurl_group.command(name="list")
def baseurl_list() -> None:
    """列出所有已登记的 base URL"""
    for origin, url in _svc().registry.list_baseurls().items():
        click.echo(f"{origin} {url}")


@baseurl_group.command(name="get")
@click.argument("origin")
def baseurl_get(origin: str) -> None:
    """查询 origin 的 base URL"""
    value = _svc().registry.get_baseurl(origin)
    if value is None:
        raise SystemExit(1)
    click.echo(value)


@baseurl_group.command(name="set")
@click.argument("origin")
@click.argument("url")
def baseurl_set(origin: str, url: str) -> None:
    """登记 origin 的 base URL（必须以 / 结尾；URL 为 - 时删除）"""
    if _svc().registry.set_baseurl(origin, url) is None:
        click.echo(f"base URL 已删除: {origin}")
    else:
        click.echo(f"base URL 已登记: {origin} -> {url}")


@baseurl_group.command(name="delete")
@click.argument("origin")
def baseurl_delete(origin: str) -> None:
    """删除 origin 的 base URL 记录"""
    if not _svc().registry.delete_baseurl(origin):
        click.echo(f"没有 base URL 记录: {origin}", err=True)
        raise SystemExit(1)
    click.echo(f"base URL 已删除: {origin}")
