"""CLI — 仓库命令（list, setup, init, clone, remove, convert）"""

from __future__ import annotations

from pathlib import Path
from typing import IO

import click

from gitover.cli import _svc
from gitover.core.exceptions import BatchError, ValidationError
from gitover.core.models import CloneResult
from gitover.services.orchestrator import read_specifiers


def register(group: click.Group) -> None:
    group.add_command(repo_list)
    group.add_command(setup)
    group.add_command(repo_init)
    group.add_command(clone)
    group.add_command(remove)
    group.add_command(convert)


def _echo_results(results: list[CloneResult]) -> None:
    for r in results:
        line = f"  {r.name:24s} {r.status:9s} {r.version or '-'}"
        if r.message:
            line += f"  {r.message}"
        click.echo(line, err=not r.success)


@click.command(name="list")
@click.option("--cloned", "which", flag_value="cloned", help="只列出已克隆仓库")
@click.option("--uncloned", "which", flag_value="uncloned", help="只列出未克隆仓库")
@click.option("--known", "which", flag_value="known", default=True, help="列出所有已知仓库")
def repo_list(which: str) -> None:
    """列出仓库"""
    repos = _svc().repos
    names = {
        "known": repos.list_known,
        "cloned": repos.list_cloned,
        "uncloned": repos.list_uncloned,
    }[which]()
    for name in names:
        click.echo(name)


@click.command()
def setup() -> None:
    """在根目录下创建元数据目录和默认配置文件"""
    cfg = _svc().config
    cfg.meta_root.mkdir(parents=True, exist_ok=True)
    path = cfg.save()
    click.echo(f"已初始化: {cfg.meta_root}（配置: {path}）")


@click.command(name="init")
@click.argument("name")
@click.option("--no-exclude", is_flag=True, help="不安装默认 exclude 文件（由检出内容提供）")
def repo_init(name: str, no_exclude: bool) -> None:
    """在叠加层中新建空仓库"""
    _svc().repos.init(name, install_exclude=not no_exclude)
    click.echo(f"仓库已创建: {name}")


@click.command()
@click.argument("specs", nargs=-1)
@click.option("--all", "all_repos", is_flag=True, help="克隆/更新所有已知仓库")
@click.option("--file", "-f", "spec_file", type=click.File("r"), default=None,
              help="从文件（- 为标准输入）按行读取仓库描述符")
@click.option("--jobs", "-j", type=click.IntRange(min=1), default=None, help="并行数")
def clone(specs: tuple[str, ...], all_repos: bool, spec_file: IO[str] | None,
          jobs: int | None) -> None:
    """克隆或更新仓库：[origin/]name[=version] 或 URL[=version]"""
    orchestrator = _svc().orchestrator
    items = list(specs)
    if spec_file is not None:
        items += read_specifiers(spec_file)

    if all_repos:
        if items:
            raise ValidationError("--all 不能与仓库描述符同时使用")
        results = orchestrator.clone_all(jobs)
    elif not items:
        raise ValidationError("未指定仓库描述符")
    else:
        results = orchestrator.clone_batch(items, jobs)

    _echo_results(results)
    failed = [r.name for r in results if not r.success]
    if failed:
        raise BatchError(f"{len(failed)} 个仓库失败: {', '.join(failed)}", failed=failed)


@click.command()
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="不询问确认")
def remove(name: str, yes: bool) -> None:
    """删除仓库（工作树中的跟踪文件和元数据目录）"""
    if not yes:
        click.confirm(f"确认删除仓库 {name} 及其跟踪的全部文件?", abort=True)
    count = _svc().repos.remove(name)
    click.echo(f"仓库已删除: {name}（{count} 个文件）")


@click.command()
@click.argument("name")
@click.option("--source", type=click.Path(exists=True, file_okay=False), default=None,
              help="待转换的 git 目录（默认 <root>/.git）")
def convert(name: str, source: str | None) -> None:
    """将普通仓库原地转换为叠加层成员"""
    origin = _svc().repos.convert(name, Path(source) if source else None)
    click.echo(f"已转换: {name}" + (f"（origin: {origin}）" if origin else ""))
