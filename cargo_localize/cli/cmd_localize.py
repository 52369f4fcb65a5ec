"""CLI — 依赖本地化命令"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

import click

from cargo_localize.core.exceptions import LocalizeError
from cargo_localize.core.localizer import Localizer

T = TypeVar("T")


def register(group: click.Group) -> None:
    group.add_command(localize)
    group.add_command(plan)
    group.add_command(restore)


def _guard(action: Callable[[], T]) -> T:
    """把引擎异常转为单条诊断 + 非零退出码"""
    try:
        return action()
    except LocalizeError as exc:
        raise click.ClickException(f"[{exc.code}] {exc}") from exc


@click.command()
@click.argument("project_path", default=".", type=click.Path(file_okay=False))
@click.option("--third-party-dir", default=None, help="本地化目录名（默认 3rd-party）")
def localize(project_path: str, third_party_dir: str | None) -> None:
    """复制全部依赖到 3rd-party 目录并改写 Cargo.toml"""
    report = _guard(lambda: Localizer(project_path, third_party_dir=third_party_dir).run())
    for entry in report.vendored:
        status = "复制" if entry.package_id in report.copied else "已存在"
        click.echo(f"  {entry.package_id.name:30s} {entry.package_id.version:12s} [{status}] {entry.local_path}")
    if report.degraded:
        click.echo("未找到 Cargo.lock，仅本地化了直接依赖。")
    click.echo(f"改写依赖声明: {', '.join(report.rewritten) or '(无)'}")
    if report.backup_path:
        click.echo(f"清单备份: {report.backup_path}")
    click.echo(f"依赖已本地化: {len(report.vendored)} 个包")


@click.command()
@click.argument("project_path", default=".", type=click.Path(file_okay=False))
@click.option("--third-party-dir", default=None, help="本地化目录名（默认 3rd-party）")
def plan(project_path: str, third_party_dir: str | None) -> None:
    """列出将要本地化的包（只读，不修改任何文件）"""
    localizer = _guard(lambda: Localizer(project_path, third_party_dir=third_party_dir))
    result = _guard(localizer.plan)
    if not result.entries:
        click.echo("没有需要本地化的依赖。")
        return
    for entry in result.entries:
        dest = localizer.third_party_path / entry.package_id.dir_name
        marker = " (已存在)" if dest.exists() else ""
        click.echo(f"  {entry.package_id.name:30s} {entry.package_id.version:12s} {entry.source_path}{marker}")


@click.command()
@click.argument("project_path", default=".", type=click.Path(file_okay=False))
def restore(project_path: str) -> None:
    """用 Cargo.toml.bak 恢复清单"""
    path = _guard(lambda: Localizer(project_path).restore())
    click.echo(f"已恢复: {path}")
