"""CLI：包描述查询命令（describe / settings / configs / version）"""

from __future__ import annotations

import json
import os
from typing import Any

import click

from dubpkg.core.config import Config
from dubpkg.core.exceptions import DubPkgError
from dubpkg.core.package import Package
from dubpkg.core.platform import BuildPlatform


def register(group: click.Group) -> None:
    group.add_command(describe)
    group.add_command(settings)
    group.add_command(configs)
    group.add_command(version)


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _load(root: str, config_file: str) -> Package:
    try:
        cfg = Config.from_file(config_file)
        return Package.load(root, environ=os.environ, config=cfg)
    except DubPkgError as e:
        raise click.ClickException(f"[{e.code}] {e}") from e


def _platform(compiler: str, os_names: tuple[str, ...], archs: tuple[str, ...]) -> BuildPlatform:
    host = BuildPlatform.host(compiler)
    return BuildPlatform(
        platform=os_names or host.platform,
        architecture=archs or host.architecture,
        compiler=host.compiler,
        compiler_binary=host.compiler_binary,
        frontend_version=host.frontend_version,
    )


_package_dir = click.argument("root", default=".", type=click.Path(exists=True, file_okay=False))
_cfg_file = click.option("--cfg", "config_file", default="configs/dubpkg.yml", help="全局配置文件")


def _platform_options(f: Any) -> Any:
    f = click.option("--arch", "archs", multiple=True, help="目标架构（可多次指定，默认当前主机）")(f)
    f = click.option("--platform", "os_names", multiple=True, help="目标平台（可多次指定，默认当前主机）")(f)
    f = click.option("--compiler", default="dmd", help="编译器名称")(f)
    return f


@click.command()
@_package_dir
@click.option("--config", "-c", "configuration", default="", help="构建配置名（默认按平台选择）")
@_platform_options
@_cfg_file
def describe(
    root: str, configuration: str, compiler: str,
    os_names: tuple[str, ...], archs: tuple[str, ...], config_file: str,
) -> None:
    """输出包描述（JSON），包含按用途分类的文件列表"""
    pkg = _load(root, config_file)
    platform = _platform(compiler, os_names, archs)
    try:
        conf = configuration or pkg.get_default_configuration(platform, allow_non_library=True)
        desc = pkg.describe(platform, conf)
    except DubPkgError as e:
        raise click.ClickException(f"[{e.code}] {e}") from e
    _echo_json(desc.to_dict())


@click.command()
@_package_dir
@click.option("--config", "-c", "configuration", default="", help="构建配置名（为空时只用根级设置）")
@click.option("--build-type", "-b", default="", help="构建类型，如 debug / release / $DFLAGS")
@_platform_options
@_cfg_file
def settings(
    root: str, configuration: str, build_type: str, compiler: str,
    os_names: tuple[str, ...], archs: tuple[str, ...], config_file: str,
) -> None:
    """输出指定平台与配置的有效构建设置（JSON）"""
    pkg = _load(root, config_file)
    platform = _platform(compiler, os_names, archs)
    try:
        bs = pkg.get_build_settings(platform, configuration)
        if build_type:
            pkg.add_build_type_settings(bs, platform, build_type)
    except DubPkgError as e:
        raise click.ClickException(f"[{e.code}] {e}") from e
    _echo_json(bs.to_dict())


@click.command()
@_package_dir
@click.option("--all", "show_all", is_flag=True, help="包含可执行程序配置")
@_platform_options
@_cfg_file
def configs(
    root: str, show_all: bool, compiler: str,
    os_names: tuple[str, ...], archs: tuple[str, ...], config_file: str,
) -> None:
    """列出适用于当前平台的构建配置"""
    pkg = _load(root, config_file)
    platform = _platform(compiler, os_names, archs)
    names = [n for n in pkg.get_platform_configurations(platform, show_all) if n]
    if not names:
        click.echo("没有适用的构建配置。")
        return
    default = pkg.get_default_configuration(platform, show_all)
    for name in names:
        marker = "*" if name == default else " "
        click.echo(f"{marker} {name}")


@click.command()
@_package_dir
@_cfg_file
def version(root: str, config_file: str) -> None:
    """输出包的限定名与版本"""
    pkg = _load(root, config_file)
    click.echo(f"{pkg.name} {pkg.version}")
