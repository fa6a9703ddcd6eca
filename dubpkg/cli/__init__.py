"""dubpkg 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

import os

import click

from dubpkg import __version__
from dubpkg.utils.logger import setup_logging


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """dubpkg - 包描述解析与构建设置计算"""
    setup_logging(
        level=os.getenv("DUBPKG_LOG_LEVEL", "INFO"),
        json_output=os.getenv("DUBPKG_LOG_JSON", "") == "1",
    )


# 注册子命令
from dubpkg.cli.cmd_package import register as _reg_package  # noqa: E402

_reg_package(main)
