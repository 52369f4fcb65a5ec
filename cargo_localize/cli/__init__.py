"""cargo-localize 命令行接口

既可直接执行 `cargo-localize localize`，也可作为 cargo 子命令 `cargo localize`
使用（cargo 会以 `cargo-localize localize ...` 的形式调用本程序）。
"""

import os

import click

from cargo_localize import __version__
from cargo_localize.utils.logger import setup_logging


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """cargo-localize - 把全部依赖本地化到 3rd-party 目录"""
    setup_logging(
        level=os.getenv("CARGO_LOCALIZE_LOG_LEVEL", "INFO"),
        json_output=os.getenv("CARGO_LOCALIZE_LOG_JSON", "") == "1",
    )


# 注册子命令
from cargo_localize.cli.cmd_localize import register as _reg_localize  # noqa: E402

_reg_localize(main)
