"""RZ CLI 主入口"""

import sys
from pathlib import Path

import click

from rz import __version__
from rz.core.exceptions import RZException
from rz.core.logger import LoggerConfig, configure_logger
from rz.cli.commands.config import config
from rz.cli.commands.home import home
from rz.cli.commands.init import init_cmd
from rz.cli.commands.list import list_command
from rz.cli.commands.sync import sync
from rz.cli.commands.upgrade import upgrade


@click.group()
@click.version_option(version=__version__, prog_name="rz")
@click.option(
    '--verbose',
    is_flag=True,
    help='详细日志输出到 stderr（调试用）'
)
@click.option(
    '--no-color',
    is_flag=True,
    help='关闭彩色输出'
)
@click.option(
    '--log-dir',
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help='把日志追加写入 DIR/rz.log'
)
@click.pass_context
def cli(ctx, verbose, no_color, log_dir):
    """rat-zsh (rz) - 极简的 zsh 插件管理器

    命令：
      init                    输出 .zshrc 初始化脚本
      sync                    克隆/更新 config.yaml 中的插件
      upgrade                 升级 rz 到最新发布版本
      list [--check-update]   按加载顺序列出插件
      home                    显示 rz home 目录
      config                  编辑 config.yaml

    示例:
      eval "$(rz init)"
      rz sync
      rz list -c
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['no_color'] = no_color

    if verbose or log_dir:
        configure_logger(LoggerConfig(
            log_dir=log_dir,
            level="DEBUG" if verbose else "INFO",
            console_output=verbose,
        ))


# 注册命令
cli.add_command(init_cmd, name="init")
cli.add_command(sync)
cli.add_command(upgrade)
cli.add_command(list_command, name="list")
cli.add_command(home)
cli.add_command(config)


def main():
    """CLI 入口点，处理全局异常"""
    try:
        cli()
    except RZException as e:
        click.echo(f"error: {e.message}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
