"""RZ home 命令实现"""

import click

from rz.cli.utils import paths_from_ctx


@click.command()
@click.pass_context
def home(ctx):
    """显示 rz home 目录"""
    click.echo(str(paths_from_ctx(ctx).home))
