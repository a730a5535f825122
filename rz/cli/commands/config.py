"""RZ config 命令实现

配置文件不存在时写入示例配置，然后用 $EDITOR 打开。"""

import os
import shlex
import subprocess
import sys
from pathlib import Path
from typing import List, Mapping, Optional

import click

from rz.core.config_manager import ConfigManager
from rz.core.exceptions import RZException
from rz.core.logger import get_logger
from rz.cli.utils import formatter_from_ctx, paths_from_ctx

logger = get_logger("config_command")

DEFAULT_EDITOR = "vim"


def editor_command(config_path: Path, environ: Optional[Mapping[str, str]] = None) -> List[str]:
    """打开配置文件的编辑器命令

    $EDITOR 未设置时使用 vim；vim 系编辑器加 -n（不使用交换文件）。
    """
    env = os.environ if environ is None else environ
    argv = shlex.split(env.get("EDITOR") or DEFAULT_EDITOR)
    if Path(argv[0]).name in ("vim", "nvim", "vi"):
        argv.append("-n")
    argv.append(str(config_path))
    return argv


@click.command()
@click.pass_context
def config(ctx):
    """编辑 config.yaml"""
    formatter = formatter_from_ctx(ctx)
    paths = paths_from_ctx(ctx)

    try:
        if ConfigManager(paths.config).write_sample_config():
            click.echo(formatter.success(f"created {paths.config}"))
    except RZException as e:
        click.echo(formatter.error(e.message), err=True)
        sys.exit(1)

    argv = editor_command(paths.config)
    logger.info("Opening editor", command=" ".join(argv))
    try:
        code = subprocess.call(argv)
    except OSError as e:
        click.echo(formatter.error(f"failed to launch editor {argv[0]}: {e}"), err=True)
        sys.exit(1)
    if code != 0:
        sys.exit(code)
