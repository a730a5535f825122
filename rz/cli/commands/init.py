"""RZ init 命令实现

输出供 .zshrc 使用的初始化脚本：eval "$(rz init)"。"""

from pathlib import Path

import click

from rz.core.logger import get_logger

logger = get_logger("init_command")

INIT_SCRIPT = Path(__file__).parent.parent.parent / "assets" / "init.zsh"


def load_init_script() -> str:
    """读取随包发布的 init.zsh"""
    return INIT_SCRIPT.read_text(encoding="utf-8")


@click.command(name="init")
def init_cmd():
    """输出 shell 初始化脚本"""
    script = load_init_script()
    logger.debug("Printing init script", size=len(script))
    click.echo(script, nl=False)
