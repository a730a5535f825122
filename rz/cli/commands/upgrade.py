"""RZ upgrade 命令实现

把 <home>/bin/rz 升级到最新发布版本。"""

import sys

import click

from rz.core.exceptions import RZException
from rz.core.logger import get_logger
from rz.core.status import StatusReporter, StatusState
from rz.core.upgrade_manager import UpgradeManager
from rz.cli.utils import formatter_from_ctx, paths_from_ctx

logger = get_logger("upgrade_command")


@click.command()
@click.pass_context
def upgrade(ctx):
    """升级 rz 到最新发布版本"""
    formatter = formatter_from_ctx(ctx)

    def echo_status(state: StatusState, message: str) -> None:
        if state is StatusState.RUNNING:
            return
        click.echo(formatter.status_line(state, message), err=state is StatusState.FAILED)

    manager = UpgradeManager(paths_from_ctx(ctx), reporter=StatusReporter(echo_status))
    try:
        result = manager.upgrade()
    except RZException as e:
        logger.error("Upgrade failed", error=str(e), error_type=type(e).__name__)
        sys.exit(1)

    logger.info("Upgrade finished", tag=result.tag, outcome=result.outcome.value)
