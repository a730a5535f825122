"""RZ sync 命令实现

按配置克隆或更新所有插件，建立插件链接，并清理不再需要的链接与仓库。"""

import sys
from typing import List, Optional

import click

from rz.core.config_manager import ConfigManager
from rz.core.data_structures import JobOutcome
from rz.core.exceptions import ConfigError, RZException
from rz.core.jobs import build_jobs
from rz.core.logger import OperationScope, get_logger
from rz.core.paths import RZPaths
from rz.core.reconciler import Reconciler
from rz.core.scheduler import ParallelScheduler
from rz.core.status import StatusReporter, StatusState
from rz.cli.utils import OutputFormatter, format_summary, formatter_from_ctx, paths_from_ctx

logger = get_logger("sync_command")


class SyncCommand:
    """同步命令处理器"""

    def __init__(
        self,
        paths: RZPaths,
        formatter: Optional[OutputFormatter] = None,
        max_workers: Optional[int] = None,
    ):
        self.paths = paths
        self.formatter = formatter or OutputFormatter()
        self.reporter = StatusReporter(self._echo_status)
        self.max_workers = max_workers

    def _echo_status(self, state: StatusState, message: str) -> None:
        # 运行中的状态只在交互终端上显示，避免管道输出里出现重复行
        if state is StatusState.RUNNING and not sys.stdout.isatty():
            return
        click.echo(self.formatter.status_line(state, message))

    def execute(self) -> List[JobOutcome]:
        """执行同步

        Returns:
            每个任务的结果（按配置顺序）

        Raises:
            ConfigError: 配置缺失或不合法
        """
        self.paths.ensure_layout()

        config_manager = ConfigManager(self.paths.config)
        specs = config_manager.get_plugins()
        if not specs:
            click.echo(f"no plugins in {self.paths.config}", err=True)
            return []

        with OperationScope("sync", {"plugins": len(specs)}, logger):
            plan = build_jobs(specs, self.paths)
            for spec, missing in plan.skipped:
                click.echo(
                    self.formatter.warning(
                        f"skipping {spec.display}: missing required tools: {', '.join(missing)}"
                    ),
                    err=True,
                )

            scheduler = ParallelScheduler(reporter=self.reporter, max_workers=self.max_workers)
            outcomes = scheduler.run(plan.jobs)

            reconciler = Reconciler(self.reporter)
            links = reconciler.cleanup_links(self.paths.plugins, plan.expected_links)
            repos = reconciler.cleanup_repos(self.paths.repos, plan.expected_repos, self.paths.plugins)

        failed = [outcome for outcome in outcomes if not outcome.success]
        if failed or links.failed or repos.failed:
            click.echo(format_summary("sync", {
                "synced": len(outcomes) - len(failed),
                "failed": len(failed),
                "skipped": len(plan.skipped),
                "removed": len(links.removed) + len(repos.removed),
                "cleanup errors": len(links.failed) + len(repos.failed),
            }, self.formatter.config))
        return outcomes


@click.command()
@click.option(
    "-j",
    "--jobs",
    "max_workers",
    type=click.IntRange(min=1),
    default=None,
    help="并行任务数（默认 CPU 核数）",
)
@click.pass_context
def sync(ctx, max_workers):
    """克隆或更新配置中的插件

    单个插件失败不会中断其他插件，命令仍以 0 退出。
    """
    formatter = formatter_from_ctx(ctx)
    command = SyncCommand(paths_from_ctx(ctx), formatter, max_workers)
    try:
        command.execute()
    except ConfigError as e:
        logger.error("Configuration error", error=str(e))
        click.echo(formatter.error(e.message), err=True)
        sys.exit(1)
    except RZException as e:
        logger.error("Sync failed", error=str(e))
        click.echo(formatter.error(e.message), err=True)
        sys.exit(1)
