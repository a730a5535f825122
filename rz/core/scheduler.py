"""并行调度器

在线程池中并行执行同步任务：每个任务先确保仓库同步，再建立插件链接。
任务之间互不影响，一个任务的异常只记录在它自己的结果与状态句柄上。
"""

import os
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Dict, Iterator, List, Optional

from rz.core.data_structures import JobOutcome, SyncJob
from rz.core.link_resolver import LinkResolver
from rz.core.logger import get_logger
from rz.core.repo_synchronizer import RepoSynchronizer
from rz.core.status import JobStatus, StatusReporter

logger = get_logger("scheduler")


class ParallelScheduler:
    """并行调度器

    Example:
        >>> scheduler = ParallelScheduler(RepoSynchronizer(), LinkResolver(), StatusReporter())
        >>> outcomes = scheduler.run(plan.jobs)
    """

    def __init__(
        self,
        synchronizer: Optional[RepoSynchronizer] = None,
        link_resolver: Optional[LinkResolver] = None,
        reporter: Optional[StatusReporter] = None,
        max_workers: Optional[int] = None,
    ):
        """初始化调度器

        Args:
            synchronizer: 仓库同步器
            link_resolver: 链接管理器
            reporter: 状态报告器
            max_workers: 工作线程数，默认 os.cpu_count()
        """
        self.synchronizer = synchronizer or RepoSynchronizer()
        self.link_resolver = link_resolver or LinkResolver()
        self.reporter = reporter or StatusReporter()
        self.max_workers = max_workers or os.cpu_count() or 1

    def _execute(self, job: SyncJob, status: JobStatus) -> JobOutcome:
        start = time.time()

        try:
            self.synchronizer.ensure(job.url, job.repo_dir, job.rev)
            self.link_resolver.expose(job)
        except Exception as e:
            duration_ms = int((time.time() - start) * 1000)
            logger.error(
                "Sync job failed",
                plugin=job.display,
                error_type=type(e).__name__,
                error=str(e),
                duration_ms=duration_ms,
            )
            status.fail(f"syncing {job.display} (error: {e})")
            return JobOutcome(job=job, success=False, error=str(e), duration_ms=duration_ms)

        duration_ms = int((time.time() - start) * 1000)
        logger.info("Sync job succeeded", plugin=job.display, duration_ms=duration_ms)
        status.succeed()
        return JobOutcome(job=job, success=True, duration_ms=duration_ms)

    def iter_outcomes(self, jobs: List[SyncJob]) -> Iterator[JobOutcome]:
        """按完成顺序产出每个任务的结果"""
        if not jobs:
            return

        workers = min(self.max_workers, len(jobs))
        logger.info("Starting sync jobs", jobs=len(jobs), workers=workers)

        # 每个任务的状态句柄在提交前全部创建，排队中的任务也有状态行
        statuses = [self.reporter.handle(f"syncing {job.display}") for job in jobs]

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures: Dict[Future, SyncJob] = {
                executor.submit(self._execute, job, status): job
                for job, status in zip(jobs, statuses)
            }
            for future in as_completed(futures):
                yield future.result()

    def run(self, jobs: List[SyncJob]) -> List[JobOutcome]:
        """执行全部任务，结果按任务的原始顺序返回"""
        by_job = {id(outcome.job): outcome for outcome in self.iter_outcomes(jobs)}
        outcomes = [by_job[id(job)] for job in jobs]

        failed = sum(1 for outcome in outcomes if not outcome.success)
        logger.info("Sync jobs finished", total=len(outcomes), failed=failed)
        return outcomes
