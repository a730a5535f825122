"""过期条目清理

同步结束后删除配置中已不存在的插件链接和仓库：

1. cleanup_links: 插件目录中名字不在期望集合内的条目
2. cleanup_repos: 仓库目录中既不在期望集合、也没有被存活链接引用的目录

清理是尽力而为的：单个条目删除失败只记录在报告里，不影响其他条目。
"""

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set, Tuple

from rz.core import fs_scan
from rz.core.fs_scan import DirEntry
from rz.core.logger import get_logger
from rz.core.status import StatusReporter

logger = get_logger("reconciler")


@dataclass
class CleanupReport:
    """清理结果"""
    removed: List[str] = field(default_factory=list)
    # (条目名, 错误信息)
    failed: List[Tuple[str, str]] = field(default_factory=list)


class Reconciler:
    """清理器"""

    def __init__(self, reporter: Optional[StatusReporter] = None):
        self.reporter = reporter or StatusReporter()

    def cleanup_links(self, link_dir: Path, expected_names: Set[str]) -> CleanupReport:
        """删除插件目录中不再期望的条目

        Args:
            link_dir: 插件目录
            expected_names: 本次同步期望存在的链接名

        Returns:
            CleanupReport
        """
        report = CleanupReport()
        entries = {entry.name: entry for entry in fs_scan.snapshot_dir(link_dir)}

        for name in fs_scan.stale_link_names(entries.values(), expected_names):
            status = self.reporter.handle(f"removing stale plugin: {name}")
            try:
                self._remove_entry(entries[name])
            except OSError as e:
                logger.warning("Failed to remove stale plugin", name=name, error=str(e))
                status.fail(f"remove plugin {name} (error: {e})")
                report.failed.append((name, str(e)))
                continue
            logger.info("Stale plugin removed", name=name)
            status.succeed(f"removed plugin: {name}")
            report.removed.append(name)

        return report

    def cleanup_repos(
        self,
        repo_dir: Path,
        expected_repo_ids: Set[str],
        link_dir: Path,
    ) -> CleanupReport:
        """删除仓库目录中不再需要的检出

        仍被插件目录中某个链接引用的仓库会被保留，
        引用关系通过链接目标路径中 repos 之后的组件判断。

        Args:
            repo_dir: 仓库目录
            expected_repo_ids: 本次同步期望存在的仓库标识符
            link_dir: 插件目录（在 cleanup_links 之后读取）

        Returns:
            CleanupReport
        """
        report = CleanupReport()
        in_use = fs_scan.referenced_slugs(fs_scan.snapshot_dir(link_dir))
        entries = {entry.name: entry for entry in fs_scan.snapshot_dir(repo_dir)}

        for slug in fs_scan.stale_repo_names(entries.values(), expected_repo_ids, in_use):
            status = self.reporter.handle(f"removing stale repo: {slug}")
            try:
                self._remove_entry(entries[slug])
            except OSError as e:
                logger.warning("Failed to remove stale repo", slug=slug, error=str(e))
                status.fail(f"remove repo {slug} (error: {e})")
                report.failed.append((slug, str(e)))
                continue
            logger.info("Stale repo removed", slug=slug)
            status.succeed(f"removed repo: {slug}")
            report.removed.append(slug)

        return report

    @staticmethod
    def _remove_entry(entry: DirEntry) -> None:
        if entry.is_dir and not entry.is_symlink:
            shutil.rmtree(entry.path)
        else:
            entry.path.unlink()
