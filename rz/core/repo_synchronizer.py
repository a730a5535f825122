"""仓库同步器

保证一个工作副本存在且与声明的 (url, rev) 一致：
不存在则克隆，存在则抓取；随后交给 RevisionResolver 确定检出状态，
最后更新子模块。
"""

import shutil
from pathlib import Path
from typing import Optional

from rz.core.exceptions import FilesystemError
from rz.core.git_client import GitClient
from rz.core.logger import get_logger
from rz.core.revision_resolver import RefKind, RevisionResolver

logger = get_logger("repo_synchronizer")


class RepoSynchronizer:
    """仓库同步器

    无状态，可以被多个并行任务共享；每次调用只操作传入的目录。
    """

    def ensure(self, url: str, repo_dir: Path, rev: Optional[str] = None) -> RefKind:
        """确保 repo_dir 是 url 的检出并处于 rev 对应的状态

        Args:
            url: 远程仓库地址
            repo_dir: 本地工作副本路径
            rev: 分支、标签、提交或为空（使用默认分支）

        Returns:
            实际采用的引用类型

        Raises:
            NetworkError: 克隆或抓取失败
            RevisionNotFound: 无法解析 rev
            NoDefaultBranch: 未指定 rev 且远程没有默认分支
            FilesystemError: 无法清理残留目录
        """
        repo_dir = Path(repo_dir)
        git = self._client_for(repo_dir)

        if git.is_repository():
            git.fetch_origin()
        else:
            self._remove_leftover(repo_dir)
            git.clone(url)

        kind = RevisionResolver(git).resolve(rev)
        git.update_submodules()

        logger.info(
            "Repository synchronized",
            url=url,
            path=str(repo_dir),
            rev=rev or "",
            kind=kind.value,
        )
        return kind

    def _client_for(self, repo_dir: Path) -> GitClient:
        return GitClient(repo_dir)

    @staticmethod
    def _remove_leftover(repo_dir: Path) -> None:
        """删除 repos/ 下不是 git 仓库的残留目录，否则 clone 会失败"""
        if not repo_dir.exists() and not repo_dir.is_symlink():
            return

        logger.warning("Removing non-repository leftover", path=str(repo_dir))
        try:
            if repo_dir.is_dir() and not repo_dir.is_symlink():
                shutil.rmtree(repo_dir)
            else:
                repo_dir.unlink()
        except OSError as e:
            raise FilesystemError(f"cannot remove {repo_dir}: {e}", details=str(e)) from e


def ensure_repo(url: str, repo_dir: Path, rev: Optional[str] = None) -> RefKind:
    """RepoSynchronizer().ensure 的便捷函数"""
    return RepoSynchronizer().ensure(url, repo_dir, rev)
