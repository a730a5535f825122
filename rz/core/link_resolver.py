"""插件链接管理

负责在插件目录中为每个任务建立符号链接：

- source 插件：链接到仓库中解析出的入口脚本
- fpath 插件：链接到仓库目录本身

入口脚本的查找顺序：file 提示，然后依次按 *.plugin.zsh、*.zsh、
*.zsh-theme 匹配仓库顶层的普通文件（同一模式多个匹配时取文件名字典序第一个）。
"""

import fnmatch
import os
import shutil
from pathlib import Path
from typing import Optional

from rz.core.data_structures import SyncJob
from rz.core.exceptions import FilesystemError, NoSourceFileFound, SymlinkCreationError
from rz.core.logger import get_logger

logger = get_logger("link_resolver")

SOURCE_PATTERNS = ("*.plugin.zsh", "*.zsh", "*.zsh-theme")


def _hinted_file(repo_dir: Path, hint: str) -> Optional[Path]:
    """file 提示指向仓库内已存在的普通文件时返回其路径"""
    candidate = repo_dir / hint
    if not candidate.is_file():
        return None

    root = repo_dir.resolve()
    resolved = candidate.resolve()
    if resolved != root and root not in resolved.parents:
        logger.warning("File hint points outside repository", repo=str(repo_dir), hint=hint)
        return None
    return candidate


def resolve_source_file(repo_dir: Path, hint: Optional[str] = None) -> Path:
    """在仓库中解析插件的入口脚本

    Args:
        repo_dir: 仓库检出目录
        hint: 配置中的 file 字段（相对仓库根目录）

    Returns:
        入口脚本路径

    Raises:
        NoSourceFileFound: 提示无效且没有任何模式命中时抛出
    """
    repo_dir = Path(repo_dir)

    if hint:
        hinted = _hinted_file(repo_dir, hint)
        if hinted is not None:
            return hinted
        logger.debug("File hint not found, falling back to patterns", repo=str(repo_dir), hint=hint)

    try:
        names = sorted(os.listdir(repo_dir))
    except OSError:
        names = []

    for pattern in SOURCE_PATTERNS:
        for name in names:
            if fnmatch.fnmatchcase(name, pattern) and (repo_dir / name).is_file():
                return repo_dir / name

    raise NoSourceFileFound(
        f"no source file found in {repo_dir}",
        details=f"tried: {', '.join(SOURCE_PATTERNS)}",
    )


class LinkResolver:
    """插件链接管理器

    创建链接前总是先删除链接位置上已有的条目，保证链接指向最新目标。
    """

    def link(self, target: Path, link_path: Path) -> Path:
        """创建 link_path -> target 的符号链接

        Args:
            target: 链接目标（文件或目录）
            link_path: 链接位置

        Returns:
            链接指向的规范绝对路径

        Raises:
            SymlinkCreationError: 创建链接失败时抛出
            FilesystemError: 无法删除原有条目时抛出
        """
        target = Path(target).resolve()
        link_path = Path(link_path)

        self.remove_link(link_path)
        link_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            link_path.symlink_to(target, target_is_directory=target.is_dir())
        except OSError as e:
            raise SymlinkCreationError(
                f"cannot link {link_path} -> {target}: {e}",
                details=str(e),
            ) from e

        logger.debug("Link created", link=str(link_path), target=str(target))
        return target

    def remove_link(self, link_path: Path) -> bool:
        """删除链接位置上的条目（链接、文件或真实目录）

        Returns:
            存在并被删除时返回 True
        """
        link_path = Path(link_path)
        if not link_path.exists() and not link_path.is_symlink():
            return False

        try:
            if link_path.is_symlink() or not link_path.is_dir():
                link_path.unlink()
            else:
                shutil.rmtree(link_path)
        except OSError as e:
            raise FilesystemError(f"cannot remove {link_path}: {e}", details=str(e)) from e

        logger.debug("Link removed", link=str(link_path))
        return True

    def expose(self, job: SyncJob) -> Path:
        """为已同步的任务建立插件链接

        fpath 任务链接仓库目录，source 任务链接解析出的入口脚本。

        Returns:
            链接目标
        """
        if job.is_fpath:
            target = job.repo_dir
        else:
            target = resolve_source_file(job.repo_dir, job.file_hint)
        return self.link(target, job.link_path)
