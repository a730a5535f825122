"""Git 操作封装类

通过 git 命令行提供克隆、抓取、引用查询、检出和子模块更新等操作。
所有命令以非交互方式运行，使用 structlog 记录。
"""

import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from rz.core.exceptions import GitCommandError, NetworkError
from rz.core.logger import get_logger


logger = get_logger("git_client")

REMOTE = "origin"
FETCH_REFSPECS = [
    f"+refs/heads/*:refs/remotes/{REMOTE}/*",
    "+refs/tags/*:refs/tags/*",
]


class GitClient:
    """Git 操作客户端

    绑定到一个工作副本路径，提供 Git 命令的统一接口和异常处理。
    """

    # 并行运行时不能等待终端输入凭据
    ENV_OVERRIDES = {
        "GIT_TERMINAL_PROMPT": "0",
        "LC_ALL": "C",
    }

    def __init__(self, repo_path: Path):
        """初始化 GitClient

        Args:
            repo_path: 工作副本路径（可以尚不存在）
        """
        self.repo_path = Path(repo_path)

    def _env(self) -> Dict[str, str]:
        env = dict(os.environ)
        env.update(self.ENV_OVERRIDES)
        return env

    def run_command(
        self,
        cmd: List[str],
        cwd: Optional[Path] = None,
        check: bool = True,
    ) -> str:
        """运行 Git 命令

        Args:
            cmd: 命令列表
            cwd: 工作目录，默认使用 repo_path
            check: 是否在命令失败时抛出异常

        Returns:
            命令输出（去除首尾空白）

        Raises:
            GitCommandError: 命令执行失败时抛出
        """
        cwd = cwd or self.repo_path

        logger.debug("Running git command", command=" ".join(cmd), cwd=str(cwd))

        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                check=False,
                env=self._env(),
            )
        except (subprocess.SubprocessError, OSError) as e:
            logger.error(
                "Git command error",
                command=" ".join(cmd),
                error=str(e),
            )
            raise GitCommandError(f"Failed to execute git command: {e}") from e

        if check and result.returncode != 0:
            error_msg = (result.stderr or result.stdout).strip()
            logger.debug(
                "Git command failed",
                command=" ".join(cmd),
                return_code=result.returncode,
                error=error_msg,
            )
            raise GitCommandError(
                f"Git command failed: {' '.join(cmd)}",
                details=error_msg,
            )

        return result.stdout.strip()

    def _succeeds(self, cmd: List[str]) -> bool:
        try:
            self.run_command(cmd)
            return True
        except GitCommandError:
            return False

    # 仓库状态

    def is_repository(self) -> bool:
        """工作副本下是否存在 .git（目录或 gitdir 文件）"""
        return (self.repo_path / ".git").exists()

    def clone(self, url: str) -> None:
        """克隆仓库到 repo_path

        Raises:
            NetworkError: 克隆失败时抛出
        """
        self.repo_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self.run_command(
                ["git", "clone", "--quiet", url, str(self.repo_path)],
                cwd=self.repo_path.parent,
            )
        except GitCommandError as e:
            logger.error("Failed to clone repository", url=url, path=str(self.repo_path), error=e.details)
            raise NetworkError(f"git clone {url}: {e.details or e.message}", details=e.details) from e
        logger.info("Repository cloned", url=url, path=str(self.repo_path))

    def fetch_origin(self) -> None:
        """抓取远程的全部分支（到跟踪引用）和标签

        Raises:
            NetworkError: 抓取失败时抛出
        """
        try:
            self.run_command(["git", "fetch", "--quiet", "--force", REMOTE, *FETCH_REFSPECS])
        except GitCommandError as e:
            logger.error("Failed to fetch origin", path=str(self.repo_path), error=e.details)
            raise NetworkError(f"git fetch {REMOTE}: {e.details or e.message}", details=e.details) from e
        logger.debug("Fetched origin", path=str(self.repo_path))

    # 引用查询

    def ref_exists(self, ref: str) -> bool:
        """检查完整引用名（refs/...）是否存在"""
        return self._succeeds(["git", "show-ref", "--verify", "--quiet", ref])

    def check_branch_exists(self, branch_name: str) -> bool:
        """检查本地分支是否存在"""
        return self.ref_exists(f"refs/heads/{branch_name}")

    def check_remote_branch_exists(self, branch_name: str) -> bool:
        """检查远程跟踪分支是否存在"""
        return self.ref_exists(f"refs/remotes/{REMOTE}/{branch_name}")

    def symbolic_target(self, ref: str) -> Optional[str]:
        """读取符号引用的目标，例如 refs/remotes/origin/HEAD -> refs/remotes/origin/main"""
        try:
            target = self.run_command(["git", "symbolic-ref", "--quiet", ref])
        except GitCommandError:
            return None
        return target or None

    def resolve_commit(self, rev: str) -> Optional[str]:
        """把任意版本表达式剥离到提交 ID，无法解析时返回 None"""
        try:
            sha = self.run_command(["git", "rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"])
        except GitCommandError:
            return None
        return sha or None

    def get_head_commit(self) -> str:
        """HEAD 指向的提交 ID"""
        return self.run_command(["git", "rev-parse", "HEAD"])

    def get_current_branch(self) -> Optional[str]:
        """当前附着的分支名，分离 HEAD 时返回 None"""
        head = self.symbolic_target("HEAD")
        if head is None:
            return None
        return head.replace("refs/heads/", "", 1)

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        """ancestor 是否是 descendant 的祖先（或相同）"""
        return self._succeeds(["git", "merge-base", "--is-ancestor", ancestor, descendant])

    # 检出

    def create_tracking_branch(self, branch_name: str) -> None:
        """基于 origin/<branch> 创建本地跟踪分支"""
        self.run_command(["git", "branch", "--track", branch_name, f"{REMOTE}/{branch_name}"])
        logger.info("Tracking branch created", path=str(self.repo_path), branch=branch_name)

    def checkout(self, target: str, detach: bool = False) -> None:
        """强制检出，丢弃本地修改"""
        cmd = ["git", "checkout", "--quiet", "--force"]
        if detach:
            cmd.append("--detach")
        cmd.append(target)
        self.run_command(cmd)

    def reset_hard(self, target: str) -> None:
        """硬重置当前分支与工作区到 target"""
        self.run_command(["git", "reset", "--quiet", "--hard", target])

    def update_submodules(self) -> None:
        """递归初始化并更新子模块到其固定的提交

        Raises:
            NetworkError: 子模块抓取失败时抛出
        """
        if not (self.repo_path / ".gitmodules").exists():
            return
        try:
            self.run_command(["git", "submodule", "sync", "--quiet", "--recursive"])
            self.run_command(
                ["git", "submodule", "update", "--init", "--recursive", "--force", "--quiet"]
            )
        except GitCommandError as e:
            logger.error("Failed to update submodules", path=str(self.repo_path), error=e.details)
            raise NetworkError(f"git submodule update: {e.details or e.message}", details=e.details) from e
        logger.info("Submodules updated", path=str(self.repo_path))

    # 状态

    def get_status(self) -> str:
        """git status --porcelain 输出，失败时返回空字符串"""
        try:
            return self.run_command(["git", "status", "--porcelain"])
        except GitCommandError as e:
            logger.debug("Failed to get git status", error=str(e))
            return ""

    def has_uncommitted_changes(self) -> bool:
        """是否有未提交的改动"""
        return bool(self.get_status().strip())

    def get_ahead_behind(self, upstream: str, local: str = "HEAD") -> Tuple[int, int]:
        """local 相对 upstream 的 (ahead, behind) 提交数

        Raises:
            GitCommandError: 比较失败时抛出
        """
        output = self.run_command(
            ["git", "rev-list", "--left-right", "--count", f"{upstream}...{local}"]
        )
        parts = output.split()
        if len(parts) != 2:
            raise GitCommandError(f"unexpected rev-list output: {output!r}")
        behind, ahead = int(parts[0]), int(parts[1])
        return ahead, behind
