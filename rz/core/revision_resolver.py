"""版本解析器

在已抓取的工作副本上，把可选的版本字符串落实为具体的检出状态：

- 本地分支 / 远程分支 -> 附着 HEAD（后续同步可随分支前进）
- 标签 / 提交         -> 分离 HEAD（固定在某个提交）
- 未指定              -> 附着到远程默认分支

解析按 RefKind 的固定顺序依次尝试，每种类型一个处理函数。
"""

from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from rz.core.exceptions import NoDefaultBranch, RevisionNotFound
from rz.core.git_client import REMOTE, GitClient
from rz.core.logger import get_logger

logger = get_logger("revision_resolver")

REMOTE_PREFIX = f"refs/remotes/{REMOTE}/"
REMOTE_HEAD = f"{REMOTE_PREFIX}HEAD"
DEFAULT_BRANCH_FALLBACKS = ("main", "master")


class RefKind(Enum):
    """版本字符串解析出的引用类型（按尝试顺序排列）"""
    LOCAL_BRANCH = "local_branch"
    REMOTE_BRANCH = "remote_branch"
    TAG = "tag"
    COMMIT = "commit"


class RevisionResolver:
    """版本解析器

    负责把工作副本切换到正确的附着或分离状态。调用前应已完成 fetch。
    """

    def __init__(self, git_client: GitClient):
        """初始化版本解析器

        Args:
            git_client: 绑定到目标工作副本的 GitClient
        """
        self.git = git_client
        self._handlers: Dict[RefKind, Callable[[str, Optional[str]], None]] = {
            RefKind.LOCAL_BRANCH: self._attach_local_branch,
            RefKind.REMOTE_BRANCH: self._attach_remote_branch,
            RefKind.TAG: self._detach_at_commit,
            RefKind.COMMIT: self._detach_at_commit,
        }

    def classify(self, rev: str) -> Tuple[RefKind, Optional[str]]:
        """按 本地分支 -> 远程分支 -> 标签 -> 提交 的顺序识别版本

        Returns:
            (引用类型, 需要分离检出时的提交 ID)

        Raises:
            RevisionNotFound: 所有类型都无法解析时抛出
        """
        if self.git.check_branch_exists(rev):
            return RefKind.LOCAL_BRANCH, None

        if self.git.check_remote_branch_exists(rev):
            return RefKind.REMOTE_BRANCH, None

        if self.git.ref_exists(f"refs/tags/{rev}"):
            commit = self.git.resolve_commit(f"refs/tags/{rev}")
            if commit:
                return RefKind.TAG, commit

        commit = self.git.resolve_commit(rev)
        if commit:
            return RefKind.COMMIT, commit

        raise RevisionNotFound(f"rev not found: {rev}", details=str(self.git.repo_path))

    def resolve(self, rev: Optional[str]) -> RefKind:
        """把工作副本检出到 rev；rev 为空时附着到远程默认分支

        Returns:
            实际采用的引用类型（默认分支视为 REMOTE_BRANCH）
        """
        if not rev:
            self.attach_default_branch()
            return RefKind.REMOTE_BRANCH

        kind, commit = self.classify(rev)
        logger.info(
            "Revision classified",
            path=str(self.git.repo_path),
            rev=rev,
            kind=kind.value,
        )
        self._handlers[kind](rev, commit)
        return kind

    def default_branch_candidates(self) -> List[str]:
        """默认分支的候选远程引用，按优先级排列"""
        candidates = []
        target = self.git.symbolic_target(REMOTE_HEAD)
        if target:
            candidates.append(target)
        candidates.extend(f"{REMOTE_PREFIX}{name}" for name in DEFAULT_BRANCH_FALLBACKS)
        return candidates

    def attach_default_branch(self) -> str:
        """附着到远程默认分支并硬重置到远程最新提交

        优先使用 origin/HEAD 的符号目标，其次 origin/main、origin/master。

        Returns:
            附着的本地分支名

        Raises:
            NoDefaultBranch: 找不到任何默认分支时抛出
        """
        remote_ref = None
        for candidate in self.default_branch_candidates():
            if self.git.ref_exists(candidate):
                remote_ref = candidate
                break

        if remote_ref is None:
            raise NoDefaultBranch(
                "could not determine default branch "
                f"(missing {REMOTE}/HEAD, {REMOTE}/main, {REMOTE}/master)",
                details=str(self.git.repo_path),
            )

        branch = remote_ref[len(REMOTE_PREFIX):]
        self._attach_remote_branch(branch, None)
        logger.info("Attached to default branch", path=str(self.git.repo_path), branch=branch)
        return branch

    # 各引用类型的处理函数

    def _attach_local_branch(self, branch: str, _commit: Optional[str]) -> None:
        self.git.checkout(branch)

        # 能快进时跟上远程分支；已分叉则保留本地提交
        remote_ref = f"{REMOTE_PREFIX}{branch}"
        if self.git.ref_exists(remote_ref):
            if self.git.is_ancestor("HEAD", remote_ref):
                self.git.reset_hard(remote_ref)
            else:
                logger.warning(
                    "Local branch diverged from remote, not fast-forwarding",
                    path=str(self.git.repo_path),
                    branch=branch,
                )

    def _attach_remote_branch(self, branch: str, _commit: Optional[str]) -> None:
        if not self.git.check_branch_exists(branch):
            self.git.create_tracking_branch(branch)
        self.git.checkout(branch)
        self.git.reset_hard(f"{REMOTE_PREFIX}{branch}")

    def _detach_at_commit(self, rev: str, commit: Optional[str]) -> None:
        self.git.checkout(commit or rev, detach=True)
