"""检出状态查询

list 命令用来展示每个插件当前处于哪个分支、标签或分离提交。
HEAD 与引用直接从 git 目录中的文件读取（HEAD、松散引用、packed-refs），
只有 --check-update 需要的 ahead/behind 与脏状态才调用 git 命令。
"""

import re
from pathlib import Path
from typing import Optional, Tuple

from rz.core.data_structures import RevisionOutcome, RevKind, UpdateStatus
from rz.core.exceptions import GitCommandError
from rz.core.git_client import REMOTE, GitClient
from rz.core.logger import get_logger

logger = get_logger("revision_info")

HEX_SHA = re.compile(r"^[0-9a-fA-F]{7,40}$")
SHORT_LEN = 7


def is_hex_sha(rev: str) -> bool:
    return bool(HEX_SHA.match(rev.strip()))


def short_sha(sha: str) -> str:
    return sha.strip()[:SHORT_LEN]


def _first_line(path: Path) -> Optional[str]:
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None
    return text.split("\n", 1)[0].strip()


def resolve_git_dir(repo_root: Path) -> Optional[Path]:
    """返回工作副本的 git 目录，支持 .git 文件中的 gitdir: 间接引用"""
    dotgit = Path(repo_root) / ".git"
    if dotgit.is_dir():
        return dotgit
    if dotgit.is_file():
        line = _first_line(dotgit)
        if line and line.startswith("gitdir:"):
            raw = Path(line[len("gitdir:"):].strip())
            return raw if raw.is_absolute() else Path(repo_root) / raw
    return None


def resolve_ref_sha(git_dir: Path, refname: str) -> Optional[str]:
    """先读松散引用文件，再查 packed-refs"""
    loose = _first_line(git_dir / refname)
    if loose and len(loose) >= 40:
        return loose

    try:
        packed = (git_dir / "packed-refs").read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None

    for line in packed.splitlines():
        if not line or line.startswith(("#", "^")):
            continue
        sha, _, name = line.partition(" ")
        if name.strip() == refname and len(sha) >= 40:
            return sha.strip()
    return None


def read_head(repo_root: Path) -> Optional[Tuple[str, Optional[str]]]:
    """返回 (HEAD 提交, 附着的引用名)；分离 HEAD 时引用名为 None"""
    git_dir = resolve_git_dir(repo_root)
    if git_dir is None:
        return None

    head = _first_line(git_dir / "HEAD")
    if not head:
        return None

    if head.startswith("ref: "):
        refname = head[len("ref: "):].strip()
        sha = resolve_ref_sha(git_dir, refname)
        if sha:
            return sha, refname
        return None

    if len(head) >= SHORT_LEN:
        return head, None
    return None


def describe_revision(repo_root: Path, configured_rev: Optional[str] = None) -> RevisionOutcome:
    """描述工作副本当前的检出状态

    - 配置的 rev 是十六进制提交 ID：分离在该提交
    - HEAD 附着在 refs/heads/<name>：分支
    - HEAD 分离且配置的 rev 是指向当前提交的标签：标签
    - 其他情况：分离
    - 没有可读的仓库：沿用配置的 rev 作为分支名（未同步时的展示）
    """
    head = read_head(repo_root)
    if head is None:
        if configured_rev:
            return RevisionOutcome(kind=RevKind.BRANCH, name=configured_rev)
        return RevisionOutcome()

    sha, refname = head

    if configured_rev and is_hex_sha(configured_rev):
        return RevisionOutcome(
            kind=RevKind.DETACHED,
            commit_short=short_sha(configured_rev),
        )

    if refname is not None:
        if refname.startswith("refs/heads/"):
            return RevisionOutcome(
                kind=RevKind.BRANCH,
                name=refname[len("refs/heads/"):],
                commit_short=short_sha(sha),
            )
        return RevisionOutcome(kind=RevKind.DETACHED, commit_short=short_sha(sha))

    if configured_rev:
        git_dir = resolve_git_dir(repo_root)
        tag_sha = resolve_ref_sha(git_dir, f"refs/tags/{configured_rev}") if git_dir else None
        if tag_sha and _tag_points_at(repo_root, configured_rev, tag_sha, sha):
            return RevisionOutcome(
                kind=RevKind.TAG,
                name=configured_rev,
                commit_short=short_sha(sha),
            )

    return RevisionOutcome(kind=RevKind.DETACHED, commit_short=short_sha(sha))


def _tag_points_at(repo_root: Path, tag: str, tag_sha: str, head_sha: str) -> bool:
    """轻量标签直接比较；附注标签需要剥离到提交"""
    if tag_sha == head_sha:
        return True
    commit = GitClient(repo_root).resolve_commit(f"refs/tags/{tag}")
    return commit == head_sha


def is_dirty(repo_root: Path) -> bool:
    return GitClient(repo_root).has_uncommitted_changes()


def attached_update_status(repo_root: Path, branch: str) -> UpdateStatus:
    """附着分支相对 origin/<branch> 的 ahead/behind 与脏状态

    远程跟踪分支缺失或比较失败时 unknown 为 True。
    """
    git = GitClient(repo_root)
    status = UpdateStatus(dirty=git.has_uncommitted_changes())

    upstream = f"refs/remotes/{REMOTE}/{branch}"
    if not git.ref_exists(upstream):
        status.unknown = True
        return status

    try:
        status.ahead, status.behind = git.get_ahead_behind(upstream)
    except GitCommandError as e:
        logger.debug("Failed to compare with upstream", path=str(repo_root), branch=branch, error=str(e))
        status.unknown = True
    return status
