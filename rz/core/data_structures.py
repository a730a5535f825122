"""RZ 核心数据结构定义

定义同步流程中流转的业务对象：插件声明、同步任务、期望集合、
版本状态以及升级结果。"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Set, Tuple

# owner/repo <-> owner__repo
SLUG_JOINER = "__"
DEFAULT_SOURCE = "github"


class PluginRole(Enum):
    """插件角色"""
    SOURCE = "source"  # 通过 source 加载的脚本
    FPATH = "fpath"    # 仅加入 fpath 的目录


@dataclass(frozen=True)
class SourceSpec:
    """配置文件中的一条插件声明"""
    repo: str
    source: str = DEFAULT_SOURCE
    rev: Optional[str] = None
    file: Optional[str] = None
    role: PluginRole = PluginRole.SOURCE
    name: Optional[str] = None
    fpath_dirs: Tuple[str, ...] = ()
    requires: Tuple[str, ...] = ()

    @property
    def slug(self) -> str:
        """仓库标识符，例如 zsh-users__zsh-autosuggestions"""
        return slug_for_repo(self.repo)

    @property
    def display(self) -> str:
        """展示名称：声明的 name，否则为 repo"""
        return self.name or self.repo

    @property
    def is_github(self) -> bool:
        return self.source in ("", DEFAULT_SOURCE)


@dataclass(frozen=True)
class SyncJob:
    """一个插件的同步任务（纯数据）"""
    display: str
    url: str
    repo_dir: Path
    link_path: Path
    role: PluginRole = PluginRole.SOURCE
    file_hint: Optional[str] = None
    rev: Optional[str] = None

    @property
    def is_fpath(self) -> bool:
        return self.role is PluginRole.FPATH


@dataclass
class JobPlan:
    """任务列表及清理所需的期望集合"""
    jobs: List[SyncJob] = field(default_factory=list)
    expected_links: Set[str] = field(default_factory=set)
    expected_repos: Set[str] = field(default_factory=set)
    # (声明, 缺失的可执行文件)
    skipped: List[Tuple[SourceSpec, List[str]]] = field(default_factory=list)


@dataclass
class JobOutcome:
    """单个任务的执行结果"""
    job: SyncJob
    success: bool
    error: Optional[str] = None
    duration_ms: int = 0


class RevKind(Enum):
    """检出状态类型"""
    BRANCH = "branch"
    TAG = "tag"
    DETACHED = "detached"


@dataclass(frozen=True)
class RevisionOutcome:
    """仓库同步后的版本状态"""
    kind: Optional[RevKind] = None
    name: Optional[str] = None
    commit_short: Optional[str] = None

    @property
    def is_attached(self) -> bool:
        return self.kind is RevKind.BRANCH

    @property
    def label(self) -> str:
        """用于列表展示的标签，例如 @main / @v1.0.0 / @detached"""
        if self.kind is None:
            return ""
        if self.kind is RevKind.DETACHED:
            return "@detached"
        return f"@{self.name}"


@dataclass
class UpdateStatus:
    """附着分支相对远程的更新状态"""
    ahead: int = 0
    behind: int = 0
    dirty: bool = False
    unknown: bool = False


@dataclass(frozen=True)
class PluginEntry:
    """插件目录扫描得到的条目"""
    slug: str
    display: str


class ReplaceOutcome(Enum):
    """二进制替换结果"""
    REPLACED = "replaced"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class ReleaseAsset:
    """发布资源"""
    name: str
    browser_download_url: str


@dataclass(frozen=True)
class ReleaseInfo:
    """最新发布的元数据"""
    tag_name: str
    assets: Tuple[ReleaseAsset, ...] = ()


@dataclass(frozen=True)
class UpgradeResult:
    """自升级结果"""
    outcome: ReplaceOutcome
    tag: str


def slug_for_repo(repo: str) -> str:
    """owner/repo -> owner__repo"""
    return repo.strip().replace("/", SLUG_JOINER)


def display_for_slug(slug: str) -> str:
    """owner__repo -> owner/repo"""
    return slug.replace(SLUG_JOINER, "/")
