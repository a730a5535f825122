"""目录扫描

snapshot_dir 是唯一读取文件系统的函数，它把一个目录的条目固化为
DirEntry 快照；其余启发式（标识符提取、过期条目判断、补全目录识别、
插件分类）都是作用在快照上的纯函数，便于确定性测试。
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from rz.core.data_structures import PluginEntry, display_for_slug

REPOS_MARKER = "repos"

# 这些子目录不会被当作补全目录（另外还跳过所有以 . 开头的目录）
FPATH_BLOCKLIST = frozenset({
    "docs", "doc", "examples", "example", "samples", "sample",
    "tests", "test", "spec", "scripts", "script", "tools", "bin",
    "assets", "images", "img", "node_modules",
})


@dataclass(frozen=True)
class DirEntry:
    """目录条目快照"""
    name: str
    path: Path
    is_symlink: bool = False
    is_dir: bool = False
    is_file: bool = False
    # 符号链接解析后的规范绝对路径；普通条目为自身路径
    target: Optional[Path] = None

    @property
    def resolved(self) -> Path:
        return self.target if self.target is not None else self.path


def canonical_target(link: Path) -> Path:
    """读取符号链接并规范化为绝对路径；目标不存在时返回拼接后的路径"""
    raw = Path(os.readlink(link))
    if not raw.is_absolute():
        raw = link.parent / raw
    try:
        return raw.resolve(strict=True)
    except (OSError, RuntimeError):
        return Path(os.path.abspath(raw))


def snapshot_dir(directory: Path) -> List[DirEntry]:
    """按文件名字典序返回目录条目快照，目录不存在时返回空列表"""
    directory = Path(directory)
    try:
        names = sorted(os.listdir(directory))
    except FileNotFoundError:
        return []

    entries = []
    for name in names:
        path = directory / name
        try:
            is_symlink = path.is_symlink()
            target = canonical_target(path) if is_symlink else path
            entries.append(DirEntry(
                name=name,
                path=path,
                is_symlink=is_symlink,
                is_dir=path.is_dir(),
                is_file=path.is_file(),
                target=target,
            ))
        except OSError:
            # 读取过程中消失或无权限的条目直接跳过
            continue
    return entries


def extract_slug(path: Path) -> Optional[str]:
    """返回路径中第一个 repos 组件之后的组件

    例如 /home/u/.rz/repos/zsh-users__zsh-autosuggestions/x.zsh
    -> zsh-users__zsh-autosuggestions
    """
    parts = Path(path).parts
    for index, part in enumerate(parts[:-1]):
        if part == REPOS_MARKER:
            return parts[index + 1]
    return None


def stale_link_names(entries: Iterable[DirEntry], expected: Set[str]) -> List[str]:
    """插件目录中不在期望集合内的条目名"""
    return [entry.name for entry in entries if entry.name not in expected]


def referenced_slugs(link_entries: Iterable[DirEntry]) -> Set[str]:
    """插件目录中的符号链接仍然指向的仓库标识符"""
    slugs = set()
    for entry in link_entries:
        if not entry.is_symlink:
            continue
        slug = extract_slug(entry.resolved)
        if slug:
            slugs.add(slug)
    return slugs


def stale_repo_names(
    repo_entries: Iterable[DirEntry],
    expected: Set[str],
    in_use: Set[str],
) -> List[str]:
    """仓库目录中既不在期望集合、也没有被存活链接引用的条目名"""
    return [
        entry.name for entry in repo_entries
        if entry.name not in expected and entry.name not in in_use
    ]


def classify_plugins(
    entries: Iterable[DirEntry],
    tail_slugs: Sequence[str],
) -> Tuple[List[PluginEntry], List[PluginEntry]]:
    """把插件目录条目分为 (普通, 尾部) 两组

    能从目标路径提取标识符的条目以 owner/repo 展示；
    提取不到的以文件名展示，标识符为空。
    """
    normal: List[PluginEntry] = []
    tail: List[PluginEntry] = []

    for entry in entries:
        if not (entry.is_file or entry.is_dir or entry.is_symlink):
            continue

        slug = extract_slug(entry.resolved)
        if slug is None:
            normal.append(PluginEntry(slug="", display=entry.name))
            continue

        item = PluginEntry(slug=slug, display=display_for_slug(slug))
        if slug in tail_slugs:
            tail.append(item)
        else:
            normal.append(item)

    return normal, tail


def looks_like_completion_dir(file_names: Iterable[str]) -> bool:
    """目录中是否直接包含以 _ 开头的文件（zsh 补全函数约定）"""
    return any(name.startswith("_") for name in file_names)


def completion_dir_candidates(
    root_files: Iterable[str],
    children: Iterable[Tuple[str, Iterable[str]]],
) -> List[str]:
    """在插件根目录及其子目录中挑选补全目录

    Args:
        root_files: 根目录下的普通文件名
        children: (子目录名, 子目录下的普通文件名) 列表

    Returns:
        相对路径列表，根目录本身记为 "."
    """
    found = []
    if looks_like_completion_dir(root_files):
        found.append(".")
    for name, files in children:
        if name.startswith(".") or name in FPATH_BLOCKLIST:
            continue
        if looks_like_completion_dir(files):
            found.append(name)
    return found
