"""插件加载顺序与 fpath 目录发现

加载顺序由插件目录的实际内容决定：普通插件按展示名排序，
必须最后加载的插件（自动建议、语法高亮）按固定顺序追加在末尾。
"""

import os
from pathlib import Path
from typing import List, Optional, Sequence

from rz.core import fs_scan
from rz.core.data_structures import PluginEntry

TAIL_SLUGS = (
    "zsh-users__zsh-autosuggestions",
    "zsh-users__zsh-syntax-highlighting",
)


def resolve_order(plugins_dir: Path, tail_slugs: Sequence[str] = TAIL_SLUGS) -> List[PluginEntry]:
    """返回插件目录中条目的有效加载顺序"""
    normal, tail = fs_scan.classify_plugins(fs_scan.snapshot_dir(plugins_dir), tail_slugs)

    ordered = sorted(normal, key=lambda entry: entry.display)
    for slug in tail_slugs:
        ordered.extend(entry for entry in tail if entry.slug == slug)
    return ordered


def _plain_files(directory: Path) -> List[str]:
    try:
        return [
            name for name in os.listdir(directory)
            if (directory / name).is_file()
        ]
    except OSError:
        return []


def _subdirs(directory: Path) -> List[str]:
    try:
        return sorted(
            name for name in os.listdir(directory)
            if (directory / name).is_dir()
        )
    except OSError:
        return []


def find_plugin_target(plugins_dir: Path, slug: str) -> Optional[Path]:
    """插件目录中第一个目标属于 slug 的目录条目的规范目标路径"""
    for entry in fs_scan.snapshot_dir(plugins_dir):
        if not entry.is_dir:
            continue
        if fs_scan.extract_slug(entry.resolved) == slug:
            return entry.resolved
    return None


def discover_completion_dirs(target: Path) -> List[str]:
    """在插件目录及其直接子目录中查找补全目录，返回排序后的绝对路径"""
    children = [(name, _plain_files(target / name)) for name in _subdirs(target)]
    relative = fs_scan.completion_dir_candidates(_plain_files(target), children)
    return sorted(str(target) if rel == "." else str(target / rel) for rel in relative)


def fpath_dirs_for_slug(plugins_dir: Path, slug: str) -> List[str]:
    """自动发现某个 fpath 插件的补全目录"""
    target = find_plugin_target(plugins_dir, slug)
    if target is None:
        return []
    return discover_completion_dirs(target)


def fpath_dirs_from_config(plugins_dir: Path, slug: str, configured: Sequence[str]) -> List[str]:
    """某个 fpath 插件的 fpath 目录

    配置了 fpath_dirs 时只使用其中实际存在的目录（相对插件目标），
    否则回退到自动发现。
    """
    if not configured:
        return fpath_dirs_for_slug(plugins_dir, slug)

    target = find_plugin_target(plugins_dir, slug)
    if target is None:
        return []

    dirs = []
    for rel in configured:
        candidate = target / rel
        if candidate.is_dir():
            dirs.append(str(candidate))
    return dirs


def format_fpath_dirs(dirs: Sequence[str]) -> str:
    """空列表 -> ""，单个 -> 原样，多个 -> {a, b}"""
    if not dirs:
        return ""
    if len(dirs) == 1:
        return dirs[0]
    return "{" + ", ".join(dirs) + "}"
