"""RZ list 命令实现

按实际加载顺序列出插件，分为 Source order 与 fpath 两节，
并显示每个插件的检出状态，--check-update 时附加更新状态。
"""

import sys
from pathlib import Path
from typing import Dict, List, Optional

import click

from rz.core.config_manager import ConfigManager
from rz.core.data_structures import PluginEntry, PluginRole, RevKind, SourceSpec
from rz.core.exceptions import RZException
from rz.core.load_order import format_fpath_dirs, fpath_dirs_from_config, resolve_order
from rz.core.logger import get_logger
from rz.core.paths import RZPaths
from rz.core.revision_info import attached_update_status, describe_revision, is_dirty
from rz.cli.utils import OutputFormatter, formatter_from_ctx, paths_from_ctx

logger = get_logger("list_command")


class ListCommand:
    """列表命令处理器"""

    def __init__(self, paths: RZPaths, formatter: Optional[OutputFormatter] = None):
        self.paths = paths
        self.formatter = formatter or OutputFormatter()

    def _metadata(self) -> Dict[str, SourceSpec]:
        specs = ConfigManager(self.paths.config).get_plugins()
        return {spec.slug: spec for spec in specs if spec.repo.strip()}

    def _update_suffix(self, repo_root: Path, kind: Optional[RevKind], name: Optional[str]) -> str:
        if kind is RevKind.BRANCH and name:
            return self.formatter.format_update_status(attached_update_status(repo_root, name))
        if kind in (RevKind.TAG, RevKind.DETACHED):
            return self.formatter.format_dirty(is_dirty(repo_root))
        return ""

    def _describe(self, entry: PluginEntry, spec: SourceSpec, check_update: bool):
        repo_root = self.paths.repos / entry.slug
        revision = describe_revision(repo_root, spec.rev)
        suffix = self._update_suffix(repo_root, revision.kind, revision.name) if check_update else ""
        return self.formatter.format_revision(revision), suffix

    def source_lines(self, ordered: List[PluginEntry], meta: Dict[str, SourceSpec], check_update: bool) -> List[str]:
        lines = []
        for entry in ordered:
            spec = meta.get(entry.slug)
            if spec is None:
                lines.append(f"- {entry.display}")
                continue
            if spec.role is PluginRole.FPATH:
                continue
            revision, suffix = self._describe(entry, spec, check_update)
            lines.append(self.formatter.format_plugin_line(
                spec.name or entry.display, spec.source, "[source]", revision, suffix,
            ))
        return lines

    def fpath_lines(self, ordered: List[PluginEntry], meta: Dict[str, SourceSpec], check_update: bool) -> List[str]:
        lines = []
        for entry in ordered:
            spec = meta.get(entry.slug) if entry.slug else None
            if spec is None or spec.role is not PluginRole.FPATH:
                continue
            dirs = format_fpath_dirs(
                fpath_dirs_from_config(self.paths.plugins, entry.slug, spec.fpath_dirs)
            )
            tag = f"[fpath: {dirs}]" if dirs else "[fpath]"
            revision, suffix = self._describe(entry, spec, check_update)
            lines.append(self.formatter.format_plugin_line(
                spec.name or entry.display, spec.source, tag, revision, suffix,
            ))
        return lines

    def execute(self, check_update: bool = False) -> str:
        """生成列表输出

        Raises:
            ConfigError: 配置缺失或不合法
        """
        meta = self._metadata()
        ordered = resolve_order(self.paths.plugins)
        logger.info("Listing plugins", entries=len(ordered), check_update=check_update)

        lines = [self.formatter.heading("Source order")]
        lines.extend(self.source_lines(ordered, meta, check_update))
        lines.append("")
        lines.append(self.formatter.heading("fpath"))
        lines.extend(self.fpath_lines(ordered, meta, check_update))
        return "\n".join(lines)


@click.command(name="list")
@click.option(
    "-c",
    "--check-update",
    is_flag=True,
    help="显示分支相对远程的 ahead/behind 以及未提交改动",
)
@click.pass_context
def list_command(ctx, check_update):
    """按加载顺序列出插件"""
    formatter = formatter_from_ctx(ctx)
    try:
        output = ListCommand(paths_from_ctx(ctx), formatter).execute(check_update)
    except RZException as e:
        logger.error("List failed", error=str(e))
        click.echo(formatter.error(e.message), err=True)
        sys.exit(1)
    click.echo(output)
