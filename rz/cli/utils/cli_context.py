"""命令上下文工具

从 click 上下文中取出全局选项对应的对象：目录布局与输出格式化器。
"""

from typing import Optional

import click

from rz.core.paths import RZPaths, get_paths
from rz.cli.utils.formatting import FormatterConfig, OutputFormatter


def _ctx_obj(ctx: Optional[click.Context]) -> dict:
    ctx = ctx or click.get_current_context(silent=True)
    if ctx is None:
        return {}
    return ctx.find_root().obj or {}


def formatter_from_ctx(ctx: Optional[click.Context] = None) -> OutputFormatter:
    """根据 --no-color 构造格式化器"""
    no_color = _ctx_obj(ctx).get("no_color", False)
    return OutputFormatter(FormatterConfig(no_color=no_color))


def paths_from_ctx(ctx: Optional[click.Context] = None) -> RZPaths:
    """当前命令使用的目录布局；测试可以通过 ctx.obj['paths'] 注入"""
    paths = _ctx_obj(ctx).get("paths")
    return paths if paths is not None else get_paths()
