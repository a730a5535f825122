"""CLI 工具包导出"""

from .formatting import (
    OutputFormatter,
    FormatterConfig,
    format_summary,
    Color,
)
from .cli_context import formatter_from_ctx, paths_from_ctx

__all__ = [
    'OutputFormatter',
    'FormatterConfig',
    'format_summary',
    'Color',
    'formatter_from_ctx',
    'paths_from_ctx',
]
