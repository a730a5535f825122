"""终端输出格式

状态行、插件列表行、修订信息与同步摘要。--no-color 时所有函数返回纯文本。"""

from typing import Mapping, Optional

from rz.core.data_structures import RevisionOutcome, RevKind, UpdateStatus
from rz.core.status import StatusState


class Color:
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'
    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'
    CYAN = '\033[36m'
    WHITE = '\033[37m'
    BRIGHT_BLACK = '\033[90m'


STATUS_GLYPHS = {
    StatusState.RUNNING: ("…", Color.YELLOW),
    StatusState.SUCCEEDED: ("✔", Color.GREEN),
    StatusState.FAILED: ("✘", Color.RED),
}


class FormatterConfig:
    """输出选项（目前只有是否着色）"""

    def __init__(self, no_color: bool = False):
        self.no_color = no_color

    def colorize(self, text: str, color: str) -> str:
        """给非空文本包上颜色代码；关闭颜色时原样返回"""
        if not text or self.no_color:
            return text
        return color + text + Color.RESET


class OutputFormatter:
    """rz 命令共用的输出格式化器"""

    def __init__(self, config: Optional[FormatterConfig] = None):
        self.config = config if config is not None else FormatterConfig()

    def success(self, message: str) -> str:
        return self.status_line(StatusState.SUCCEEDED, message)

    def error(self, message: str) -> str:
        return self.status_line(StatusState.FAILED, message)

    def warning(self, message: str) -> str:
        return f"{self.config.colorize('!', Color.YELLOW)} {message}"

    def status_line(self, state: StatusState, message: str) -> str:
        """任务状态行：… 运行中，✔ 成功，✘ 失败"""
        glyph, color = STATUS_GLYPHS[state]
        return f"{self.config.colorize(glyph, color)} {message}"

    def heading(self, title: str) -> str:
        return self.config.colorize(title, Color.BOLD)

    def format_revision(self, revision: RevisionOutcome) -> str:
        """@branch 绿色，@tag 黄色，@detached 红色，后跟灰色的短提交 ID"""
        colors = {
            RevKind.BRANCH: Color.GREEN,
            RevKind.TAG: Color.YELLOW,
            RevKind.DETACHED: Color.RED,
        }
        parts = []
        if revision.kind is not None:
            parts.append(self.config.colorize(revision.label, colors[revision.kind]))
        if revision.commit_short:
            parts.append(self.config.colorize(f"({revision.commit_short})", Color.BRIGHT_BLACK))
        return " ".join(parts)

    def format_update_status(self, status: UpdateStatus) -> str:
        """附着分支的更新状态，例如 ↓2/↑ *；无法比较时为 ?"""
        dirty = self.config.colorize("*", Color.RED + Color.BOLD)
        if status.unknown:
            parts = [dirty] if status.dirty else []
            parts.append(self.config.colorize("?", Color.RED + Color.BOLD))
            return " ".join(parts)

        behind = self.config.colorize(f"↓{status.behind or ''}", Color.BLUE)
        ahead = self.config.colorize(f"↑{status.ahead or ''}", Color.RED + Color.BOLD)
        parts = [f"{behind}/{ahead}"]
        if status.dirty:
            parts.append(dirty)
        return " ".join(parts)

    def format_dirty(self, dirty: bool) -> str:
        return self.config.colorize("*", Color.RED + Color.BOLD) if dirty else ""

    def format_plugin_line(
        self,
        shown: str,
        source: str,
        tag: str,
        revision: str = "",
        suffix: str = "",
    ) -> str:
        """列表中的一行：- name (source) [tag] @rev (sha) suffix"""
        parts = [
            self.config.colorize("-", Color.DIM),
            self.config.colorize(shown, Color.BOLD + Color.WHITE),
            f"({self.config.colorize(source, Color.CYAN)})",
        ]
        if tag:
            parts.append(self.config.colorize(tag, Color.BRIGHT_BLACK))
        for extra in (revision, suffix):
            if extra:
                parts.append(extra)
        return " ".join(parts)


def format_summary(title: str, counts: Mapping[str, int], config: Optional[FormatterConfig] = None) -> str:
    """单行摘要，例如 "sync: 3 synced, 1 failed"；计数为 0 的项省略"""
    cfg = config or FormatterConfig()
    parts = [f"{count} {label}" for label, count in counts.items() if count]
    return f"{cfg.colorize(title + ':', Color.BOLD)} {', '.join(parts) or 'nothing to do'}"
