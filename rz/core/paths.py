"""rz 目录布局

rz 的所有状态都放在同一个 home 目录下：

    <home>/bin/          rz 可执行文件
    <home>/plugins/      供 shell 加载的插件链接
    <home>/repos/<slug>/ 插件仓库检出
    <home>/config.yaml   声明式配置

home 的解析顺序：$XDG_CONFIG_HOME/.rz，否则 $HOME/.rz。
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

RZ_DIRNAME = ".rz"
CONFIG_FILENAME = "config.yaml"


@dataclass(frozen=True)
class RZPaths:
    """rz 使用的目录与文件路径"""
    home: Path
    bin: Path
    plugins: Path
    repos: Path
    config: Path

    @classmethod
    def under(cls, home: Path) -> 'RZPaths':
        """基于给定 home 构建完整布局"""
        home = Path(home)
        return cls(
            home=home,
            bin=home / "bin",
            plugins=home / "plugins",
            repos=home / "repos",
            config=home / CONFIG_FILENAME,
        )

    def ensure_layout(self) -> None:
        """创建 bin/、plugins/、repos/ 以及配置文件所在目录"""
        for directory in (self.bin, self.plugins, self.repos, self.config.parent):
            directory.mkdir(parents=True, exist_ok=True)


def rz_home_from_env(xdg: Optional[str], home: Optional[str]) -> Path:
    """根据环境变量计算 home 目录

    Args:
        xdg: XDG_CONFIG_HOME 的值
        home: HOME 的值

    Returns:
        <xdg>/.rz 或 <home>/.rz
    """
    base = xdg if xdg else (home or "")
    return Path(base) / RZ_DIRNAME


def rz_home(environ: Optional[Mapping[str, str]] = None) -> Path:
    """返回当前进程环境下的 rz home 目录"""
    env = os.environ if environ is None else environ
    return rz_home_from_env(env.get("XDG_CONFIG_HOME"), env.get("HOME"))


def get_paths(home: Optional[Path] = None) -> RZPaths:
    """返回 rz 的目录布局，默认基于 rz_home()"""
    return RZPaths.under(home if home is not None else rz_home())
