"""rat-zsh (rz) - 极简的 zsh 插件管理器"""

__version__ = "0.4.0"
