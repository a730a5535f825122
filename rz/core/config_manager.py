"""配置管理器

提供 config.yaml 的加载、验证和示例配置生成功能，
并把插件条目转换为 SourceSpec。
"""

import copy
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from rz.core.data_structures import DEFAULT_SOURCE, PluginRole, SourceSpec
from rz.core.exceptions import (
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
    ConfigValidationError,
)
from rz.core.logger import get_logger

logger = get_logger("config_manager")


SAMPLE_CONFIG = """\
# ~/.rz/config.yaml (rat-zsh)
plugins:
  - source: github
    repo: zsh-users/zsh-autosuggestions
    type: source
    file: zsh-autosuggestions.zsh
    name: zz-autosuggestions

  - source: github
    repo: zsh-users/zsh-completions
    type: fpath

  - source: github
    repo: zsh-users/zsh-syntax-highlighting
    type: source
    file: zsh-syntax-highlighting.zsh

  - source: github
    repo: zsh-users/zsh-history-substring-search
    type: source
    file: zsh-history-substring-search.zsh

  - source: github
    repo: olets/zsh-abbr
    type: source
    file: zsh-abbr.zsh
"""


class ConfigManager:
    """配置管理器

    负责加载、验证 config.yaml，并生成插件声明列表。
    """

    DEFAULT_CONFIG = {
        "plugins": [],
    }

    PLUGIN_KEYS = ("source", "repo", "rev", "file", "type", "name", "fpath_dirs", "requires")
    STRING_KEYS = ("source", "repo", "rev", "file", "type", "name")
    LIST_KEYS = ("fpath_dirs", "requires")

    def __init__(self, config_path: Path):
        """初始化配置管理器

        Args:
            config_path: config.yaml 路径
        """
        self.config_path = Path(config_path)
        self._config: Optional[Dict[str, Any]] = None
        logger.debug("ConfigManager initialized", config_path=str(self.config_path))

    def get_default_config(self) -> Dict[str, Any]:
        """获取默认配置的深拷贝"""
        return copy.deepcopy(self.DEFAULT_CONFIG)

    def load_config(self) -> Dict[str, Any]:
        """加载并验证配置文件

        Returns:
            配置字典

        Raises:
            ConfigNotFoundError: 配置文件不存在
            ConfigParseError: YAML 解析失败
            ConfigError: 文件读取失败
            ConfigValidationError: 配置结构不合法
        """
        path = self.config_path
        logger.info("Loading configuration", path=str(path))

        if not path.exists():
            logger.error("Configuration file not found", path=str(path))
            raise ConfigNotFoundError(f"config not found: {path}", details=str(path))

        try:
            with open(path, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error("Failed to parse YAML configuration", path=str(path), error=str(e))
            raise ConfigParseError(f"failed to parse {path.name}: {e}", details=str(e))
        except OSError as e:
            logger.error("Failed to read configuration file", path=str(path), error=str(e))
            raise ConfigError(f"failed to read {path}: {e}", details=str(e))

        # 空文件视为默认配置
        if config_data is None:
            logger.info("Configuration file is empty, using defaults", path=str(path))
            config_data = self.get_default_config()

        self.validate_config(config_data)

        if config_data.get("plugins") is None:
            config_data["plugins"] = []

        self._config = config_data
        logger.info(
            "Configuration loaded successfully",
            path=str(path),
            plugins=len(config_data["plugins"]),
        )
        return self._config

    def validate_config(self, config: Dict[str, Any]) -> bool:
        """验证配置结构和值

        收集所有问题后一次性抛出。

        Raises:
            ConfigValidationError: 配置验证失败时抛出
        """
        errors: List[str] = []

        if not isinstance(config, dict):
            raise ConfigValidationError(
                "Configuration validation failed: top level must be a mapping"
            )

        plugins = config.get("plugins")
        if plugins is not None and not isinstance(plugins, list):
            errors.append("plugins must be a list")
            plugins = []

        for index, entry in enumerate(plugins or []):
            where = f"plugins[{index}]"
            if not isinstance(entry, dict):
                errors.append(f"{where} must be a mapping")
                continue

            for key in self.STRING_KEYS:
                value = entry.get(key)
                if value is None or isinstance(value, str):
                    continue
                if key == "rev":
                    # YAML 会把 0123456 读成八进制整数，转回字符串就是另一个提交
                    errors.append(f"{where}.rev must be a string (quote it: rev: \"{value}\")")
                else:
                    errors.append(f"{where}.{key} must be a string")

            name = entry.get("name")
            if isinstance(name, str) and name and not self._is_plain_name(name):
                errors.append(f"{where}.name must be a plain file name without path separators")

            plugin_type = entry.get("type")
            if isinstance(plugin_type, str) and plugin_type not in [r.value for r in PluginRole]:
                errors.append(f"{where}.type must be one of ['source', 'fpath']")

            for key in self.LIST_KEYS:
                value = entry.get(key)
                if value is None:
                    continue
                if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                    errors.append(f"{where}.{key} must be a list of strings")

            unknown = sorted(set(entry) - set(self.PLUGIN_KEYS))
            if unknown:
                logger.warning("Ignoring unknown plugin keys", entry=where, keys=unknown)

        if errors:
            logger.error("Configuration validation failed", errors=errors)
            raise ConfigValidationError(
                f"Configuration validation failed: {'; '.join(errors)}",
                details="\n".join(errors),
            )

        return True

    def get_plugins(self) -> List[SourceSpec]:
        """获取插件声明列表（保持配置顺序）"""
        if self._config is None:
            self.load_config()

        specs = [self._to_spec(entry) for entry in self._config.get("plugins", [])]
        logger.debug("Retrieved plugin specs", count=len(specs))
        return specs

    def write_sample_config(self) -> bool:
        """在配置文件不存在时写入示例配置

        Returns:
            写入了示例配置返回 True，文件已存在返回 False
        """
        if self.config_path.exists():
            return False

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            self.config_path.write_text(SAMPLE_CONFIG, encoding="utf-8")
        except OSError as e:
            logger.error("Failed to write sample configuration", path=str(self.config_path), error=str(e))
            raise ConfigError(f"failed to write {self.config_path}: {e}", details=str(e))

        logger.info("Sample configuration written", path=str(self.config_path))
        return True

    @staticmethod
    def _is_plain_name(name: str) -> bool:
        """链接名只能是 plugins/ 下的单个条目"""
        return name not in (".", "..") and "/" not in name and "\\" not in name

    @staticmethod
    def _to_spec(entry: Dict[str, Any]) -> SourceSpec:
        return SourceSpec(
            repo=entry.get("repo") or "",
            source=entry.get("source") or DEFAULT_SOURCE,
            rev=entry.get("rev"),
            file=entry.get("file"),
            role=PluginRole(entry.get("type") or PluginRole.SOURCE.value),
            name=entry.get("name"),
            fpath_dirs=tuple(entry.get("fpath_dirs") or ()),
            requires=tuple(entry.get("requires") or ()),
        )
