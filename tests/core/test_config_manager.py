"""ConfigManager 单元测试"""

from pathlib import Path

import pytest
import yaml

from rz.core.config_manager import SAMPLE_CONFIG, ConfigManager
from rz.core.data_structures import PluginRole
from rz.core.exceptions import (
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
    ConfigValidationError,
)


@pytest.fixture
def config_path(temp_dir):
    return temp_dir / "config.yaml"


@pytest.fixture
def config_manager(config_path):
    """创建配置管理器实例"""
    return ConfigManager(config_path)


def write_config(path: Path, data) -> None:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")


class TestConfigLoad:
    """测试配置加载"""

    def test_missing_file_raises_not_found(self, config_manager, config_path):
        """测试配置文件不存在时抛出 ConfigNotFoundError"""
        with pytest.raises(ConfigNotFoundError) as exc_info:
            config_manager.load_config()

        assert str(config_path) in exc_info.value.message
        assert isinstance(exc_info.value, ConfigError)

    def test_empty_file_uses_defaults(self, config_manager, config_path):
        """测试空文件视为默认配置"""
        config_path.write_text("")

        assert config_manager.load_config() == {"plugins": []}
        assert config_manager.get_plugins() == []

    def test_missing_plugins_key_means_no_plugins(self, config_manager, config_path):
        write_config(config_path, {"other": 1})

        assert config_manager.get_plugins() == []

    def test_invalid_yaml_raises_parse_error(self, config_manager, config_path):
        """测试 YAML 语法错误"""
        config_path.write_text("plugins: [\n  - repo: a/b\n")

        with pytest.raises(ConfigParseError):
            config_manager.load_config()

    def test_default_config_is_deep_copy(self, config_manager):
        config1 = config_manager.get_default_config()
        config1["plugins"].append({"repo": "x/y"})

        assert config_manager.get_default_config() == {"plugins": []}


class TestConfigValidation:
    """测试配置验证"""

    def test_collects_all_errors(self, config_manager, config_path):
        """测试一次报告所有问题"""
        write_config(config_path, {"plugins": [
            {"repo": 12},
            {"repo": "a/b", "type": "theme"},
            {"repo": "c/d", "requires": "fzf"},
        ]})

        with pytest.raises(ConfigValidationError) as exc_info:
            config_manager.load_config()

        details = exc_info.value.details
        assert "plugins[0].repo" in details
        assert "plugins[1].type" in details
        assert "plugins[2].requires" in details

    def test_plugins_must_be_list(self, config_manager, config_path):
        write_config(config_path, {"plugins": {"repo": "a/b"}})

        with pytest.raises(ConfigValidationError):
            config_manager.load_config()

    def test_unknown_keys_are_ignored(self, config_manager, config_path):
        write_config(config_path, {"plugins": [{"repo": "a/b", "color": "red"}]})

        specs = config_manager.get_plugins()
        assert [spec.repo for spec in specs] == ["a/b"]

    @pytest.mark.parametrize("raw_rev", ["0123456", "1234567", "0x1f"])
    def test_unquoted_numeric_rev_is_rejected(self, config_manager, config_path, raw_rev):
        """YAML 把未加引号的数字读成整数（0123456 是八进制），必须要求加引号"""
        config_path.write_text(f"plugins:\n  - repo: a/b\n    rev: {raw_rev}\n")

        with pytest.raises(ConfigValidationError) as exc_info:
            config_manager.get_plugins()

        assert "plugins[0].rev must be a string" in exc_info.value.message
        assert "quote it" in exc_info.value.message

    def test_quoted_numeric_rev_is_kept_verbatim(self, config_manager, config_path):
        config_path.write_text("plugins:\n  - repo: a/b\n    rev: \"0123456\"\n")

        assert config_manager.get_plugins()[0].rev == "0123456"

    @pytest.mark.parametrize("name", ["grp/b", "..", ".", "a\\b"])
    def test_path_like_name_is_rejected(self, config_manager, config_path, name):
        """链接名包含路径分隔符时清理阶段会删掉它的父目录"""
        write_config(config_path, {"plugins": [{"repo": "a/b", "name": name}]})

        with pytest.raises(ConfigValidationError) as exc_info:
            config_manager.get_plugins()

        assert "plugins[0].name must be a plain file name" in exc_info.value.message


class TestGetPlugins:
    """测试插件声明转换"""

    def test_converts_entries_in_order(self, config_manager, config_path):
        write_config(config_path, {"plugins": [
            {"repo": "zsh-users/zsh-completions", "type": "fpath", "fpath_dirs": ["src"]},
            {
                "source": "https://example.com/x.git",
                "repo": "me/x",
                "rev": "v1.0.0",
                "file": "x.zsh",
                "name": "ex",
                "requires": ["fzf"],
            },
        ]})

        first, second = config_manager.get_plugins()

        assert first.role is PluginRole.FPATH
        assert first.fpath_dirs == ("src",)
        assert first.source == "github"
        assert first.slug == "zsh-users__zsh-completions"

        assert second.role is PluginRole.SOURCE
        assert second.source == "https://example.com/x.git"
        assert second.rev == "v1.0.0"
        assert second.file == "x.zsh"
        assert second.display == "ex"
        assert second.requires == ("fzf",)


class TestSampleConfig:
    """测试示例配置"""

    def test_write_sample_when_missing(self, config_manager, config_path):
        assert config_manager.write_sample_config() is True
        assert config_path.read_text(encoding="utf-8") == SAMPLE_CONFIG

        repos = [spec.repo for spec in config_manager.get_plugins()]
        assert "zsh-users/zsh-autosuggestions" in repos
        assert "olets/zsh-abbr" in repos

    def test_existing_file_is_kept(self, config_manager, config_path):
        config_path.write_text("plugins: []\n")

        assert config_manager.write_sample_config() is False
        assert config_path.read_text() == "plugins: []\n"
