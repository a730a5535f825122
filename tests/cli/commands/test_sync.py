"""RZ sync 命令的单元测试"""

import shutil
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from rz.cli.commands.sync import SyncCommand
from rz.cli.main import cli
from rz.cli.utils import FormatterConfig, OutputFormatter
from rz.core.data_structures import JobOutcome
from rz.core.paths import RZPaths

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git 不可用")


@pytest.fixture
def paths(temp_dir):
    return RZPaths.under(temp_dir / "home" / ".rz")


def invoke(paths, *args):
    return CliRunner().invoke(cli, ["--no-color", "sync", *args], obj={"paths": paths})


class TestSyncCli:
    """命令行层面的行为"""

    def test_missing_config_exits_1(self, paths):
        result = invoke(paths)

        assert result.exit_code == 1
        assert "config not found" in result.stderr

    def test_empty_plugin_list(self, paths):
        paths.ensure_layout()
        paths.config.write_text("plugins: []\n")

        result = invoke(paths)

        assert result.exit_code == 0
        assert f"no plugins in {paths.config}" in result.stderr

    def test_invalid_config_exits_1(self, paths):
        paths.ensure_layout()
        paths.config.write_text("plugins: [\n")

        assert invoke(paths).exit_code == 1

    def test_path_like_name_is_rejected_before_linking(self, paths):
        """名字带 / 的插件不能在 plugins/ 下建子目录"""
        paths.ensure_layout()
        paths.config.write_text("plugins:\n  - repo: a/b\n    name: grp/b\n")

        with patch("rz.cli.commands.sync.ParallelScheduler") as scheduler_cls:
            result = invoke(paths)

        assert result.exit_code == 1
        assert "name must be a plain file name" in result.stderr
        scheduler_cls.assert_not_called()
        assert list(paths.plugins.iterdir()) == []

    def test_missing_tool_is_skipped(self, paths):
        paths.ensure_layout()
        paths.config.write_text(
            "plugins:\n"
            "  - repo: a/b\n"
            "    requires: [definitely-not-a-real-tool-xyz]\n"
        )

        with patch("rz.cli.commands.sync.ParallelScheduler") as scheduler_cls:
            scheduler_cls.return_value.run.return_value = []
            result = invoke(paths)

        assert result.exit_code == 0
        assert "skipping a/b: missing required tools: definitely-not-a-real-tool-xyz" in result.stderr
        scheduler_cls.return_value.run.assert_called_once_with([])

    def test_job_failure_still_exits_0(self, paths):
        paths.ensure_layout()
        paths.config.write_text("plugins:\n  - repo: a/b\n")

        def fake_run(jobs):
            return [JobOutcome(job=job, success=False, error="unreachable") for job in jobs]

        with patch("rz.cli.commands.sync.ParallelScheduler") as scheduler_cls:
            scheduler_cls.return_value.run.side_effect = fake_run
            result = invoke(paths, "-j", "2")

        assert result.exit_code == 0
        assert "failed" in result.output
        assert scheduler_cls.call_args.kwargs["max_workers"] == 2


@requires_git
class TestSyncCommand:
    """使用本地上游仓库的真实同步"""

    def test_sync_creates_link_and_cleans_stale(self, paths, upstream_repo):
        paths.ensure_layout()
        paths.config.write_text(
            "plugins:\n"
            f"  - source: {upstream_repo}\n"
            "    repo: a/b\n"
            "    file: b.plugin.zsh\n"
        )
        stale_repo = paths.repos / "old__gone"
        stale_repo.mkdir()
        (paths.plugins / "old__gone").symlink_to(stale_repo)

        formatter = OutputFormatter(FormatterConfig(no_color=True))
        outcomes = SyncCommand(paths, formatter).execute()

        assert [o.success for o in outcomes] == [True]
        link = paths.plugins / "a__b"
        assert link.is_symlink()
        assert link.resolve() == (paths.repos / "a__b" / "b.plugin.zsh").resolve()
        assert not (paths.plugins / "old__gone").exists()
        assert not stale_repo.exists()
