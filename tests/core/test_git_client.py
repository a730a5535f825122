"""GitClient 单元测试

命令执行与错误映射使用 mock，引用查询使用真实的临时仓库。
"""

import shutil
import subprocess
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from rz.core.exceptions import GitCommandError, NetworkError
from rz.core.git_client import GitClient

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git 不可用")


class TestGitClientInit:
    """测试 GitClient 初始化"""

    def test_init_with_string_path(self):
        client = GitClient("/some/path")
        assert client.repo_path == Path("/some/path")

    def test_is_repository_false_for_plain_dir(self, temp_dir):
        assert GitClient(temp_dir).is_repository() is False


class TestRunCommand:
    """测试 run_command 方法"""

    @patch("subprocess.run")
    def test_successful_command_strips_output(self, mock_run):
        """测试成功执行命令"""
        mock_run.return_value = Mock(returncode=0, stdout="  output\n", stderr="")

        result = GitClient(Path("/repo")).run_command(["git", "status"])

        assert result == "output"
        _, kwargs = mock_run.call_args
        assert kwargs["cwd"] == Path("/repo")
        assert kwargs["env"]["GIT_TERMINAL_PROMPT"] == "0"

    @patch("subprocess.run")
    def test_failed_command_raises_with_stderr(self, mock_run):
        """测试命令失败时抛出异常并携带 stderr"""
        mock_run.return_value = Mock(returncode=128, stdout="", stderr="fatal: boom\n")

        with pytest.raises(GitCommandError) as exc_info:
            GitClient(Path("/repo")).run_command(["git", "status"])

        assert "Git command failed" in str(exc_info.value)
        assert exc_info.value.details == "fatal: boom"

    @patch("subprocess.run")
    def test_failed_command_with_check_false(self, mock_run):
        mock_run.return_value = Mock(returncode=1, stdout="partial", stderr="err")

        assert GitClient(Path("/repo")).run_command(["git", "x"], check=False) == "partial"

    @patch("subprocess.run", side_effect=FileNotFoundError("git"))
    def test_missing_git_binary(self, mock_run):
        with pytest.raises(GitCommandError):
            GitClient(Path("/repo")).run_command(["git", "status"])


class TestNetworkErrors:
    """测试克隆与抓取失败映射为 NetworkError"""

    @patch("subprocess.run")
    def test_clone_failure(self, mock_run, temp_dir):
        mock_run.return_value = Mock(returncode=128, stdout="", stderr="fatal: repository not found")

        with pytest.raises(NetworkError) as exc_info:
            GitClient(temp_dir / "repo").clone("https://github.com/no/such.git")

        assert "repository not found" in exc_info.value.message

    @patch("subprocess.run")
    def test_fetch_failure(self, mock_run, temp_dir):
        mock_run.return_value = Mock(returncode=1, stdout="", stderr="fatal: unable to access")

        with pytest.raises(NetworkError):
            GitClient(temp_dir).fetch_origin()

    @patch("subprocess.run")
    def test_submodules_skipped_without_gitmodules(self, mock_run, temp_dir):
        GitClient(temp_dir).update_submodules()

        mock_run.assert_not_called()


class TestAheadBehind:
    """测试 ahead/behind 解析"""

    @patch.object(GitClient, "run_command", return_value="3\t1")
    def test_left_is_behind_right_is_ahead(self, mock_cmd):
        ahead, behind = GitClient(Path("/repo")).get_ahead_behind("refs/remotes/origin/main")

        assert (ahead, behind) == (1, 3)
        mock_cmd.assert_called_once_with(
            ["git", "rev-list", "--left-right", "--count", "refs/remotes/origin/main...HEAD"]
        )

    @patch.object(GitClient, "run_command", return_value="garbage")
    def test_unexpected_output(self, mock_cmd):
        with pytest.raises(GitCommandError):
            GitClient(Path("/repo")).get_ahead_behind("origin/main")


@requires_git
class TestRefQueries:
    """在真实仓库上测试引用查询"""

    @pytest.fixture
    def clone(self, upstream_repo, temp_dir):
        client = GitClient(temp_dir / "clone")
        client.clone(str(upstream_repo))
        return client

    def test_clone_creates_repository(self, clone):
        assert clone.is_repository()
        assert clone.get_current_branch() == "main"

    def test_ref_existence(self, clone):
        assert clone.check_remote_branch_exists("dev")
        assert not clone.check_branch_exists("dev")
        assert clone.ref_exists("refs/tags/v1.0.0")
        assert not clone.ref_exists("refs/tags/v9")

    def test_symbolic_target_of_remote_head(self, clone):
        assert clone.symbolic_target("refs/remotes/origin/HEAD") == "refs/remotes/origin/main"

    def test_resolve_commit(self, clone, upstream_repo, run_git):
        tag_commit = run_git(upstream_repo, "rev-parse", "v1.0.0")

        assert clone.resolve_commit("v1.0.0") == tag_commit
        assert clone.resolve_commit("no-such-rev") is None

    def test_detached_head_has_no_branch(self, clone):
        clone.checkout("v1.0.0", detach=True)

        assert clone.get_current_branch() is None

    def test_is_ancestor(self, clone):
        assert clone.is_ancestor("v1.0.0", "HEAD")
        assert not clone.is_ancestor("HEAD", "v1.0.0")

    def test_uncommitted_changes(self, clone):
        assert not clone.has_uncommitted_changes()

        (clone.repo_path / "b.plugin.zsh").write_text("# edited\n")
        assert clone.has_uncommitted_changes()

    def test_fetch_picks_up_new_commits(self, clone, upstream_repo, run_git):
        (upstream_repo / "new.zsh").write_text("# new\n")
        run_git(upstream_repo, "add", ".")
        run_git(upstream_repo, "commit", "--quiet", "-m", "v3")

        clone.fetch_origin()

        assert clone.get_ahead_behind("refs/remotes/origin/main") == (0, 1)
