"""检出状态查询测试"""

import shutil

import pytest

from rz.core.data_structures import RevKind
from rz.core.git_client import GitClient
from rz.core.revision_info import (
    attached_update_status,
    describe_revision,
    is_dirty,
    is_hex_sha,
    resolve_git_dir,
    resolve_ref_sha,
)

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git 不可用")

SHA = "0123456789abcdef0123456789abcdef01234567"


@pytest.fixture
def fake_repo(temp_dir):
    """只有 git 目录文件的假仓库"""
    git_dir = temp_dir / "repo" / ".git"
    (git_dir / "refs" / "heads").mkdir(parents=True)
    return temp_dir / "repo"


class TestGitDirFiles:
    """直接读取 git 目录文件"""

    def test_gitdir_file_indirection(self, temp_dir):
        real = temp_dir / "real.git"
        real.mkdir()
        repo = temp_dir / "wt"
        repo.mkdir()
        (repo / ".git").write_text("gitdir: ../real.git\n")

        assert resolve_git_dir(repo).resolve() == real.resolve()

    def test_not_a_repository(self, temp_dir):
        assert resolve_git_dir(temp_dir) is None
        assert describe_revision(temp_dir).kind is None

    def test_unsynced_repo_shows_configured_rev(self, temp_dir):
        outcome = describe_revision(temp_dir / "missing", "main")

        assert outcome.kind is RevKind.BRANCH
        assert outcome.label == "@main"
        assert outcome.commit_short is None

    def test_loose_ref(self, fake_repo):
        git_dir = fake_repo / ".git"
        (git_dir / "refs" / "heads" / "main").write_text(SHA + "\n")

        assert resolve_ref_sha(git_dir, "refs/heads/main") == SHA

    def test_packed_ref(self, fake_repo):
        git_dir = fake_repo / ".git"
        (git_dir / "packed-refs").write_text(
            "# pack-refs with: peeled fully-peeled sorted\n"
            f"{SHA} refs/heads/main\n"
            f"^{'f' * 40}\n"
        )

        assert resolve_ref_sha(git_dir, "refs/heads/main") == SHA
        assert resolve_ref_sha(git_dir, "refs/heads/other") is None

    def test_attached_head_is_branch(self, fake_repo):
        git_dir = fake_repo / ".git"
        (git_dir / "HEAD").write_text("ref: refs/heads/main\n")
        (git_dir / "refs" / "heads" / "main").write_text(SHA + "\n")

        outcome = describe_revision(fake_repo)

        assert outcome.kind is RevKind.BRANCH
        assert outcome.name == "main"
        assert outcome.commit_short == SHA[:7]

    def test_configured_sha_is_detached(self, fake_repo):
        (fake_repo / ".git" / "HEAD").write_text(SHA + "\n")

        outcome = describe_revision(fake_repo, "abcdef1")

        assert outcome.kind is RevKind.DETACHED
        assert outcome.commit_short == "abcdef1"
        assert outcome.label == "@detached"

    def test_is_hex_sha(self):
        assert is_hex_sha("abcdef1")
        assert is_hex_sha(SHA)
        assert not is_hex_sha("v1.0.0")
        assert not is_hex_sha("abc")


@requires_git
class TestWithRealRepository:
    """在真实仓库上验证"""

    @pytest.fixture
    def clone(self, upstream_repo, temp_dir):
        client = GitClient(temp_dir / "clone")
        client.clone(str(upstream_repo))
        return client

    def test_detached_on_configured_tag(self, clone):
        clone.checkout("v1.0.0", detach=True)

        outcome = describe_revision(clone.repo_path, "v1.0.0")

        assert outcome.kind is RevKind.TAG
        assert outcome.label == "@v1.0.0"

    def test_detached_without_config(self, clone):
        clone.checkout("v1.0.0", detach=True)

        assert describe_revision(clone.repo_path).kind is RevKind.DETACHED

    def test_update_status_behind(self, clone, upstream_repo, run_git):
        (upstream_repo / "c.zsh").write_text("")
        run_git(upstream_repo, "add", ".")
        run_git(upstream_repo, "commit", "--quiet", "-m", "v3")
        clone.fetch_origin()

        status = attached_update_status(clone.repo_path, "main")

        assert (status.ahead, status.behind) == (0, 1)
        assert status.dirty is False
        assert status.unknown is False

    def test_update_status_unknown_without_upstream(self, clone):
        status = attached_update_status(clone.repo_path, "no-such-branch")

        assert status.unknown is True

    def test_dirty(self, clone):
        (clone.repo_path / "b.plugin.zsh").write_text("# edited\n")

        assert is_dirty(clone.repo_path)
