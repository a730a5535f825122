"""测试公共 fixture"""

import os
import subprocess
import tempfile
from pathlib import Path

import pytest

# 测试用的 git 身份与配置，不依赖用户的全局配置
GIT_ENV = {
    "GIT_AUTHOR_NAME": "Test User",
    "GIT_AUTHOR_EMAIL": "test@example.com",
    "GIT_COMMITTER_NAME": "Test User",
    "GIT_COMMITTER_EMAIL": "test@example.com",
    "GIT_CONFIG_NOSYSTEM": "1",
}


def _run_git(cwd: Path, *args: str) -> str:
    env = dict(os.environ)
    env.update(GIT_ENV)
    result = subprocess.run(
        ["git", "-c", "commit.gpgsign=false", "-c", "tag.gpgsign=false", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        env=env,
        check=True,
    )
    return result.stdout.strip()


@pytest.fixture
def temp_dir():
    """创建临时目录"""
    with tempfile.TemporaryDirectory() as tmp:
        yield Path(tmp).resolve()


@pytest.fixture
def run_git():
    """在指定目录运行 git 命令的函数"""
    return _run_git


@pytest.fixture
def upstream_repo(temp_dir):
    """创建一个上游仓库

    main 分支有两个提交：
    - 第一个提交带轻量标签 v1.0.0
    - 第二个提交修改 b.plugin.zsh
    另有一个从第一个提交分出的 dev 分支。
    """
    repo = temp_dir / "upstream"
    repo.mkdir()
    _run_git(repo, "init", "--quiet")
    _run_git(repo, "symbolic-ref", "HEAD", "refs/heads/main")

    (repo / "b.plugin.zsh").write_text("# b plugin v1\n")
    _run_git(repo, "add", ".")
    _run_git(repo, "commit", "--quiet", "-m", "v1")
    _run_git(repo, "tag", "v1.0.0")
    _run_git(repo, "branch", "dev")

    (repo / "b.plugin.zsh").write_text("# b plugin v2\n")
    _run_git(repo, "commit", "--quiet", "-am", "v2")
    return repo
