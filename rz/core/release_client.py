"""发布信息客户端

通过 GitHub Releases API 读取最新发布，并把发布资源下载到临时文件。
设置 GITHUB_TOKEN 时以 Bearer 方式认证。
"""

import os
import tempfile
from pathlib import Path
from typing import Mapping, Optional

import httpx

from rz import __version__
from rz.core.data_structures import ReleaseAsset, ReleaseInfo
from rz.core.exceptions import FilesystemError, NetworkError
from rz.core.logger import get_logger

logger = get_logger("release_client")

API_BASE = "https://api.github.com"
DEFAULT_RELEASE_REPO = "gotokazuki/rat-zsh"
RELEASE_REPO_ENV = "RZ_RELEASE_REPO"
TOKEN_ENV = "GITHUB_TOKEN"
DEFAULT_TIMEOUT = 30.0


def release_repo(environ: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    return env.get(RELEASE_REPO_ENV) or DEFAULT_RELEASE_REPO


def default_headers(environ: Optional[Mapping[str, str]] = None) -> dict:
    """GitHub API 要求的请求头，以及可选的认证头"""
    env = os.environ if environ is None else environ
    headers = {
        "Accept": "application/vnd.github+json",
        "User-Agent": f"rat-zsh-rz/{__version__}",
    }
    token = env.get(TOKEN_ENV)
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


class ReleaseClient:
    """发布信息客户端

    Args:
        repo: owner/repo，默认读取 RZ_RELEASE_REPO
        client: 预先构造的 httpx.Client（测试时注入 MockTransport）
    """

    def __init__(self, repo: Optional[str] = None, client: Optional[httpx.Client] = None):
        self.repo = repo or release_repo()
        self.client = client or httpx.Client(
            headers=default_headers(),
            timeout=DEFAULT_TIMEOUT,
            follow_redirects=True,
        )

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> 'ReleaseClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    def fetch_latest_release(self) -> ReleaseInfo:
        """读取最新发布的标签与资源列表

        Raises:
            NetworkError: 请求失败、状态码非 2xx 或响应格式不符时抛出
        """
        url = f"{API_BASE}/repos/{self.repo}/releases/latest"
        logger.debug("Fetching latest release", url=url)

        try:
            response = self.client.get(url)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise NetworkError(
                f"latest release request failed: HTTP {e.response.status_code}",
                details=url,
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"latest release request failed: {e}", details=url) from e
        except ValueError as e:
            raise NetworkError(f"invalid release response: {e}", details=url) from e

        try:
            release = ReleaseInfo(
                tag_name=payload["tag_name"],
                assets=tuple(
                    ReleaseAsset(
                        name=asset["name"],
                        browser_download_url=asset["browser_download_url"],
                    )
                    for asset in payload.get("assets") or []
                ),
            )
        except (KeyError, TypeError) as e:
            raise NetworkError(f"invalid release response: missing {e}", details=url) from e

        logger.info("Latest release fetched", tag=release.tag_name, assets=len(release.assets))
        return release

    def download_to_temp(self, url: str) -> Path:
        """把资源流式下载到临时文件，返回文件路径（调用方负责删除）

        Raises:
            NetworkError: 下载失败时抛出
            FilesystemError: 写入临时文件失败时抛出
        """
        fd, name = tempfile.mkstemp(prefix="rz-download-")
        path = Path(name)
        logger.debug("Downloading asset", url=url, path=name)

        try:
            with os.fdopen(fd, "wb") as out:
                with self.client.stream("GET", url) as response:
                    response.raise_for_status()
                    for chunk in response.iter_bytes():
                        out.write(chunk)
        except httpx.HTTPError as e:
            path.unlink(missing_ok=True)
            raise NetworkError(f"failed to download: {url}: {e}", details=url) from e
        except OSError as e:
            path.unlink(missing_ok=True)
            raise FilesystemError(f"cannot write download to {path}: {e}", details=str(e)) from e

        logger.info("Asset downloaded", url=url, size=path.stat().st_size)
        return path
