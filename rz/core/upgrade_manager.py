"""自升级管理器

把 <home>/bin/rz 升级到最新发布版本：

1. 读取最新发布；标签与当前版本相同则直接返回 UNCHANGED
2. 按 rz-{tag}-{os}-{arch} 选择资源，找不到时使用第一个资源
3. 下载到临时文件并取出 rz 可执行文件
4. 原子替换：复制为 <target>.new，设置权限，摘要相同则丢弃，否则改名覆盖
"""

import os
import platform
import shutil
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from rz import __version__
from rz.core.archive import extract_if_archive, make_executable, sha256_file
from rz.core.data_structures import ReleaseAsset, ReleaseInfo, ReplaceOutcome, UpgradeResult
from rz.core.exceptions import FilesystemError, ReleaseAssetNotFound, UnsupportedPlatformError
from rz.core.logger import OperationScope, get_logger
from rz.core.paths import RZPaths
from rz.core.release_client import ReleaseClient
from rz.core.status import StatusReporter

logger = get_logger("upgrade_manager")

BINARY_NAME = "rz"
ASSET_SUFFIXES = (".tar.gz", ".zip", "")

OS_NAMES = {
    "linux": "linux",
    "darwin": "macos",
}
ARCH_NAMES = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
}


def detect_target(system: Optional[str] = None, machine: Optional[str] = None) -> Tuple[str, str]:
    """返回发布包命名使用的 (os, arch)

    Raises:
        UnsupportedPlatformError: 不支持的操作系统或架构
    """
    system = (system or platform.system()).lower()
    machine = (machine or platform.machine()).lower()

    os_name = OS_NAMES.get(system)
    if os_name is None:
        raise UnsupportedPlatformError(f"unsupported OS: {system}")
    arch = ARCH_NAMES.get(machine)
    if arch is None:
        raise UnsupportedPlatformError(f"unsupported ARCH: {machine}")
    return os_name, arch


def candidate_asset_names(tag: str, target: Optional[Tuple[str, str]] = None) -> List[str]:
    """当前平台可接受的资源文件名，按优先级排列"""
    os_name, arch = target or detect_target()
    stem = f"{BINARY_NAME}-{tag}-{os_name}-{arch}"
    return [stem + suffix for suffix in ASSET_SUFFIXES]


def choose_asset(release: ReleaseInfo, candidates: List[str]) -> ReleaseAsset:
    """选择第一个命中候选名的资源，都不命中时回退到第一个资源

    Raises:
        ReleaseAssetNotFound: 发布中没有任何资源
    """
    by_name = {asset.name: asset for asset in release.assets}
    for name in candidates:
        if name in by_name:
            return by_name[name]

    if not release.assets:
        raise ReleaseAssetNotFound(f"no assets in latest release {release.tag_name}")

    fallback = release.assets[0]
    logger.warning(
        "No asset matches this platform, using first asset",
        tag=release.tag_name,
        asset=fallback.name,
    )
    return fallback


def is_current_version(tag: str, current: str = __version__) -> bool:
    """比较版本时忽略开头的一个 v"""
    def strip_v(version: str) -> str:
        return version[1:] if version.startswith("v") else version
    return strip_v(tag.strip()) == strip_v(current.strip())


def atomic_replace(src: Path, dst: Path) -> ReplaceOutcome:
    """用 src 原子替换 dst

    Raises:
        FilesystemError: 复制、设置权限或改名失败时抛出
    """
    src, dst = Path(src), Path(dst)
    staged = dst.with_name(dst.name + ".new")

    try:
        if staged.exists() or staged.is_symlink():
            staged.unlink()
        shutil.copyfile(src, staged)
        make_executable(staged)

        if dst.exists() and sha256_file(dst) == sha256_file(staged):
            staged.unlink()
            return ReplaceOutcome.UNCHANGED

        try:
            os.replace(staged, dst)
        except PermissionError:
            # Windows 上不能覆盖正在运行的可执行文件
            if sys.platform != "win32":
                raise
            dst.unlink()
            os.replace(staged, dst)
    except OSError as e:
        staged.unlink(missing_ok=True)
        raise FilesystemError(f"cannot install {dst}: {e}", details=str(e)) from e

    return ReplaceOutcome.REPLACED


class UpgradeManager:
    """自升级管理器"""

    def __init__(
        self,
        paths: RZPaths,
        client: Optional[ReleaseClient] = None,
        reporter: Optional[StatusReporter] = None,
        current_version: str = __version__,
        target: Optional[Tuple[str, str]] = None,
    ):
        """初始化自升级管理器

        Args:
            paths: 目录布局，可执行文件安装到 paths.bin/rz
            client: 发布信息客户端
            reporter: 状态报告器
            current_version: 当前版本
            target: (os, arch)，默认自动检测
        """
        self.paths = paths
        self.client = client
        self.reporter = reporter or StatusReporter()
        self.current_version = current_version
        self.target = target

    @property
    def target_binary(self) -> Path:
        return self.paths.bin / BINARY_NAME

    def upgrade(self) -> UpgradeResult:
        """执行一次升级

        Raises:
            NetworkError: 读取发布信息或下载失败
            UnsupportedPlatformError: 当前平台不受支持
            ReleaseAssetNotFound: 发布中没有资源
            ArchiveFormatError: 发布包中没有 rz
            FilesystemError: 安装失败
        """
        self.paths.bin.mkdir(parents=True, exist_ok=True)
        client = self.client or ReleaseClient()

        try:
            with OperationScope("upgrade", {"target": str(self.target_binary)}, logger):
                return self._upgrade(client)
        finally:
            if self.client is None:
                client.close()

    def _upgrade(self, client: ReleaseClient) -> UpgradeResult:
        status = self.reporter.handle("resolving latest release…")
        try:
            result = self._install_latest(client)
        except Exception as e:
            status.fail(f"upgrade failed (error: {e})")
            raise

        if result.outcome is ReplaceOutcome.UNCHANGED:
            status.succeed(f"already up to date ({result.tag})")
        else:
            status.succeed(f"upgraded to {result.tag}")
        return result

    def _install_latest(self, client: ReleaseClient) -> UpgradeResult:
        release = client.fetch_latest_release()
        tag = release.tag_name

        if is_current_version(tag, self.current_version):
            logger.info("Already up to date", tag=tag, version=self.current_version)
            return UpgradeResult(outcome=ReplaceOutcome.UNCHANGED, tag=tag)

        asset = choose_asset(release, candidate_asset_names(tag, self.target))
        logger.info("Asset chosen", tag=tag, asset=asset.name)

        downloaded = client.download_to_temp(asset.browser_download_url)
        extracted = None
        try:
            extracted = extract_if_archive(downloaded)
            outcome = atomic_replace(extracted, self.target_binary)
        finally:
            for temp in {downloaded, extracted}:
                if temp is not None:
                    temp.unlink(missing_ok=True)

        logger.info("Binary installed", tag=tag, outcome=outcome.value, path=str(self.target_binary))
        return UpgradeResult(outcome=outcome, tag=tag)
