"""发布包处理

计算文件摘要、设置可执行权限，以及从下载的发布包中取出 rz 可执行文件。
tar（任意压缩）与 zip 通过文件内容识别，其他内容视为可执行文件本身。
"""

import hashlib
import os
import shutil
import tarfile
import tempfile
import zipfile
from pathlib import Path

from rz.core.exceptions import ArchiveFormatError
from rz.core.logger import get_logger

logger = get_logger("archive")

BINARY_NAME = "rz"
CHUNK_SIZE = 8192


def sha256_file(path: Path) -> str:
    """分块计算文件的 SHA-256 十六进制摘要"""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def make_executable(path: Path) -> None:
    os.chmod(path, 0o755)


def _temp_binary() -> Path:
    fd, name = tempfile.mkstemp(prefix="rz-")
    os.close(fd)
    return Path(name)


def _extract_from_tar(archive_path: Path) -> Path:
    try:
        with tarfile.open(archive_path, mode="r:*") as archive:
            for member in archive:
                if member.isfile() and Path(member.name).name == BINARY_NAME:
                    source = archive.extractfile(member)
                    if source is None:
                        continue
                    out = _temp_binary()
                    with source, open(out, "wb") as dest:
                        shutil.copyfileobj(source, dest)
                    return out
    except tarfile.TarError as e:
        raise ArchiveFormatError(f"cannot read archive: {e}", details=str(archive_path)) from e

    raise ArchiveFormatError("archive does not contain rz binary", details=str(archive_path))


def _extract_from_zip(archive_path: Path) -> Path:
    try:
        with zipfile.ZipFile(archive_path) as archive:
            for info in archive.infolist():
                if not info.is_dir() and Path(info.filename).name == BINARY_NAME:
                    out = _temp_binary()
                    with archive.open(info) as source, open(out, "wb") as dest:
                        shutil.copyfileobj(source, dest)
                    return out
    except zipfile.BadZipFile as e:
        raise ArchiveFormatError(f"cannot read archive: {e}", details=str(archive_path)) from e

    raise ArchiveFormatError("archive does not contain rz binary", details=str(archive_path))


def extract_if_archive(path: Path) -> Path:
    """从发布包中取出 rz 可执行文件

    Args:
        path: 下载得到的文件

    Returns:
        可执行文件路径；发布包时为新建的临时文件，否则为 path 本身

    Raises:
        ArchiveFormatError: 发布包中没有名为 rz 的条目时抛出
    """
    path = Path(path)

    if zipfile.is_zipfile(path):
        logger.debug("Extracting zip archive", path=str(path))
        return _extract_from_zip(path)

    if tarfile.is_tarfile(path):
        logger.debug("Extracting tar archive", path=str(path))
        return _extract_from_tar(path)

    logger.debug("Downloaded asset is not an archive", path=str(path))
    return path
