"""发布包处理测试"""

import hashlib
import io
import os
import stat
import tarfile
import zipfile

import pytest

from rz.core.archive import extract_if_archive, make_executable, sha256_file
from rz.core.exceptions import ArchiveFormatError

BINARY = b"\x7fELF fake rz binary"


def write_tar(path, members, mode="w:gz"):
    with tarfile.open(path, mode) as archive:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            archive.addfile(info, io.BytesIO(data))
    return path


class TestHelpers:
    def test_sha256_file(self, temp_dir):
        path = temp_dir / "f"
        path.write_bytes(b"x" * 20000)

        assert sha256_file(path) == hashlib.sha256(b"x" * 20000).hexdigest()

    def test_make_executable(self, temp_dir):
        path = temp_dir / "f"
        path.write_bytes(b"")

        make_executable(path)

        assert stat.S_IMODE(os.stat(path).st_mode) == 0o755


class TestExtract:
    """测试取出 rz 可执行文件"""

    def test_tar_gz_nested_entry(self, temp_dir):
        archive = write_tar(temp_dir / "rz.tar.gz", {
            "rz-v1/README.md": b"readme",
            "rz-v1/rz": BINARY,
        })

        extracted = extract_if_archive(archive)
        try:
            assert extracted.read_bytes() == BINARY
            assert extracted != archive
        finally:
            extracted.unlink()

    def test_uncompressed_tar(self, temp_dir):
        archive = write_tar(temp_dir / "rz.tar", {"rz": BINARY}, mode="w")

        extracted = extract_if_archive(archive)
        try:
            assert extracted.read_bytes() == BINARY
        finally:
            extracted.unlink()

    def test_zip(self, temp_dir):
        archive = temp_dir / "rz.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("bin/rz", BINARY)

        extracted = extract_if_archive(archive)
        try:
            assert extracted.read_bytes() == BINARY
        finally:
            extracted.unlink()

    def test_archive_without_rz(self, temp_dir):
        archive = write_tar(temp_dir / "x.tar.gz", {"rzz": BINARY, "docs/rz.md": b""})

        with pytest.raises(ArchiveFormatError):
            extract_if_archive(archive)

    def test_plain_binary_is_returned_as_is(self, temp_dir):
        path = temp_dir / "rz-download"
        path.write_bytes(BINARY)

        assert extract_if_archive(path) == path
