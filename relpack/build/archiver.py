"""
归档器抽象接口和实现

把暂存目录树打包为 tgz 或 zip 归档，所有条目放在固定的前缀目录下。
条目顺序、时间戳和属主都是固定的，相同的目录树得到逐字节相同的归档。
"""

import gzip
import os
import shutil
import stat
import tarfile
import time
import zipfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import BinaryIO, List, Tuple, Union

from ..config.schema import ArchiveFormat, ZIP_EPOCH
from ..utils.paths import ensure_directory, remove_if_exists, temporary_sibling
from .assembler import DIR_MODE, StagedEntry, StagingTree
from .build_context import ReleaseError, SignTarget

ZIP64_LIMIT = (1 << 31) - 1


class ArchiveError(ReleaseError):
    """归档相关错误"""
    pass


class ArchiveKind(str, Enum):
    """归档类型"""
    BINARY = "binary"
    SOURCE = "source"


@dataclass(frozen=True)
class ArchiveDescriptor:
    """已产出的归档"""
    path: Path
    format: ArchiveFormat
    kind: ArchiveKind = ArchiveKind.BINARY
    entry_count: int = 0

    @property
    def sign_target(self) -> SignTarget:
        if self.kind == ArchiveKind.SOURCE:
            return SignTarget.SOURCE
        return SignTarget(self.format.value)


_Member = Tuple[Tuple[str, ...], Union[PurePosixPath, StagedEntry]]


def _ordered_members(tree: StagingTree) -> List[_Member]:
    """目录和文件合并后按路径排序，父目录总是排在其内容之前"""
    members: List[_Member] = [(d.parts, d) for d in tree.directories()]
    members.extend((entry.path.parts, entry) for entry in tree.entries())
    members.sort(key=lambda member: member[0])
    return members


class Archiver(ABC):
    """归档器抽象基类"""

    extension = ""

    def __init__(self, prefix: str, timestamp: int = ZIP_EPOCH):
        self.prefix = prefix.strip('/')
        self.timestamp = timestamp

    def member_name(self, relative: PurePosixPath, directory: bool = False) -> str:
        name = f"{self.prefix}/{relative.as_posix()}" if str(relative) not in ('', '.') else self.prefix
        return name + '/' if directory else name

    def archive_path(self, output_dir: Path, base_name: str) -> Path:
        return Path(output_dir) / f"{base_name}.{self.extension}"

    @abstractmethod
    def get_format(self) -> ArchiveFormat:
        """获取归档格式"""
        pass

    @abstractmethod
    def write(self, tree: StagingTree, output_stream: BinaryIO) -> int:
        """把目录树写入流

        Returns:
            int: 写入的条目数（含目录）
        """
        pass

    def create(self, tree: StagingTree, output_path: Path) -> ArchiveDescriptor:
        """写出归档文件

        先写入同目录的临时文件，成功后再移动到最终路径。

        Raises:
            ArchiveError: 写入失败
        """
        output_path = Path(output_path)
        ensure_directory(output_path.parent)
        tmp_path = temporary_sibling(output_path)

        try:
            with open(tmp_path, 'wb') as f:
                count = self.write(tree, f)
            os.replace(tmp_path, output_path)
        except (OSError, tarfile.TarError, zipfile.BadZipFile) as e:
            remove_if_exists(tmp_path)
            raise ArchiveError(f"写入归档失败 {output_path}: {e}") from e

        return ArchiveDescriptor(path=output_path, format=self.get_format(), entry_count=count)


class TarGzArchiver(Archiver):
    """tar + gzip 归档器"""

    extension = "tgz"

    def __init__(self, prefix: str, timestamp: int = ZIP_EPOCH, level: int = 9):
        super().__init__(prefix, timestamp)
        self.level = level

    def get_format(self) -> ArchiveFormat:
        return ArchiveFormat.TGZ

    def _tar_info(self, name: str, mode: int) -> tarfile.TarInfo:
        info = tarfile.TarInfo(name)
        info.mode = mode
        info.mtime = self.timestamp
        info.uid = info.gid = 0
        info.uname = info.gname = ""
        return info

    def write(self, tree: StagingTree, output_stream: BinaryIO) -> int:
        count = 0
        # gzip 头中不写文件名，时间戳固定
        with gzip.GzipFile(filename='', mode='wb', fileobj=output_stream,
                           compresslevel=self.level, mtime=self.timestamp) as gz:
            with tarfile.open(fileobj=gz, mode='w', format=tarfile.PAX_FORMAT) as tar:
                root = self._tar_info(self.member_name(PurePosixPath(), directory=True), DIR_MODE)
                root.type = tarfile.DIRTYPE
                tar.addfile(root)
                count += 1

                for _, member in _ordered_members(tree):
                    if isinstance(member, PurePosixPath):
                        info = self._tar_info(self.member_name(member, directory=True), DIR_MODE)
                        info.type = tarfile.DIRTYPE
                        tar.addfile(info)
                    else:
                        info = self._tar_info(self.member_name(member.path), member.mode)
                        info.size = member.source.stat().st_size
                        with open(member.source, 'rb') as src:
                            tar.addfile(info, src)
                    count += 1
        return count


class ZipArchiver(Archiver):
    """zip 归档器"""

    extension = "zip"

    def __init__(self, prefix: str, timestamp: int = ZIP_EPOCH, level: int = 9):
        super().__init__(prefix, timestamp)
        self.level = min(9, max(1, level))

    def get_format(self) -> ArchiveFormat:
        return ArchiveFormat.ZIP

    def _zip_info(self, name: str, mode: int) -> zipfile.ZipInfo:
        info = zipfile.ZipInfo(name, date_time=time.gmtime(self.timestamp)[:6])
        # 标记为 Unix 创建，解压时才会恢复权限位
        info.create_system = 3
        info.external_attr = mode << 16
        return info

    def write(self, tree: StagingTree, output_stream: BinaryIO) -> int:
        count = 0
        with zipfile.ZipFile(output_stream, 'w', zipfile.ZIP_DEFLATED, compresslevel=self.level) as zf:
            root = self._zip_info(self.member_name(PurePosixPath(), directory=True), stat.S_IFDIR | DIR_MODE)
            root.external_attr |= 0x10
            zf.writestr(root, b'')
            count += 1

            for _, member in _ordered_members(tree):
                if isinstance(member, PurePosixPath):
                    info = self._zip_info(self.member_name(member, directory=True), stat.S_IFDIR | DIR_MODE)
                    info.external_attr |= 0x10  # MS-DOS 目录标记
                    zf.writestr(info, b'')
                else:
                    info = self._zip_info(self.member_name(member.path), stat.S_IFREG | member.mode)
                    info.compress_type = zipfile.ZIP_DEFLATED
                    size = member.source.stat().st_size
                    with open(member.source, 'rb') as src, zf.open(info, 'w', force_zip64=size > ZIP64_LIMIT) as dst:
                        shutil.copyfileobj(src, dst, 64 * 1024)
                count += 1
        return count


class ArchiverFactory:
    """归档器工厂"""

    @staticmethod
    def create_archiver(archive_format: ArchiveFormat, prefix: str, timestamp: int = ZIP_EPOCH) -> Archiver:
        """创建归档器

        Raises:
            ArchiveError: 不支持的格式
        """
        if archive_format == ArchiveFormat.TGZ:
            return TarGzArchiver(prefix, timestamp)
        elif archive_format == ArchiveFormat.ZIP:
            return ZipArchiver(prefix, timestamp)
        raise ArchiveError(f"不支持的归档格式: {archive_format}")

    @staticmethod
    def get_available_formats() -> List[ArchiveFormat]:
        return [ArchiveFormat.TGZ, ArchiveFormat.ZIP]
