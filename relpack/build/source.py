"""
源码快照

使用 git archive 把当前提交的源码树导出为 tgz，并写出校验和文件。
"""

import os
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

from ..config.schema import ArchiveFormat, ReleaseConfig
from ..utils.logging import debug, info, LogStage
from ..utils.paths import ensure_directory, remove_if_exists, temporary_sibling
from .archiver import ArchiveDescriptor, ArchiveKind
from .build_context import ExternalToolError, PreconditionError
from .checksum import ChecksumRecord, write_checksum_file


def find_executable(name: str) -> Optional[str]:
    """查找外部工具；给出路径时直接检查该文件"""
    if os.sep in name or (os.altsep and os.altsep in name):
        return name if Path(name).is_file() else None
    return shutil.which(name)


class SourceSnapshotProducer:
    """源码快照生成器"""

    def __init__(self, repository: Path, prefix: str, ref: str = "HEAD", git: str = "git"):
        self.repository = Path(repository)
        self.prefix = prefix.strip('/')
        self.ref = ref
        self.git = git

    @classmethod
    def from_config(cls, config: ReleaseConfig) -> 'SourceSnapshotProducer':
        repository = config.source.repository or config.layout.root_dir or Path.cwd()
        return cls(repository, config.dist_name, config.source.ref, config.source.git)

    @staticmethod
    def archive_path(config: ReleaseConfig) -> Path:
        return config.output.directory / f"{config.dist_name}-src.tgz"

    def check_available(self) -> None:
        """Raises: PreconditionError: 找不到 git 或仓库目录"""
        if find_executable(self.git) is None:
            raise PreconditionError(f"找不到 git 可执行文件: {self.git}")
        if not self.repository.is_dir():
            raise PreconditionError(f"源码仓库目录不存在: {self.repository}")

    def build_command(self, output: Path) -> List[str]:
        return [
            self.git,
            "archive",
            "--format", "tgz",
            "--prefix", f"{self.prefix}/",
            "--output", str(output),
            self.ref,
        ]

    def _run_git(self, command: List[str], cwd: Path) -> subprocess.CompletedProcess:
        """Raises: ExternalToolError: git 无法启动或以非零状态退出"""
        debug(f"执行: {' '.join(command)}", stage=LogStage.SOURCE)
        try:
            result = subprocess.run(command, cwd=str(cwd), capture_output=True, text=True)
        except OSError as e:
            raise ExternalToolError("git", command, -1, str(e)) from e

        if result.returncode != 0:
            raise ExternalToolError("git", command, result.returncode, result.stderr or result.stdout)
        return result

    def toplevel(self) -> Path:
        """仓库根目录

        在子目录中执行 git archive 只会导出该子目录，因此总是在根目录执行。
        """
        result = self._run_git([self.git, "rev-parse", "--show-toplevel"], self.repository)
        return Path(result.stdout.strip())

    def export(self, target: Path) -> ArchiveDescriptor:
        """导出源码归档

        git 成功退出后才会把临时文件移动到目标路径，失败时不留下残缺文件。

        Raises:
            ExternalToolError: git 以非零状态退出
        """
        target = Path(target)
        ensure_directory(target.parent)
        root = self.toplevel()
        tmp_path = temporary_sibling(target)

        try:
            self._run_git(self.build_command(tmp_path), root)
        except ExternalToolError:
            remove_if_exists(tmp_path)
            raise

        os.replace(tmp_path, target)
        info(f"源码快照已导出: {target.name} ({self.ref} @ {root})", stage=LogStage.SOURCE)
        return ArchiveDescriptor(path=target, format=ArchiveFormat.TGZ, kind=ArchiveKind.SOURCE)

    def produce(self, target: Path) -> Tuple[ArchiveDescriptor, ChecksumRecord]:
        """导出源码归档并写出 .sha512"""
        descriptor = self.export(target)
        return descriptor, write_checksum_file(descriptor.path)
