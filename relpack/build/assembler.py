"""
分发目录组装器

把布局计划落实为暂存目录树：复制文件、设置权限位、检测路径冲突。
"""

import filecmp
import fnmatch
import os
import shutil
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set

from ..config.schema import ReleaseConfig
from ..utils.logging import debug, info, LogStage
from ..utils.paths import ensure_directory
from .build_context import MissingArtifactError, StagingConflictError
from .collector import ComponentDescriptor
from .layout import PlannedFile, build_layout_plan

SCRIPT_PATTERNS = ("*.sh", "*.bat", "*.cmd")
FILE_MODE = 0o644
EXEC_MODE = 0o755
DIR_MODE = 0o755


def mode_for(path: PurePosixPath) -> int:
    """脚本文件总是可执行，与构建所在平台无关"""
    name = path.name.lower()
    if any(fnmatch.fnmatchcase(name, pattern) for pattern in SCRIPT_PATTERNS):
        return EXEC_MODE
    return FILE_MODE


@dataclass(frozen=True)
class StagedEntry:
    """暂存目录中的一个文件"""
    path: PurePosixPath
    source: Path
    mode: int
    origin: str = ""

    @property
    def size(self) -> int:
        return self.source.stat().st_size


def _same_content(a: Path, b: Path) -> bool:
    if a.resolve() == b.resolve():
        return True
    return filecmp.cmp(a, b, shallow=False)


class StagingTree:
    """暂存目录树：相对路径 -> 源文件

    同一路径重复添加相同内容是允许的，内容不同则视为冲突。
    """

    def __init__(self):
        self._entries: Dict[PurePosixPath, StagedEntry] = {}
        self._directories: Set[PurePosixPath] = set()

    def add(self, path: PurePosixPath, source: Path, origin: str = "") -> StagedEntry:
        """添加条目

        Raises:
            MissingArtifactError: 源文件不存在
            StagingConflictError: 路径已被不同内容或目录占用
        """
        path = PurePosixPath(path)
        source = Path(source)

        if not source.is_file():
            raise MissingArtifactError(f"源文件不存在: {source} (目标 {path})")

        if path in self._directories:
            raise StagingConflictError(f"路径冲突: {path} 已经是一个目录")

        for parent in path.parents:
            if parent in self._entries:
                raise StagingConflictError(f"路径冲突: {parent} 已经是一个文件，无法放入 {path}")

        existing = self._entries.get(path)
        if existing is not None:
            if _same_content(existing.source, source):
                debug(f"跳过重复条目: {path}", stage=LogStage.STAGE)
                return existing
            raise StagingConflictError(
                f"路径冲突: {path} 同时来自 {existing.source} ({existing.origin}) 和 {source} ({origin})"
            )

        entry = StagedEntry(path=path, source=source, mode=mode_for(path), origin=origin)
        self._entries[path] = entry
        self._directories.update(p for p in path.parents if p != PurePosixPath('.'))
        return entry

    @classmethod
    def from_plan(cls, planned: Iterable[PlannedFile]) -> 'StagingTree':
        tree = cls()
        for item in planned:
            tree.add(item.path, item.source, item.origin)
        return tree

    def entries(self) -> List[StagedEntry]:
        """按路径排序的条目列表"""
        return [self._entries[key] for key in sorted(self._entries)]

    def directories(self) -> List[PurePosixPath]:
        return sorted(self._directories)

    def get(self, path: PurePosixPath) -> Optional[StagedEntry]:
        return self._entries.get(PurePosixPath(path))

    def total_size(self) -> int:
        return sum(entry.size for entry in self._entries.values())

    def relocate(self, root: Path) -> 'StagingTree':
        """返回源文件指向暂存目录副本的新树"""
        tree = StagingTree()
        for entry in self.entries():
            staged = StagedEntry(entry.path, root.joinpath(*entry.path.parts), entry.mode, entry.origin)
            tree._entries[entry.path] = staged
        tree._directories = set(self._directories)
        return tree

    def __contains__(self, path) -> bool:
        return PurePosixPath(path) in self._entries

    def __iter__(self) -> Iterator[StagedEntry]:
        return iter(self.entries())

    def __len__(self) -> int:
        return len(self._entries)


class DistributionAssembler:
    """分发目录组装器"""

    def __init__(self, config: ReleaseConfig):
        self.config = config

    def plan(self, components: Sequence[ComponentDescriptor]) -> StagingTree:
        """根据布局计划生成暂存目录树（不写文件）"""
        return StagingTree.from_plan(build_layout_plan(self.config, components))

    def assemble(self, tree: StagingTree, directory: Optional[Path] = None) -> StagingTree:
        """把暂存树写入目录

        目录会先被清空，重复运行结果一致。

        Returns:
            StagingTree: 源文件指向暂存目录副本的树
        """
        directory = Path(directory or self.config.output.staging_dir)

        if directory.exists():
            debug(f"清空暂存目录: {directory}", stage=LogStage.STAGE)
            shutil.rmtree(directory)
        ensure_directory(directory)
        os.chmod(directory, DIR_MODE)

        for rel_dir in tree.directories():
            target_dir = directory.joinpath(*rel_dir.parts)
            target_dir.mkdir(parents=True, exist_ok=True)
            os.chmod(target_dir, DIR_MODE)

        for entry in tree.entries():
            target = directory.joinpath(*entry.path.parts)
            shutil.copyfile(entry.source, target)
            os.chmod(target, entry.mode)

        info(f"已写入 {len(tree)} 个文件到 {directory}", stage=LogStage.STAGE)
        return tree.relocate(directory)
