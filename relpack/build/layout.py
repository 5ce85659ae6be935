"""
布局规划

决定每个组件及固定文件在分发目录树中的相对路径。
这里的函数都没有副作用（除了读取文件系统判断文件是否存在），相同输入总是得到相同输出。
"""

import fnmatch
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional, Sequence, TYPE_CHECKING

from ..config.schema import ExtraFileModel, ReleaseConfig
from ..utils.logging import warning, debug, LogStage
from ..utils.paths import safe_path_join
from .build_context import MissingArtifactError

if TYPE_CHECKING:
    from .collector import ComponentDescriptor

GLOB_CHARS = set('*?[')


@dataclass(frozen=True)
class PlannedFile:
    """计划中的一个文件：分发目录内的相对路径 -> 源文件"""
    path: PurePosixPath
    source: Path
    origin: str = ""


def destination_for(identifier: str, root_prefix: str = ":") -> PurePosixPath:
    """把组件标识转换为分发目录内的子路径

    去掉公共前缀后把层级分隔符 ':' 转换为 '/'，
    例如 ``:lucene:analysis:common`` 在前缀 ``:lucene:`` 下得到 ``analysis/common``。

    Raises:
        ValueError: 去掉前缀后路径为空
    """
    if identifier.startswith(root_prefix):
        remainder = identifier[len(root_prefix):]
    else:
        remainder = identifier.lstrip(':')

    parts = [part for part in remainder.split(':') if part]
    if not parts:
        raise ValueError(f"组件标识 {identifier} 在前缀 {root_prefix} 下没有对应的子路径")

    return safe_path_join(*parts)


def is_glob(pattern: str) -> bool:
    return any(ch in GLOB_CHARS for ch in pattern)


def plan_root_files(root_dir: Optional[Path], include: Sequence[str]) -> List[PlannedFile]:
    """列出放在分发根目录的固定文件

    字面文件名不存在时报错；glob 模式没有匹配时只给出警告。
    """
    if not include:
        return []
    if root_dir is None:
        raise MissingArtifactError("未设置根目录，无法收集根目录文件")

    root_dir = Path(root_dir)
    planned = {}

    for pattern in include:
        if is_glob(pattern):
            matches = sorted(p for p in root_dir.glob(pattern) if p.is_file())
            if not matches:
                warning(f"根目录文件模式没有匹配任何文件: {pattern}", stage=LogStage.LAYOUT)
        else:
            candidate = root_dir / pattern
            if not candidate.is_file():
                raise MissingArtifactError(f"根目录文件不存在: {candidate}")
            matches = [candidate]

        for match in matches:
            relative = safe_path_join(match.relative_to(root_dir).as_posix())
            planned.setdefault(relative, PlannedFile(relative, match, "root"))

    return [planned[key] for key in sorted(planned)]


def plan_extra_files(extras: Iterable[ExtraFileModel]) -> List[PlannedFile]:
    """列出来自特定组件的额外固定文件"""
    planned = []
    for extra in extras:
        source = Path(extra.path)
        if not source.is_file():
            raise MissingArtifactError(f"额外文件不存在: {source}")
        planned.append(PlannedFile(safe_path_join(extra.into, source.name), source, "extra"))
    return planned


def is_lib_excluded(file_name: str, component: 'ComponentDescriptor', lib_exclude: Sequence[str]) -> bool:
    """判断依赖文件是否应从组件的 lib 目录中排除

    组件自己的主产物总是被排除，避免在 lib 中重复一份。
    """
    if file_name == component.artifact_name:
        return True
    return any(fnmatch.fnmatch(file_name, pattern) for pattern in lib_exclude)


def plan_component_files(component: 'ComponentDescriptor', lib_exclude: Sequence[str] = ()) -> List[PlannedFile]:
    """列出单个组件的文件：主产物和随包文件放在目标路径下，依赖放在 lib 子目录"""
    planned = [PlannedFile(component.destination / component.artifact_name, component.artifact, component.identifier)]

    for extra in component.packaging:
        planned.append(PlannedFile(component.destination / extra.name, extra, component.identifier))

    for dep in component.dependencies:
        if is_lib_excluded(dep.file_name, component, lib_exclude):
            debug(f"lib 排除: {component.identifier} -> {dep.file_name}", stage=LogStage.LAYOUT)
            continue
        planned.append(PlannedFile(component.lib_destination / dep.file_name, dep.file, component.identifier))

    return planned


def plan_docs(docs_dir: Optional[Path]) -> List[PlannedFile]:
    """列出已生成文档目录中的所有文件，放到 docs/ 下"""
    if docs_dir is None:
        return []

    docs_dir = Path(docs_dir)
    if not docs_dir.is_dir():
        raise MissingArtifactError(f"文档目录不存在: {docs_dir}")

    return [
        PlannedFile(safe_path_join("docs", path.relative_to(docs_dir).as_posix()), path, "docs")
        for path in sorted(docs_dir.rglob('*'))
        if path.is_file()
    ]


def build_layout_plan(config: ReleaseConfig, components: Sequence['ComponentDescriptor']) -> List[PlannedFile]:
    """生成完整的布局计划

    条目顺序：根目录文件、额外文件、文档、按组件标识排序的组件文件。
    组件的声明顺序不影响结果。
    """
    layout = config.layout
    planned: List[PlannedFile] = []
    planned.extend(plan_root_files(layout.root_dir, layout.root_files))
    planned.extend(plan_extra_files(layout.extras))
    planned.extend(plan_docs(layout.docs))

    for component in sorted(components, key=lambda c: c.identifier):
        planned.extend(plan_component_files(component, layout.lib_exclude))

    return planned
