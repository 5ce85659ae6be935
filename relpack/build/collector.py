"""
产物收集器

根据配置收集每个子组件的主产物、随包文件和运行时依赖集合，
对依赖集合应用 group 排除规则。只检查文件是否存在，不触发任何编译。
"""

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..config.schema import ComponentModel, DependencyModel, ReleaseConfig
from .build_context import MissingArtifactError
from .layout import destination_for


@dataclass(frozen=True)
class DependencyRef:
    """依赖引用"""
    group: str
    name: str
    file: Path
    version: Optional[str] = None

    @property
    def file_name(self) -> str:
        return self.file.name

    def coordinates(self) -> str:
        if self.version:
            return f"{self.group}:{self.name}:{self.version}"
        return f"{self.group}:{self.name}"


@dataclass(frozen=True)
class ComponentDescriptor:
    """组件描述符

    每个被包含的组件在计划阶段创建一次，之后不再修改。
    """
    identifier: str
    artifact: Path
    destination: PurePosixPath
    packaging: Tuple[Path, ...] = ()
    dependencies: Tuple[DependencyRef, ...] = ()

    @property
    def artifact_name(self) -> str:
        return self.artifact.name

    @property
    def lib_destination(self) -> PurePosixPath:
        return self.destination / "lib"


def filter_dependencies(
    dependencies: Iterable[DependencyRef],
    exclude_groups: Sequence[str],
) -> List[DependencyRef]:
    """对依赖集合去重并排除指定 group

    按解析后的文件路径去重（先出现者保留），group 完全匹配排除列表的依赖被移除，
    结果按文件名排序以保证输出稳定。
    """
    excluded = set(exclude_groups)
    seen: Dict[Path, DependencyRef] = {}

    for dep in dependencies:
        if dep.group in excluded:
            continue
        key = dep.file.resolve()
        if key not in seen:
            seen[key] = dep

    return sorted(seen.values(), key=lambda d: (d.file_name, str(d.file)))


class ArtifactCollector:
    """产物收集器"""

    def __init__(self, root_prefix: str = ":", exclude_groups: Optional[Sequence[str]] = None):
        self.root_prefix = root_prefix
        self.exclude_groups = list(exclude_groups or [])
        self.excluded_dependencies: List[Tuple[str, DependencyRef]] = []

    @classmethod
    def from_config(cls, config: ReleaseConfig) -> 'ArtifactCollector':
        return cls(config.layout.root_prefix, config.exclude_groups)

    def collect(self, components: Sequence[ComponentModel]) -> List[ComponentDescriptor]:
        """收集组件

        Raises:
            MissingArtifactError: 主产物、随包文件或保留的依赖文件不存在
        """
        self.excluded_dependencies.clear()
        return [self.describe(component) for component in components]

    def describe(self, component: ComponentModel) -> ComponentDescriptor:
        """为单个组件创建描述符"""
        artifact = Path(component.artifact)
        self._require_file(artifact, f"组件 {component.path} 的主产物不存在: {artifact}")

        for extra in component.packaging:
            self._require_file(Path(extra), f"组件 {component.path} 的随包文件不存在: {extra}")

        all_deps = [self._to_ref(dep) for dep in component.dependencies]
        kept = filter_dependencies(all_deps, self.exclude_groups)

        kept_ids = {id(dep) for dep in kept}
        for dep in all_deps:
            if dep.group in self.exclude_groups:
                self.excluded_dependencies.append((component.path, dep))
            elif id(dep) in kept_ids:
                self._require_file(
                    dep.file,
                    f"组件 {component.path} 的依赖 {dep.coordinates()} 文件不存在: {dep.file}",
                )

        return ComponentDescriptor(
            identifier=component.path,
            artifact=artifact,
            destination=destination_for(component.path, self.root_prefix),
            packaging=tuple(Path(p) for p in sorted(component.packaging, key=lambda p: Path(p).name)),
            dependencies=tuple(kept),
        )

    @staticmethod
    def _to_ref(dep: DependencyModel) -> DependencyRef:
        return DependencyRef(group=dep.group, name=dep.name, file=Path(dep.file), version=dep.version)

    @staticmethod
    def _require_file(path: Path, message: str) -> None:
        if not path.is_file():
            raise MissingArtifactError(message)


def collect_components(config: ReleaseConfig) -> List[ComponentDescriptor]:
    """便捷函数：收集配置中所有被包含的组件"""
    collector = ArtifactCollector.from_config(config)
    return collector.collect(config.included_components())
