"""
构建上下文模块

定义发布过程中的共享数据结构和异常类。
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Sequence, TYPE_CHECKING

from ..config.schema import ArchiveFormat, ReleaseConfig

if TYPE_CHECKING:
    from .archiver import ArchiveDescriptor
    from .assembler import StagingTree
    from .checksum import ChecksumRecord
    from .collector import ComponentDescriptor
    from .signer import SignatureRecord

# 进度回调类型
ProgressCallback = Callable[[str, int, int, str], None]


class ReleaseError(Exception):
    """发布错误基类"""
    pass


class PreconditionError(ReleaseError):
    """前置条件不满足（签名密钥未设置、外部工具缺失等）"""
    pass


class MissingArtifactError(ReleaseError):
    """需要的构建产物不存在"""
    pass


class StagingConflictError(ReleaseError):
    """暂存目录中同一路径对应了不同内容"""
    pass


class ExternalToolError(ReleaseError):
    """外部工具（git、gpg）以非零状态退出"""

    def __init__(self, tool: str, command: Sequence[str], returncode: int, stderr: str = ""):
        self.tool = tool
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr.strip()
        message = f"{tool} 执行失败 (exit {returncode}): {' '.join(self.command)}"
        if self.stderr:
            message += f"\n{self.stderr}"
        super().__init__(message)


class SignTarget(str, Enum):
    """可签名的归档"""
    TGZ = "tgz"
    ZIP = "zip"
    SOURCE = "source"


@dataclass(frozen=True)
class ReleaseRequest:
    """一次运行需要产出的内容

    依赖关系在创建时归一化：签名二进制归档意味着需要该格式，
    签名源码归档意味着需要源码快照，任何二进制归档都需要暂存目录。
    """
    install: bool = True
    formats: Sequence[ArchiveFormat] = (ArchiveFormat.TGZ, ArchiveFormat.ZIP)
    source: bool = True
    sign: FrozenSet[SignTarget] = frozenset()

    def __post_init__(self):
        formats = [ArchiveFormat(f) for f in self.formats]
        sign = frozenset(SignTarget(s) for s in self.sign)

        if SignTarget.TGZ in sign and ArchiveFormat.TGZ not in formats:
            formats.append(ArchiveFormat.TGZ)
        if SignTarget.ZIP in sign and ArchiveFormat.ZIP not in formats:
            formats.append(ArchiveFormat.ZIP)

        # frozen dataclass 只能通过 object.__setattr__ 归一化
        object.__setattr__(self, 'formats', tuple(dict.fromkeys(formats)))
        object.__setattr__(self, 'sign', sign)
        object.__setattr__(self, 'source', self.source or SignTarget.SOURCE in sign)
        object.__setattr__(self, 'install', self.install or bool(self.formats))

    @classmethod
    def from_config(cls, config: ReleaseConfig, sign: bool = False) -> 'ReleaseRequest':
        """按配置文件的默认设置生成完整发布请求"""
        formats = tuple(config.archives.formats)
        targets = set()
        if sign:
            targets.update(SignTarget(f.value) for f in formats)
            if config.source.enabled:
                targets.add(SignTarget.SOURCE)
        return cls(install=True, formats=formats, source=config.source.enabled, sign=frozenset(targets))


@dataclass
class ReleaseContext:
    """发布上下文，包含整个运行过程中的共享数据"""
    config: ReleaseConfig
    request: ReleaseRequest
    progress_callback: Optional[ProgressCallback] = None

    # 运行过程中生成的数据
    components: List['ComponentDescriptor'] = field(default_factory=list)
    staging: Optional['StagingTree'] = None
    archives: List['ArchiveDescriptor'] = field(default_factory=list)
    checksums: List['ChecksumRecord'] = field(default_factory=list)
    signatures: List['SignatureRecord'] = field(default_factory=list)

    build_stats: Dict[str, Any] = field(default_factory=lambda: {
        'start_time': 0,
        'end_time': 0,
        'total_components': 0,
        'total_files': 0,
        'total_size': 0,
    })

    @property
    def output_dir(self) -> Path:
        return self.config.output.directory

    @property
    def staging_dir(self) -> Path:
        return self.config.output.staging_dir

    def archive_for(self, target: SignTarget) -> Optional['ArchiveDescriptor']:
        """按签名目标查找已产出的归档"""
        for archive in self.archives:
            if archive.sign_target == target:
                return archive
        return None

    def report(self, stage: str, current: int, total: int, message: str = "") -> None:
        if self.progress_callback:
            self.progress_callback(stage, current, total, message)
