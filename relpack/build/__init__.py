"""发布构建模块

提供产物收集、目录组装、归档、源码快照和签名的核心功能。
"""

from .build_context import (
    ExternalToolError,
    MissingArtifactError,
    PreconditionError,
    ReleaseContext,
    ReleaseError,
    ReleaseRequest,
    SignTarget,
    StagingConflictError,
)
from .layout import PlannedFile, build_layout_plan, destination_for
from .collector import ArtifactCollector, ComponentDescriptor, DependencyRef, collect_components, filter_dependencies
from .assembler import DistributionAssembler, StagedEntry, StagingTree
from .archiver import (
    ArchiveDescriptor,
    ArchiveError,
    ArchiveKind,
    Archiver,
    ArchiverFactory,
    TarGzArchiver,
    ZipArchiver,
)
from .checksum import (
    ChecksumCalculator,
    ChecksumFormatError,
    ChecksumRecord,
    verify_checksum_file,
    write_checksum_file,
)
from .source import SourceSnapshotProducer
from .signer import SignatureRecord, Signer
from .builder import ReleaseBuilder, ReleaseResult

__all__ = [
    # 主构建器
    "ReleaseBuilder",
    "ReleaseResult",
    "ReleaseRequest",
    "ReleaseContext",
    "SignTarget",

    # 错误
    "ReleaseError",
    "PreconditionError",
    "MissingArtifactError",
    "ExternalToolError",
    "StagingConflictError",
    "ArchiveError",
    "ChecksumFormatError",

    # 收集与布局
    "ArtifactCollector",
    "ComponentDescriptor",
    "DependencyRef",
    "collect_components",
    "filter_dependencies",
    "PlannedFile",
    "build_layout_plan",
    "destination_for",

    # 组装
    "DistributionAssembler",
    "StagedEntry",
    "StagingTree",

    # 归档与校验和
    "Archiver",
    "ArchiverFactory",
    "ArchiveDescriptor",
    "ArchiveKind",
    "TarGzArchiver",
    "ZipArchiver",
    "ChecksumCalculator",
    "ChecksumRecord",
    "write_checksum_file",
    "verify_checksum_file",

    # 源码与签名
    "SourceSnapshotProducer",
    "Signer",
    "SignatureRecord",
]
