"""发布步骤"""

from .build_step import ReleaseStep
from .precondition_step import PreconditionStep
from .collection_step import CollectionStep
from .staging_step import StagingStep
from .archive_step import ArchiveStep
from .source_step import SourceSnapshotStep
from .signing_step import SigningStep

__all__ = [
    "ReleaseStep",
    "PreconditionStep",
    "CollectionStep",
    "StagingStep",
    "ArchiveStep",
    "SourceSnapshotStep",
    "SigningStep",
]
