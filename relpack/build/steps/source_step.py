"""
源码快照步骤模块
"""

from ...utils import format_size
from ...utils.logging import info, success, error, LogStage
from relpack.build.build_context import ReleaseContext, ReleaseError
from relpack.build.source import SourceSnapshotProducer
from .build_step import ReleaseStep


class SourceSnapshotStep(ReleaseStep):
    """源码快照步骤"""

    def __init__(self):
        super().__init__("source", "导出源码快照")

    def execute(self, context: ReleaseContext) -> None:
        producer = SourceSnapshotProducer.from_config(context.config)
        target = SourceSnapshotProducer.archive_path(context.config)
        info(f"导出源码快照: {producer.repository} @ {producer.ref}", stage=LogStage.SOURCE)

        try:
            descriptor, record = producer.produce(target)
        except ReleaseError as e:
            error(f"源码快照失败: {e}", stage=LogStage.SOURCE)
            raise
        except OSError as e:
            error(f"源码快照失败: {e}", stage=LogStage.SOURCE)
            raise ReleaseError(f"源码快照失败: {e}") from e

        context.archives.append(descriptor)
        context.checksums.append(record)
        success(f"源码快照完成: {target.name} ({format_size(target.stat().st_size)})", stage=LogStage.SOURCE)
