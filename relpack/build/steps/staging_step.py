"""
暂存步骤模块

按布局计划把文件复制到暂存目录。
"""

from ...utils import format_size
from ...utils.logging import info, success, error, LogStage
from relpack.build.assembler import DistributionAssembler
from relpack.build.build_context import ReleaseContext, ReleaseError
from .build_step import ReleaseStep


class StagingStep(ReleaseStep):
    """暂存步骤"""

    def __init__(self):
        super().__init__("stage", "组装分发目录")

    def execute(self, context: ReleaseContext) -> None:
        info(f"组装分发目录: {context.staging_dir}", stage=LogStage.STAGE)
        assembler = DistributionAssembler(context.config)

        try:
            tree = assembler.plan(context.components)
            context.staging = assembler.assemble(tree, context.staging_dir)
        except ReleaseError as e:
            error(f"组装分发目录失败: {e}", stage=LogStage.STAGE)
            raise
        except OSError as e:
            error(f"组装分发目录失败: {e}", stage=LogStage.STAGE)
            raise ReleaseError(f"组装分发目录失败: {e}") from e

        context.build_stats['total_files'] = len(context.staging)
        context.build_stats['total_size'] = context.staging.total_size()

        success("分发目录组装完成", stage=LogStage.STAGE)
        info(f"  文件数量: {len(context.staging)}")
        info(f"  总大小: {format_size(context.build_stats['total_size'])}")
