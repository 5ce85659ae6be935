"""
发布管道模块

使用管道模式协调发布步骤的执行。前置条件校验总是第一个执行。
"""

import time
from typing import List, Optional

from ..config.schema import ReleaseConfig
from ..utils import format_size
from ..utils.logging import info, success, error, debug, get_output_facade, LogStage, OutputLevel
from .build_context import ProgressCallback, ReleaseContext, ReleaseError, ReleaseRequest
from .steps.build_step import ReleaseStep
from .steps.precondition_step import PreconditionStep
from .steps.collection_step import CollectionStep
from .steps.staging_step import StagingStep
from .steps.archive_step import ArchiveStep
from .steps.source_step import SourceSnapshotStep
from .steps.signing_step import SigningStep


class ReleasePipeline:
    """发布管道，负责按请求安排并执行发布步骤"""

    def __init__(self, request: ReleaseRequest):
        self.request = request
        self._steps: List[ReleaseStep] = []
        self._init_default_steps()

    def _init_default_steps(self):
        """按请求选择需要的步骤"""
        request = self.request
        self._steps = [PreconditionStep()]

        if request.install:
            self._steps += [CollectionStep(), StagingStep()]
        if request.formats:
            self._steps.append(ArchiveStep())
        if request.source:
            self._steps.append(SourceSnapshotStep())
        if request.sign:
            self._steps.append(SigningStep())

    def add_step(self, step: ReleaseStep, position: Optional[int] = None):
        """添加步骤"""
        if position is None:
            self._steps.append(step)
        else:
            self._steps.insert(position, step)

    def remove_step(self, step_name: str):
        """移除步骤"""
        self._steps = [step for step in self._steps if step.name != step_name]

    def get_steps(self) -> List[ReleaseStep]:
        """获取所有步骤"""
        return self._steps.copy()

    def execute(
        self,
        config: ReleaseConfig,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> ReleaseContext:
        """执行发布管道

        Returns:
            ReleaseContext: 包含所有产出的上下文

        Raises:
            ReleaseError: 遇到的第一个致命错误
        """
        errors = self.validate_pipeline()
        if errors:
            raise ReleaseError("发布管道无效: " + "; ".join(errors))

        context = ReleaseContext(config=config, request=self.request, progress_callback=progress_callback)
        context.build_stats['start_time'] = time.time()
        get_output_facade().reset_counts()

        try:
            info(f"开始发布: {config.dist_name}", stage=LogStage.INIT)
            debug(
                f"请求: install={self.request.install} formats={[f.value for f in self.request.formats]} "
                f"source={self.request.source} sign={sorted(t.value for t in self.request.sign)}",
                stage=LogStage.INIT,
            )

            total = len(self._steps)
            for index, step in enumerate(self._steps):
                info(f"执行步骤: {step.description}", stage=LogStage.INIT)
                context.report(step.description, index, total, step.name)
                step.execute(context)

            context.build_stats['end_time'] = time.time()
            context.report("完成", total, total, config.dist_name)
            build_time = context.build_stats['end_time'] - context.build_stats['start_time']

            success(f"发布完成: {config.dist_name}", stage=LogStage.DONE)
            info(f"耗时: {build_time:.1f}秒")
            warnings = get_output_facade().count(OutputLevel.WARNING)
            if warnings:
                info(f"运行期间有 {warnings} 个警告", stage=LogStage.DONE)
            for archive in context.archives:
                info(f"  {archive.path} ({format_size(archive.path.stat().st_size)})")
            for record in context.checksums:
                info(f"  {record.path}")
            for signature in context.signatures:
                info(f"  {signature.signature}")

            return context

        except ReleaseError as e:
            context.build_stats['end_time'] = time.time()
            error(f"发布失败: {e}", stage=LogStage.DONE)
            raise
        except OSError as e:
            context.build_stats['end_time'] = time.time()
            error(f"发布失败: {e}", stage=LogStage.DONE)
            raise ReleaseError(f"发布失败: {e}") from e

    def validate_pipeline(self) -> List[str]:
        """验证管道的完整性

        Returns:
            List[str]: 验证错误列表，空列表表示验证通过
        """
        errors = []

        if not self._steps:
            errors.append("发布管道中没有步骤")
            return errors

        if not isinstance(self._steps[0], PreconditionStep):
            errors.append("前置条件校验必须是第一个步骤")

        names = [step.name for step in self._steps]
        if len(names) != len(set(names)):
            errors.append(f"步骤名称重复: {names}")

        order = {name: i for i, name in enumerate(names)}
        for before, after in (("collect", "stage"), ("stage", "archive"), ("archive", "sign"), ("source", "sign")):
            if before in order and after in order and order[before] > order[after]:
                errors.append(f"步骤 '{before}' 必须在 '{after}' 之前执行")

        return errors
