"""
前置条件校验步骤

在任何收集、暂存或归档工作开始之前检查本次运行需要的前置条件，
缺少签名密钥时立即失败，而不是等其他耗时步骤完成之后。
"""

from pathlib import Path
from typing import Iterator, Tuple

from ...utils.logging import info, success, error, LogStage
from relpack.build.build_context import PreconditionError, ReleaseContext
from .build_step import ReleaseStep
from relpack.build.signer import Signer
from relpack.build.source import SourceSnapshotProducer
from relpack.config.schema import ReleaseConfig


def _is_within(path: Path, parent: Path) -> bool:
    path, parent = path.resolve(), parent.resolve()
    return path == parent or parent in path.parents


def _configured_inputs(config: ReleaseConfig) -> Iterator[Tuple[str, Path]]:
    """配置中引用的所有输入文件和目录"""
    for component in config.components:
        yield f"组件 {component.path} 的主产物", component.artifact
        for packaging in component.packaging:
            yield f"组件 {component.path} 的附加文件", packaging
        for dependency in component.dependencies:
            yield f"依赖 {dependency.group}:{dependency.name}", dependency.file

    layout = config.layout
    if layout.root_dir:
        yield "根目录文件目录", layout.root_dir
    if layout.docs:
        yield "文档目录", layout.docs
    for extra in layout.extras:
        yield "额外文件", extra.path

    if config.source.repository:
        yield "源码仓库", config.source.repository


class PreconditionStep(ReleaseStep):
    """前置条件校验步骤"""

    def __init__(self):
        super().__init__("validate", "校验前置条件")

    def execute(self, context: ReleaseContext) -> None:
        request = context.request
        info("校验前置条件", stage=LogStage.VALIDATE)

        try:
            if request.sign:
                Signer.from_config(context.config.signing).check_preconditions()

            if request.source:
                SourceSnapshotProducer.from_config(context.config).check_available()

            if request.install and _is_within(context.output_dir, context.staging_dir):
                raise PreconditionError(
                    f"输出目录 {context.output_dir} 不能位于暂存目录 {context.staging_dir} 之内（暂存目录每次运行都会被清空）"
                )

            if request.install:
                for label, path in _configured_inputs(context.config):
                    if _is_within(path, context.staging_dir):
                        raise PreconditionError(
                            f"{label} {path} 位于暂存目录 {context.staging_dir} 之内（暂存目录每次运行都会被清空）"
                        )
        except PreconditionError as e:
            error(str(e), stage=LogStage.VALIDATE)
            raise

        success("前置条件满足", stage=LogStage.VALIDATE)
