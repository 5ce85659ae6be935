"""
产物收集步骤模块

收集每个组件的主产物和依赖集合。
"""

from ...utils.logging import info, success, debug, error, LogStage
from relpack.build.build_context import ReleaseContext, ReleaseError
from .build_step import ReleaseStep
from relpack.build.collector import ArtifactCollector


class CollectionStep(ReleaseStep):
    """产物收集步骤"""

    def __init__(self):
        super().__init__("collect", "收集组件产物")

    def execute(self, context: ReleaseContext) -> None:
        config = context.config
        included = config.included_components()
        info(f"收集组件产物: {len(included)} 个组件", stage=LogStage.COLLECT)

        skipped = [c.path for c in config.components if c.path in set(config.exclude_components)]
        for path in skipped:
            debug(f"不进入二进制分发: {path}", stage=LogStage.COLLECT)

        collector = ArtifactCollector.from_config(config)
        try:
            for i, component in enumerate(included):
                context.report("收集组件", i, len(included), component.path)
                descriptor = collector.describe(component)
                context.components.append(descriptor)
                debug(
                    f"{descriptor.identifier} -> {descriptor.destination}/ "
                    f"({descriptor.artifact_name}, {len(descriptor.dependencies)} 个依赖)",
                    stage=LogStage.COLLECT,
                )
        except ReleaseError as e:
            error(f"产物收集失败: {e}", stage=LogStage.COLLECT)
            raise

        for component_id, dep in collector.excluded_dependencies:
            debug(f"排除依赖: {component_id} -> {dep.coordinates()}", stage=LogStage.COLLECT)

        context.build_stats['total_components'] = len(context.components)
        success("产物收集完成", stage=LogStage.COLLECT)
