"""
归档步骤模块

把暂存目录树打包为配置的各种归档格式。
"""

from ...utils import format_size
from ...utils.logging import info, success, error, LogStage
from relpack.build.archiver import ArchiverFactory
from relpack.build.build_context import ReleaseContext, ReleaseError
from relpack.build.checksum import write_checksum_file
from .build_step import ReleaseStep


class ArchiveStep(ReleaseStep):
    """归档步骤"""

    def __init__(self):
        super().__init__("archive", "打包二进制分发")

    def execute(self, context: ReleaseContext) -> None:
        if context.staging is None:
            raise ReleaseError("暂存目录尚未组装，无法打包")

        config = context.config
        formats = context.request.formats

        for i, archive_format in enumerate(formats):
            archiver = ArchiverFactory.create_archiver(archive_format, config.dist_name, config.archives.timestamp)
            target = archiver.archive_path(context.output_dir, config.dist_name)
            context.report("打包", i, len(formats), target.name)

            try:
                descriptor = archiver.create(context.staging, target)
            except ReleaseError as e:
                error(str(e), stage=LogStage.ARCHIVE)
                raise

            context.archives.append(descriptor)
            info(f"{archive_format.value}: {target.name} ({format_size(target.stat().st_size)}, {descriptor.entry_count} 个条目)",
                 stage=LogStage.ARCHIVE)

            if config.archives.checksums:
                context.checksums.append(write_checksum_file(target))

        success("二进制分发打包完成", stage=LogStage.ARCHIVE)
