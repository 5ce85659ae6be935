"""
发布构建器主类

负责整个发布流程的协调，使用管道模式组织发布步骤。
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..config.schema import ReleaseConfig
from .archiver import ArchiveDescriptor
from .build_context import ProgressCallback, ReleaseError, ReleaseRequest
from .build_pipeline import ReleasePipeline
from .checksum import ChecksumRecord
from .signer import SignatureRecord


@dataclass
class ReleaseResult:
    """发布结果"""
    success: bool
    staging_dir: Optional[Path] = None
    archives: List[ArchiveDescriptor] = field(default_factory=list)
    checksums: List[ChecksumRecord] = field(default_factory=list)
    signatures: List[SignatureRecord] = field(default_factory=list)
    total_files: int = 0
    build_time: Optional[float] = None
    error: Optional[str] = None
    error_type: Optional[str] = None


class ReleaseBuilder:
    """发布构建器

    使用管道模式协调发布步骤，提供统一的构建接口。
    """

    def get_pipeline(self, request: ReleaseRequest) -> ReleasePipeline:
        """获取发布管道，用于自定义发布流程"""
        return ReleasePipeline(request)

    def build(
        self,
        config: ReleaseConfig,
        request: Optional[ReleaseRequest] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> ReleaseResult:
        """执行发布

        Args:
            config: 配置对象
            request: 需要产出的内容，默认按配置生成完整分发（不签名）
            progress_callback: 进度回调函数

        Returns:
            ReleaseResult: 发布结果，失败时 success 为 False 并带有错误信息
        """
        request = request or ReleaseRequest.from_config(config)

        try:
            context = self.get_pipeline(request).execute(config, progress_callback)
        except ReleaseError as e:
            return ReleaseResult(success=False, error=str(e), error_type=type(e).__name__)

        stats = context.build_stats
        return ReleaseResult(
            success=True,
            staging_dir=context.staging_dir if request.install else None,
            archives=list(context.archives),
            checksums=list(context.checksums),
            signatures=list(context.signatures),
            total_files=stats.get('total_files', 0),
            build_time=stats['end_time'] - stats['start_time'],
        )
