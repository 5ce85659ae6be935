"""
relpack - 发布分发打包工具

收集子组件的构建产物，组装分发目录树，打包为 tgz/zip 归档，
导出源码快照并计算校验和，可选 GPG 签名。
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .config.schema import ReleaseConfig
from .build.builder import ReleaseBuilder, ReleaseResult
from .build.build_context import ReleaseRequest

__all__ = ["ReleaseConfig", "ReleaseBuilder", "ReleaseResult", "ReleaseRequest", "__version__"]
