"""通用工具模块"""

from .logging import (
    configure_logging,
    get_stage_logger,
    StageLogger,
    LogStage,
    OutputLevel,
)

from .paths import (
    ensure_directory,
    safe_path_join,
    temporary_sibling,
    remove_if_exists,
    format_size,
)

__all__ = [
    # 日志相关
    "configure_logging",
    "get_stage_logger",
    "StageLogger",
    "LogStage",
    "OutputLevel",

    # 路径相关
    "ensure_directory",
    "safe_path_join",
    "temporary_sibling",
    "remove_if_exists",
    "format_size",
]
