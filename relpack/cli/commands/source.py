"""
Source 命令实现

只导出源码快照并写出校验和。
"""

from typing import Optional

import typer

from ...build.build_context import ReleaseRequest
from ._shared import load_or_exit, run_release, setup_logging


def source_command(
    config: str = typer.Option(..., "--config", "-c", help="配置文件路径"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="日志输出文件"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出详细调试日志 (DEBUG 级别)"),
) -> None:
    """导出源码快照

    示例:
        relpack source -c release.yaml
    """
    setup_logging(verbose, log_file)
    config_obj = load_or_exit(config)

    request = ReleaseRequest(install=False, formats=(), source=True)
    run_release(config_obj, request, log_file)
