"""
Sign 命令实现

生成需要的归档并进行 GPG 签名。签名密钥未设置时在任何其他工作之前失败。
"""

from typing import List, Optional

import typer

from ...build.build_context import ReleaseRequest, SignTarget
from ._shared import SIGNING_KEY_ENVVAR, load_or_exit, run_release, setup_logging


def sign_command(
    config: str = typer.Option(..., "--config", "-c", help="配置文件路径"),
    only: Optional[List[SignTarget]] = typer.Option(None, "--only", help="只签名指定归档（可重复）：tgz、zip、source"),
    signing_key: Optional[str] = typer.Option(None, "--signing-key", envvar=SIGNING_KEY_ENVVAR, help="GPG 密钥名称"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="日志输出文件"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出详细调试日志 (DEBUG 级别)"),
) -> None:
    """签名分发归档

    示例:
        relpack sign -c release.yaml --signing-key release@example.org
        relpack sign -c release.yaml --only source
    """
    setup_logging(verbose, log_file)
    config_obj = load_or_exit(config, signing_key)

    if only:
        request = ReleaseRequest(install=False, formats=(), source=False, sign=frozenset(only))
    else:
        request = ReleaseRequest.from_config(config_obj, sign=True)

    run_release(config_obj, request, log_file)
