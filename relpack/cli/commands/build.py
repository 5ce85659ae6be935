"""
Build / Stage 命令实现

组装分发目录、打包归档并导出源码快照。
"""

from typing import List, Optional

import typer

from ...build.build_context import ReleaseRequest, SignTarget
from ...config import ArchiveFormat
from ._shared import SIGNING_KEY_ENVVAR, console, load_or_exit, run_release, setup_logging


def build_command(
    config: str = typer.Option(..., "--config", "-c", help="配置文件路径"),
    formats: Optional[List[ArchiveFormat]] = typer.Option(None, "--format", help="归档格式（可重复），默认使用配置"),
    no_source: bool = typer.Option(False, "--no-source", help="不导出源码快照"),
    sign: bool = typer.Option(False, "--sign", help="对产出的归档进行 GPG 签名"),
    signing_key: Optional[str] = typer.Option(None, "--signing-key", envvar=SIGNING_KEY_ENVVAR, help="GPG 密钥名称"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="日志输出文件"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出详细调试日志 (DEBUG 级别)"),
) -> None:
    """构建完整分发

    示例:
        relpack build -c release.yaml
        relpack build -c release.yaml --format tgz --no-source
        relpack build -c release.yaml --sign --signing-key release@example.org
    """
    setup_logging(verbose, log_file)
    config_obj = load_or_exit(config, signing_key)

    selected = list(formats) if formats else list(config_obj.archives.formats)
    source = config_obj.source.enabled and not no_source

    targets = set()
    if sign:
        targets.update(SignTarget(f.value) for f in selected)
        if source:
            targets.add(SignTarget.SOURCE)

    request = ReleaseRequest(install=True, formats=tuple(selected), source=source, sign=frozenset(targets))
    console.print("[cyan]开始构建分发...[/cyan]")
    run_release(config_obj, request, log_file)


def stage_command(
    config: str = typer.Option(..., "--config", "-c", help="配置文件路径"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="日志输出文件"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出详细调试日志 (DEBUG 级别)"),
) -> None:
    """只组装分发目录，不打包

    示例:
        relpack stage -c release.yaml
    """
    setup_logging(verbose, log_file)
    config_obj = load_or_exit(config)

    request = ReleaseRequest(install=True, formats=(), source=False)
    run_release(config_obj, request, log_file)
