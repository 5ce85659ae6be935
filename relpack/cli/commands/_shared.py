"""
命令共用的辅助函数

配置加载、日志初始化和发布结果输出。
"""

import traceback
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from ...build.build_context import ReleaseRequest
from ...build.builder import ReleaseBuilder, ReleaseResult
from ...config import load_config, ConfigError, ConfigValidationError, ReleaseConfig
from ...utils.logging import set_log_level, set_log_file, OutputLevel


console = Console()

SIGNING_KEY_ENVVAR = "RELPACK_SIGNING_KEY"


def setup_logging(verbose: bool, log_file: Optional[str]) -> None:
    """在任何输出之前初始化日志"""
    set_log_level(OutputLevel.DEBUG if verbose else OutputLevel.INFO)

    if log_file:
        try:
            set_log_file(log_file)
        except OSError as e:
            console.print(f"[yellow]无法写入日志文件 {escape(str(log_file))}: {escape(str(e))}[/yellow]")


def load_or_exit(config: str, signing_key: Optional[str] = None) -> ReleaseConfig:
    """加载配置，失败时输出错误并退出"""
    config_path = Path(config)
    console.print(f"[cyan]正在加载配置文件[/cyan]: {escape(str(config_path))}")

    try:
        config_obj = load_config(config_path)
    except ConfigValidationError as e:
        console.print("[red]配置验证失败:[/red]")
        console.print(e.format_errors(), markup=False)
        raise typer.Exit(1)
    except ConfigError as e:
        console.print(f"[red]配置错误[/red]: {escape(str(e))}")
        raise typer.Exit(1)

    if signing_key:
        config_obj.signing.key_name = signing_key

    return config_obj


def progress_callback(stage: str, current: int, total: int, message: str = "") -> None:
    """进度回调函数，显示进度"""
    if total > 0:
        percentage = (current / total) * 100
        console.print(f"[blue]{stage}[/blue]: {message} ({percentage:.0f}%)", highlight=False)


def run_release(config: ReleaseConfig, request: ReleaseRequest, log_file: Optional[str] = None) -> ReleaseResult:
    """执行发布并输出结果，失败时退出"""
    builder = ReleaseBuilder()

    try:
        result = builder.build(config, request, progress_callback=progress_callback)
    except Exception as e:
        console.print(f"[red]✗ 发布过程中发生意外错误[/red]: {escape(str(e))}")
        if log_file:
            console.print(f"[yellow]详细错误信息:[/yellow]\n{escape(traceback.format_exc())}")
        raise typer.Exit(1)

    if not result.success:
        console.print(f"[red]✗ 发布失败[/red] ({result.error_type})")
        console.print(result.error or "", markup=False)
        if log_file:
            console.print(f"[yellow]请检查日志文件 {log_file} 获取详细信息。[/yellow]")
        raise typer.Exit(1)

    console.print("[green]✓ 发布完成[/green]")
    if result.staging_dir:
        console.print(f"[blue]分发目录[/blue]: {result.staging_dir} ({result.total_files} 个文件)")
    for archive in result.archives:
        console.print(f"[blue]{archive.kind.value}/{archive.format.value}[/blue]: {archive.path}")
    for record in result.checksums:
        console.print(f"[blue]{record.algorithm}[/blue]: {record.path}")
    for signature in result.signatures:
        console.print(f"[blue]签名[/blue]: {signature.signature}")

    return result
