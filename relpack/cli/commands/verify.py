"""
Verify 命令实现

校验 .sha512 文件。
"""

from pathlib import Path
from typing import List

import typer
from rich.console import Console
from rich.markup import escape

from ...build.checksum import ChecksumFormatError, verify_checksum_file


console = Console()


def verify_command(
    files: List[Path] = typer.Argument(..., help="校验和文件（.sha512）"),
) -> None:
    """校验归档的校验和文件

    示例:
        relpack verify build/distributions/lucene-9.0.0-src.tgz.sha512
    """
    failed = 0

    for sidecar in files:
        try:
            ok = verify_checksum_file(sidecar)
        except (ChecksumFormatError, OSError) as e:
            console.print(f"[red]✗ {escape(str(sidecar))}[/red]: {escape(str(e))}")
            failed += 1
            continue

        if ok:
            console.print(f"[green]✓ {escape(sidecar.name)}[/green]: OK")
        else:
            console.print(f"[red]✗ {escape(sidecar.name)}[/red]: 校验和不匹配")
            failed += 1

    if failed:
        raise typer.Exit(1)
