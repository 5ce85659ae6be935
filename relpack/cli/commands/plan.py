"""
Plan 命令实现

显示组件在分发目录中的布局，不写任何文件。
"""

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ...build.build_context import ReleaseError
from ...build.collector import collect_components
from ...build.layout import build_layout_plan
from ._shared import load_or_exit


console = Console()


def plan_command(
    config: str = typer.Option(..., "--config", "-c", help="配置文件路径"),
    files: bool = typer.Option(False, "--files", help="列出计划中的每个文件"),
) -> None:
    """显示分发目录布局

    示例:
        relpack plan -c release.yaml
        relpack plan -c release.yaml --files
    """
    config_obj = load_or_exit(config)

    try:
        components = collect_components(config_obj)
        planned = build_layout_plan(config_obj, components)
    except ReleaseError as e:
        console.print(f"[red]✗ 无法生成布局[/red]: {escape(str(e))}")
        raise typer.Exit(1)

    table = Table(title=f"{config_obj.dist_name} 组件布局")
    table.add_column("组件", style="cyan", no_wrap=True)
    table.add_column("目标路径", style="green")
    table.add_column("主产物")
    table.add_column("依赖", justify="right")

    for component in sorted(components, key=lambda c: c.identifier):
        table.add_row(
            component.identifier,
            f"{component.destination}/",
            component.artifact_name,
            str(len(component.dependencies)),
        )

    console.print(table)

    if config_obj.exclude_components:
        console.print(f"[dim]不进入二进制分发: {', '.join(config_obj.exclude_components)}[/dim]")

    if files:
        file_table = Table(title="文件")
        file_table.add_column("路径", style="green")
        file_table.add_column("来源", style="dim")
        for item in sorted(planned, key=lambda p: p.path):
            file_table.add_row(f"{config_obj.dist_name}/{item.path.as_posix()}", str(item.source))
        console.print(file_table)

    console.print(f"共 {len(planned)} 个文件")
