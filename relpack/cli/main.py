"""
relpack CLI 主入口

提供命令行接口，支持 build/stage/source/sign/plan/validate/verify 等命令。
"""

import sys
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .. import __version__
from ..utils import configure_logging
from .commands import build, plan, sign, source, validate, verify


app = typer.Typer(
    name="relpack",
    help="relpack - 发布分发打包工具",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """显示版本信息"""
    if value:
        console.print(f"relpack v{__version__}")
        raise typer.Exit()


def verbose_callback(verbose: bool) -> None:
    """配置详细输出"""
    configure_logging(level="DEBUG" if verbose else "INFO")


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="显示版本信息"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        callback=verbose_callback,
        help="启用详细输出"
    )
) -> None:
    """relpack - 发布分发打包工具

    使用 --help 查看可用命令的详细信息。
    """
    pass


app.command("build", help="构建完整分发（目录、归档、源码快照）")(build.build_command)
app.command("stage", help="只组装分发目录")(build.stage_command)
app.command("source", help="导出源码快照")(source.source_command)
app.command("sign", help="GPG 签名分发归档")(sign.sign_command)
app.command("plan", help="显示分发目录布局")(plan.plan_command)
app.command("validate", help="验证配置文件")(validate.validate_command)
app.command("verify", help="校验 .sha512 文件")(verify.verify_command)


@app.command("info")
def info_command() -> None:
    """显示系统信息"""
    from ..build.archiver import ArchiverFactory
    from ..build.source import find_executable

    console.print("[bold]relpack 系统信息[/bold]")
    console.print()

    table = Table(title="版本信息")
    table.add_column("组件", style="cyan")
    table.add_column("版本", style="green")

    table.add_row("relpack", __version__)
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    console.print(table)
    console.print()

    tools = Table(title="外部工具")
    tools.add_column("工具", style="cyan")
    tools.add_column("状态", style="green")
    for tool in ("git", "gpg"):
        found = find_executable(tool)
        tools.add_row(tool, f"✓ {found}" if found else "✗ 未找到")
    console.print(tools)
    console.print()

    formats = ", ".join(f.value for f in ArchiverFactory.get_available_formats())
    console.print(f"支持的归档格式: {formats}")


@app.command("example")
def example_command(
    output: str = typer.Option(
        "release.yaml",
        "--output", "-o",
        help="输出配置文件路径"
    )
) -> None:
    """生成示例配置文件"""
    from ..config import save_config
    from ..config.schema import (
        ComponentModel,
        DependencyModel,
        ExtraFileModel,
        LayoutModel,
        ProductModel,
        ReleaseConfig,
    )

    config = ReleaseConfig(
        product=ProductModel(name="lucene", version="9.0.0", description="Lucene distribution"),
        layout=LayoutModel(
            root_prefix=":lucene:",
            root_dir="lucene",
            root_files=[
                "CHANGES.txt",
                "LICENSE.txt",
                "licenses/*",
                "MIGRATE.md",
                "NOTICE.txt",
                "README.md",
                "SYSTEM_REQUIREMENTS.md",
            ],
            extras=[ExtraFileModel(path="lucene/analysis/README.txt", into="analysis")],
            docs="lucene/documentation/build/site",
            lib_exclude=["lucene-*"],
        ),
        components=[
            ComponentModel(path=":lucene:core", artifact="lucene/core/build/libs/lucene-core-9.0.0.jar"),
            ComponentModel(
                path=":lucene:analysis:icu",
                artifact="lucene/analysis/icu/build/libs/lucene-analysis-icu-9.0.0.jar",
                dependencies=[
                    DependencyModel(group="org.apache.lucene", name="lucene-core", version="9.0.0",
                                    file="lucene/core/build/libs/lucene-core-9.0.0.jar"),
                    DependencyModel(group="com.ibm.icu", name="icu4j", version="69.1",
                                    file="deps/icu4j-69.1.jar"),
                ],
            ),
            ComponentModel(
                path=":lucene:luke",
                artifact="lucene/luke/build/libs/lucene-luke-9.0.0.jar",
                packaging=["lucene/luke/bin/luke.sh", "lucene/luke/bin/luke.cmd"],
            ),
            ComponentModel(path=":lucene:documentation", artifact="lucene/documentation/build/libs/docs.jar"),
        ],
        exclude_components=[":lucene:documentation"],
        exclude_groups=["org.apache.lucene", "commons-logging", "org.slf4j"],
    )

    try:
        save_config(config, output)
        console.print(f"✓ 示例配置文件已生成: [green]{output}[/green]")
        console.print("请根据需要修改配置文件，然后运行:")
        console.print(f"  [cyan]relpack build -c {output}[/cyan]")
    except Exception as e:
        console.print(f"[red]生成示例配置失败: {escape(str(e))}[/red]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
