"""CLI 入口"""

from __future__ import annotations

import asyncio
import json

import typer
from rich.panel import Panel
from rich.table import Table

from .common.config import config
from .common.constants import CollectionMode, SortOrder
from .common.exceptions import ConfigError
from .common.logger import configure_logging, console, get_logger
from .common.types import ExclusionFlags
from .extraction import ExtractionSchema, SelectorExtractor
from .pipeline import start

logger = get_logger(__name__)

app = typer.Typer(
    name="reviewharvest",
    help="ReviewHarvest CLI - 商品评论/问答采集工具",
    add_completion=False,
)

MODE_ALIASES = {
    "review": CollectionMode.PRIMARY,
    "reviews": CollectionMode.PRIMARY,
    "qna": CollectionMode.THREAD,
    CollectionMode.PRIMARY.value: CollectionMode.PRIMARY,
    CollectionMode.THREAD.value: CollectionMode.THREAD,
}

SORT_ALIASES = {
    "ranking": SortOrder.RANKING,
    "recent": SortOrder.RECENT,
    "low-rating": SortOrder.LOW_RATING,
}


def _parse_mode(value: str) -> CollectionMode:
    mode = MODE_ALIASES.get(value.strip().lower())
    if mode is None:
        raise ValueError(f"未知采集模式: {value}（可选: review, qna）")
    return mode


def _parse_sort(value: str) -> SortOrder:
    key = value.strip().lower()
    if key.isdigit():
        return SortOrder(int(key))
    sort = SORT_ALIASES.get(key)
    if sort is None:
        raise ValueError(f"未知排序方式: {value}（可选: ranking, recent, low-rating）")
    return sort


def _build_result_table(result_dict: dict, chunk_files: list[str], artifacts: list[str]) -> Table:
    table = Table(title="采集结果")
    table.add_column("项目", style="cyan")
    table.add_column("值", style="green")
    table.add_row("记录数", str(result_dict.get("recordCount", 0)))
    table.add_row("输出目录", str(result_dict.get("outputLocation", "")))
    for path in chunk_files:
        table.add_row("分块", path)
    for path in artifacts:
        if path not in chunk_files:
            table.add_row("产物", path)
    return table


@app.command("crawl")
def crawl_command(
    target: str = typer.Argument(..., help="商品页 URL 或搜索关键词"),
    mode: str = typer.Option(
        "review",
        "--mode",
        "-m",
        help="采集模式: review / qna",
    ),
    sort: str = typer.Option(
        "ranking",
        "--sort",
        "-s",
        help="评论排序: ranking / recent / low-rating",
    ),
    pages: int | None = typer.Option(
        None,
        "--pages",
        "-p",
        min=1,
        help="最大页数（默认不限）",
    ),
    output_dir: str = typer.Option(
        "",
        "--output",
        "-o",
        help="输出根目录（默认取配置）",
    ),
    exclude_secret: bool = typer.Option(
        False,
        "--exclude-secret",
        help="问答模式下排除秘密帖",
    ),
    fields_file: str = typer.Option(
        "",
        "--fields-file",
        help="字段定义 JSON 文件路径（默认使用内置选择器）",
    ),
    headless: bool | None = typer.Option(
        None,
        "--headless/--no-headless",
        help="是否使用无头模式（默认取配置）",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="以 JSON 输出结果",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="输出 DEBUG 级别日志",
    ),
):
    """采集商品评论或问答"""
    if verbose:
        configure_logging("DEBUG")

    try:
        collection_mode = _parse_mode(mode)
        sort_order = _parse_sort(sort)
        schema = ExtractionSchema.load(fields_file) if fields_file else None
    except (ValueError, ConfigError) as e:
        console.print(Panel(f"[red]{e}[/red]", title="输入验证错误", style="red"))
        raise typer.Exit(1)

    if headless is not None:
        config.browser.headless = headless

    console.print(
        Panel(
            f"[bold]目标:[/bold] {target}\n"
            f"[bold]模式:[/bold] {collection_mode.value}\n"
            f"[bold]排序:[/bold] {sort_order.name.lower()}\n"
            f"[bold]最大页数:[/bold] {pages if pages is not None else '不限'}\n"
            f"[bold]排除秘密帖:[/bold] {exclude_secret}\n"
            f"[bold]无头模式:[/bold] {config.browser.headless}\n"
            f"[bold]输出目录:[/bold] {output_dir or config.storage.output_root}",
            title="采集配置",
            style="cyan",
        )
    )

    try:
        result = asyncio.run(
            start(
                target,
                mode=collection_mode,
                sort_order=sort_order,
                page_budget=pages,
                output_location=output_dir or None,
                exclusion_flags=ExclusionFlags(exclude_secret=exclude_secret),
                extractor=SelectorExtractor(collection_mode, schema),
            )
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]用户中断[/yellow]")
        raise typer.Exit(130)

    result_dict = result.to_dict()
    if as_json:
        console.print_json(json.dumps(result_dict, ensure_ascii=False))
    elif result.success:
        console.print(_build_result_table(result_dict, result.chunk_files, result.artifacts))
    else:
        console.print(Panel(f"[red]{result.error}[/red]", title="执行错误", style="red"))

    if not result.success:
        raise typer.Exit(1)


@app.command("show-config")
def show_config_command():
    """显示当前生效的配置"""
    table = Table(title="当前配置")
    table.add_column("分组", style="cyan")
    table.add_column("配置项", style="magenta")
    table.add_column("值", style="green")
    for section_name, section in config.model_dump().items():
        for key, value in section.items():
            if key == "password" and value:
                value = "******"
            table.add_row(section_name, key, str(value))
    console.print(table)


def main():
    """CLI 入口点

    供 pyproject.toml 中 [project.scripts] 调用。
    """
    app()


if __name__ == "__main__":
    main()
