"""CLI entry point for sprextract."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from sprextract import __version__
from sprextract.config import ConfigError, SprextractConfig, get_default_config, load_config
from sprextract.errors import DecodeError
from sprextract.logger import ExtractLogger, LogConfig, VerboseLevel
from sprextract.parser.container import read_container
from sprextract.parser.descriptor import parse_descriptor
from sprextract.pipeline import EntryStatus, ExtractionPipeline, PipelineConfig, PipelineResult
from sprextract.types import ExitCode

app = typer.Typer(help="スプライトコンテナから画像を抽出するCLIツール")
console = Console()

STATUS_STYLE = {
    EntryStatus.SUCCESS: "[green]✓[/green]",
    EntryStatus.SKIPPED: "[yellow]-[/yellow]",
    EntryStatus.FAILED: "[red]✗[/red]",
}


def _load_config(config_path: Path | None) -> SprextractConfig:
    if config_path is None:
        return get_default_config()
    try:
        return load_config(config_path)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT) from e


def _print_summary(result: PipelineResult) -> None:
    table = Table(title="抽出結果")
    table.add_column("ステータス", justify="center")
    table.add_column("エントリ", justify="right")
    table.add_column("オフセット", justify="right")
    table.add_column("出力", justify="left")
    table.add_column("メッセージ", justify="left")

    for entry in result.entries:
        outputs = ", ".join(path.name for path in entry.output_paths) or "-"
        warnings = [str(d) for d in entry.diagnostics if not d.is_error]
        message = entry.message or "; ".join(warnings)
        table.add_row(
            STATUS_STYLE[entry.status],
            str(entry.entry_index),
            f"0x{entry.offset:x}",
            outputs,
            message,
        )
    console.print(table)


@app.command()
def extract(
    input_path: Annotated[Path, typer.Argument(help="入力ファイルパス")],
    output_dir: Annotated[Path, typer.Argument(help="出力ディレクトリ")],
    config_path: Annotated[
        Path | None, typer.Option("-c", "--config", help="設定ファイル（YAML）")
    ] = None,
    sheet: Annotated[
        bool | None,
        typer.Option("--sheet/--no-sheet", help="スプライトシートとして出力する"),
    ] = None,
    workers: Annotated[int | None, typer.Option("--workers", help="ワーカー数")] = None,
    strict: Annotated[
        bool, typer.Option("--strict", help="サブイメージの余りをエラーとして扱う")
    ] = False,
    output_format: Annotated[
        str | None, typer.Option("--format", help="出力画像形式（拡張子）")
    ] = None,
    verbose: Annotated[int, typer.Option("-v", "--verbose", count=True, help="詳細ログ出力")] = 0,
    quiet: Annotated[bool, typer.Option("-q", "--quiet", help="エラーのみ出力")] = False,
    log_file: Annotated[Path | None, typer.Option(help="ログファイル出力先")] = None,
    no_emoji: Annotated[
        bool, typer.Option("--no-emoji", help="絵文字を使わずに出力する")
    ] = False,
) -> None:
    """コンテナ内の全エントリを画像として抽出する"""
    config = _load_config(config_path)

    level = verbose or config.logging.verbose
    verbose_level = VerboseLevel.QUIET if quiet else VerboseLevel(min(level, VerboseLevel.DEBUG))
    log_config = LogConfig(
        verbose_level=verbose_level,
        log_file=log_file or config.logging.log_file,
        use_emoji=config.logging.emoji and not no_emoji,
    )

    pipeline = ExtractionPipeline(
        PipelineConfig(
            input_path=input_path,
            output_dir=output_dir,
            output_format=(output_format or config.output.format).lstrip(".").lower(),
            spritesheet=config.output.spritesheet if sheet is None else sheet,
            strict_layout=strict or config.decode.strict_layout,
            max_workers=workers if workers is not None else config.decode.max_workers,
        )
    )

    errors = pipeline.validate()
    if errors:
        for error in errors:
            console.print(f"[red]Error: {error}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT)

    with ExtractLogger(log_config) as logger:
        progress = logger.create_progress()
        started = False

        def progress_callback(current: int, total: int) -> None:
            nonlocal started
            if not started:
                progress.start(total)
                started = True
            progress.update(current)

        result = pipeline.run(progress_callback=progress_callback)
        if started:
            progress.finish(result.success)

        logger.log_summary(result)

    if result.error_message:
        console.print(f"[red]抽出失敗: {result.error_message}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT)

    if verbose_level > VerboseLevel.QUIET:
        _print_summary(result)

    if result.failed:
        raise typer.Exit(ExitCode.ERROR)
    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def info(
    input_path: Annotated[Path, typer.Argument(help="解析対象ファイル")],
) -> None:
    """コンテナ内の各エントリのヘッダー情報を表示する"""
    if not input_path.is_file():
        console.print(f"[red]Error: ファイルが見つかりません: {input_path}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT)

    data = input_path.read_bytes()
    try:
        container = read_container(data)
    except DecodeError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT) from e

    table = Table(title=f"Entries: {len(container)}")
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Offset", justify="right")
    table.add_column("Format")
    table.add_column("Compression")
    table.add_column("Flags")
    table.add_column("Sprites", justify="right")
    table.add_column("Size")
    table.add_column("Grid")
    table.add_column("Palettes", justify="right")

    for index, offset in enumerate(container):
        try:
            descriptor = parse_descriptor(data, offset)
        except DecodeError as e:
            table.add_row(str(index), f"0x{offset:x}", f"[red]{e}[/red]")
            continue

        flags = [
            name
            for name, enabled in (
                ("obfuscated", descriptor.is_obfuscated),
                ("transparent", descriptor.has_transparency),
            )
            if enabled
        ]
        table.add_row(
            str(index),
            f"0x{offset:x}",
            descriptor.pixel_format.name,
            descriptor.compression.value,
            ", ".join(flags) or "-",
            str(descriptor.sprite_count),
            f"{descriptor.sprite_width}x{descriptor.sprite_height}",
            f"{descriptor.grid_width}x{descriptor.grid_height}",
            str(descriptor.palette_count),
        )

    console.print(table)
    raise typer.Exit(ExitCode.SUCCESS)


def version_callback(value: bool) -> None:
    """バージョン表示コールバック"""
    if value:
        typer.echo(f"sprextract {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="バージョンを表示する",
        ),
    ] = False,
) -> None:
    """sprextract CLI - スプライトコンテナから画像を抽出"""
    pass
