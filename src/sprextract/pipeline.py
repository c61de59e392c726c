"""抽出パイプラインモジュール

入力ファイルを読み込み、コンテナの各エントリをデコードして画像ファイルとして書き出す。
エントリはスレッドプールで並列にデコードされ、不正なエントリは報告したうえで
スキップし、正常なエントリの出力は継続する。
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from threading import Lock
from typing import Protocol

from PIL import Image

from sprextract.decoder.entry import DecodedEntry, EntryDecoder
from sprextract.errors import DecodeError
from sprextract.parser.container import Container, read_container
from sprextract.parser.descriptor import ImageDescriptor
from sprextract.types import Diagnostic, DiagnosticLevel

logger = logging.getLogger(__name__)

# 進捗コールバックの型エイリアス（処理済みエントリ数, 総エントリ数）
ProgressCallback = Callable[[int, int], None]


class EntryStatus(Enum):
    """エントリの処理ステータス"""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


class ImageWriter(Protocol):
    """画像書き出しインターフェース"""

    def write(self, image: Image.Image, path: Path) -> None:
        """画像をファイルに書き出す

        Args:
            image: 書き出すRGBA画像
            path: 出力先パス（拡張子で形式を決定）
        """
        ...


class PillowImageWriter:
    """Pillowによる画像書き出しクラス"""

    def write(self, image: Image.Image, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        image.save(path)


@dataclass(frozen=True)
class PipelineConfig:
    """パイプライン設定

    Attributes:
        input_path: 入力ファイルパス
        output_dir: 出力ディレクトリ
        output_format: 出力画像の拡張子（Pillowが対応する形式）
        spritesheet: スプライトシートを出力するか（Falseの場合はサブイメージごとに出力）
        strict_layout: サブイメージの余りをエラーとして扱うか
        max_workers: 最大ワーカー数（Noneの場合は自動計算）
    """

    input_path: Path
    output_dir: Path
    output_format: str = "png"
    spritesheet: bool = True
    strict_layout: bool = False
    max_workers: int | None = None


@dataclass(frozen=True)
class EntryResult:
    """1エントリの処理結果

    Attributes:
        entry_index: エントリ番号
        offset: エントリの絶対オフセット
        status: 処理ステータス
        output_paths: 書き出したファイルのパス
        descriptor: ヘッダー情報（ヘッダー解析前に失敗した場合はNone）
        diagnostics: 警告とエラーの診断レコード
        message: 追加メッセージ（エラー詳細等）
    """

    entry_index: int
    offset: int
    status: EntryStatus
    output_paths: tuple[Path, ...] = ()
    descriptor: ImageDescriptor | None = None
    diagnostics: tuple[Diagnostic, ...] = ()
    message: str = ""

    @property
    def is_success(self) -> bool:
        return self.status == EntryStatus.SUCCESS


@dataclass
class PipelineResult:
    """パイプライン実行結果

    mutableとして定義し、エントリの結果を蓄積できるようにする。

    Attributes:
        total: エントリ総数
        succeeded: 成功数
        failed: 失敗数
        skipped: スキップ数
        entries: エントリ番号順の結果
        error_message: コンテナ全体のエラー（エントリ単位の処理に進めなかった場合）
        container_diagnostics: コンテナ全体の診断レコード
    """

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    entries: list[EntryResult] = field(default_factory=list)
    error_message: str = ""
    container_diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """コンテナを読み取れ、失敗したエントリがないか"""
        return not self.error_message and self.failed == 0

    @property
    def diagnostics(self) -> list[Diagnostic]:
        """すべての診断レコードをエントリ順に返す"""
        records = list(self.container_diagnostics)
        for entry in self.entries:
            records.extend(entry.diagnostics)
        return records

    @property
    def output_paths(self) -> list[Path]:
        return [path for entry in self.entries for path in entry.output_paths]

    def add(self, entry: EntryResult) -> None:
        self.entries.append(entry)
        if entry.status == EntryStatus.SUCCESS:
            self.succeeded += 1
        elif entry.status == EntryStatus.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1


def output_name(entry_index: int, extension: str, subimage_index: int | None = None) -> str:
    """出力ファイル名を返す

    スプライトシートは image-<エントリ番号>.<拡張子>、
    サブイメージは image-<エントリ番号>-<サブイメージ番号>.<拡張子>。
    """
    if subimage_index is None:
        return f"image-{entry_index}.{extension}"
    return f"image-{entry_index}-{subimage_index}.{extension}"


class ExtractionPipeline:
    """抽出パイプライン

    使用例:
        >>> config = PipelineConfig(input_path=Path("sprites.bin"), output_dir=Path("out"))
        >>> pipeline = ExtractionPipeline(config)
        >>> if not pipeline.validate():
        ...     result = pipeline.run()
    """

    def __init__(self, config: PipelineConfig, writer: ImageWriter | None = None) -> None:
        """パイプラインを初期化する

        Args:
            config: パイプライン設定
            writer: 画像書き出し（Noneの場合はPillowImageWriter）
        """
        self._config = config
        self._writer = writer or PillowImageWriter()

    @property
    def config(self) -> PipelineConfig:
        return self._config

    def validate(self) -> list[str]:
        """設定を検証する

        Returns:
            エラーメッセージのリスト（問題がなければ空）
        """
        errors: list[str] = []
        input_path = self._config.input_path
        if not input_path.exists():
            errors.append(f"入力ファイルが見つかりません: {input_path}")
        elif input_path.is_dir():
            errors.append(f"入力はファイルである必要があります: {input_path}")

        output_dir = self._config.output_dir
        if output_dir.exists() and not output_dir.is_dir():
            errors.append(f"出力先がディレクトリではありません: {output_dir}")

        if self._config.max_workers is not None and self._config.max_workers < 1:
            errors.append(f"ワーカー数は1以上である必要があります: {self._config.max_workers}")
        return errors

    def run(self, progress_callback: ProgressCallback | None = None) -> PipelineResult:
        """入力ファイルを読み込んで全エントリを抽出する

        Args:
            progress_callback: 進捗報告用コールバック

        Returns:
            パイプライン実行結果
        """
        errors = self.validate()
        if errors:
            return PipelineResult(error_message=errors[0])

        data = self._config.input_path.read_bytes()
        logger.debug("read %d bytes from %s", len(data), self._config.input_path)
        return self.extract(data, progress_callback)

    def extract(
        self, data: bytes, progress_callback: ProgressCallback | None = None
    ) -> PipelineResult:
        """バッファ内の全エントリをデコードして書き出す

        Args:
            data: 入力バッファ全体
            progress_callback: 進捗報告用コールバック

        Returns:
            パイプライン実行結果
        """
        try:
            container = read_container(data)
        except DecodeError as e:
            return PipelineResult(
                error_message=str(e),
                container_diagnostics=[Diagnostic.from_error(e)],
            )

        result = PipelineResult(total=len(container))
        for entry in self.decode_entries(data, container, progress_callback):
            result.add(entry)
        return result

    def decode_entries(
        self,
        data: bytes,
        container: Container,
        progress_callback: ProgressCallback | None = None,
    ) -> list[EntryResult]:
        """エントリを並列にデコード・書き出しし、エントリ番号順に返す"""
        decoder = EntryDecoder(
            data,
            spritesheet=self._config.spritesheet,
            strict_layout=self._config.strict_layout,
        )
        total = len(container)
        completed_count = 0
        lock = Lock()

        def process_entry(index: int, offset: int) -> EntryResult:
            nonlocal completed_count
            entry_result = self._process_entry(decoder, index, offset)
            with lock:
                completed_count += 1
                if progress_callback:
                    progress_callback(completed_count, total)
            return entry_result

        results: dict[int, EntryResult] = {}
        with ThreadPoolExecutor(max_workers=self._worker_count(total)) as executor:
            futures = {
                executor.submit(process_entry, index, offset): index
                for index, offset in enumerate(container)
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()

        return [results[index] for index in sorted(results)]

    def _process_entry(self, decoder: EntryDecoder, index: int, offset: int) -> EntryResult:
        """1エントリをデコードし、失敗はEntryResultとして返す"""
        try:
            decoded = decoder.decode(index, offset)
        except DecodeError as e:
            logger.debug("entry %d failed: %s", index, e)
            return EntryResult(
                entry_index=index,
                offset=offset,
                status=EntryStatus.FAILED,
                diagnostics=(Diagnostic.from_error(e, index),),
                message=str(e),
            )

        diagnostics = list(decoded.diagnostics)
        try:
            paths = self._write_entry(decoded)
        except (OSError, ValueError) as e:
            # ValueError: Pillowが拡張子から出力形式を決められない場合
            diagnostics.append(
                Diagnostic(
                    DiagnosticLevel.ERROR,
                    index,
                    f"画像の書き出しに失敗しました: {e}",
                    kind="write_error",
                )
            )
            return EntryResult(
                entry_index=index,
                offset=offset,
                status=EntryStatus.FAILED,
                descriptor=decoded.descriptor,
                diagnostics=tuple(diagnostics),
                message=str(e),
            )

        if not paths:
            diagnostics.append(
                Diagnostic.warning(
                    index, "出力する画像がありません", offset=offset, kind="empty_entry"
                )
            )
            status = EntryStatus.SKIPPED
        else:
            status = EntryStatus.SUCCESS

        return EntryResult(
            entry_index=index,
            offset=offset,
            status=status,
            output_paths=tuple(paths),
            descriptor=decoded.descriptor,
            diagnostics=tuple(diagnostics),
        )

    def _write_entry(self, decoded: DecodedEntry) -> list[Path]:
        extension = self._config.output_format
        output_dir = self._config.output_dir
        targets: list[tuple[Image.Image, Path]] = []

        if decoded.spritesheet is not None:
            sheet_path = output_dir / output_name(decoded.index, extension)
            targets.append((decoded.spritesheet, sheet_path))
        else:
            targets.extend(
                (subimage, output_dir / output_name(decoded.index, extension, subimage_index))
                for subimage_index, subimage in enumerate(decoded.subimages)
            )

        paths: list[Path] = []
        for image, path in targets:
            width, height = image.size
            if width == 0 or height == 0:
                continue
            self._writer.write(image, path)
            paths.append(path)
        return paths

    def _worker_count(self, total: int) -> int:
        if self._config.max_workers is not None:
            return self._config.max_workers
        return calculate_workers(total)


def calculate_workers(total: int) -> int:
    """エントリ数とCPUコア数からワーカー数を決める（最小1）"""
    cpu_count = os.cpu_count() or 1
    return max(1, min(total, cpu_count))
