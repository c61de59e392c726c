"""進捗表示およびログ出力のインターフェース定義

このモジュールは、sprextractの抽出進捗表示とログ出力を担当する。
デコーダー本体は何も出力せず診断レコードを返すため、
それらをVerboseLevel（詳細ログレベル）に応じて表示するのはこのモジュールの役割となる。
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, TextIO

from sprextract.types import Diagnostic

if TYPE_CHECKING:
    from sprextract.pipeline import EntryResult, PipelineResult


class VerboseLevel(IntEnum):
    """詳細ログレベル

    QUIET: エラーのみ出力
    NORMAL: 進捗バーとサマリ出力
    VERBOSE: 出力ファイル一覧も出力（-vオプション）
    DEBUG: エントリのヘッダー情報も出力（-vvオプション）
    """

    QUIET = -1
    NORMAL = 0
    VERBOSE = 1
    DEBUG = 2


class ProgressDisplay(Protocol):
    """進捗表示のプロトコル"""

    def start(self, total: int) -> None:
        """処理開始を表示する

        Args:
            total: 処理対象のエントリ総数
        """
        ...

    def update(self, current: int, message: str = "") -> None:
        """進捗を更新する

        Args:
            current: 処理済みエントリ数
            message: 追加の進捗メッセージ（オプション）
        """
        ...

    def finish(self, success: bool, message: str = "") -> None:
        """処理終了を表示する

        Args:
            success: すべてのエントリが成功したか
            message: 終了メッセージ（オプション）
        """
        ...


@dataclass
class LogConfig:
    """ログ設定

    Attributes:
        verbose_level: ログの詳細度レベル
        log_file: ログ出力先ファイルパス（Noneの場合はファイル出力なし）
        use_emoji: emoji表示を使用するか
    """

    verbose_level: VerboseLevel = VerboseLevel.NORMAL
    log_file: Path | None = None
    use_emoji: bool = True


class ExtractLogger:
    """抽出ログ出力クラス

    VerboseLevelに応じてメッセージのフィルタリングを行い、
    パイプラインが返した診断レコードを整形して出力する。

    使用例:
        >>> config = LogConfig(verbose_level=VerboseLevel.VERBOSE)
        >>> with ExtractLogger(config) as logger:
        ...     logger.info("抽出を開始します")
    """

    _ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*m")

    def __init__(self, config: LogConfig) -> None:
        """ロガーを初期化する

        Args:
            config: ログ設定
        """
        self._config = config
        self._log_file: TextIO | None = None
        if config.log_file:
            # クラス自体がコンテキストマネージャとして動作し、__exit__でファイルを閉じる
            self._log_file = open(config.log_file, "w", encoding="utf-8")  # noqa: SIM115

    def __enter__(self) -> ExtractLogger:
        """コンテキストマネージャのエントリポイント"""
        return self

    def __exit__(self, *args: object) -> None:
        """コンテキストマネージャの終了処理"""
        if self._log_file:
            self._log_file.close()
            self._log_file = None

    @property
    def config(self) -> LogConfig:
        return self._config

    def _print(self, message: str, file: TextIO | None = None) -> None:
        if file is None:
            file = sys.stdout
        print(message, file=file)

    def _log_to_file(self, level: str, message: str) -> None:
        if self._log_file:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            clean_message = self._strip_ansi(message)
            self._log_file.write(f"[{timestamp}] {level}: {clean_message}\n")
            self._log_file.flush()

    def _strip_ansi(self, text: str) -> str:
        return self._ANSI_ESCAPE_PATTERN.sub("", text)

    def info(self, message: str) -> None:
        """情報メッセージを出力する（NORMAL以上）"""
        if self._config.verbose_level >= VerboseLevel.NORMAL:
            self._print(message)
        self._log_to_file("INFO", message)

    def verbose(self, message: str) -> None:
        """詳細メッセージを出力する（VERBOSE以上）"""
        if self._config.verbose_level >= VerboseLevel.VERBOSE:
            self._print(message)
        self._log_to_file("VERBOSE", message)

    def debug(self, message: str) -> None:
        """デバッグメッセージを出力する（DEBUG以上）"""
        if self._config.verbose_level >= VerboseLevel.DEBUG:
            self._print(message)
        self._log_to_file("DEBUG", message)

    def error(self, message: str) -> None:
        """エラーメッセージを出力する（常に出力）"""
        self._print(f"エラー: {message}", file=sys.stderr)
        self._log_to_file("ERROR", message)

    def warning(self, message: str) -> None:
        """警告メッセージを出力する（QUIET以上）"""
        if self._config.verbose_level > VerboseLevel.QUIET:
            self._print(f"警告: {message}")
        self._log_to_file("WARNING", message)

    def create_progress(self) -> ProgressDisplay:
        """進捗表示インスタンスを作成する

        QUIETの場合は何も表示しない進捗表示を返す。
        """
        if self._config.verbose_level <= VerboseLevel.QUIET:
            return NullProgressDisplay()
        return ConsoleProgressDisplay(use_emoji=self._config.use_emoji)

    def log_diagnostic(self, diagnostic: Diagnostic) -> None:
        """診断レコードを重要度に応じて出力する"""
        if diagnostic.is_error:
            self.error(str(diagnostic))
        else:
            self.warning(str(diagnostic))

    def log_entry(self, entry: EntryResult) -> None:
        """エントリの処理結果をログする（VERBOSE以上、ヘッダー情報はDEBUG以上）"""
        descriptor = entry.descriptor
        if descriptor is not None:
            self.debug(
                f"entry {entry.entry_index} @0x{entry.offset:x}: "
                f"{descriptor.pixel_format.name} {descriptor.compression.value} "
                f"sprites={descriptor.sprite_count} "
                f"sprite={descriptor.sprite_width}x{descriptor.sprite_height} "
                f"grid={descriptor.grid_width}x{descriptor.grid_height} "
                f"palettes={descriptor.palette_count}"
            )
        for path in entry.output_paths:
            self.verbose(f"出力: entry {entry.entry_index} -> {path.name} [{entry.status.value}]")

    def log_summary(self, result: PipelineResult) -> None:
        """抽出サマリを出力する（NORMAL以上）"""
        for entry in result.entries:
            self.log_entry(entry)
        for diagnostic in result.diagnostics:
            self.log_diagnostic(diagnostic)

        if result.error_message:
            return
        emoji = "✅" if self._config.use_emoji else "[OK]"
        if result.failed:
            emoji = "⚠️" if self._config.use_emoji else "[WARN]"
        self.info(f"{emoji} Extraction complete!")
        self.info(
            f"   Entries: {result.total} (ok {result.succeeded}, "
            f"failed {result.failed}, skipped {result.skipped})"
        )
        self.info(f"   Files: {len(result.output_paths)}")


class ConsoleProgressDisplay:
    """コンソール進捗表示

    エントリのデコード進捗を進捗バーで表示する。
    """

    BAR_WIDTH = 40

    def __init__(self, use_emoji: bool = True) -> None:
        self._use_emoji = use_emoji
        self._total = 0
        self._current = 0

    def start(self, total: int) -> None:
        self._total = total
        self._current = 0
        prefix = "\U0001f4e6 " if self._use_emoji else ""
        print(f"{prefix}Extracting {total} entries...")

    def update(self, current: int, message: str = "") -> None:
        self._current = current
        if self._total > 0:
            percent = int((current / self._total) * 100)
            filled = int(self.BAR_WIDTH * current / self._total)
            bar = "█" * filled + "░" * (self.BAR_WIDTH - filled)
            msg_part = f" {message}" if message else ""
            print(f"\r   [{bar}] {percent}%{msg_part}", end="", flush=True)

    def finish(self, success: bool, message: str = "") -> None:
        full_bar = "█" * self.BAR_WIDTH
        if success:
            mark = "✓" if self._use_emoji else "done"
            print(f"\r   [{full_bar}] 100% {mark}")
        else:
            mark = "✗" if self._use_emoji else "failed"
            msg_part = f": {message}" if message else ""
            print(f"\r   [{full_bar}] {mark}{msg_part}")


class NullProgressDisplay:
    """何も表示しない進捗表示"""

    def start(self, total: int) -> None:
        pass

    def update(self, current: int, message: str = "") -> None:
        pass

    def finish(self, success: bool, message: str = "") -> None:
        pass
