"""共通型定義"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum

from sprextract.errors import DecodeError


class ExitCode(IntEnum):
    """CLIの終了コード"""

    SUCCESS = 0
    ERROR = 1
    INVALID_INPUT = 2


class DiagnosticLevel(Enum):
    """診断レコードの重要度"""

    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Diagnostic:
    """エントリ単位の診断レコード

    ライブラリは標準出力に何も書かず、警告やエラーをこのレコードとして返す。
    表示はCLIやロガーなど呼び出し側が担当する。

    Attributes:
        level: 重要度
        entry_index: 対象エントリ番号（コンテナ全体の場合はNone）
        message: メッセージ
        offset: 関連する入力バッファ上の絶対オフセット
        kind: エラー種別（DecodeError.kind、警告では警告種別）
    """

    level: DiagnosticLevel
    entry_index: int | None
    message: str
    offset: int | None = None
    kind: str = ""

    @classmethod
    def warning(
        cls, entry_index: int | None, message: str, *, offset: int | None = None, kind: str = ""
    ) -> Diagnostic:
        return cls(DiagnosticLevel.WARNING, entry_index, message, offset, kind)

    @classmethod
    def from_error(cls, error: DecodeError, entry_index: int | None = None) -> Diagnostic:
        """DecodeErrorからエラー診断を作成する"""
        index = error.entry_index if error.entry_index is not None else entry_index
        return cls(DiagnosticLevel.ERROR, index, error.message, error.offset, error.kind)

    @property
    def is_error(self) -> bool:
        return self.level is DiagnosticLevel.ERROR

    def __str__(self) -> str:
        location: list[str] = []
        if self.entry_index is not None:
            location.append(f"entry {self.entry_index}")
        if self.offset is not None:
            location.append(f"offset 0x{self.offset:x}")
        prefix = f"[{', '.join(location)}] " if location else ""
        return f"{prefix}{self.message}"
