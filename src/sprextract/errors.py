"""デコードエラー定義モジュール

コンテナのデコード中に発生する例外を定義する。
すべての例外は問題のあるバイトオフセットとエントリ番号を保持し、
エントリ単位での失敗報告に利用される。
"""

from __future__ import annotations


class DecodeError(Exception):
    """デコードエラーの基底クラス

    Attributes:
        offset: 問題が発生した入力バッファ上の絶対バイトオフセット（不明な場合はNone）
        entry_index: 問題が発生したエントリ番号（コンテナ全体の場合はNone）
    """

    kind: str = "decode_error"

    def __init__(
        self,
        message: str,
        *,
        offset: int | None = None,
        entry_index: int | None = None,
    ) -> None:
        """エラーを初期化する

        Args:
            message: エラーメッセージ
            offset: 問題が発生したバイトオフセット
            entry_index: 問題が発生したエントリ番号
        """
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.entry_index = entry_index

    def __str__(self) -> str:
        parts: list[str] = []
        if self.entry_index is not None:
            parts.append(f"entry {self.entry_index}")
        if self.offset is not None:
            parts.append(f"offset 0x{self.offset:x}")
        if not parts:
            return self.message
        return f"{self.message} ({', '.join(parts)})"


class TruncatedInputError(DecodeError):
    """読み取りに必要なバイト数が残っていない場合に発生する例外"""

    kind = "truncated_input"


class RangeError(DecodeError):
    """計算したスライス範囲がバッファ外を指す場合に発生する例外"""

    kind = "range_error"


class PaletteIndexOutOfRangeError(DecodeError):
    """パレットインデックスに対応する色が存在しない場合に発生する例外"""

    kind = "palette_index_out_of_range"


class LayoutMismatchError(DecodeError):
    """スプライト数やタイルサイズがレイアウトと一致しない場合に発生する例外"""

    kind = "layout_mismatch"


class UnsupportedPixelFormatError(DecodeError):
    """ピクセル形式セレクタが未知の値の場合に発生する例外"""

    kind = "unsupported_pixel_format"
