"""コンテナ読み取りモジュール

入力バッファ先頭のオフセットテーブルを解析する。
テーブルの先頭エントリはテーブル自身のバイト長も兼ねており、
読み取り位置がその値に達するまで4バイトずつエントリを読み進める。
"""

from __future__ import annotations

import struct
from collections.abc import Iterator
from dataclasses import dataclass

from sprextract.errors import TruncatedInputError

ENTRY_SIZE = 4
"""オフセットテーブル1エントリのサイズ（バイト）"""


@dataclass(frozen=True)
class Container:
    """オフセットテーブルの解析結果

    Attributes:
        table_length: オフセットテーブルのバイト長（先頭エントリの値）
        offsets: 各画像エントリの絶対バイトオフセット
    """

    table_length: int
    offsets: tuple[int, ...]

    def __len__(self) -> int:
        return len(self.offsets)

    def __iter__(self) -> Iterator[int]:
        return iter(self.offsets)


def read_container(data: bytes) -> Container:
    """オフセットテーブルを読み取る

    Args:
        data: 入力バッファ全体

    Returns:
        解析されたコンテナ

    Raises:
        TruncatedInputError: バッファが宣言されたテーブル長より短い場合
    """
    if len(data) < ENTRY_SIZE:
        raise TruncatedInputError(
            f"オフセットテーブルの先頭を読み取れません: {len(data)}バイトしかありません",
            offset=0,
        )

    (table_length,) = struct.unpack_from("<I", data, 0)
    if table_length > len(data):
        raise TruncatedInputError(
            f"宣言されたテーブル長 {table_length} がバッファサイズ {len(data)} を超えています",
            offset=0,
        )

    offsets = [table_length]
    position = ENTRY_SIZE
    while position < table_length:
        if position + ENTRY_SIZE > len(data):
            raise TruncatedInputError("オフセットテーブルが途中で途切れています", offset=position)
        (offset,) = struct.unpack_from("<I", data, position)
        offsets.append(offset)
        position += ENTRY_SIZE

    return Container(table_length=table_length, offsets=tuple(offsets))
