"""ビットストリームモジュール

インデックスカラーのピクセルデータは、各バイトを下位ビットから順に並べた
1本のビット列として扱い、bppビットずつ区切ってパレットインデックスとする。
区切ったビット群も下位ビットから順に値を構成する。
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator


class BitReader:
    """LSBファーストのビット読み取りクラス

    ビット列を事前に展開せず、要求されたビット数だけ逐次読み取る。
    """

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._position = 0

    @property
    def position(self) -> int:
        """現在の読み取り位置（ビット単位）"""
        return self._position

    @property
    def bits_remaining(self) -> int:
        return len(self._data) * 8 - self._position

    def read(self, count: int) -> int:
        """countビットを読み取り、LSBファーストで整数に組み立てる

        Raises:
            ValueError: 残りビット数が不足している場合
        """
        if count > self.bits_remaining:
            raise ValueError(
                f"ビットが不足しています: 要求{count}ビット、残り{self.bits_remaining}ビット"
            )

        shift = self._position & 7
        if shift + count <= 8:
            value = (self._data[self._position >> 3] >> shift) & ((1 << count) - 1)
            self._position += count
            return value

        value = 0
        for bit_index in range(count):
            byte = self._data[self._position >> 3]
            value |= ((byte >> (self._position & 7)) & 1) << bit_index
            self._position += 1
        return value

    def groups(self, width: int) -> Iterator[int]:
        """widthビットずつ読み取った値を順に返す

        末尾のwidthビットに満たない端数は読み取らない。
        """
        while self.bits_remaining >= width:
            yield self.read(width)


def pack_indices(indices: Iterable[int], bpp: int) -> bytes:
    """インデックス列をLSBファーストのビット列に詰める

    BitReader.groups() の逆変換。最終バイトの余りビットは0で埋める。

    Raises:
        ValueError: インデックスがbppビットに収まらない場合
    """
    output = bytearray()
    accumulator = 0
    filled = 0
    for index in indices:
        if not 0 <= index < (1 << bpp):
            raise ValueError(f"インデックス {index} は{bpp}ビットに収まりません")
        accumulator |= index << filled
        filled += bpp
        while filled >= 8:
            output.append(accumulator & 0xFF)
            accumulator >>= 8
            filled -= 8
    if filled:
        output.append(accumulator & 0xFF)
    return bytes(output)
