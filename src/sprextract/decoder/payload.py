"""ペイロード抽出モジュール

画像のピクセルデータ領域からスプライトごとの生バイト列を切り出す。
非圧縮の場合は固定長ストライド、圧縮されている場合は
領域先頭の (オフセット, 長さ) テーブルを使用する。
難読化フラグが立っている場合は、切り出し前に領域全体のXORを解除する。
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from sprextract.errors import RangeError, TruncatedInputError
from sprextract.parser.descriptor import CompressionMode, ImageDescriptor

XOR_KEY = 0x53
"""難読化に使用される固定XORキー"""

_XOR_TABLE = bytes(byte ^ XOR_KEY for byte in range(256))

TABLE_ENTRY = struct.Struct("<II")


@dataclass(frozen=True)
class SpritePayload:
    """1スプライト分の生ペイロード（難読化解除済み、解凍前）

    Attributes:
        offset: ペイロード先頭の入力バッファ上の絶対オフセット
        data: ペイロードのバイト列
    """

    offset: int
    data: bytes


def xor_bytes(data: bytes) -> bytes:
    """全バイトを固定キーでXORする

    同じ変換を2回適用すると元に戻る。
    """
    return data.translate(_XOR_TABLE)


def sprite_stride(descriptor: ImageDescriptor) -> int:
    """非圧縮時の1スプライトあたりのバイト数を返す"""
    pixels = descriptor.sprite_width * descriptor.sprite_height
    if descriptor.pixel_format.is_indexed:
        return (pixels * descriptor.pixel_format.bpp + 7) // 8
    return pixels * 2


class PayloadExtractor:
    """スプライトペイロード抽出クラス

    Attributes:
        descriptor: 対象画像のヘッダー情報
    """

    def __init__(self, descriptor: ImageDescriptor) -> None:
        self.descriptor = descriptor

    def extract(self, region: bytes, region_offset: int = 0) -> list[SpritePayload]:
        """スプライトごとのペイロードを抽出する

        Args:
            region: ピクセルデータ領域のバイト列
            region_offset: 領域の入力バッファ上の絶対オフセット（エラー報告用）

        Returns:
            スプライト順のペイロードのリスト

        Raises:
            TruncatedInputError: オフセットテーブルが領域内に収まらない場合
            RangeError: スプライトの範囲が領域外を指す場合
        """
        if self.descriptor.is_obfuscated:
            region = xor_bytes(region)

        if self.descriptor.compression is CompressionMode.NONE:
            return self._extract_fixed_stride(region, region_offset)
        return self._extract_from_table(region, region_offset)

    def _extract_fixed_stride(self, region: bytes, region_offset: int) -> list[SpritePayload]:
        stride = sprite_stride(self.descriptor)
        payloads: list[SpritePayload] = []
        for index in range(self.descriptor.sprite_count):
            start = index * stride
            self._check_range(region, start, stride, region_offset, index)
            payloads.append(SpritePayload(region_offset + start, region[start : start + stride]))
        return payloads

    def _extract_from_table(self, region: bytes, region_offset: int) -> list[SpritePayload]:
        payloads: list[SpritePayload] = []
        for index in range(self.descriptor.sprite_count):
            position = index * TABLE_ENTRY.size
            if position + TABLE_ENTRY.size > len(region):
                raise TruncatedInputError(
                    f"スプライト{index}のオフセットテーブルが領域外です",
                    offset=region_offset + position,
                )
            start, length = TABLE_ENTRY.unpack_from(region, position)
            self._check_range(region, start, length, region_offset, index)
            payloads.append(SpritePayload(region_offset + start, region[start : start + length]))
        return payloads

    @staticmethod
    def _check_range(
        region: bytes, start: int, length: int, region_offset: int, index: int
    ) -> None:
        if start + length > len(region):
            raise RangeError(
                f"スプライト{index}の範囲 [{start}, {start + length}) が"
                f"ピクセルデータ領域のサイズ {len(region)} を超えています",
                offset=region_offset + start,
            )
