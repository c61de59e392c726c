"""画像ヘッダー解析モジュール

各画像エントリ先頭の固定長ヘッダーを解析し、ImageDescriptorを生成する。

ヘッダー構造（24バイト、リトルエンディアン）:
- data_length(4) + flags(1) + pixel_format(1) + sprite_count(2)
- sprite_width(1) + sprite_height(1) + offset_x(1, 符号付き) + offset_y(1, 符号付き)
- grid_width(1) + grid_height(1) + reserved(1) + palette_count(1)
- transparent_index(2) + palette_offset(2) + pixel_offset(2) + padding(2)
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import Enum, IntEnum

from sprextract.errors import LayoutMismatchError, TruncatedInputError, UnsupportedPixelFormatError

HEADER_FORMAT = "<IBBHBBbbBBBBHHHH"
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)

FLAG_OBFUSCATED = 0b0000_0001
FLAG_WORDWISE = 0b0000_0010
FLAG_BYTEWISE = 0b0000_0100
FLAG_TRANSPARENCY = 0b0010_0000


class CompressionMode(Enum):
    """ピクセルデータの圧縮方式"""

    NONE = "none"
    BYTEWISE = "bytewise"
    WORDWISE = "wordwise"


class PixelFormat(IntEnum):
    """ピクセル形式

    値はインデックスカラーのビット深度（bpp）。
    DIRECT_16はパレットを使わずRGB565の16ビット値を直接格納する形式。
    """

    INDEXED_1 = 1
    INDEXED_2 = 2
    INDEXED_4 = 4
    INDEXED_8 = 8
    DIRECT_16 = 16

    @classmethod
    def from_selector(cls, selector: int) -> PixelFormat:
        """ヘッダーのセレクタ値からピクセル形式を決定する

        16以上はすべてダイレクトカラーとして扱う。

        Raises:
            UnsupportedPixelFormatError: 1/2/4/8/16以上のいずれでもない場合
        """
        if selector >= 16:
            return cls.DIRECT_16
        try:
            return cls(selector)
        except ValueError as e:
            raise UnsupportedPixelFormatError(f"未対応のピクセル形式です: {selector}") from e

    @property
    def bpp(self) -> int:
        return int(self.value)

    @property
    def is_indexed(self) -> bool:
        return self is not PixelFormat.DIRECT_16

    @property
    def colors_per_palette(self) -> int:
        """1パレットあたりの色数（ダイレクトカラーの場合は0）"""
        return 2**self.bpp if self.is_indexed else 0


@dataclass(frozen=True)
class ImageDescriptor:
    """画像エントリのヘッダー情報

    Attributes:
        data_length: 画像先頭からピクセルデータ末尾までのバイト長
        is_obfuscated: ピクセルデータがXOR難読化されているか
        compression: 圧縮方式
        pixel_format: ピクセル形式
        has_transparency: 透過色が有効か
        both_compression_flags: 両方の圧縮フラグが立っていたか（BYTEWISEを優先）
        sprite_count: スプライト数
        sprite_width: スプライトの幅（ピクセル）
        sprite_height: スプライトの高さ（ピクセル）
        offset_x: 描画時のXオフセット
        offset_y: 描画時のYオフセット
        grid_width: サブイメージの横方向スプライト数
        grid_height: サブイメージの縦方向スプライト数
        palette_count: パレット数
        transparent_index: 透過色のインデックス（ダイレクトカラーでは生の16ビット値）
        palette_offset: 画像先頭からパレット領域までのオフセット
        pixel_offset: 画像先頭からピクセルデータ領域までのオフセット
    """

    data_length: int
    is_obfuscated: bool
    compression: CompressionMode
    pixel_format: PixelFormat
    has_transparency: bool
    sprite_count: int
    sprite_width: int
    sprite_height: int
    offset_x: int
    offset_y: int
    grid_width: int
    grid_height: int
    palette_count: int
    transparent_index: int
    palette_offset: int
    pixel_offset: int
    both_compression_flags: bool = False

    @property
    def sprites_per_subimage(self) -> int:
        return self.grid_width * self.grid_height

    @property
    def subimage_count(self) -> int:
        return self.sprite_count // self.sprites_per_subimage

    @property
    def subimage_remainder(self) -> int:
        """サブイメージに収まらない余りのスプライト数"""
        return self.sprite_count % self.sprites_per_subimage

    @property
    def subimage_size(self) -> tuple[int, int]:
        return (self.grid_width * self.sprite_width, self.grid_height * self.sprite_height)

    @property
    def sheet_rows(self) -> int:
        """スプライトシートの行数（ダイレクトカラーは常に1行）"""
        return self.palette_count if self.pixel_format.is_indexed else 1

    @property
    def spritesheet_size(self) -> tuple[int, int]:
        width, height = self.subimage_size
        return (self.subimage_count * width, self.sheet_rows * height)

    def palette_region(self, image_offset: int) -> tuple[int, int]:
        """パレット領域の絶対範囲 (開始, 終了) を返す"""
        return (image_offset + self.palette_offset, image_offset + self.pixel_offset)

    def pixel_region(self, image_offset: int) -> tuple[int, int]:
        """ピクセルデータ領域の絶対範囲 (開始, 終了) を返す"""
        return (image_offset + self.pixel_offset, image_offset + self.data_length)


def parse_descriptor(data: bytes, offset: int) -> ImageDescriptor:
    """画像ヘッダーを解析する

    Args:
        data: 入力バッファ全体
        offset: 画像エントリの絶対オフセット

    Returns:
        解析されたヘッダー情報

    Raises:
        TruncatedInputError: ヘッダーの途中でバッファが終わる場合
        UnsupportedPixelFormatError: ピクセル形式が未知の場合
        LayoutMismatchError: グリッドの幅または高さが0の場合
    """
    if offset + HEADER_SIZE > len(data):
        raise TruncatedInputError(
            f"画像ヘッダーには{HEADER_SIZE}バイト必要ですが、{max(len(data) - offset, 0)}バイトしかありません",
            offset=offset,
        )

    (
        data_length,
        flags,
        selector,
        sprite_count,
        sprite_width,
        sprite_height,
        offset_x,
        offset_y,
        grid_width,
        grid_height,
        _reserved,
        palette_count,
        transparent_index,
        palette_offset,
        pixel_offset,
        _padding,
    ) = struct.unpack_from(HEADER_FORMAT, data, offset)

    try:
        pixel_format = PixelFormat.from_selector(selector)
    except UnsupportedPixelFormatError as e:
        e.offset = offset + 5
        raise

    if grid_width == 0 or grid_height == 0:
        raise LayoutMismatchError(
            f"グリッドサイズが不正です: {grid_width}x{grid_height}",
            offset=offset + 12,
        )

    # 両方の圧縮フラグが立っている場合はバイト単位を優先する
    if flags & FLAG_BYTEWISE:
        compression = CompressionMode.BYTEWISE
    elif flags & FLAG_WORDWISE:
        compression = CompressionMode.WORDWISE
    else:
        compression = CompressionMode.NONE

    return ImageDescriptor(
        data_length=data_length,
        is_obfuscated=bool(flags & FLAG_OBFUSCATED),
        compression=compression,
        pixel_format=pixel_format,
        has_transparency=bool(flags & FLAG_TRANSPARENCY),
        sprite_count=sprite_count,
        sprite_width=sprite_width,
        sprite_height=sprite_height,
        offset_x=offset_x,
        offset_y=offset_y,
        grid_width=grid_width,
        grid_height=grid_height,
        palette_count=palette_count,
        transparent_index=transparent_index,
        palette_offset=palette_offset,
        pixel_offset=pixel_offset,
        both_compression_flags=bool(flags & FLAG_BYTEWISE and flags & FLAG_WORDWISE),
    )
