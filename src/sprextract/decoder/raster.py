"""ピクセルラスタライズモジュール

解凍済みのスプライトデータをRGBAのPIL.Imageに変換する。
インデックスカラーはBitReaderでパレットインデックスを取り出してパレットを引き、
ダイレクトカラーは16ビットのRGB565値を直接色に変換する。

ピクセルiの座標は (i % width, i // width)。スプライトの範囲外となる
ピクセルは捨て、書き込まれなかったピクセルは透明のまま残る。
"""

from __future__ import annotations

from dataclasses import dataclass

from PIL import Image

from sprextract.decoder.bitstream import BitReader
from sprextract.decoder.palette import TRANSPARENT, Palette, rgb565_to_rgba
from sprextract.errors import PaletteIndexOutOfRangeError
from sprextract.parser.descriptor import ImageDescriptor


@dataclass(frozen=True)
class DecodedSprite:
    """デコード済みスプライト

    Attributes:
        image: sprite_width x sprite_height のRGBA画像
        pixel_count: データから取り出したピクセル数（範囲外で捨てたものを含む）
        padding: 最終バイトの埋め草として許容する余分なピクセル数
    """

    image: Image.Image
    pixel_count: int
    padding: int = 0

    @property
    def expected_pixel_count(self) -> int:
        width, height = self.image.size
        return width * height

    @property
    def is_complete(self) -> bool:
        """取り出したピクセル数がスプライトの面積（と埋め草）に収まるか"""
        expected = self.expected_pixel_count
        return expected <= self.pixel_count <= expected + self.padding


class Rasterizer:
    """スプライトのラスタライズクラス

    Attributes:
        descriptor: 対象画像のヘッダー情報
    """

    def __init__(self, descriptor: ImageDescriptor) -> None:
        self.descriptor = descriptor

    def rasterize(
        self,
        data: bytes,
        palette: Palette | None = None,
        *,
        sprite_index: int = 0,
        payload_offset: int | None = None,
    ) -> DecodedSprite:
        """ピクセル形式に応じてスプライトをラスタライズする

        Args:
            data: 解凍済みのスプライトデータ
            palette: 使用するパレット（ダイレクトカラーでは不要）
            sprite_index: スプライト番号（エラー報告用）
            payload_offset: ペイロードの絶対オフセット（エラー報告用）

        Returns:
            デコード済みスプライト

        Raises:
            PaletteIndexOutOfRangeError: インデックスに対応する色がパレットにない場合
        """
        if self.descriptor.pixel_format.is_indexed:
            return self.indexed(
                data, palette or (), sprite_index=sprite_index, payload_offset=payload_offset
            )
        return self.direct(data)

    def indexed(
        self,
        data: bytes,
        palette: Palette,
        *,
        sprite_index: int = 0,
        payload_offset: int | None = None,
    ) -> DecodedSprite:
        """インデックスカラーのスプライトをラスタライズする"""
        descriptor = self.descriptor
        width = descriptor.sprite_width
        area = width * descriptor.sprite_height
        bpp = descriptor.pixel_format.bpp
        pixels = bytearray(area * 4)

        reader = BitReader(data)
        count = len(data) * 8 // bpp
        # 面積を超えるピクセルは読み取らずに捨てる
        for pixel, index in zip(range(area), reader.groups(bpp)):
            if descriptor.has_transparency and index == descriptor.transparent_index:
                color = TRANSPARENT
            elif index < len(palette):
                color = palette[index]
            else:
                raise PaletteIndexOutOfRangeError(
                    f"スプライト{sprite_index}のピクセル({pixel % width}, {pixel // width})の"
                    f"インデックス {index} はパレットの色数 {len(palette)} を超えています"
                    f"（解凍後データの{(reader.position - bpp) // 8}バイト目）",
                    offset=payload_offset,
                )
            pixels[pixel * 4 : pixel * 4 + 4] = bytes(color)

        return self._create_sprite(pixels, count, padding=8 // bpp - 1)

    def direct(self, data: bytes) -> DecodedSprite:
        """ダイレクトカラー（RGB565）のスプライトをラスタライズする"""
        descriptor = self.descriptor
        area = descriptor.sprite_width * descriptor.sprite_height
        pixels = bytearray(area * 4)

        count = len(data) // 2
        for pixel in range(min(count, area)):
            value = int.from_bytes(data[pixel * 2 : pixel * 2 + 2], "little")
            if descriptor.has_transparency and value == descriptor.transparent_index:
                color = TRANSPARENT
            else:
                color = rgb565_to_rgba(value)
            pixels[pixel * 4 : pixel * 4 + 4] = bytes(color)

        return self._create_sprite(pixels, count)

    def _create_sprite(self, pixels: bytearray, count: int, padding: int = 0) -> DecodedSprite:
        size = (self.descriptor.sprite_width, self.descriptor.sprite_height)
        image = Image.frombytes("RGBA", size, bytes(pixels))
        return DecodedSprite(image=image, pixel_count=count, padding=padding)
