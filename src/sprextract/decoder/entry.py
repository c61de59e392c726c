"""エントリデコードモジュール

コンテナの1エントリについて、ヘッダー解析からサブイメージ・スプライトシートの
合成までを順に実行する。エントリ同士は状態を共有しないため、
複数のエントリを別スレッドで同時にデコードできる。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from PIL import Image

from sprextract.decoder.compositor import Compositor
from sprextract.decoder.palette import Palette, PaletteSet, decode_palettes
from sprextract.decoder.payload import PayloadExtractor, sprite_stride
from sprextract.decoder.raster import DecodedSprite, Rasterizer
from sprextract.decoder.rle import decompress
from sprextract.errors import DecodeError, LayoutMismatchError, RangeError
from sprextract.parser.descriptor import ImageDescriptor, parse_descriptor
from sprextract.types import Diagnostic

logger = logging.getLogger(__name__)

OVERRUN_MARGIN = 2
"""解凍時にスプライト1枚分を超えて展開する最大バイト数"""


@dataclass(frozen=True)
class DecodedEntry:
    """1エントリのデコード結果

    Attributes:
        index: エントリ番号
        offset: エントリの絶対オフセット
        descriptor: ヘッダー情報
        subimages: 先頭パレットで描画したサブイメージ
        spritesheet: 全パレットのスプライトシート（生成しない場合はNone）
        diagnostics: デコード中に発生した警告
    """

    index: int
    offset: int
    descriptor: ImageDescriptor
    subimages: tuple[Image.Image, ...]
    spritesheet: Image.Image | None = None
    diagnostics: tuple[Diagnostic, ...] = field(default_factory=tuple)


class EntryDecoder:
    """エントリデコーダー

    Attributes:
        data: 入力バッファ全体（読み取り専用）
        spritesheet: スプライトシートを生成するか
        strict_layout: サブイメージの余りをエラーとして扱うか
    """

    def __init__(self, data: bytes, *, spritesheet: bool = True, strict_layout: bool = False) -> None:
        self.data = data
        self.spritesheet = spritesheet
        self.strict_layout = strict_layout

    def decode(self, index: int, offset: int) -> DecodedEntry:
        """エントリをデコードする

        Args:
            index: エントリ番号
            offset: エントリの絶対オフセット

        Returns:
            デコード結果

        Raises:
            DecodeError: エントリが不正な場合（entry_indexは設定済み）
        """
        try:
            return self._decode(index, offset)
        except DecodeError as e:
            e.entry_index = index
            raise

    def _decode(self, index: int, offset: int) -> DecodedEntry:
        descriptor = parse_descriptor(self.data, offset)
        logger.debug(
            "entry %d: offset=0x%x format=%s compression=%s obfuscated=%s sprites=%d",
            index,
            offset,
            descriptor.pixel_format.name,
            descriptor.compression.value,
            descriptor.is_obfuscated,
            descriptor.sprite_count,
        )
        diagnostics = self._check_descriptor(index, offset, descriptor)

        palettes = self._read_palettes(offset, descriptor)
        pixel_start, pixel_end = self._check_region(
            descriptor.pixel_region(offset), offset, "ピクセルデータ"
        )
        payloads = PayloadExtractor(descriptor).extract(
            self.data[pixel_start:pixel_end], pixel_start
        )
        # 展開はスプライト1枚分 + OVERRUN_MARGIN バイトで打ち切る
        limit = sprite_stride(descriptor) + OVERRUN_MARGIN
        sprite_data = [
            (payload.offset, decompress(payload.data, descriptor.compression, limit))
            for payload in payloads
        ]

        rasterizer = Rasterizer(descriptor)
        compositor = Compositor(descriptor, offset)
        row_palettes: list[Palette | None] = (
            list(palettes) if descriptor.pixel_format.is_indexed else [None]
        )
        if not self.spritesheet:
            row_palettes = row_palettes[:1]

        rows: list[list[Image.Image]] = []
        for row_index, palette in enumerate(row_palettes):
            sprites: list[DecodedSprite] = [
                rasterizer.rasterize(
                    data, palette, sprite_index=sprite_index, payload_offset=payload_offset
                )
                for sprite_index, (payload_offset, data) in enumerate(sprite_data)
            ]
            if row_index == 0:
                diagnostics.extend(self._check_pixel_counts(index, sprites, sprite_data))
            groups = compositor.split_subimages([sprite.image for sprite in sprites])
            rows.append([compositor.compose_subimage(group) for group in groups])

        sheet = compositor.compose_spritesheet(rows) if self.spritesheet else None
        return DecodedEntry(
            index=index,
            offset=offset,
            descriptor=descriptor,
            subimages=tuple(rows[0]),
            spritesheet=sheet,
            diagnostics=tuple(diagnostics),
        )

    def _check_descriptor(
        self, index: int, offset: int, descriptor: ImageDescriptor
    ) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        if descriptor.both_compression_flags:
            diagnostics.append(
                Diagnostic.warning(
                    index,
                    "バイト単位とワード単位の圧縮フラグが両方立っています（バイト単位として扱います）",
                    offset=offset + 4,
                    kind="conflicting_compression_flags",
                )
            )
        if descriptor.subimage_remainder:
            message = (
                f"スプライト数 {descriptor.sprite_count} がグリッド "
                f"{descriptor.grid_width}x{descriptor.grid_height} で割り切れません"
                f"（余り {descriptor.subimage_remainder}）"
            )
            if self.strict_layout:
                raise LayoutMismatchError(message, offset=offset + 6)
            diagnostics.append(
                Diagnostic.warning(index, message, offset=offset + 6, kind="subimage_remainder")
            )
        return diagnostics

    def _read_palettes(self, offset: int, descriptor: ImageDescriptor) -> PaletteSet:
        if not descriptor.pixel_format.is_indexed:
            return ()
        if descriptor.palette_count == 0:
            raise LayoutMismatchError(
                "インデックスカラー画像にパレットがありません", offset=offset + 15
            )
        start, end = self._check_region(descriptor.palette_region(offset), offset, "パレット")
        return decode_palettes(
            self.data[start:end], descriptor.pixel_format.bpp, descriptor.palette_count
        )

    def _check_region(
        self, region: tuple[int, int], offset: int, label: str
    ) -> tuple[int, int]:
        start, end = region
        if start < offset or start > end or end > len(self.data):
            raise RangeError(
                f"{label}領域 [{start}, {end}) がバッファサイズ {len(self.data)} の範囲外です",
                offset=start,
            )
        return region

    @staticmethod
    def _check_pixel_counts(
        index: int, sprites: list[DecodedSprite], sprite_data: list[tuple[int, bytes]]
    ) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        for sprite_index, (sprite, (payload_offset, _)) in enumerate(zip(sprites, sprite_data)):
            if sprite.is_complete:
                continue
            expected = sprite.expected_pixel_count
            if sprite.pixel_count > expected:
                message = (
                    f"スプライト{sprite_index}の解凍後データが"
                    f"スプライトの面積 {expected} ピクセルを超えています"
                )
            else:
                message = (
                    f"スプライト{sprite_index}のピクセル数 {sprite.pixel_count} が"
                    f"期待値 {expected} に足りません"
                )
            diagnostics.append(
                Diagnostic.warning(
                    index, message, offset=payload_offset, kind="pixel_count_mismatch"
                )
            )
        return diagnostics
