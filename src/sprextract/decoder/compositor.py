"""合成モジュール

デコード済みスプライトをサブイメージ（グリッド配置）に、
サブイメージをスプライトシート（パレットごとに1行）にまとめる。
"""

from __future__ import annotations

from collections.abc import Sequence

from PIL import Image

from sprextract.errors import LayoutMismatchError
from sprextract.parser.descriptor import ImageDescriptor


class Compositor:
    """スプライト合成クラス

    Attributes:
        descriptor: 対象画像のヘッダー情報
        offset: 画像エントリの絶対オフセット（LayoutMismatchErrorの報告用）
    """

    def __init__(self, descriptor: ImageDescriptor, offset: int | None = None) -> None:
        self.descriptor = descriptor
        self.offset = offset

    def split_subimages(self, sprites: Sequence[Image.Image]) -> list[list[Image.Image]]:
        """スプライト列をサブイメージ単位に区切る

        末尾のグリッドを満たさないスプライトは含めない。
        """
        per_subimage = self.descriptor.sprites_per_subimage
        return [
            list(sprites[start : start + per_subimage])
            for start in range(0, len(sprites) - per_subimage + 1, per_subimage)
        ]

    def compose_subimage(self, sprites: Sequence[Image.Image]) -> Image.Image:
        """グリッド幅x高さ個のスプライトを1枚のサブイメージに配置する

        スプライトiは ((i % grid_width) * sprite_width, (i // grid_width) * sprite_height) に置く。

        Raises:
            LayoutMismatchError: スプライト数またはスプライトサイズが一致しない場合
        """
        descriptor = self.descriptor
        if len(sprites) != descriptor.sprites_per_subimage:
            raise LayoutMismatchError(
                f"サブイメージには{descriptor.sprites_per_subimage}個のスプライトが必要ですが、"
                f"{len(sprites)}個しかありません",
                offset=self.offset,
            )

        tile_size = (descriptor.sprite_width, descriptor.sprite_height)
        subimage = Image.new("RGBA", descriptor.subimage_size, (0, 0, 0, 0))
        for index, sprite in enumerate(sprites):
            self._check_size(sprite, tile_size, f"スプライト{index}")
            x = (index % descriptor.grid_width) * descriptor.sprite_width
            y = (index // descriptor.grid_width) * descriptor.sprite_height
            subimage.paste(sprite, (x, y))
        return subimage

    def compose_spritesheet(self, rows: Sequence[Sequence[Image.Image]]) -> Image.Image:
        """パレットごとのサブイメージ列を1枚のスプライトシートに配置する

        行pのサブイメージjは (j * サブイメージ幅, p * サブイメージ高さ) に置く。

        Args:
            rows: パレット順のサブイメージ列のリスト

        Raises:
            LayoutMismatchError: 行数・列数・サブイメージサイズが一致しない場合
        """
        descriptor = self.descriptor
        if len(rows) != descriptor.sheet_rows:
            raise LayoutMismatchError(
                f"スプライトシートには{descriptor.sheet_rows}行が必要ですが、{len(rows)}行あります",
                offset=self.offset,
            )

        sub_width, sub_height = descriptor.subimage_size
        sheet = Image.new("RGBA", descriptor.spritesheet_size, (0, 0, 0, 0))
        for row_index, subimages in enumerate(rows):
            if len(subimages) != descriptor.subimage_count:
                raise LayoutMismatchError(
                    f"行{row_index}には{descriptor.subimage_count}個のサブイメージが必要ですが、"
                    f"{len(subimages)}個あります",
                    offset=self.offset,
                )
            for column, subimage in enumerate(subimages):
                self._check_size(
                    subimage, descriptor.subimage_size, f"行{row_index}のサブイメージ{column}"
                )
                sheet.paste(subimage, (column * sub_width, row_index * sub_height))
        return sheet

    def _check_size(self, image: Image.Image, expected: tuple[int, int], label: str) -> None:
        if image.size != expected:
            raise LayoutMismatchError(
                f"{label}のサイズ {image.size[0]}x{image.size[1]} が"
                f"配置先 {expected[0]}x{expected[1]} と一致しません",
                offset=self.offset,
            )
