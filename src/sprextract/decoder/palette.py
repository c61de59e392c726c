"""パレットデコードモジュール

RGB565形式の16ビット色が連続するパレット領域を、
パレットごとのRGBA色リストに変換する。
"""

from __future__ import annotations

RGBA = tuple[int, int, int, int]
Palette = tuple[RGBA, ...]
PaletteSet = tuple[Palette, ...]

TRANSPARENT: RGBA = (0, 0, 0, 0)
"""透過ピクセルの色"""

RED_MAX = 0x1F
GREEN_MAX = 0x3F
BLUE_MAX = 0x1F


def rgb565_to_rgba(value: int) -> RGBA:
    """RGB565の16ビット値を不透明なRGBA色に変換する

    各チャンネルは channel * 255 // max で8ビットに線形スケールする。

    Args:
        value: RGB565形式の16ビット値

    Returns:
        RGBA色（アルファは常に255）
    """
    red = (value >> 11) & RED_MAX
    green = (value >> 5) & GREEN_MAX
    blue = value & BLUE_MAX
    return (
        red * 255 // RED_MAX,
        green * 255 // GREEN_MAX,
        blue * 255 // BLUE_MAX,
        255,
    )


def decode_palettes(region: bytes, bpp: int, palette_count: int) -> PaletteSet:
    """パレット領域をデコードする

    色は連続したインデックス順にパレットへ振り分けられ、
    palette_count * 2**bpp 個を超える色は捨てられる。
    末尾の1バイトだけの端数は無視する。

    Args:
        region: パレット領域のバイト列
        bpp: インデックスカラーのビット深度
        palette_count: パレット数

    Returns:
        パレットのタプル
    """
    colors_per_palette = 2**bpp
    palettes: list[list[RGBA]] = [[] for _ in range(palette_count)]
    limit = min(len(region) // 2, palette_count * colors_per_palette)

    for color_index in range(limit):
        value = int.from_bytes(region[color_index * 2 : color_index * 2 + 2], "little")
        palettes[color_index // colors_per_palette].append(rgb565_to_rgba(value))

    return tuple(tuple(palette) for palette in palettes)
