"""テスト用フィクスチャ

コンテナ・画像エントリのバイト列を struct.pack で組み立てるビルダーを提供する。
"""

import struct
from collections.abc import Callable
from typing import Any

import pytest

from sprextract.parser.descriptor import (
    HEADER_FORMAT,
    HEADER_SIZE,
    CompressionMode,
    ImageDescriptor,
    PixelFormat,
)

RED = 0xF800
GREEN = 0x07E0
BLUE = 0x001F
WHITE = 0xFFFF


def pack_colors(colors: list[int]) -> bytes:
    """RGB565値のリストをパレット領域のバイト列にする"""
    return struct.pack(f"<{len(colors)}H", *colors)


def make_entry(
    *,
    palette: bytes = b"",
    pixel_data: bytes = b"",
    flags: int = 0,
    pixel_format: int = 8,
    sprite_count: int = 1,
    sprite_width: int = 2,
    sprite_height: int = 2,
    offset_x: int = 0,
    offset_y: int = 0,
    grid_width: int = 1,
    grid_height: int = 1,
    palette_count: int = 1,
    transparent_index: int = 0,
    **overrides: int,
) -> bytes:
    """ヘッダー + パレット + ピクセルデータの画像エントリを組み立てる

    palette_offset / pixel_offset / data_length は内容から計算し、
    overridesで上書きできる。
    """
    palette_offset = overrides.get("palette_offset", HEADER_SIZE)
    pixel_offset = overrides.get("pixel_offset", HEADER_SIZE + len(palette))
    data_length = overrides.get("data_length", HEADER_SIZE + len(palette) + len(pixel_data))
    header = struct.pack(
        HEADER_FORMAT,
        data_length,
        flags,
        pixel_format,
        sprite_count,
        sprite_width,
        sprite_height,
        offset_x,
        offset_y,
        grid_width,
        grid_height,
        17,
        palette_count,
        transparent_index,
        palette_offset,
        pixel_offset,
        0,
    )
    return header + palette + pixel_data


def make_container(entries: list[bytes]) -> bytes:
    """エントリを連結し、先頭にオフセットテーブルを付ける"""
    table_length = 4 * len(entries)
    offsets: list[int] = []
    position = table_length
    for entry in entries:
        offsets.append(position)
        position += len(entry)
    return struct.pack(f"<{len(offsets)}I", *offsets) + b"".join(entries)


@pytest.fixture
def entry_builder() -> Callable[..., bytes]:
    """画像エントリのビルダー"""
    return make_entry


@pytest.fixture
def container_builder() -> Callable[[list[bytes]], bytes]:
    """コンテナのビルダー"""
    return make_container


@pytest.fixture
def palette_builder() -> Callable[[list[int]], bytes]:
    """パレット領域のビルダー"""
    return pack_colors


@pytest.fixture
def descriptor_factory() -> Callable[..., ImageDescriptor]:
    """デフォルト値付きのImageDescriptorファクトリ"""

    def factory(**overrides: Any) -> ImageDescriptor:
        fields: dict[str, Any] = {
            "data_length": 0,
            "is_obfuscated": False,
            "compression": CompressionMode.NONE,
            "pixel_format": PixelFormat.INDEXED_8,
            "has_transparency": False,
            "sprite_count": 1,
            "sprite_width": 2,
            "sprite_height": 2,
            "offset_x": 0,
            "offset_y": 0,
            "grid_width": 1,
            "grid_height": 1,
            "palette_count": 1,
            "transparent_index": 0,
            "palette_offset": HEADER_SIZE,
            "pixel_offset": HEADER_SIZE,
        }
        fields.update(overrides)
        return ImageDescriptor(**fields)

    return factory
