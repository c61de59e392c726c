"""ペイロード抽出のテスト"""

import struct
from collections.abc import Callable

import pytest

from sprextract.decoder.payload import (
    XOR_KEY,
    PayloadExtractor,
    SpritePayload,
    sprite_stride,
    xor_bytes,
)
from sprextract.errors import RangeError, TruncatedInputError
from sprextract.parser.descriptor import CompressionMode, ImageDescriptor, PixelFormat

DescriptorFactory = Callable[..., ImageDescriptor]


class TestXorBytes:
    """xor_bytes()のテスト"""

    def test_xor_key(self) -> None:
        assert XOR_KEY == 0x53
        assert xor_bytes(b"\x00\x53\xff") == b"\x53\x00\xac"

    @pytest.mark.parametrize(
        "data",
        [
            pytest.param(b"", id="空"),
            pytest.param(bytes(range(256)), id="全バイト値"),
            pytest.param(b"sprite payload \x00\x80\xff", id="混在"),
        ],
    )
    def test_involution(self, data: bytes) -> None:
        """2回適用すると元に戻る"""
        assert xor_bytes(xor_bytes(data)) == data


class TestSpriteStride:
    """sprite_stride()のテスト"""

    @pytest.mark.parametrize(
        "pixel_format, width, height, expected",
        [
            pytest.param(PixelFormat.INDEXED_1, 8, 8, 8, id="1bpp 8x8"),
            pytest.param(PixelFormat.INDEXED_1, 3, 3, 2, id="1bpp 端数切り上げ"),
            pytest.param(PixelFormat.INDEXED_2, 2, 2, 1, id="2bpp 2x2"),
            pytest.param(PixelFormat.INDEXED_4, 3, 1, 2, id="4bpp 端数切り上げ"),
            pytest.param(PixelFormat.INDEXED_8, 4, 4, 16, id="8bpp 4x4"),
            pytest.param(PixelFormat.DIRECT_16, 4, 4, 32, id="ダイレクト 4x4"),
        ],
    )
    def test_stride(
        self,
        descriptor_factory: DescriptorFactory,
        pixel_format: PixelFormat,
        width: int,
        height: int,
        expected: int,
    ) -> None:
        descriptor = descriptor_factory(
            pixel_format=pixel_format, sprite_width=width, sprite_height=height
        )
        assert sprite_stride(descriptor) == expected


class TestFixedStrideExtraction:
    """非圧縮（固定長ストライド）の抽出テスト"""

    def test_slices_by_stride(self, descriptor_factory: DescriptorFactory) -> None:
        descriptor = descriptor_factory(sprite_count=3)
        region = bytes(range(12))
        payloads = PayloadExtractor(descriptor).extract(region, region_offset=100)
        assert payloads == [
            SpritePayload(100, bytes([0, 1, 2, 3])),
            SpritePayload(104, bytes([4, 5, 6, 7])),
            SpritePayload(108, bytes([8, 9, 10, 11])),
        ]

    def test_region_too_short(self, descriptor_factory: DescriptorFactory) -> None:
        """スプライトが領域に収まらない場合はRangeError"""
        descriptor = descriptor_factory(sprite_count=3)
        with pytest.raises(RangeError) as exc_info:
            PayloadExtractor(descriptor).extract(bytes(10), region_offset=50)
        assert exc_info.value.offset == 50 + 8

    def test_obfuscated(self, descriptor_factory: DescriptorFactory) -> None:
        descriptor = descriptor_factory(is_obfuscated=True)
        region = xor_bytes(b"\x00\x01\x02\x03")
        payloads = PayloadExtractor(descriptor).extract(region)
        assert payloads[0].data == b"\x00\x01\x02\x03"


class TestTableExtraction:
    """圧縮時（オフセット・長さテーブル）の抽出テスト"""

    def _region(self, chunks: list[bytes]) -> bytes:
        table_size = 8 * len(chunks)
        table = b""
        position = table_size
        for chunk in chunks:
            table += struct.pack("<II", position, len(chunk))
            position += len(chunk)
        return table + b"".join(chunks)

    @pytest.mark.parametrize(
        "compression",
        [CompressionMode.BYTEWISE, CompressionMode.WORDWISE],
    )
    def test_slices_by_table(
        self, descriptor_factory: DescriptorFactory, compression: CompressionMode
    ) -> None:
        descriptor = descriptor_factory(sprite_count=2, compression=compression)
        region = self._region([b"\x84abcd", b"\x05z"])
        payloads = PayloadExtractor(descriptor).extract(region, region_offset=1000)
        assert payloads == [
            SpritePayload(1000 + 16, b"\x84abcd"),
            SpritePayload(1000 + 21, b"\x05z"),
        ]

    def test_obfuscated_table(self, descriptor_factory: DescriptorFactory) -> None:
        """難読化された領域はテーブルを含めて解除してから読む"""
        descriptor = descriptor_factory(
            sprite_count=1, compression=CompressionMode.BYTEWISE, is_obfuscated=True
        )
        region = xor_bytes(self._region([b"\x04\x07"]))
        payloads = PayloadExtractor(descriptor).extract(region)
        assert payloads[0].data == b"\x04\x07"

    def test_table_truncated(self, descriptor_factory: DescriptorFactory) -> None:
        descriptor = descriptor_factory(sprite_count=2, compression=CompressionMode.BYTEWISE)
        region = struct.pack("<II", 8, 0) + b"\x00\x00"
        with pytest.raises(TruncatedInputError) as exc_info:
            PayloadExtractor(descriptor).extract(region, region_offset=10)
        assert exc_info.value.offset == 10 + 8

    def test_slice_out_of_range(self, descriptor_factory: DescriptorFactory) -> None:
        descriptor = descriptor_factory(sprite_count=1, compression=CompressionMode.WORDWISE)
        region = struct.pack("<II", 8, 100) + b"\x00" * 4
        with pytest.raises(RangeError):
            PayloadExtractor(descriptor).extract(region)
