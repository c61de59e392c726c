"""Parser module for sprextract.

コンテナのオフセットテーブルと画像ヘッダーを解析するモジュール。
"""

from sprextract.parser.container import Container, read_container
from sprextract.parser.descriptor import (
    HEADER_SIZE,
    CompressionMode,
    ImageDescriptor,
    PixelFormat,
    parse_descriptor,
)

__all__ = [
    "HEADER_SIZE",
    "CompressionMode",
    "Container",
    "ImageDescriptor",
    "PixelFormat",
    "parse_descriptor",
    "read_container",
]
