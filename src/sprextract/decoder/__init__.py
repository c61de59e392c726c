"""Decoder module for sprextract.

パレット・ペイロード・RLE・ラスタライズ・合成の各段階を提供するモジュール。
"""

from sprextract.decoder.bitstream import BitReader, pack_indices
from sprextract.decoder.compositor import Compositor
from sprextract.decoder.entry import DecodedEntry, EntryDecoder
from sprextract.decoder.palette import RGBA, Palette, PaletteSet, decode_palettes, rgb565_to_rgba
from sprextract.decoder.payload import PayloadExtractor, SpritePayload, xor_bytes
from sprextract.decoder.raster import DecodedSprite, Rasterizer
from sprextract.decoder.rle import (
    BytewiseRLEDecoder,
    BytewiseRLEEncoder,
    WordwiseRLEDecoder,
    WordwiseRLEEncoder,
    decompress,
)

__all__ = [
    "RGBA",
    "BitReader",
    "BytewiseRLEDecoder",
    "BytewiseRLEEncoder",
    "Compositor",
    "DecodedEntry",
    "DecodedSprite",
    "EntryDecoder",
    "Palette",
    "PaletteSet",
    "PayloadExtractor",
    "Rasterizer",
    "SpritePayload",
    "WordwiseRLEDecoder",
    "WordwiseRLEEncoder",
    "decode_palettes",
    "decompress",
    "pack_indices",
    "rgb565_to_rgba",
    "xor_bytes",
]
