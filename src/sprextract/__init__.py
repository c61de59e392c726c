"""sprextract - タイル/スプライト画像コンテナのデコーダー."""

from sprextract.decoder.entry import DecodedEntry, EntryDecoder
from sprextract.errors import (
    DecodeError,
    LayoutMismatchError,
    PaletteIndexOutOfRangeError,
    RangeError,
    TruncatedInputError,
    UnsupportedPixelFormatError,
)
from sprextract.pipeline import (
    EntryResult,
    EntryStatus,
    ExtractionPipeline,
    PipelineConfig,
    PipelineResult,
)
from sprextract.types import Diagnostic, DiagnosticLevel

__version__ = "0.1.0"

__all__ = [
    "DecodeError",
    "DecodedEntry",
    "Diagnostic",
    "DiagnosticLevel",
    "EntryDecoder",
    "EntryResult",
    "EntryStatus",
    "ExtractionPipeline",
    "LayoutMismatchError",
    "PaletteIndexOutOfRangeError",
    "PipelineConfig",
    "PipelineResult",
    "RangeError",
    "TruncatedInputError",
    "UnsupportedPixelFormatError",
]
