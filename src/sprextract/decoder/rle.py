"""ランレングス圧縮モジュール

スプライトのピクセルデータに使用される2種類のRLEの解凍と、
対応する参照エンコーダーを提供する。

バイト単位RLE:
- 制御バイトの最上位ビット1 = 下位7ビット n 個のリテラルバイトが続く
- 制御バイトの最上位ビット0 = 次の1バイトを下位7ビット n 回繰り返す

ワード単位RLE:
- 制御値・リテラル・繰り返し値がすべて4バイト単位
- 制御値（u32 LE）のビット31が1 = 下位28ビット n 個の4バイトグループが続く
- ビット31が0 = 次の4バイトを n 回繰り返す
"""

from __future__ import annotations

from typing import Protocol

from sprextract.parser.descriptor import CompressionMode


class RLEDecoderProtocol(Protocol):
    """RLE解凍インターフェース"""

    def decode(self, data: bytes, limit: int | None = None) -> bytes:
        """圧縮データを解凍する

        Args:
            data: 圧縮されたバイト列
            limit: 解凍後の最大バイト数（Noneの場合は無制限）

        Returns:
            解凍されたバイト列（limitを超える部分は含まない）
        """
        ...


class BytewiseRLEDecoder:
    """バイト単位RLE解凍クラス

    末尾の不完全な制御バイトは、残りのバイト数の範囲で処理して終了する。
    """

    LITERAL_FLAG: int = 0x80
    COUNT_MASK: int = 0x7F

    def decode(self, data: bytes, limit: int | None = None) -> bytes:
        output = bytearray()
        position = 0
        data_len = len(data)

        while position < data_len and (limit is None or len(output) < limit):
            control = data[position]
            position += 1
            count = control & self.COUNT_MASK

            if control & self.LITERAL_FLAG:
                output += data[position : position + count]
                position += count
            else:
                if position >= data_len:
                    break
                output += bytes((data[position],)) * count
                position += 1

        return bytes(output[:limit])


class WordwiseRLEDecoder:
    """ワード単位RLE解凍クラス

    リテラルは領域内に完全に収まる4バイトグループのみをコピーする。
    繰り返し回数は最大2^28になるため、limitを指定した場合は
    limitに届くグループ数だけ展開する。
    """

    UNIT: int = 4
    LITERAL_FLAG: int = 0x8000_0000
    COUNT_MASK: int = 0x0FFF_FFFF

    def decode(self, data: bytes, limit: int | None = None) -> bytes:
        output = bytearray()
        position = 0
        data_len = len(data)

        while position + self.UNIT <= data_len and (limit is None or len(output) < limit):
            control = int.from_bytes(data[position : position + self.UNIT], "little")
            position += self.UNIT
            count = control & self.COUNT_MASK

            if control & self.LITERAL_FLAG:
                available = (data_len - position) // self.UNIT
                size = min(count, available) * self.UNIT
                output += data[position : position + size]
                position += count * self.UNIT
            else:
                if position + self.UNIT > data_len:
                    break
                if limit is not None:
                    count = min(count, -(-(limit - len(output)) // self.UNIT))
                output += data[position : position + self.UNIT] * count
                position += self.UNIT

        return bytes(output[:limit])


class BytewiseRLEEncoder:
    """バイト単位RLEの参照エンコーダー

    2バイト以上連続する値は繰り返し、それ以外はリテラルとして出力する。
    """

    MAX_COUNT: int = 0x7F

    def encode(self, data: bytes) -> bytes:
        output = bytearray()
        literal = bytearray()
        position = 0

        while position < len(data):
            run = 1
            while (
                position + run < len(data)
                and data[position + run] == data[position]
                and run < self.MAX_COUNT
            ):
                run += 1

            if run >= 2:
                self._flush_literal(output, literal)
                output.append(run)
                output.append(data[position])
            else:
                literal.append(data[position])
                if len(literal) == self.MAX_COUNT:
                    self._flush_literal(output, literal)
            position += run

        self._flush_literal(output, literal)
        return bytes(output)

    @staticmethod
    def _flush_literal(output: bytearray, literal: bytearray) -> None:
        if literal:
            output.append(0x80 | len(literal))
            output += literal
            literal.clear()


class WordwiseRLEEncoder:
    """ワード単位RLEの参照エンコーダー"""

    UNIT: int = 4
    MAX_COUNT: int = 0x0FFF_FFFF

    def encode(self, data: bytes) -> bytes:
        """4バイトグループ単位で圧縮する

        Raises:
            ValueError: データ長が4の倍数でない場合
        """
        if len(data) % self.UNIT:
            raise ValueError(f"データ長は{self.UNIT}の倍数である必要があります: {len(data)}")

        words = [data[i : i + self.UNIT] for i in range(0, len(data), self.UNIT)]
        output = bytearray()
        literal: list[bytes] = []
        position = 0

        while position < len(words):
            run = 1
            while (
                position + run < len(words)
                and words[position + run] == words[position]
                and run < self.MAX_COUNT
            ):
                run += 1

            if run >= 2:
                self._flush_literal(output, literal)
                output += run.to_bytes(self.UNIT, "little")
                output += words[position]
            else:
                literal.append(words[position])
            position += run

        self._flush_literal(output, literal)
        return bytes(output)

    def _flush_literal(self, output: bytearray, literal: list[bytes]) -> None:
        if literal:
            output += (0x8000_0000 | len(literal)).to_bytes(self.UNIT, "little")
            output += b"".join(literal)
            literal.clear()


_DECODERS: dict[CompressionMode, RLEDecoderProtocol] = {
    CompressionMode.BYTEWISE: BytewiseRLEDecoder(),
    CompressionMode.WORDWISE: WordwiseRLEDecoder(),
}


def decompress(data: bytes, mode: CompressionMode, limit: int | None = None) -> bytes:
    """圧縮方式に応じてスプライトのペイロードを解凍する

    CompressionMode.NONEの場合はそのまま返す（固定長ストライドで切り出し済みのため
    limitは適用しない）。

    Args:
        data: スプライトのペイロード
        mode: 圧縮方式
        limit: 解凍後の最大バイト数
    """
    decoder = _DECODERS.get(mode)
    if decoder is None:
        return data
    return decoder.decode(data, limit)
