"""コンテナ読み取りのテスト"""

import struct

import pytest

from sprextract.errors import TruncatedInputError
from sprextract.parser.container import Container, read_container


class TestReadContainer:
    """read_container()のテスト"""

    @pytest.mark.parametrize(
        "table, expected",
        [
            pytest.param([4], (4,), id="正常系: エントリ1件"),
            pytest.param([8, 40], (8, 40), id="正常系: エントリ2件"),
            pytest.param([12, 100, 200], (12, 100, 200), id="正常系: エントリ3件"),
        ],
    )
    def test_reads_offsets_until_table_length(
        self, table: list[int], expected: tuple[int, ...]
    ) -> None:
        """先頭エントリの値に達するまでオフセットを読み取る"""
        data = struct.pack(f"<{len(table)}I", *table) + b"\x00" * 256
        container = read_container(data)
        assert container.offsets == expected
        assert container.table_length == table[0]

    def test_does_not_read_past_table(self) -> None:
        """テーブル長より後ろのバイトはオフセットとして読まない"""
        data = struct.pack("<2I", 8, 8) + struct.pack("<I", 0xDEADBEEF)
        assert read_container(data).offsets == (8, 8)

    def test_container_is_iterable(self) -> None:
        """Containerはlenとイテレーションに対応する"""
        container = Container(table_length=8, offsets=(8, 16))
        assert len(container) == 2
        assert list(container) == [8, 16]

    def test_table_length_exceeding_buffer(self) -> None:
        """宣言されたテーブル長がバッファより長い場合はTruncatedInputError"""
        data = struct.pack("<I", 64) + b"\x00" * 8
        with pytest.raises(TruncatedInputError) as exc_info:
            read_container(data)
        assert exc_info.value.offset == 0

    @pytest.mark.parametrize(
        "data",
        [
            pytest.param(b"", id="異常系: 空のデータ"),
            pytest.param(b"\x04\x00", id="異常系: 4バイト未満"),
        ],
    )
    def test_too_short_for_first_entry(self, data: bytes) -> None:
        """先頭エントリを読めない場合はTruncatedInputError"""
        with pytest.raises(TruncatedInputError):
            read_container(data)

    def test_unaligned_table_length_truncated_entry(self) -> None:
        """4の倍数でないテーブル長で最後のエントリが途切れる場合はTruncatedInputError"""
        data = struct.pack("<I", 6) + b"\x00\x00"
        with pytest.raises(TruncatedInputError) as exc_info:
            read_container(data)
        assert exc_info.value.offset == 4
