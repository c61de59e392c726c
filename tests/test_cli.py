"""CLIエントリポイントのテスト"""

from collections.abc import Callable
from pathlib import Path

import pytest
from typer.testing import CliRunner

from sprextract.cli import app
from sprextract.types import ExitCode

runner = CliRunner()

EntryBuilder = Callable[..., bytes]
ContainerBuilder = Callable[[list[bytes]], bytes]
PaletteBuilder = Callable[[list[int]], bytes]


@pytest.fixture
def container_file(
    tmp_path: Path,
    entry_builder: EntryBuilder,
    container_builder: ContainerBuilder,
    palette_builder: PaletteBuilder,
) -> Path:
    """正常な2x2画像エントリを2つ持つコンテナファイル"""
    entry = entry_builder(
        palette=palette_builder([0xF800, 0x07E0, 0x001F, 0xFFFF]),
        pixel_data=bytes([0, 1, 2, 3]),
    )
    path = tmp_path / "sprites.bin"
    path.write_bytes(container_builder([entry, entry]))
    return path


@pytest.fixture
def broken_container_file(
    tmp_path: Path,
    entry_builder: EntryBuilder,
    container_builder: ContainerBuilder,
    palette_builder: PaletteBuilder,
) -> Path:
    """2番目のエントリがパレット外のインデックスを含むコンテナファイル"""
    palette = palette_builder([0xF800, 0x07E0, 0x001F, 0xFFFF])
    good = entry_builder(palette=palette, pixel_data=bytes([0, 1, 2, 3]))
    bad = entry_builder(palette=palette, pixel_data=bytes([0, 1, 2, 99]))
    path = tmp_path / "broken.bin"
    path.write_bytes(container_builder([good, bad]))
    return path


class TestMainCommand:
    """メインコマンドのテスト"""

    @pytest.mark.parametrize(
        "args,expected_in_output",
        [
            pytest.param(["--help"], "スプライトコンテナ", id="正常系: ヘルプ表示"),
            pytest.param(["--version"], "0.1.0", id="正常系: バージョン表示"),
        ],
    )
    def test_main_options(self, args: list[str], expected_in_output: str) -> None:
        result = runner.invoke(app, args)
        assert result.exit_code == 0
        assert expected_in_output in result.stdout


class TestExtractCommand:
    """extractコマンドのテスト"""

    def test_extract_success(self, tmp_path: Path, container_file: Path) -> None:
        output_dir = tmp_path / "out"
        result = runner.invoke(app, ["extract", str(container_file), str(output_dir)])
        assert result.exit_code == ExitCode.SUCCESS
        assert (output_dir / "image-0.png").exists()
        assert (output_dir / "image-1.png").exists()
        assert "Extraction complete!" in result.stdout

    def test_extract_no_sheet(self, tmp_path: Path, container_file: Path) -> None:
        output_dir = tmp_path / "out"
        result = runner.invoke(
            app, ["extract", str(container_file), str(output_dir), "--no-sheet", "--workers", "1"]
        )
        assert result.exit_code == ExitCode.SUCCESS
        assert sorted(p.name for p in output_dir.iterdir()) == ["image-0-0.png", "image-1-0.png"]

    def test_extract_quiet(self, tmp_path: Path, container_file: Path) -> None:
        result = runner.invoke(
            app, ["extract", str(container_file), str(tmp_path / "out"), "--quiet"]
        )
        assert result.exit_code == ExitCode.SUCCESS
        assert result.stdout == ""

    def test_extract_missing_input(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["extract", str(tmp_path / "missing.bin"), str(tmp_path / "out")]
        )
        assert result.exit_code == ExitCode.INVALID_INPUT
        assert "Error" in result.stdout

    def test_extract_truncated_container(self, tmp_path: Path) -> None:
        input_file = tmp_path / "short.bin"
        input_file.write_bytes(b"\x10\x00\x00\x00\x14\x00")
        result = runner.invoke(app, ["extract", str(input_file), str(tmp_path / "out")])
        assert result.exit_code == ExitCode.INVALID_INPUT
        assert "抽出失敗" in result.stdout

    def test_extract_partial_failure(self, tmp_path: Path, broken_container_file: Path) -> None:
        """失敗したエントリがあっても他のエントリは出力し、終了コード1で終わる"""
        output_dir = tmp_path / "out"
        result = runner.invoke(app, ["extract", str(broken_container_file), str(output_dir)])
        assert result.exit_code == ExitCode.ERROR
        assert (output_dir / "image-0.png").exists()
        assert not (output_dir / "image-1.png").exists()

    def test_extract_with_config(self, tmp_path: Path, container_file: Path) -> None:
        config_file = tmp_path / "sprextract.yaml"
        config_file.write_text("output:\n  format: tiff\n  spritesheet: false\n", encoding="utf-8")
        output_dir = tmp_path / "out"
        result = runner.invoke(
            app, ["extract", str(container_file), str(output_dir), "-c", str(config_file)]
        )
        assert result.exit_code == ExitCode.SUCCESS
        assert (output_dir / "image-0-0.tiff").exists()

    def test_cli_option_overrides_config(self, tmp_path: Path, container_file: Path) -> None:
        config_file = tmp_path / "sprextract.yaml"
        config_file.write_text("output:\n  spritesheet: false\n", encoding="utf-8")
        output_dir = tmp_path / "out"
        result = runner.invoke(
            app,
            ["extract", str(container_file), str(output_dir), "-c", str(config_file), "--sheet"],
        )
        assert result.exit_code == ExitCode.SUCCESS
        assert (output_dir / "image-0.png").exists()

    def test_extract_invalid_config(self, tmp_path: Path, container_file: Path) -> None:
        config_file = tmp_path / "invalid.yaml"
        config_file.write_text("decode:\n  max_workers: 0\n", encoding="utf-8")
        result = runner.invoke(
            app, ["extract", str(container_file), str(tmp_path / "out"), "-c", str(config_file)]
        )
        assert result.exit_code == ExitCode.INVALID_INPUT

    def test_extract_invalid_verbose_in_config(
        self, tmp_path: Path, container_file: Path
    ) -> None:
        config_file = tmp_path / "invalid.yaml"
        config_file.write_text("logging:\n  verbose: -2\n", encoding="utf-8")
        result = runner.invoke(
            app, ["extract", str(container_file), str(tmp_path / "out"), "-c", str(config_file)]
        )
        assert result.exit_code == ExitCode.INVALID_INPUT
        assert "logging.verbose" in result.stdout

    @pytest.mark.parametrize(
        "args, config_text",
        [
            pytest.param(["--no-emoji"], "", id="CLIオプション"),
            pytest.param([], "logging:\n  emoji: false\n", id="設定ファイル"),
        ],
    )
    def test_extract_without_emoji(
        self, tmp_path: Path, container_file: Path, args: list[str], config_text: str
    ) -> None:
        config_file = tmp_path / "sprextract.yaml"
        config_file.write_text(config_text, encoding="utf-8")
        result = runner.invoke(
            app,
            ["extract", str(container_file), str(tmp_path / "out"), "-c", str(config_file), *args],
        )
        assert result.exit_code == ExitCode.SUCCESS
        assert "[OK] Extraction complete!" in result.stdout
        assert "✅" not in result.stdout

    def test_extract_log_file(self, tmp_path: Path, broken_container_file: Path) -> None:
        log_file = tmp_path / "extract.log"
        runner.invoke(
            app,
            [
                "extract",
                str(broken_container_file),
                str(tmp_path / "out"),
                "--quiet",
                "--log-file",
                str(log_file),
            ],
        )
        content = log_file.read_text(encoding="utf-8")
        assert "ERROR: [entry 1" in content


class TestInfoCommand:
    """infoコマンドのテスト"""

    def test_info(self, container_file: Path) -> None:
        result = runner.invoke(app, ["info", str(container_file)])
        assert result.exit_code == ExitCode.SUCCESS
        assert "Entries: 2" in result.stdout

    def test_info_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["info", str(tmp_path / "missing.bin")])
        assert result.exit_code == ExitCode.INVALID_INPUT

    def test_info_truncated(self, tmp_path: Path) -> None:
        input_file = tmp_path / "short.bin"
        input_file.write_bytes(b"\x01")
        result = runner.invoke(app, ["info", str(input_file)])
        assert result.exit_code == ExitCode.INVALID_INPUT
