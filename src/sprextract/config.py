"""Configuration module for sprextract."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


class ConfigError(Exception):
    """設定ファイル読み込みエラー"""

    pass


@dataclass(frozen=True)
class OutputConfig:
    """出力設定"""

    format: str = "png"
    spritesheet: bool = True


@dataclass(frozen=True)
class DecodeConfig:
    """デコード設定"""

    strict_layout: bool = False
    max_workers: int | None = None


@dataclass(frozen=True)
class LoggingConfig:
    """ログ設定"""

    verbose: int = 0
    log_file: Path | None = None
    emoji: bool = True


@dataclass(frozen=True)
class SprextractConfig:
    """ルート設定"""

    output: OutputConfig = field(default_factory=OutputConfig)
    decode: DecodeConfig = field(default_factory=DecodeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: Path) -> SprextractConfig:
    """設定ファイルを読み込む

    Args:
        path: 設定ファイルパス

    Returns:
        SprextractConfig: 読み込んだ設定（デフォルトとマージ済み）

    Raises:
        ConfigError: ファイル読み込みまたはパースエラー
    """
    if not path.exists():
        raise ConfigError(f"設定ファイルが見つかりません: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML解析エラー: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("設定ファイルはYAMLのマッピング形式である必要があります")

    default = get_default_config()

    return SprextractConfig(
        output=_merge_output_config(data.get("output", {}), default.output),
        decode=_merge_decode_config(data.get("decode", {}), default.decode),
        logging=_merge_logging_config(data.get("logging", {}), default.logging),
    )


def get_default_config() -> SprextractConfig:
    """デフォルト設定を取得する"""
    return SprextractConfig()


def _merge_output_config(data: dict[str, Any], default: OutputConfig) -> OutputConfig:
    """出力設定をマージする"""
    if not isinstance(data, dict):
        return default
    output_format = data.get("format", default.format)
    if not isinstance(output_format, str) or not output_format:
        raise ConfigError(f"output.format は拡張子の文字列である必要があります: {output_format!r}")
    return OutputConfig(
        format=output_format.lstrip(".").lower(),
        spritesheet=bool(data.get("spritesheet", default.spritesheet)),
    )


def _merge_decode_config(data: dict[str, Any], default: DecodeConfig) -> DecodeConfig:
    """デコード設定をマージする"""
    if not isinstance(data, dict):
        return default
    max_workers = data.get("max_workers", default.max_workers)
    if max_workers is not None and (not isinstance(max_workers, int) or max_workers < 1):
        raise ConfigError(f"decode.max_workers は1以上の整数である必要があります: {max_workers!r}")
    return DecodeConfig(
        strict_layout=bool(data.get("strict_layout", default.strict_layout)),
        max_workers=max_workers,
    )


def _merge_logging_config(data: dict[str, Any], default: LoggingConfig) -> LoggingConfig:
    """ログ設定をマージする"""
    if not isinstance(data, dict):
        return default
    verbose = data.get("verbose", default.verbose)
    if isinstance(verbose, bool) or not isinstance(verbose, int) or verbose < 0:
        raise ConfigError(f"logging.verbose は0以上の整数である必要があります: {verbose!r}")
    log_file = data.get("log_file", default.log_file)
    return LoggingConfig(
        verbose=verbose,
        log_file=Path(log_file) if log_file is not None else None,
        emoji=bool(data.get("emoji", default.emoji)),
    )
