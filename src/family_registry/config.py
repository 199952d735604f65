"""設定ファイルの読み込みと設定値の管理。

TOML 形式の設定ファイルを読み込み、AppConfig として返す。
設定ファイルが存在しない場合はデフォルト値を使用する。
"""

from __future__ import annotations

import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import NoReturn

from family_registry.aggregator import UNSPECIFIED


@dataclass
class StoreConfig:
    """メンバーデータの読み込み元。"""

    path: str = "members.csv"


@dataclass
class ReportConfig:
    """レポート出力の設定。"""

    placeholder: str = UNSPECIFIED  # 父・母が不明な場合の表示


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class AppConfig:
    """アプリケーション全体の設定。"""

    store: StoreConfig = field(default_factory=StoreConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# ---------------------------------------------------------------------------
# バリデーション
# ---------------------------------------------------------------------------

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _fail(message: str) -> NoReturn:
    print(f"設定エラー: {message}", file=sys.stderr)
    sys.exit(1)


def _require_str(data: dict[str, object], section: str, key: str) -> str:
    val = data[key]
    if not isinstance(val, str):
        _fail(f"{section}.{key} は文字列で指定してください")
    return val


def _build_store(data: dict[str, object]) -> StoreConfig:
    cfg = StoreConfig()
    if "path" in data:
        path = _require_str(data, "store", "path")
        if not path.strip():
            _fail("store.path が空です")
        cfg.path = path
    return cfg


def _build_report(data: dict[str, object]) -> ReportConfig:
    cfg = ReportConfig()
    if "placeholder" in data:
        cfg.placeholder = _require_str(data, "report", "placeholder")
    return cfg


def _build_logging(data: dict[str, object]) -> LoggingConfig:
    cfg = LoggingConfig()
    if "level" in data:
        level = _require_str(data, "logging", "level").upper()
        if level not in _LOG_LEVELS:
            _fail(f"logging.level は {', '.join(_LOG_LEVELS)} のいずれかで指定してください")
        cfg.level = level
    return cfg


# ---------------------------------------------------------------------------
# ロード
# ---------------------------------------------------------------------------


def load_config(path: Path | None) -> AppConfig:
    """設定ファイルを読み込んで AppConfig を返す。

    Args:
        path: 設定ファイルのパス。None の場合はカレントディレクトリの
              config.toml を探索し、存在しなければデフォルト値を使用する。

    Returns:
        AppConfig オブジェクト。
    """
    config_path = path if path is not None else Path("config.toml")

    if not config_path.exists():
        return AppConfig()

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    app_config = AppConfig()

    store = data.get("store")
    if isinstance(store, dict):
        app_config.store = _build_store(store)

    report = data.get("report")
    if isinstance(report, dict):
        app_config.report = _build_report(report)

    logging_section = data.get("logging")
    if isinstance(logging_section, dict):
        app_config.logging = _build_logging(logging_section)

    return app_config
