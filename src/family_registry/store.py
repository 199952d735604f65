"""メンバーデータの読み込み元。

レポート生成側からは list_members() を1回呼ぶだけの読み取り専用ソースとして扱う。
"""

from __future__ import annotations

import asyncio
import csv
import logging
from collections.abc import Iterable, Sequence
from datetime import date
from pathlib import Path
from typing import Protocol

from family_registry.models import Gender, Member, MemberDetails

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"id", "name_bangla"}

_DETAIL_COLUMNS = (
    "blood_group",
    "mobile",
    "email",
    "profession",
    "current_address",
    "permanent_address",
)


class SourceUnavailable(Exception):
    """メンバーデータを取得できなかった。"""


class CsvParseError(SourceUnavailable):
    """CSV読み込み時のエラー。"""


class MemberStore(Protocol):
    async def list_members(self) -> Sequence[Member]: ...


class InMemoryMemberStore:
    """メモリ上のレコードをそのまま返すストア。"""

    def __init__(self, members: Iterable[Member] = ()) -> None:
        self._members = list(members)

    async def list_members(self) -> Sequence[Member]:
        return tuple(self._members)


class CsvMemberStore:
    """CSVファイルを読み込むストア。呼び出しごとにファイルを読み直す。"""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def list_members(self) -> Sequence[Member]:
        return await asyncio.to_thread(load_members_csv, self.path)


def load_members_csv(path: str | Path) -> tuple[Member, ...]:
    """CSVファイルを読み込み、Member のタプルを返す。

    親IDの参照整合性や id の重複は検証しない（集計側で許容する）。

    Args:
        path: CSVファイルのパス

    Returns:
        ファイル上の行順の Member タプル

    Raises:
        CsvParseError: CSVの形式エラー
        SourceUnavailable: ファイルが読めない
    """
    path = Path(path)
    if not path.exists():
        raise SourceUnavailable(f"ファイルが見つかりません: {path}")

    try:
        # 表計算ソフトが付ける BOM も読み飛ばす
        with path.open(encoding="utf-8-sig", newline="") as f:
            reader = csv.DictReader(f)

            if reader.fieldnames is None:
                raise CsvParseError("CSVファイルが空です")

            _validate_columns(set(reader.fieldnames))
            rows = list(reader)
    except (OSError, UnicodeDecodeError) as e:
        raise SourceUnavailable(f"ファイルを読み込めません: {path}: {e}") from e

    members = _parse_rows(rows)
    logger.debug("%s から %d 件のメンバーを読み込みました", path, len(members))
    return members


def _validate_columns(headers: set[str]) -> None:
    """必須カラムの存在を確認する。"""
    missing = REQUIRED_COLUMNS - headers
    if missing:
        raise CsvParseError(f"必須カラムが不足しています: {', '.join(sorted(missing))}")


def _parse_rows(rows: list[dict[str, str]]) -> tuple[Member, ...]:
    members: list[Member] = []
    for i, row in enumerate(rows, start=2):  # ヘッダー行が1行目
        try:
            members.append(_parse_row(row))
        except (ValueError, KeyError) as e:
            raise CsvParseError(f"{i}行目: {e}") from e
    return tuple(members)


def _parse_row(row: dict[str, str]) -> Member:
    """1行のCSVデータを Member に変換する。"""
    member_id = (row["id"] or "").strip()
    if not member_id:
        raise ValueError("IDが空です")

    name = (row["name_bangla"] or "").strip()
    if not name:
        raise ValueError("名前が空です")

    birth_date_str = _optional(row, "birth_date")
    birth_date = date.fromisoformat(birth_date_str) if birth_date_str else None

    details = MemberDetails(**{col: _optional(row, col) for col in _DETAIL_COLUMNS})

    return Member(
        id=member_id,
        name_bangla=name,
        name_english=_optional(row, "name_english"),
        birth_date=birth_date,
        gender=parse_gender(_optional(row, "gender"), member_id),
        father_id=_optional(row, "father_id"),
        mother_id=_optional(row, "mother_id"),
        details=details,
    )


def parse_gender(value: str | None, member_id: str = "") -> Gender | None:
    """性別文字列を Gender に変換する。空・未知の値は None（未指定）。"""
    if not value:
        return None
    try:
        return Gender(value.strip().lower())
    except ValueError:
        logger.warning("ID %s: 不明な性別値 %r を未指定として扱います", member_id, value)
        return None


def _optional(row: dict[str, str], column: str) -> str | None:
    # 列が無い・空欄はどちらも None
    value = row.get(column)
    if value is None:
        return None
    value = value.strip()
    return value or None
