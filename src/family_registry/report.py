from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from family_registry.aggregator import (
    UNSPECIFIED,
    bucket_by_birth_month,
    tally_by_gender,
    to_tabular_rows,
)
from family_registry.models import (
    BirthdayBucket,
    FlatRow,
    GenderTally,
    Member,
    RelationshipView,
)
from family_registry.relationship_graph import DuplicateIdentifierAnomaly, build_graph
from family_registry.store import MemberStore


@dataclass
class Reports:
    """1つのスナップショットから作ったレポート一式。"""

    summary: GenderTally = field(default_factory=GenderTally)
    birthdays: BirthdayBucket = field(default_factory=dict)
    relationships: list[RelationshipView] = field(default_factory=list)
    table: list[FlatRow] = field(default_factory=list)
    anomalies: list[DuplicateIdentifierAnomaly] = field(default_factory=list)

    @property
    def total_members(self) -> int:
        return self.summary.total

    @property
    def unknown_birth_date_count(self) -> int:
        """生年月日が未登録の人数。"""
        return self.total_members - sum(len(b) for b in self.birthdays.values())


@dataclass(frozen=True)
class ExportBundle:
    """外部の出力処理（ファイル化など）に渡すデータ。"""

    table: list[FlatRow]
    birthdays: BirthdayBucket


def build_reports(
    records: Sequence[Member], placeholder: str = UNSPECIFIED
) -> Reports:
    """スナップショットからレポート一式を作る。"""
    graph = build_graph(records)
    return Reports(
        summary=tally_by_gender(records),
        birthdays=bucket_by_birth_month(records),
        relationships=graph.relationships,
        table=to_tabular_rows(graph.relationships, placeholder),
        anomalies=graph.anomalies,
    )


async def assemble_reports(
    store: MemberStore, placeholder: str = UNSPECIFIED
) -> Reports:
    """ストアを1回だけ読み、その結果からすべてのレポートを作る。

    ストアの例外（SourceUnavailable など）はそのまま呼び出し元に伝わる。
    """
    snapshot = tuple(await store.list_members())
    return build_reports(snapshot, placeholder)


def birthdays_in_month(reports: Reports, month: int) -> list[Member]:
    """指定月の誕生日メンバー。該当者なし・範囲外の月は空リスト。"""
    return list(reports.birthdays.get(month, []))


def export_bundle(reports: Reports) -> ExportBundle:
    """出力処理に渡す複製。出力側で変更してもレポート本体には影響しない。"""
    return ExportBundle(
        table=list(reports.table),
        birthdays={month: list(members) for month, members in reports.birthdays.items()},
    )
