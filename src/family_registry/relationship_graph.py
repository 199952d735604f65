from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field

from family_registry.models import Member, RelationshipView

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DuplicateIdentifierAnomaly:
    """同じ id のレコードが複数あった（後から現れたものを採用済み）。"""

    member_id: str
    occurrences: int
    kept: Member


@dataclass
class RelationshipGraph:
    """スナップショット1回分の親子関係インデックス。

    親子はオブジェクト参照ではなく id 引きで解決しているため、
    循環した参照があってもたどり続けることはない。
    """

    by_id: dict[str, Member] = field(default_factory=dict)
    relationships: list[RelationshipView] = field(default_factory=list)
    anomalies: list[DuplicateIdentifierAnomaly] = field(default_factory=list)
    views_by_id: dict[str, RelationshipView] = field(default_factory=dict)

    def view_of(self, member_id: str) -> RelationshipView | None:
        """指定 id の関係ビューを返す。id 重複時は採用されたレコードのもの。"""
        return self.views_by_id.get(member_id)


def build_graph(records: Sequence[Member]) -> RelationshipGraph:
    """メンバー列から父・母・子を解決した RelationshipGraph を生成する。

    1. id -> Member のインデックスを作る（id 重複時は後勝ち）
    2. 親 id ごとに子供を1パスでまとめる
    3. 各メンバーの父・母を1回だけ引き、子供リストと組み合わせる

    存在しない id・自分自身を指す id は1段だけ引く。自分を指していれば
    自分が父（母）になり、自分の子供リストにも自分が入る。

    Returns:
        relationships は records と同じ順、children も records 上の順
    """
    by_id: dict[str, Member] = {}
    for record in records:
        by_id[record.id] = record

    anomalies = _detect_duplicates(records, by_id)

    children_by_parent = _group_children(records)

    relationships = [
        RelationshipView(
            member=record,
            father=_resolve(by_id, record.father_id),
            mother=_resolve(by_id, record.mother_id),
            children=tuple(children_by_parent.get(record.id, ())),
        )
        for record in records
    ]

    # relationships は入力順なので、id 重複時は後のビューが残る
    views_by_id = {view.member.id: view for view in relationships}

    return RelationshipGraph(
        by_id=by_id,
        relationships=relationships,
        anomalies=anomalies,
        views_by_id=views_by_id,
    )


def _resolve(by_id: dict[str, Member], parent_id: str | None) -> Member | None:
    if parent_id is None:
        return None
    return by_id.get(parent_id)


def _group_children(records: Sequence[Member]) -> dict[str, list[Member]]:
    """親 id -> 子供リスト（入力順）。"""
    groups: dict[str, list[Member]] = {}
    for record in records:
        if record.father_id is not None:
            groups.setdefault(record.father_id, []).append(record)
        # 父母が同じ id の場合は1回だけ
        if record.mother_id is not None and record.mother_id != record.father_id:
            groups.setdefault(record.mother_id, []).append(record)
    return groups


def _detect_duplicates(
    records: Sequence[Member], by_id: dict[str, Member]
) -> list[DuplicateIdentifierAnomaly]:
    if len(by_id) == len(records):
        return []

    counts = Counter(record.id for record in records)
    anomalies: list[DuplicateIdentifierAnomaly] = []
    for member_id, count in counts.items():
        if count < 2:
            continue
        anomaly = DuplicateIdentifierAnomaly(
            member_id=member_id,
            occurrences=count,
            kept=by_id[member_id],
        )
        logger.warning(
            "IDが重複しています: %s (%d件)。最後のレコードを採用します",
            member_id,
            count,
        )
        anomalies.append(anomaly)
    return anomalies
