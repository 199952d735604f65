"""スナップショットに対する集計関数。

どの関数も入力を変更せず、例外も送出しない。
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from family_registry.models import (
    BirthdayBucket,
    FlatRow,
    Gender,
    GenderTally,
    Member,
    RelationshipView,
)

# 父・母が解決できないときの表示
UNSPECIFIED = "unspecified"

_PARENT_ROLE_GENDER = {
    "father": Gender.MALE,
    "mother": Gender.FEMALE,
}


def tally_by_gender(records: Iterable[Member]) -> GenderTally:
    """性別ごとの人数を数える。未設定・未知の値は unspecified に入る。"""
    counts = {"male": 0, "female": 0, "other": 0, "unspecified": 0}
    for record in records:
        gender = record.gender
        key = gender.value if isinstance(gender, Gender) else "unspecified"
        counts[key] += 1
    return GenderTally(**counts)


def bucket_by_birth_month(records: Iterable[Member]) -> BirthdayBucket:
    """誕生月 (1〜12) ごとにメンバーをまとめる。

    生年月日のないメンバーは含めない。各月のリストは入力順、
    キーは該当者のいる月だけを昇順に持つ。
    """
    buckets: dict[int, list[Member]] = {}
    for record in records:
        if record.birth_date is None:
            continue
        buckets.setdefault(record.birth_date.month, []).append(record)
    return {month: buckets[month] for month in sorted(buckets)}


def to_tabular_rows(
    relationships: Iterable[RelationshipView],
    placeholder: str = UNSPECIFIED,
) -> list[FlatRow]:
    """関係ビューを表形式の行に変換する。父母は表示名、不明なら placeholder。"""
    rows: list[FlatRow] = []
    for view in relationships:
        member = view.member
        details = member.details
        rows.append(
            FlatRow(
                id=member.id,
                name_bangla=member.name_bangla,
                name_english=member.name_english,
                birth_date=member.birth_date,
                gender=member.gender,
                blood_group=details.blood_group,
                mobile=details.mobile,
                email=details.email,
                profession=details.profession,
                current_address=details.current_address,
                permanent_address=details.permanent_address,
                father_name=_display_name(view.father, placeholder),
                mother_name=_display_name(view.mother, placeholder),
            )
        )
    return rows


def _display_name(member: Member | None, placeholder: str) -> str:
    if member is None:
        return placeholder
    return member.name_bangla


def search_members(records: Iterable[Member], term: str) -> list[Member]:
    """ベンガル語名・英語名の部分一致（大文字小文字を区別しない）で絞り込む。"""
    needle = term.strip().casefold()
    if not needle:
        return list(records)
    return [
        record
        for record in records
        if needle in record.name_bangla.casefold()
        or (record.name_english is not None and needle in record.name_english.casefold())
    ]


def parent_candidates(
    records: Sequence[Member],
    role: str,
    exclude_id: str | None = None,
) -> list[Member]:
    """父（男性）・母（女性）の選択肢を返す。

    画面側の絞り込み用で、build_graph の解決には影響しない。
    role が "father" / "mother" 以外なら空リスト。
    """
    gender = _PARENT_ROLE_GENDER.get(role)
    if gender is None:
        return []
    return [
        record
        for record in records
        if record.gender is gender and record.id != exclude_id
    ]
