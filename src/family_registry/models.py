from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class Gender(Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


@dataclass(frozen=True)
class MemberDetails:
    """連絡先などの付帯情報。集計では解釈せず、そのまま表に持ち回す。"""

    blood_group: str | None = None
    mobile: str | None = None
    email: str | None = None
    profession: str | None = None
    current_address: str | None = None
    permanent_address: str | None = None


@dataclass(frozen=True)
class Member:
    """家族メンバー1人分のレコード。

    father_id / mother_id は他メンバーの id を指すが、存在しない id や
    自分自身の id を指していてもよい（解決できなければ「不明」扱い）。
    """

    id: str
    name_bangla: str
    name_english: str | None = None
    birth_date: date | None = None
    gender: Gender | None = None
    father_id: str | None = None
    mother_id: str | None = None
    details: MemberDetails = field(default_factory=MemberDetails)


@dataclass(frozen=True)
class RelationshipView:
    """1人分の父・母・子の解決結果。"""

    member: Member
    father: Member | None = None
    mother: Member | None = None
    children: tuple[Member, ...] = ()


@dataclass(frozen=True)
class GenderTally:
    male: int = 0
    female: int = 0
    other: int = 0
    unspecified: int = 0

    @property
    def total(self) -> int:
        return self.male + self.female + self.other + self.unspecified


@dataclass(frozen=True)
class FlatRow:
    """表形式出力用の1行。父母は id ではなく表示名で持つ。"""

    id: str
    name_bangla: str
    name_english: str | None
    birth_date: date | None
    gender: Gender | None
    blood_group: str | None
    mobile: str | None
    email: str | None
    profession: str | None
    current_address: str | None
    permanent_address: str | None
    father_name: str
    mother_name: str


# 誕生月 (1〜12) -> その月生まれのメンバー（入力順）
BirthdayBucket = dict[int, list[Member]]
