from __future__ import annotations

import asyncio
import logging
import textwrap
from datetime import date
from pathlib import Path

import pytest

from family_registry.models import Gender, Member
from family_registry.store import (
    CsvMemberStore,
    CsvParseError,
    InMemoryMemberStore,
    SourceUnavailable,
    load_members_csv,
    parse_gender,
)


@pytest.fixture()
def sample_csv(tmp_path: Path) -> Path:
    """最小限のサンプルCSVを作成する。"""
    csv_content = textwrap.dedent("""\
        id,name_bangla,name_english,birth_date,gender,mobile,profession,father_id,mother_id
        1,রহিম,Rahim,1940-03-15,male,01700000001,কৃষক,,
        2,জমিলা,,1945-07-22,female,,,,
        3,করিম,Karim,,male,,শিক্ষক,1,2
    """)
    csv_path = tmp_path / "test.csv"
    csv_path.write_text(csv_content, encoding="utf-8")
    return csv_path


class TestLoadMembersCSV:
    def test_parse_basic(self, sample_csv: Path) -> None:
        members = load_members_csv(sample_csv)
        assert len(members) == 3
        assert [m.id for m in members] == ["1", "2", "3"]

    def test_member_fields(self, sample_csv: Path) -> None:
        rahim = load_members_csv(sample_csv)[0]
        assert rahim.name_bangla == "রহিম"
        assert rahim.name_english == "Rahim"
        assert rahim.birth_date == date(1940, 3, 15)
        assert rahim.gender == Gender.MALE
        assert rahim.father_id is None
        assert rahim.mother_id is None

    def test_details_carried(self, sample_csv: Path) -> None:
        rahim = load_members_csv(sample_csv)[0]
        assert rahim.details.mobile == "01700000001"
        assert rahim.details.profession == "কৃষক"
        # CSVに無い列は None
        assert rahim.details.email is None
        assert rahim.details.blood_group is None

    def test_empty_values_are_none(self, sample_csv: Path) -> None:
        jamila = load_members_csv(sample_csv)[1]
        assert jamila.name_english is None
        assert jamila.details.mobile is None

    def test_missing_birth_date(self, sample_csv: Path) -> None:
        karim = load_members_csv(sample_csv)[2]
        assert karim.birth_date is None

    def test_parent_ids_parsed(self, sample_csv: Path) -> None:
        karim = load_members_csv(sample_csv)[2]
        assert karim.father_id == "1"
        assert karim.mother_id == "2"

    def test_utf8_bom(self, tmp_path: Path) -> None:
        """表計算ソフトが付ける BOM 付きCSVも読み込める。"""
        csv_path = tmp_path / "bom.csv"
        csv_path.write_text("id,name_bangla\n1,রহিম\n", encoding="utf-8-sig")
        members = load_members_csv(csv_path)
        assert members[0].id == "1"
        assert members[0].name_bangla == "রহিম"

    def test_minimal_columns(self, tmp_path: Path) -> None:
        """id と name_bangla だけのCSVも読み込める。"""
        csv_path = tmp_path / "minimal.csv"
        csv_path.write_text("id,name_bangla\n1,রহিম\n", encoding="utf-8")
        members = load_members_csv(csv_path)
        assert members == (Member(id="1", name_bangla="রহিম"),)


class TestTolerance:
    def test_dangling_parent_reference_allowed(self, tmp_path: Path) -> None:
        """存在しない親IDでもエラーにならない。"""
        csv_content = textwrap.dedent("""\
            id,name_bangla,father_id,mother_id
            1,করিম,999,
        """)
        csv_path = tmp_path / "dangling.csv"
        csv_path.write_text(csv_content, encoding="utf-8")
        members = load_members_csv(csv_path)
        assert members[0].father_id == "999"

    def test_duplicate_id_allowed(self, tmp_path: Path) -> None:
        """ID重複はストアでは弾かず、そのまま返す。"""
        csv_content = textwrap.dedent("""\
            id,name_bangla
            1,রহিম
            1,করিম
        """)
        csv_path = tmp_path / "dup_id.csv"
        csv_path.write_text(csv_content, encoding="utf-8")
        members = load_members_csv(csv_path)
        assert [m.name_bangla for m in members] == ["রহিম", "করিম"]

    def test_unknown_gender_becomes_none(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        csv_content = textwrap.dedent("""\
            id,name_bangla,gender
            1,রহিম,X
        """)
        csv_path = tmp_path / "bad_gender.csv"
        csv_path.write_text(csv_content, encoding="utf-8")
        with caplog.at_level(logging.WARNING, logger="family_registry.store"):
            members = load_members_csv(csv_path)
        assert members[0].gender is None
        assert "不明な性別値" in caplog.text


class TestParseGender:
    def test_case_insensitive(self) -> None:
        assert parse_gender("Female") == Gender.FEMALE
        assert parse_gender(" OTHER ") == Gender.OTHER

    def test_empty(self) -> None:
        assert parse_gender(None) is None
        assert parse_gender("") is None


class TestValidation:
    def test_missing_required_column(self, tmp_path: Path) -> None:
        csv_path = tmp_path / "missing_col.csv"
        csv_path.write_text("id,name_english\n1,Rahim\n", encoding="utf-8")
        with pytest.raises(CsvParseError, match="必須カラムが不足"):
            load_members_csv(csv_path)

    def test_invalid_date(self, tmp_path: Path) -> None:
        csv_content = textwrap.dedent("""\
            id,name_bangla,birth_date
            1,রহিম,not-a-date
        """)
        csv_path = tmp_path / "bad_date.csv"
        csv_path.write_text(csv_content, encoding="utf-8")
        with pytest.raises(CsvParseError, match="2行目"):
            load_members_csv(csv_path)

    def test_empty_name(self, tmp_path: Path) -> None:
        csv_path = tmp_path / "empty_name.csv"
        csv_path.write_text("id,name_bangla\n1,\n", encoding="utf-8")
        with pytest.raises(CsvParseError, match="名前が空"):
            load_members_csv(csv_path)

    def test_empty_id(self, tmp_path: Path) -> None:
        csv_path = tmp_path / "empty_id.csv"
        csv_path.write_text("id,name_bangla\n,রহিম\n", encoding="utf-8")
        with pytest.raises(CsvParseError, match="IDが空"):
            load_members_csv(csv_path)

    def test_file_not_found(self, tmp_path: Path) -> None:
        with pytest.raises(SourceUnavailable, match="ファイルが見つかりません"):
            load_members_csv(tmp_path / "nonexistent.csv")

    def test_empty_csv(self, tmp_path: Path) -> None:
        csv_path = tmp_path / "empty.csv"
        csv_path.write_text("", encoding="utf-8")
        with pytest.raises(CsvParseError, match="CSVファイルが空です"):
            load_members_csv(csv_path)

    def test_parse_error_is_source_unavailable(self) -> None:
        assert issubclass(CsvParseError, SourceUnavailable)


class TestStores:
    def test_csv_store(self, sample_csv: Path) -> None:
        store = CsvMemberStore(sample_csv)
        members = asyncio.run(store.list_members())
        assert len(members) == 3

    def test_csv_store_missing_file(self, tmp_path: Path) -> None:
        store = CsvMemberStore(tmp_path / "nonexistent.csv")
        with pytest.raises(SourceUnavailable):
            asyncio.run(store.list_members())

    def test_in_memory_store_returns_copy(self) -> None:
        records = [Member(id="1", name_bangla="রহিম")]
        store = InMemoryMemberStore(records)
        members = asyncio.run(store.list_members())
        records.append(Member(id="2", name_bangla="করিম"))
        assert len(members) == 1

    def test_in_memory_store_empty(self) -> None:
        assert asyncio.run(InMemoryMemberStore().list_members()) == ()


class TestSampleCSV:
    def test_parse_sample_csv(self) -> None:
        """examples/sample.csv が正常に読み込めることを確認。"""
        members = load_members_csv("examples/sample.csv")
        assert len(members) == 8

    def test_quoted_address(self) -> None:
        members = load_members_csv("examples/sample.csv")
        assert members[2].details.current_address == "মিরপুর, ঢাকা"
