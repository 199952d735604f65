import asyncio
import logging
from datetime import date
from pathlib import Path

import click

from family_registry.aggregator import search_members
from family_registry.config import AppConfig, load_config
from family_registry.models import FlatRow, Gender, Member
from family_registry.report import Reports, assemble_reports, birthdays_in_month
from family_registry.store import CsvMemberStore, SourceUnavailable

_CONFIG_OPTION = click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True),
    default=None,
    help="設定ファイルのパス（省略時はカレントディレクトリの config.toml を自動検索）",
)

_INPUT_OPTION = click.option(
    "--input",
    "input_path",
    default=None,
    help="入力CSVファイルパス（省略時は設定ファイルの store.path）",
)

_TABLE_COLUMNS = (
    "id",
    "name_bangla",
    "name_english",
    "birth_date",
    "gender",
    "blood_group",
    "mobile",
    "email",
    "profession",
    "father_name",
    "mother_name",
)


def _load(input_path: str | None, config_path: str | None) -> tuple[AppConfig, Reports]:
    config = load_config(Path(config_path) if config_path else None)
    logging.basicConfig(level=config.logging.level)

    store = CsvMemberStore(input_path or config.store.path)
    try:
        reports = asyncio.run(assemble_reports(store, config.report.placeholder))
    except SourceUnavailable as e:
        raise click.ClickException(str(e))
    return config, reports


def _format_member(member: Member) -> str:
    if member.name_english:
        return f"{member.name_bangla} ({member.name_english})"
    return member.name_bangla


def _format_cell(value: object) -> str:
    if value is None:
        return "-"
    if isinstance(value, Gender):
        return value.value
    return str(value)


def _format_row(row: FlatRow) -> str:
    return "\t".join(_format_cell(getattr(row, col)) for col in _TABLE_COLUMNS)


@click.group()
def cli() -> None:
    """家族メンバー台帳レポートCLIアプリケーション"""
    pass


@cli.command()
@_INPUT_OPTION
@_CONFIG_OPTION
def summary(input_path: str | None, config_path: str | None) -> None:
    """メンバー数と性別の内訳を表示する"""
    _, reports = _load(input_path, config_path)
    tally = reports.summary

    click.echo(f"総メンバー数: {reports.total_members}")
    click.echo(f"男性: {tally.male}")
    click.echo(f"女性: {tally.female}")
    if tally.other > 0:
        click.echo(f"その他: {tally.other}")
    if tally.unspecified > 0:
        click.echo(f"未指定: {tally.unspecified}")
    click.echo(f"今月の誕生日: {len(birthdays_in_month(reports, date.today().month))}")
    click.echo(f"生年月日未登録: {reports.unknown_birth_date_count}")


@cli.command()
@click.option(
    "--month",
    type=click.IntRange(1, 12),
    default=None,
    help="誕生月（省略時は今月）",
)
@_INPUT_OPTION
@_CONFIG_OPTION
def birthdays(month: int | None, input_path: str | None, config_path: str | None) -> None:
    """指定月の誕生日メンバーを表示する"""
    _, reports = _load(input_path, config_path)
    if month is None:
        month = date.today().month

    members = birthdays_in_month(reports, month)
    click.echo(f"{month}月の誕生日: {len(members)}件")
    for member in members:
        click.echo(f"  {_format_member(member)} - {member.birth_date}")


@cli.command()
@_INPUT_OPTION
@_CONFIG_OPTION
def relationships(input_path: str | None, config_path: str | None) -> None:
    """各メンバーの父・母・子を表示する"""
    _, reports = _load(input_path, config_path)

    # table は relationships と同じ順に1行ずつ並ぶ
    for view, row in zip(reports.relationships, reports.table):
        children = ", ".join(c.name_bangla for c in view.children) or "-"
        click.echo(_format_member(view.member))
        click.echo(f"  父: {row.father_name}")
        click.echo(f"  母: {row.mother_name}")
        click.echo(f"  子: {children}")


@cli.command()
@_INPUT_OPTION
@_CONFIG_OPTION
def table(input_path: str | None, config_path: str | None) -> None:
    """全メンバーの一覧をタブ区切りで表示する"""
    _, reports = _load(input_path, config_path)

    click.echo("\t".join(_TABLE_COLUMNS))
    for row in reports.table:
        click.echo(_format_row(row))


@cli.command()
@click.argument("term")
@_INPUT_OPTION
@_CONFIG_OPTION
def search(term: str, input_path: str | None, config_path: str | None) -> None:
    """名前（ベンガル語・英語）でメンバーを検索する"""
    _, reports = _load(input_path, config_path)

    members = search_members((view.member for view in reports.relationships), term)
    # 一覧画面と同じくベンガル語名順
    members.sort(key=lambda m: m.name_bangla)
    for member in members:
        click.echo(f"{member.id}\t{_format_member(member)}")
    click.echo(f"{len(members)}件")
