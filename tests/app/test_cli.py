from __future__ import annotations

import json
from pathlib import Path

import pytest

from sellout.domain.errors import ErrorKind
from sellout.domain.reconciliation import DeletionResult, IngestionReport
from sellout.ui import cli as cli_module


def _deletion(deleted: int = 3) -> DeletionResult:
    return DeletionResult(
        deleted=deleted, statements=1, requested=None, processed=deleted, summary="done"
    )


def test_ingest_prints_the_report(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    captured: dict[str, object] = {}

    def fake_ingest(path: Path, *, collect_details: bool) -> IngestionReport:
        captured.update(path=path, collect_details=collect_details)
        return IngestionReport(source_name=path.name, inserted=2, rows_read=2)

    monkeypatch.setattr(cli_module, "ingest_sales_file", fake_ingest)

    cli_module.main(["ingest", "rows.jsonl"])

    assert captured == {"path": Path("rows.jsonl"), "collect_details": False}
    payload = json.loads(capsys.readouterr().out)
    assert payload["inserted"] == 2
    assert "inserted_rows" not in payload


def test_failed_ingest_exits_non_zero(monkeypatch: pytest.MonkeyPatch) -> None:
    requested: list[bool] = []

    def fake_ingest(path: Path, *, collect_details: bool) -> IngestionReport:
        requested.append(collect_details)
        report = IngestionReport(source_name=path.name)
        report.fail(ErrorKind.STORE_UNAVAILABLE, "connection dropped")
        return report

    monkeypatch.setattr(cli_module, "ingest_sales_file", fake_ingest)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["ingest", "rows.jsonl", "--details"])

    assert excinfo.value.code == 1
    assert requested == [True]


def test_delete_keys_forwards_the_cap(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    captured: dict[str, object] = {}

    def fake_delete(path: Path, *, target_max: int | None) -> DeletionResult:
        captured.update(path=path, target_max=target_max)
        return _deletion()

    monkeypatch.setattr(cli_module, "delete_sales_by_keys_file", fake_delete)

    cli_module.main(["delete-keys", "keys.jsonl", "--max", "25"])

    assert captured == {"path": Path("keys.jsonl"), "target_max": 25}
    assert json.loads(capsys.readouterr().out)["deleted"] == 3


def test_delete_filter_forwards_criteria(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_delete(**kwargs: object) -> DeletionResult:
        captured.update(kwargs)
        return _deletion()

    monkeypatch.setattr(cli_module, "delete_sales_by_filter", fake_delete)

    cli_module.main(["delete-filter", "--year", "2024", "--brand", "ACME", "--round-size", "50"])

    assert captured == {
        "year": 2024,
        "month": None,
        "brand": "ACME",
        "pdv_code": None,
        "round_size": 50,
        "max_total": None,
    }


@pytest.mark.parametrize(
    "argv",
    [
        ["delete-filter"],
        ["delete-filter", "--month", "13"],
        ["delete-filter", "--brand", "   "],
        ["delete-filter", "--brand", "", "--pdv-code", " "],
    ],
)
def test_delete_filter_validation_exits_with_usage_code(
    monkeypatch: pytest.MonkeyPatch, argv: list[str]
) -> None:
    def fake_delete(**_: object) -> DeletionResult:
        raise AssertionError("delete must not run")

    monkeypatch.setattr(cli_module, "delete_sales_by_filter", fake_delete)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(argv)

    assert excinfo.value.code == 2


def test_unexpected_errors_exit_non_zero(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_ingest(path: Path, *, collect_details: bool) -> IngestionReport:
        _ = collect_details
        raise RuntimeError(f"cannot open {path}")

    monkeypatch.setattr(cli_module, "ingest_sales_file", fake_ingest)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["ingest", "missing.jsonl"])

    assert excinfo.value.code == 1


def test_delete_filter_trims_blank_criteria(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_delete(**kwargs: object) -> DeletionResult:
        captured.update(kwargs)
        return _deletion()

    monkeypatch.setattr(cli_module, "delete_sales_by_filter", fake_delete)

    cli_module.main(["delete-filter", "--year", "2024", "--pdv-code", "  "])

    assert (captured["year"], captured["pdv_code"]) == (2024, None)
