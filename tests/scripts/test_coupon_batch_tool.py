from __future__ import annotations

import argparse
import csv
from pathlib import Path

import pytest

from scripts import coupon_batch_tool
from scripts.coupon_batch_tool import build_batch, main


def _args(**overrides) -> argparse.Namespace:
    values = {
        "import_csv": None,
        "count": None,
        "prefix": "",
        "token_length": 8,
        "output_csv": None,
        "dry_run": True,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


def test_build_batch_generates_prefixed_codes() -> None:
    batch = build_batch(_args(count=4, prefix="drop", token_length=5))

    assert len(batch) == 4
    assert all(item.code.startswith("DROP-") for item in batch)
    assert all(len(item.code) == len("DROP-") + 5 for item in batch)


def test_build_batch_imports_csv_with_code_column(tmp_path: Path) -> None:
    source = tmp_path / "codes.csv"
    source.write_text("code\nALPHA\n BETA \n\n", encoding="utf-8")

    batch = build_batch(_args(import_csv=source))

    assert [item.code for item in batch] == ["ALPHA", "BETA"]


def test_build_batch_imports_plain_lines(tmp_path: Path) -> None:
    source = tmp_path / "codes.txt"
    source.write_text("ALPHA\nBETA\n", encoding="utf-8")

    assert [item.code for item in build_batch(_args(import_csv=source))] == ["ALPHA", "BETA"]


def test_build_batch_rejects_duplicates_in_import(tmp_path: Path) -> None:
    source = tmp_path / "codes.txt"
    source.write_text("ALPHA\nALPHA\n", encoding="utf-8")

    with pytest.raises(ValueError, match="duplicate"):
        build_batch(_args(import_csv=source))


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["--count", "3", "--import-csv", "codes.csv"],
        ["--count", "-1"],
    ],
)
def test_main_rejects_invalid_arguments(argv: list[str]) -> None:
    with pytest.raises(ValueError):
        main([*argv, "--dry-run"])


def test_main_dry_run_writes_report_without_inserting(tmp_path: Path, monkeypatch) -> None:
    async def _fail_insert(batch):
        raise AssertionError("dry run must not touch the database")

    monkeypatch.setattr(coupon_batch_tool, "_insert_batch", _fail_insert)
    output = tmp_path / "out" / "report.csv"

    assert main(["--count", "3", "--dry-run", "--output-csv", str(output)]) == 0

    with output.open(encoding="utf-8", newline="") as file:
        rows = list(csv.DictReader(file))
    assert len(rows) == 3
    assert all(row["coupon_id"] == "" for row in rows)
