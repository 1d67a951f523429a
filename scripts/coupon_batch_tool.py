from __future__ import annotations

import argparse
import asyncio
import csv
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from coupon_drop.claims.batch import generate_raw_codes, normalize_prefix, validate_batch_codes
from coupon_drop.db.models.coupons import Coupon
from coupon_drop.db.repo.coupons_repo import CouponsRepo
from coupon_drop.db.session import SessionLocal

DEFAULT_OUTPUT_CSV = Path("reports/coupon_batch_output.csv")


@dataclass(slots=True)
class BatchItem:
    code: str
    coupon_id: int | None = None


def _load_codes_from_csv(path: Path) -> list[str]:
    rows: list[str] = []
    with path.open("r", encoding="utf-8", newline="") as file:
        reader = csv.DictReader(file)
        if "code" in (reader.fieldnames or []):
            for row in reader:
                raw = (row.get("code") or "").strip()
                if raw:
                    rows.append(raw)
            return rows

    with path.open("r", encoding="utf-8", newline="") as file:
        for line in file:
            raw = line.strip()
            if raw:
                rows.append(raw)
    return rows


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Coupon batch generation/import tool")
    parser.add_argument("--import-csv", type=Path)
    parser.add_argument("--count", type=int)
    parser.add_argument("--prefix", default="")
    parser.add_argument("--token-length", type=int, default=8)
    parser.add_argument("--output-csv", type=Path)
    parser.add_argument("--dry-run", action="store_true")
    return parser.parse_args(argv)


def _validate_args(args: argparse.Namespace) -> None:
    if args.import_csv and args.count:
        raise ValueError("use either --import-csv or --count")
    if not args.import_csv and not args.count:
        raise ValueError("one of --import-csv or --count is required")
    if args.count is not None and args.count <= 0:
        raise ValueError("--count must be positive")


def build_batch(args: argparse.Namespace) -> list[BatchItem]:
    if args.import_csv:
        raw_codes = _load_codes_from_csv(args.import_csv)
    else:
        raw_codes = generate_raw_codes(
            count=args.count,
            token_length=args.token_length,
            prefix=normalize_prefix(args.prefix),
        )

    if not raw_codes:
        raise ValueError("no coupon codes to process")
    return [BatchItem(code=code) for code in validate_batch_codes(raw_codes)]


async def _insert_batch(batch: list[BatchItem]) -> None:
    now_utc = datetime.now(timezone.utc)

    async with SessionLocal.begin() as session:
        existing = await CouponsRepo.list_existing_codes(session, [item.code for item in batch])
        if existing:
            raise ValueError(f"coupon codes already exist: {', '.join(sorted(existing))}")

        coupons = await CouponsRepo.create_many(
            session,
            coupons=[
                Coupon(code=item.code, active=True, claimed=False, created_at=now_utc)
                for item in batch
            ],
        )
        for item, coupon in zip(batch, coupons):
            item.coupon_id = coupon.id


def write_output(path: Path, batch: list[BatchItem]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as file:
        writer = csv.writer(file)
        writer.writerow(["code", "coupon_id"])
        for item in batch:
            writer.writerow([item.code, item.coupon_id or ""])


async def _run(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    _validate_args(args)
    batch = build_batch(args)

    if not args.dry_run:
        await _insert_batch(batch)

    output_csv = args.output_csv or DEFAULT_OUTPUT_CSV
    write_output(output_csv, batch)
    print(
        f"processed={len(batch)} inserted={0 if args.dry_run else len(batch)} output={output_csv}"  # noqa: T201
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    return asyncio.run(_run(argv))


if __name__ == "__main__":
    raise SystemExit(main())
