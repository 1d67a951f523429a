"""PostgreSQL guards for the write-once coupon claim and the append-only claim ledger.

The statements are attached to ``metadata.create_all`` for PostgreSQL so test
schemas carry the same guarantees as migrated databases.
"""
from __future__ import annotations

from sqlalchemy import DDL, Table, event

COUPONS_CLAIM_ONCE_FUNCTION = """
CREATE OR REPLACE FUNCTION fn_coupons_claim_once()
RETURNS trigger
LANGUAGE plpgsql
AS $$
BEGIN
    IF NEW.code IS DISTINCT FROM OLD.code THEN
        RAISE EXCEPTION 'coupons.code is immutable';
    END IF;
    IF OLD.claimed AND (
        NEW.claimed IS DISTINCT FROM OLD.claimed
        OR NEW.claimed_by IS DISTINCT FROM OLD.claimed_by
        OR NEW.claimed_at IS DISTINCT FROM OLD.claimed_at
    ) THEN
        RAISE EXCEPTION 'coupons claim state is write-once';
    END IF;
    RETURN NEW;
END;
$$;
"""

COUPONS_CLAIM_ONCE_TRIGGER = """
CREATE TRIGGER trg_coupons_claim_once
BEFORE UPDATE ON coupons
FOR EACH ROW
EXECUTE FUNCTION fn_coupons_claim_once();
"""

CLAIM_RECORDS_APPEND_ONLY_FUNCTION = """
CREATE OR REPLACE FUNCTION fn_claim_records_append_only()
RETURNS trigger
LANGUAGE plpgsql
AS $$
BEGIN
    RAISE EXCEPTION 'claim_records is append-only';
END;
$$;
"""

CLAIM_RECORDS_APPEND_ONLY_TRIGGER = """
CREATE TRIGGER trg_claim_records_append_only
BEFORE UPDATE OR DELETE ON claim_records
FOR EACH ROW
EXECUTE FUNCTION fn_claim_records_append_only();
"""


def attach_postgres_ddl(table: Table, *statements: str) -> None:
    for statement in statements:
        event.listen(
            table,
            "after_create",
            DDL(statement).execute_if(dialect="postgresql"),
        )
