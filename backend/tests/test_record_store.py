import pathlib
import sys
import unittest
from datetime import date, datetime, timezone
from decimal import Decimal

BACKEND_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from fastapi import HTTPException

from finsight.db.store import PostgresRecordStore
from finsight.services.records import parse_amount, parse_tx_date, parse_uuid_value, serialize_record


class CursorSpy:
    def __init__(self, conn) -> None:
        self.conn = conn

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, query, params=None):
        self.conn.calls.append((query, params))

    def fetchone(self):
        return self.conn.results.pop(0) if self.conn.results else None

    def fetchall(self):
        return self.conn.results.pop(0) if self.conn.results else []


class ConnSpy:
    def __init__(self, results=None) -> None:
        self.calls: list[tuple[object, object]] = []
        self.results = list(results or [])
        self.committed = False

    def cursor(self):
        return CursorSpy(self)

    def commit(self):
        self.committed = True

    def rollback(self):
        pass


class RecordStoreTests(unittest.TestCase):
    def test_owned_reads_filter_by_username(self):
        conn = ConnSpy(results=[[], []])
        store = PostgresRecordStore(conn)

        store.fetch_owned_transactions("alice")
        store.fetch_owned_categories("alice")

        tx_sql, tx_params = conn.calls[0]
        cat_sql, cat_params = conn.calls[1]
        self.assertIn("WHERE t.username=%s", tx_sql)
        self.assertIn("FROM transactions t", tx_sql)
        self.assertIn("WHERE c.username=%s", cat_sql)
        self.assertEqual(tx_params, ("alice",))
        self.assertEqual(cat_params, ("alice",))

    def test_list_transactions_orders_by_date_then_id(self):
        conn = ConnSpy(results=[[]])
        PostgresRecordStore(conn).list_transactions("alice")

        self.assertIn("ORDER BY t.date DESC, t.transaction_id DESC", conn.calls[0][0])

    def test_delete_reports_missing_rows(self):
        conn = ConnSpy(results=[None, {"category_id": "x"}])
        store = PostgresRecordStore(conn)

        self.assertFalse(store.delete_transaction("alice", "11111111-1111-1111-1111-111111111111"))
        self.assertTrue(store.delete_category("alice", "22222222-2222-2222-2222-222222222222"))
        self.assertIn("username=%s", conn.calls[0][0])

    def test_update_passes_values_then_owner_then_id(self):
        row = {"transaction_id": "t-1", "amount": Decimal("5.00")}
        conn = ConnSpy(results=[{"transaction_id": "t-1"}, row])
        store = PostgresRecordStore(conn)

        result = store.update_transaction("alice", "t-1", {"amount": Decimal("5.00"), "note": "x"})

        self.assertEqual(result, row)
        self.assertEqual(conn.calls[0][1], (Decimal("5.00"), "x", "alice", "t-1"))
        self.assertEqual(conn.calls[1][1], ("alice", "t-1"))

    def test_update_missing_row_skips_reload(self):
        conn = ConnSpy(results=[None])
        store = PostgresRecordStore(conn)

        self.assertIsNone(store.update_category("alice", "c-1", {"name": "Food"}))
        self.assertEqual(len(conn.calls), 1)

    def test_update_rejects_unknown_columns(self):
        store = PostgresRecordStore(ConnSpy())
        with self.assertRaises(ValueError):
            store.update_transaction("alice", "t-1", {"username": "bob"})

    def test_commit_delegates_to_connection(self):
        conn = ConnSpy()
        PostgresRecordStore(conn).commit()
        self.assertTrue(conn.committed)


class RecordParsingTests(unittest.TestCase):
    def test_parse_tx_date_canonicalizes_inputs(self):
        self.assertEqual(parse_tx_date("2023-12-28"), date(2023, 12, 28))
        self.assertEqual(parse_tx_date("2023-12-28T23:30:00-05:00"), date(2023, 12, 29))
        self.assertEqual(parse_tx_date("2023-12-28T10:00:00Z"), date(2023, 12, 28))
        with self.assertRaises(HTTPException) as ctx:
            parse_tx_date("28.12.2023")
        self.assertEqual(ctx.exception.status_code, 400)
        with self.assertRaises(HTTPException):
            parse_tx_date("")

    def test_parse_amount(self):
        self.assertEqual(parse_amount(1500), Decimal("1500.00"))
        self.assertEqual(parse_amount("12.345"), Decimal("12.34"))
        for bad in (-1, "abc", None, True, "NaN"):
            with self.assertRaises(HTTPException):
                parse_amount(bad)

    def test_parse_uuid_value(self):
        self.assertEqual(
            parse_uuid_value("11111111111111111111111111111111", "category_id"),
            "11111111-1111-1111-1111-111111111111",
        )
        with self.assertRaises(HTTPException):
            parse_uuid_value("nope", "category_id")

    def test_serialize_record_drops_owner_and_formats_dates(self):
        row = {
            "transaction_id": "t-1",
            "username": "alice",
            "date": date(2024, 1, 2),
            "created_at": datetime(2024, 1, 2, 8, 30, tzinfo=timezone.utc),
        }
        out = serialize_record(row)
        self.assertNotIn("username", out)
        self.assertEqual(out["date"], "2024-01-02")
        self.assertEqual(out["created_at"], "2024-01-02T08:30:00Z")


if __name__ == "__main__":
    unittest.main()
