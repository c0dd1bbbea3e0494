import csv
import io
import pathlib
import sys
import unittest
from datetime import date
from decimal import Decimal

BACKEND_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from finsight.services.export import export_report_file, format_amount
from finsight.services.reports import build_monthly_report
from memory_store import InMemoryRecordStore


def sample_report():
    store = InMemoryRecordStore()
    food = store.add_category("alice", "Food", "expense")
    store.add_transaction("alice", date(2023, 12, 1), "income", Decimal("1500"), "Salary", transaction_id="t1")
    store.add_transaction(
        "alice", date(2024, 1, 2), "expense", Decimal("50.25"), "Café lunch", food["category_id"], transaction_id="t2"
    )
    return build_monthly_report(store, "alice")


class ReportExportTests(unittest.TestCase):
    def test_format_amount(self):
        self.assertEqual(format_amount(Decimal("1500"), "USD"), "USD 1,500.00")
        self.assertEqual(format_amount(Decimal("-50.5"), "EUR"), "-EUR 50.50")

    def test_csv_export_lists_transactions_then_totals(self):
        payload = export_report_file(sample_report(), "alice", "csv", "USD")

        self.assertEqual(payload["media_type"], "text/csv")
        self.assertEqual(payload["filename"], "monthly_report_alice.csv")
        rows = list(csv.reader(io.StringIO(payload["content"])))
        self.assertEqual(rows[0], ["Month", "Date", "Type", "Category", "Note", "Amount"])
        self.assertEqual(rows[1], ["Jan 2024", "2024-01-02", "expense", "Food", "Café lunch", "USD 50.25"])
        self.assertEqual(rows[2], ["Dec 2023", "2023-12-01", "income", "Uncategorized", "Salary", "USD 1,500.00"])
        self.assertIn(["Jan 2024", "USD 0.00", "USD 50.25", "-USD 50.25"], rows)
        self.assertIn(["Dec 2023", "USD 1,500.00", "USD 0.00", "USD 1,500.00"], rows)

    def test_pdf_export_renders_document(self):
        payload = export_report_file(sample_report(), "alice", "pdf", "USD")

        self.assertEqual(payload["media_type"], "application/pdf")
        self.assertIsInstance(payload["content"], bytes)
        self.assertTrue(payload["content"].startswith(b"%PDF"))

    def test_pdf_export_of_empty_report(self):
        payload = export_report_file([], "bob", "pdf")
        self.assertTrue(payload["content"].startswith(b"%PDF"))


if __name__ == "__main__":
    unittest.main()
