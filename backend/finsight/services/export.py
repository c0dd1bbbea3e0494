import csv
import io
from decimal import Decimal
from typing import Any

from fpdf import FPDF

HEADERS = ["Month", "Date", "Type", "Category", "Note", "Amount"]


def format_amount(amount: Decimal | int | float, currency: str = "USD") -> str:
    value = Decimal(str(amount)).quantize(Decimal("0.01"))
    sign = "-" if value < 0 else ""
    return f"{sign}{currency} {abs(value):,.2f}"


def safe_pdf_text(value: Any) -> str:
    text = str(value or "")
    text = text.replace("\n", " ").replace("\r", " ")
    try:
        text.encode("latin-1")
        return text
    except UnicodeEncodeError:
        return text.encode("latin-1", "replace").decode("latin-1")


def report_rows(report: list[dict[str, Any]], currency: str) -> list[list[str]]:
    rows: list[list[str]] = []
    for summary in report:
        for tx in summary["transactions"]:
            tx_date = tx["date"]
            rows.append(
                [
                    summary["month"],
                    tx_date.isoformat() if hasattr(tx_date, "isoformat") else str(tx_date),
                    tx["transaction_type"],
                    tx["category"]["name"],
                    tx.get("note") or "",
                    format_amount(tx["amount"], currency),
                ]
            )
    return rows


def export_report_file(
    report: list[dict[str, Any]],
    username: str,
    export_format: str,
    currency: str = "USD",
) -> dict[str, Any]:
    if export_format == "csv":
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(HEADERS)
        writer.writerows(report_rows(report, currency))
        writer.writerow([])
        writer.writerow(["Month", "Total income", "Total expense", "Net"])
        for summary in report:
            writer.writerow(
                [
                    summary["month"],
                    format_amount(summary["totalIncome"], currency),
                    format_amount(summary["totalExpense"], currency),
                    format_amount(summary["net"], currency),
                ]
            )
        return {
            "content": output.getvalue(),
            "media_type": "text/csv",
            "filename": f"monthly_report_{username}.csv",
        }

    pdf = FPDF(orientation="P", unit="mm", format="A4")
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()
    pdf.set_font("Helvetica", "B", 14)
    pdf.cell(0, 8, "Monthly Report", new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", size=10)
    pdf.multi_cell(0, 6, safe_pdf_text(f"User: {username} | Months: {len(report)}"))
    pdf.ln(2)

    widths = [24, 32, 30, 48, 36]
    for summary in report:
        pdf.set_font("Helvetica", "B", 11)
        heading = (
            f"{summary['month']}  income {format_amount(summary['totalIncome'], currency)}"
            f"  expense {format_amount(summary['totalExpense'], currency)}"
            f"  net {format_amount(summary['net'], currency)}"
        )
        pdf.cell(0, 7, safe_pdf_text(heading), new_x="LMARGIN", new_y="NEXT")

        pdf.set_font("Helvetica", "B", 9)
        for idx, label in enumerate(HEADERS[1:]):
            pdf.cell(widths[idx], 7, label, border=1)
        pdf.ln()

        pdf.set_font("Helvetica", size=9)
        for row in report_rows([summary], currency):
            for idx, val in enumerate(row[1:]):
                cell = safe_pdf_text(val)
                if len(cell) > 28:
                    cell = cell[:25] + "..."
                pdf.cell(widths[idx], 6, cell, border=1)
            pdf.ln()
        pdf.ln(3)

    pdf_bytes = bytes(pdf.output())
    return {
        "content": pdf_bytes,
        "media_type": "application/pdf",
        "filename": f"monthly_report_{username}.pdf",
    }
