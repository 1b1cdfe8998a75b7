"""Read-only projections of persisted orders."""

from .bill import Bill, BillLine, render_bill_html, render_bill_text, to_printable_bill
from .exports import CSV_HEADER, day_bounds, export_range, render_csv, to_csv_row

__all__ = [
    "Bill",
    "BillLine",
    "CSV_HEADER",
    "day_bounds",
    "export_range",
    "render_bill_html",
    "render_bill_text",
    "render_csv",
    "to_csv_row",
    "to_printable_bill",
]
