from __future__ import annotations

import csv
import io
from datetime import date
from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel

from financepro.dashboard_engine import INCOME, DashboardSummary, normalize_kind
from financepro.projection_engine import ProjectionResult

REPORT_TITLE = "Financial Report - FinancePro"
TRANSACTION_HEADER = ["Description", "Category", "Type", "Date", "Amount"]
PROJECTION_HEADER = ["Year", "Projected Balance"]
UNCATEGORIZED = "Uncategorized"


class TransactionExportRow(BaseModel):
    description: str
    category_name: str | None = None
    category_kind: str | None = None
    date: date
    amount: Decimal


def export_dashboard_csv(summary: DashboardSummary, generated_on: date) -> str:
    rows: list[list[object]] = [
        [REPORT_TITLE],
        ["Date", generated_on.isoformat()],
        [],
        ["GENERAL SUMMARY"],
        ["Concept", "Amount"],
        ["Total Balance", summary.balance],
        ["Total Income", summary.income],
        ["Total Expenses", summary.expenses],
        [],
        ["EXPENSES BY CATEGORY"],
        ["Category", "Total Amount"],
    ]
    rows.extend([item.name, item.total] for item in summary.category_breakdown)
    return _write_rows(rows)


def export_transactions_csv(transactions: Iterable[TransactionExportRow]) -> str:
    rows: list[list[object]] = [TRANSACTION_HEADER]
    for txn in transactions:
        kind_label = "Income" if normalize_kind(txn.category_kind) == INCOME else "Expense"
        rows.append(
            [
                txn.description,
                txn.category_name or UNCATEGORIZED,
                kind_label,
                txn.date.isoformat(),
                txn.amount,
            ]
        )
    return _write_rows(rows)


def export_projection_csv(result: ProjectionResult) -> str:
    rows: list[list[object]] = [PROJECTION_HEADER]
    rows.extend([point.year, point.balance] for point in result.points)
    return _write_rows(rows)


def _write_rows(rows: Iterable[Iterable[object]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue()
