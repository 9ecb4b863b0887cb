"""
Export service for expense data.

Provides functionality to export expenses to XLSX and CSV formats.
"""

import csv
import io
from datetime import datetime
from enum import Enum
from typing import Optional, cast

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from spendora.db import Budget, Expense, FinanceRepository

from .analytics import budget_utilization

HEADERS = [
    "ID",
    "Date",
    "Category",
    "Description",
    "Amount",
    "Payment Method",
    "Type",
    "Frequency",
    "Next Date",
]


class ExportFormat(str, Enum):
    """Supported export formats."""

    CSV = "csv"
    XLSX = "xlsx"


class ExportService:
    """Service for exporting expense data to various formats."""

    def __init__(self, repository: FinanceRepository):
        """
        Initialize the export service.

        Args:
            repository: Facade over the finance store
        """
        self.repository = repository

    def export(self, format: ExportFormat, month: Optional[str] = None) -> io.BytesIO:
        """Export expenses in the given format."""
        if ExportFormat(format) == ExportFormat.CSV:
            return self.export_to_csv(month)
        return self.export_to_xlsx(month)

    def export_to_csv(self, month: Optional[str] = None) -> io.BytesIO:
        """
        Export expenses to CSV format.

        Args:
            month: Optional YYYY-MM filter

        Returns:
            BytesIO buffer containing the CSV data
        """
        expenses = self._get_expenses(month)

        buffer = io.BytesIO()
        text_buffer = io.StringIO()

        writer = csv.writer(text_buffer)
        writer.writerow(HEADERS)
        for expense in expenses:
            writer.writerow(self._row(expense))

        buffer.write(text_buffer.getvalue().encode("utf-8-sig"))  # BOM for Excel
        buffer.seek(0)

        return buffer

    def export_to_xlsx(self, month: Optional[str] = None) -> io.BytesIO:
        """
        Export expenses to XLSX format with formatting.

        Args:
            month: Optional YYYY-MM filter

        Returns:
            BytesIO buffer containing the XLSX data
        """
        expenses = self._get_expenses(month)

        wb = Workbook()
        ws = cast(Worksheet, wb.active)
        ws.title = "Expenses"

        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(
            start_color="4472C4", end_color="4472C4", fill_type="solid"
        )
        method_fills = {
            "upi": PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid"),
            "card": PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid"),
            "cash": PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid"),
        }

        for col, header in enumerate(HEADERS, 1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center")

        for row_idx, expense in enumerate(expenses, 2):
            for col, value in enumerate(self._row(expense), 1):
                ws.cell(row=row_idx, column=col, value=value)

            fill = method_fills.get(expense.payment_method.value)
            if fill is not None:
                for col in range(1, len(HEADERS) + 1):
                    ws.cell(row=row_idx, column=col).fill = fill

            ws.cell(row=row_idx, column=5).number_format = "#,##0.00"

        column_widths = [38, 12, 18, 30, 14, 15, 11, 11, 12]
        for col, width in enumerate(column_widths, 1):
            ws.column_dimensions[get_column_letter(col)].width = width

        ws.freeze_panes = "A2"

        self._add_budget_sheet(wb, month)

        buffer = io.BytesIO()
        wb.save(buffer)
        buffer.seek(0)

        return buffer

    def _add_budget_sheet(self, wb: Workbook, month: Optional[str]):
        """Add a budgets summary sheet to the workbook."""
        ws = wb.create_sheet(title="Budgets")

        header_font = Font(bold=True)
        title_font = Font(bold=True, size=14)

        ws.cell(row=1, column=1, value="Budget Summary").font = title_font
        ws.cell(
            row=2,
            column=1,
            value=f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}",
        )

        headers = ["Month", "Category", "Limit", "Spent", "Remaining", "Used %", "Status"]
        table_start = 4
        for col, header in enumerate(headers, 1):
            ws.cell(row=table_start, column=col, value=header).font = header_font

        budgets = self._get_budgets(month)
        for row_idx, budget in enumerate(budgets, table_start + 1):
            usage = budget_utilization(budget)
            values = [
                budget.month,
                budget.category,
                usage.limit,
                usage.spent,
                usage.remaining,
                usage.percentage / 100,
                usage.status,
            ]
            for col, value in enumerate(values, 1):
                ws.cell(row=row_idx, column=col, value=value)
            for col in (3, 4, 5):
                ws.cell(row=row_idx, column=col).number_format = "#,##0.00"
            ws.cell(row=row_idx, column=6).number_format = "0.0%"

        total_row = table_start + len(budgets) + 2
        ws.cell(row=total_row, column=1, value="Total").font = header_font
        ws.cell(row=total_row, column=3, value=sum(b.monthly_limit for b in budgets))
        ws.cell(row=total_row, column=4, value=sum(b.current_spend for b in budgets))
        for col in (3, 4):
            ws.cell(row=total_row, column=col).number_format = "#,##0.00"

        for col, width in enumerate([10, 20, 14, 14, 14, 10, 10], 1):
            ws.column_dimensions[get_column_letter(col)].width = width

    def _row(self, expense: Expense) -> list:
        return [
            expense.id,
            expense.date[:10],
            expense.category,
            expense.description,
            expense.amount,
            expense.payment_method.value,
            expense.type.value,
            expense.recurring_frequency.value if expense.recurring_frequency else "",
            expense.recurring_next_date or "",
        ]

    def _get_expenses(self, month: Optional[str] = None) -> list[Expense]:
        """All expenses, newest first, optionally limited to one YYYY-MM month."""
        expenses = self.repository.expenses.list_all()
        if month:
            expenses = [e for e in expenses if e.date.startswith(month)]
        return expenses

    def _get_budgets(self, month: Optional[str] = None) -> list[Budget]:
        budgets = self.repository.budgets.list_all()
        if month:
            budgets = [b for b in budgets if b.month == month]
        return budgets

    def get_filename(self, format: ExportFormat, month: Optional[str] = None) -> str:
        """
        Generate a filename for the export.

        Args:
            format: Export format
            month: Optional YYYY-MM month the export is limited to

        Returns:
            Suggested filename
        """
        date_str = datetime.now().strftime("%Y%m%d")
        month_part = f"_{month.replace('-', '')}" if month else ""
        return f"spendora_expenses_{date_str}{month_part}.{ExportFormat(format).value}"
