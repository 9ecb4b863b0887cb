"""
Import of the legacy flat-file data store.

Before the SQLite store existed, expenses and budgets were kept in a single
JSON document:

    {"expenses": [...], "budgets": [...]}

The import copies every record into SQLite with INSERT OR IGNORE on the
record id, inside one transaction, so running it again with the same document
changes nothing. Loans, assets and goals postdate the legacy format and are
never touched.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from spendora.config import LEGACY_ARCHIVE_SUFFIX

from .base import insert_row
from .errors import StoreError
from .models import Budget, Expense
from .store import Store

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Outcome of one legacy import run."""

    expenses_imported: int = 0
    expenses_skipped: int = 0
    budgets_imported: int = 0
    budgets_skipped: int = 0

    def to_dict(self) -> dict:
        return {
            "expensesImported": self.expenses_imported,
            "expensesSkipped": self.expenses_skipped,
            "budgetsImported": self.budgets_imported,
            "budgetsSkipped": self.budgets_skipped,
        }


class LegacyImporter:
    """Copies legacy expenses and budgets into the store."""

    def __init__(self, store: Store):
        self.store = store

    def import_document(self, document: dict) -> ImportResult:
        """
        Import a legacy document atomically.

        Records whose id already exists are skipped, as are records that fail
        validation (they are logged with a warning).

        Args:
            document: Parsed legacy JSON with `expenses` and `budgets` lists

        Returns:
            ImportResult with inserted and skipped counts

        Raises:
            StoreError: If the document is malformed
            TransactionFailureError: If the batch fails; nothing is imported
        """
        if not isinstance(document, dict):
            raise StoreError("Legacy document must be a JSON object")

        expenses = document.get("expenses") or []
        budgets = document.get("budgets") or []
        if not isinstance(expenses, list) or not isinstance(budgets, list):
            raise StoreError("Legacy `expenses` and `budgets` must be lists")

        result = ImportResult()

        with self.store.atomic("legacy import") as conn:
            for raw in expenses:
                expense = self._parse(Expense, raw)
                if expense is None or not self._insert_ignore(
                    conn, "expenses", expense.to_row()
                ):
                    result.expenses_skipped += 1
                else:
                    result.expenses_imported += 1

            for raw in budgets:
                budget = self._parse(Budget, raw)
                if budget is None or not self._insert_ignore(
                    conn, "budgets", budget.to_row()
                ):
                    result.budgets_skipped += 1
                else:
                    result.budgets_imported += 1

        logger.info(
            f"Legacy import complete: {result.expenses_imported} expenses, "
            f"{result.budgets_imported} budgets "
            f"({result.expenses_skipped + result.budgets_skipped} skipped)"
        )
        return result

    def _parse(self, model, raw):
        try:
            record = model.from_dict(raw)
            record.validate()
            return record
        except ValueError as e:
            logger.warning(f"Skipping invalid legacy {model.__name__}: {e}")
            return None

    def _insert_ignore(self, conn, table: str, values: dict) -> bool:
        return insert_row(conn, table, values, or_ignore=True).rowcount > 0


def migrate_legacy_file(
    store: Store, path: Union[Path, str]
) -> Optional[ImportResult]:
    """
    Import the legacy JSON file at `path` if it exists, then archive it.

    On success the file is renamed with a `.migrated` suffix. On any failure
    the error is logged, the file is left in place for a later retry, and
    None is returned so application startup can continue.
    """
    path = Path(path)
    if not path.exists():
        logger.debug(f"No legacy data file at {path}")
        return None

    logger.info(f"Legacy data file found: {path}")

    try:
        with path.open("r", encoding="utf-8") as f:
            document = json.load(f)
        result = LegacyImporter(store).import_document(document)
    except Exception as e:
        logger.error(f"Legacy import from {path} failed: {e}", exc_info=True)
        return None

    archive_path = path.with_name(path.name + LEGACY_ARCHIVE_SUFFIX)
    try:
        path.rename(archive_path)
        logger.info(f"Legacy data file archived to {archive_path}")
    except OSError as e:
        logger.error(f"Failed to archive legacy data file {path}: {e}", exc_info=True)

    return result
