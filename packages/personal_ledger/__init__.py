"""Public interface for the ``personal_ledger`` package.

This module re-exports the package's stable import surface: the ledger
store, analytics, the advisory gateway and the entry/import workflows.
There is no runtime logic here, only symbol re-exports. The provider-backed
advisor (:mod:`personal_ledger.openai_advisor`) is imported on demand.
"""

from .advisory import (
    CHAT_TROUBLE,
    INSIGHTS_APOLOGY,
    AdvisoryGateway,
    ConversationSession,
)
from .analytics import (
    cumulative_actuals,
    debit_totals_by_category,
    merge_actual_with_forecast,
    spend_by_category,
    total_debits,
)
from .config import Settings, load_settings
from .dashboard import DashboardView
from .entry import EntryDraft, SuggestionRequest
from .errors import AdvisoryError, EntryValidationError, LedgerError, StorageError
from .gateway import ResilientAdvisor, build_advisor
from .ingest import ImportReport, import_csv, import_csv_file, parse_csv_rows
from .ledger import STORAGE_KEY, LedgerStore
from .local_advisor import LocalAdvisor
from .models import (
    CATEGORIES,
    Category,
    CategorySpendPoint,
    ForecastPoint,
    Ledger,
    Transaction,
    TransactionInput,
    TransactionType,
)
from .storage import BlobStore, JsonFileBlobStore, MemoryBlobStore, SqlBlobStore

__all__ = [
    # Ledger
    "LedgerStore",
    "STORAGE_KEY",
    "BlobStore",
    "JsonFileBlobStore",
    "MemoryBlobStore",
    "SqlBlobStore",
    # Models
    "CATEGORIES",
    "Category",
    "CategorySpendPoint",
    "ForecastPoint",
    "Ledger",
    "Transaction",
    "TransactionInput",
    "TransactionType",
    # Analytics
    "cumulative_actuals",
    "debit_totals_by_category",
    "merge_actual_with_forecast",
    "spend_by_category",
    "total_debits",
    # Advisory
    "AdvisoryGateway",
    "CHAT_TROUBLE",
    "ConversationSession",
    "INSIGHTS_APOLOGY",
    "LocalAdvisor",
    "ResilientAdvisor",
    "build_advisor",
    # Workflows
    "DashboardView",
    "EntryDraft",
    "ImportReport",
    "SuggestionRequest",
    "import_csv",
    "import_csv_file",
    "parse_csv_rows",
    # Config and errors
    "AdvisoryError",
    "EntryValidationError",
    "LedgerError",
    "Settings",
    "StorageError",
    "load_settings",
]
