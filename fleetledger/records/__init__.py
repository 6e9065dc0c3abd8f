"""Mini README: Domain services for the fleet ledger collections.

Each module owns one collection (or a closely related pair) and exposes an
async service class that validates input, applies the uniqueness, numbering
and derived-field rules, consults the authorization policy for gated
mutations and persists through a ``RecordStore``.
"""

from .accounts import AccountService, validate_work_id
from .creditors import CreditorService
from .entries import Entry, EntryService
from .ledger_invoices import LedgerInvoiceService
from .tracker import Attachment, TrackerService
from .trucks import TruckService
from .wallet import WalletInvoice, WalletService, render_invoice_summary

__all__ = [
    "AccountService",
    "Attachment",
    "CreditorService",
    "Entry",
    "EntryService",
    "LedgerInvoiceService",
    "TrackerService",
    "TruckService",
    "WalletInvoice",
    "WalletService",
    "render_invoice_summary",
    "validate_work_id",
]
