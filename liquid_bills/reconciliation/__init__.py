"""Keeps the bill collection consistent across UI, cache and remote store."""

from liquid_bills.reconciliation.controller import BillController
from liquid_bills.reconciliation.intent import EditIntent, classify_edit
from liquid_bills.reconciliation.optimistic import commit_with_compensation

__all__ = [
    "BillController",
    "EditIntent",
    "classify_edit",
    "commit_with_compensation",
]
