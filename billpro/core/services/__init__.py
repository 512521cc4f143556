"""
Core business logic services.

Layer-pure services that depend only on:
- billpro/core/entities/*
- billpro/core/interfaces/*
- billpro/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from billpro.core.services.inventory_reconciler import (
    AppliedDelta,
    InventoryReconciler,
    compute_deltas,
)
from billpro.core.services.invoice_lifecycle import InvoiceLifecycleManager
from billpro.core.services.numbering import (
    NumberingAssigner,
    NumberingIndex,
    format_number,
)
from billpro.core.services.stock_validator import check_stock
from billpro.core.services.tax_calculator import calculate_tax, effective_rate, split_tax

__all__ = [
    # Tax
    "calculate_tax",
    "effective_rate",
    "split_tax",
    # Stock
    "check_stock",
    # Numbering
    "NumberingAssigner",
    "NumberingIndex",
    "format_number",
    # Inventory
    "InventoryReconciler",
    "AppliedDelta",
    "compute_deltas",
    # Lifecycle
    "InvoiceLifecycleManager",
]
