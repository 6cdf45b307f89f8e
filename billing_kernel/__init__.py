"""
Billing Kernel

An invoicing core with:
- In-memory invoice drafts built across several calls
- Decimal-only totals recalculated on every change
- Gapless invoice and line numbering from locked counter rows
- All-or-nothing commit through an explicit unit of work
"""

__version__ = "0.1.0"
