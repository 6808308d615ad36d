"""
Budge - Local Finance Ledger Engine

On-device bookkeeping for subscriptions, transactions, budgets and
income sources.

DESIGN PRINCIPLES:
1. Everything lives on the device - no sync, no server
2. Validate before any write
3. Derived views (summaries, alerts) are recomputed from the store
4. Every ledger mutation is logged
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Budge Team"
