"""
Expense Tracker - Source Package

A personal expense tracker with live cloud sync, a weekly spending chart
and monthly/yearly category breakdowns.

DESIGN PRINCIPLES:
1. Validate at the edge, trust the models inside
2. The store is the single source of truth; the UI renders snapshots
3. Degrade to stale data, never crash
4. Every write is logged
5. Storage layer is swappable
"""

__version__ = "0.1.0"
__author__ = "Expense Tracker Team"
