"""
Expense Tracker - Source Package

A personal finance tracker: record expenses, organise them into
categories, set budgets, track income and look at where the money went.

DESIGN PRINCIPLES:
1. Records are owned by exactly one user
2. Derived numbers are recomputed on every read, never stored
3. Aggregation is pure and never fails
4. Currencies are labels, never converted
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
