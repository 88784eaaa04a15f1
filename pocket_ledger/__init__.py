"""Pocket Ledger package.

Personal finance bookkeeping: transactions against hierarchical
categories, budgets with usage alerts and projections, savings goals
with contribution tracking, and pandas-based reports. The Streamlit
dashboard lives in :mod:`pocket_ledger.dashboard`.
"""

__version__ = "0.1.0"
