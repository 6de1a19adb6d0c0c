"""
BizFlow - Source Package

A small multi-user cashflow and budget tracker: transactions, budgets,
users with page permissions, and reports.

DESIGN PRINCIPLES:
1. One source of truth: the relational store
2. Fail early, fail visibly
3. Every read and delete is scoped to its owner
4. Every change and every refusal is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "BizFlow Team"
