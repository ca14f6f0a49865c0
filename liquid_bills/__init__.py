"""
Liquid Bills - Source Package

A personal bill tracker: one-off and recurring bills, paid/pending status,
monthly and yearly summaries, a remote table store and a local cache that
keeps the app usable offline.

DESIGN PRINCIPLES:
1. Recurring bills are materialized as a bounded series of real rows
2. The local cache paints first, the remote store is the source of truth
3. Failed writes are rolled back or never applied, and always reported
4. Every change is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Liquid Bills Team"
