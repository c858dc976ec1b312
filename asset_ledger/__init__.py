"""
Asset Ledger - Source Package

A personal inventory of owned assets: items grouped into categories,
with value history, reminders and custom images, persisted to plain
JSON files.

DESIGN PRINCIPLES:
1. One store owns the collections and is the only writer
2. Aggregates are recomputed on read, never cached
3. Items reference categories by id
4. Persistence and image cleanup are best-effort and always logged
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Asset Ledger Team"
