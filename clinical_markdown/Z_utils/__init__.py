"""
Z_utils: Utility functions and helpers.

Provides:
- Z02: Text helpers (slugs, reading time, markup stripping, table cells, keywords)
"""
