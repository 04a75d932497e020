"""
J_export: Export handlers.

Provides:
- JSON export of ParsedDocument results (single file per document)
"""
