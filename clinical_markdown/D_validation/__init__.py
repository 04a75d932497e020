"""
D_validation: Authoring checks over whole documents.

Provides:
- D01: Content validator producing warnings and suggestions
"""
