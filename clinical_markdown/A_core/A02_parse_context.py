# clinical_markdown/A_core/A02_parse_context.py
"""
Immutable heading context passed down through nested parsing.

Several stages need to know which H1/H2/H3 heading encloses the text they are
looking at (for example, the calculator chosen for a ``*Calculator
Available*`` marker depends on the enclosing titles). The
context is a frozen value: stages receive it as a parameter and derive new
contexts with ``with_section`` / ``with_subsection`` instead of updating
shared state.

Example:
    >>> ctx = ParseContext(document_title="Atrial Fibrillation")
    >>> sub = ctx.with_section("Guidelines").with_subsection("Anticoagulation")
    >>> sub.subsection_title, ctx.section_title
    ('Anticoagulation', None)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class ParseContext:
    """Titles of the headings enclosing the text being parsed."""

    document_title: Optional[str] = None
    section_title: Optional[str] = None
    subsection_title: Optional[str] = None

    def with_document(self, title: Optional[str]) -> "ParseContext":
        return replace(self, document_title=title)

    def with_section(self, title: Optional[str]) -> "ParseContext":
        """Enter a new H2 section; the H3 subsection is reset."""
        return replace(self, section_title=title, subsection_title=None)

    def with_subsection(self, title: Optional[str]) -> "ParseContext":
        return replace(self, subsection_title=title)

    def keyword_text(self) -> str:
        """Lower-cased document, section and subsection titles for keyword search."""
        return " ".join(
            t for t in (self.document_title, self.section_title, self.subsection_title) if t
        ).lower()
