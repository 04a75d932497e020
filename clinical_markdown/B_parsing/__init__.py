# clinical_markdown/B_parsing/__init__.py
"""
Markdown parsing and semantic annotation layer.

Each stage is a pure function of its input text (plus the immutable
ParseContext and ParserConfig handed to it) and never raises for document
content: unrecognized text passes through as plain prose.

Key Components:
    - B01_markdown_tokenizer: Tagged line tokens (headings, lists, tables, pseudo-tags)
    - B02_section_segmenter: Level 1/2 section split and re-rendering
    - B03_clinical_findings_parser: Categorized finding groups, markup normalization
    - B04_guideline_extractor: Prose / subtitle / guideline segments, calculator markers
    - B05_evidence_detector: Standalone and inline evidence-level annotations
    - B06_likelihood_ratio_annotator: LR+/LR- table strength indicators
    - B07_reference_parser: Numbered bibliography lines into typed parts
    - B08_special_sections: Updated Evidence / Landmark Trial callouts
    - B09_studies_parser: Study entries of a Studies section
"""
