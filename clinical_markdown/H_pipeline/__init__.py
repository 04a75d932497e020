"""
H_pipeline: Document pipeline orchestration.

Provides:
- DocumentPipeline: Segmentation followed by per-section routing to the parse stages
- parse_document: One-call convenience wrapper
"""
