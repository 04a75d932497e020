"""
A_core: Value objects, parse context, logging and error types.

Core building blocks of the clinical markdown parser:
- Pydantic value objects produced by every parse stage (sections, findings,
  guideline segments, evidence annotations, LR rows, references, studies)
- Immutable ParseContext threaded through nested parsing
- Project logging (coloured console, rotating file, timing helpers)
- Exception hierarchy for configuration, loading and export failures
"""
