"""
Transforms sub-package for epf-ingest.

Contains the value-level and table-level conversion steps applied to
decoded records:

- coerce.py: Raw field text + declared type -> Python value.
- frames.py: Batches of decoded rows -> typed pandas DataFrames.

Why separate from the parsers:
- Coercion is a pure function, testable without any stream.
- Frame building depends on pandas; the parsers do not.
"""
