"""
Parsers sub-package for epf-ingest.

Contains the three state machines that read an export file:

- header.py: HeaderParser, the comment block declaring the schema.
- records.py: RecordTokenizer, one data record per call.
- footer.py: read_footer(), the declared row count from the file tail.

All three read from a ``CharSource`` (source.py in the parent package).
``EpfParser`` (parser.py) wires them into a session.
"""
