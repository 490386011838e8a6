"""
Wire-level constants of the export format.

Layout:
    #<field>^A<field>^A...^B            <- field names
    #primaryKey:<field>^A...^B          <- primary key columns
    #dbTypes:<type>^A<type>^A...^B      <- declared types, one per field
    #exportMode:FULL^B                  <- FULL or anything else (incremental)
    [#<comment>^B]*                     <- ignored comment lines
    <value>^A<value>^A...^B             <- data records
    #recordsWritten:<count>^B           <- footer

``^A`` is the field separator, ``^B`` the record terminator. Each ``^B``
may be followed by a newline, which belongs to the terminator.
"""

COMMENT_CHAR = "#"
FIELD_SEPARATOR = "\x01"
RECORD_TERMINATOR = "\x02"
NEWLINE = "\n"

# Separates the label from the values on a labelled header line
LABEL_SEPARATOR = ":"

# Bytes read from the end of the file to find the footer. The footer is
# fixed text plus a variable-length count, so this always covers it.
FOOTER_TAIL_SIZE = 28

# Export mode value that marks a full snapshot
FULL_EXPORT_VALUE = "FULL"

# Read size for the streaming decoder
DEFAULT_CHUNK_SIZE = 64 * 1024
