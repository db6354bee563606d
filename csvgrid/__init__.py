"""
CSVGRID - in-memory, mutable CSV documents

This module parses CSV files into a grid of text cells that can be read,
edited, grown and shrunk cell by cell or row by row, and written back out
with correct quoting.
"""

import logging

from .errors import (
    GridError,
    GridValidationError,
    GridNotFoundError,
    GridAllocError,
    GridWriteError,
    GridIndexError,
    GridStateError,
)
from .tokenizer import (
    DEFAULT_FIELD_DELIM,
    DEFAULT_TEXT_DELIM,
    FieldEnd,
    PushbackReader,
    Tokenizer,
    tokenize,
)
from .grid import (
    Cell,
    Grid,
    FieldRead,
    FieldStatus,
    create_grid,
    destroy_grid,
    copy_row,
    copy_field,
)
from .codec import (
    MAX_FILE_SIZE,
    load,
    load_file,
    load_into,
    loads,
    save,
    dumps,
    count_rows,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = '0.1.0'
__all__ = [
    'Cell',
    'Grid',
    'FieldRead',
    'FieldStatus',
    'FieldEnd',
    'PushbackReader',
    'Tokenizer',
    'tokenize',
    'create_grid',
    'destroy_grid',
    'copy_row',
    'copy_field',
    'load',
    'load_file',
    'load_into',
    'loads',
    'save',
    'dumps',
    'count_rows',
    'GridError',
    'GridValidationError',
    'GridNotFoundError',
    'GridAllocError',
    'GridWriteError',
    'GridIndexError',
    'GridStateError',
    'DEFAULT_FIELD_DELIM',
    'DEFAULT_TEXT_DELIM',
    'MAX_FILE_SIZE',
]
