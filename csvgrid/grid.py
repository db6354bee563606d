"""
In-memory, mutable CSV grid.

A grid is an ordered list of rows, each an independently sized list of
cells. Every row that exists holds at least one cell: removing the last
remaining cell of a row clears it instead.
"""

import enum
import logging
from contextlib import contextmanager
from typing import Iterator, List, NamedTuple, Sequence, Tuple, Union

import numpy as np

from .errors import (
    GridAllocError,
    GridIndexError,
    GridStateError,
    GridValidationError,
)
from .tokenizer import DEFAULT_FIELD_DELIM, DEFAULT_TEXT_DELIM, validate_delimiters

logger = logging.getLogger(__name__)


class Cell:
    """A single field of text."""

    __slots__ = ('_text',)

    def __init__(self, text: str = ''):
        self.text = text

    @property
    def text(self) -> str:
        return self._text

    @text.setter
    def text(self, value: str) -> None:
        if not isinstance(value, str):
            raise GridValidationError(
                f"Field text must be a str, got {type(value).__name__}"
            )
        self._text = value

    @property
    def length(self) -> int:
        return len(self._text)

    def clear(self) -> None:
        self._text = ''

    def copy(self) -> 'Cell':
        return Cell(self._text)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Cell):
            return NotImplemented
        return self._text == other._text

    def __repr__(self) -> str:
        return f"Cell({self._text!r})"


class FieldStatus(enum.IntEnum):
    """Outcome of ``Grid.get_field``."""

    OK = 0
    TRUNCATED = 1
    EMPTY = 2
    CAPACITY_ZERO = 3


class FieldRead(NamedTuple):
    text: str
    status: FieldStatus


def _check_index(value: int, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise GridValidationError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise GridValidationError(f"{name} cannot be negative, got {value}")


@contextmanager
def _storage(operation: str):
    """Report a failed resize as GridAllocError."""
    try:
        yield
    except GridAllocError:
        raise
    except MemoryError as e:
        logger.warning("Out of memory during %s; grid left unchanged", operation)
        raise GridAllocError(f"Failed to resize grid storage during {operation}") from e


class Grid:
    """
    Mutable two-dimensional CSV document.

    Rows and fields are addressed by zero-based ``row`` / ``entry`` indices.
    Accessors treat coordinates that do not exist as a soft outcome (empty
    status, zero width, no-op) rather than an error, except where noted.

    Example:
        >>> grid = Grid()
        >>> grid.set_field(1, 2, 'x')
        >>> grid.to_list()
        [[''], ['', '', 'x']]
    """

    def __init__(
        self,
        field_delim: str = DEFAULT_FIELD_DELIM,
        text_delim: str = DEFAULT_TEXT_DELIM,
    ):
        validate_delimiters(field_delim, text_delim)
        self._field_delim = field_delim
        self._text_delim = text_delim
        self._rows: List[List[Cell]] = []

    @classmethod
    def from_rows(
        cls,
        rows: Sequence[Sequence[str]],
        field_delim: str = DEFAULT_FIELD_DELIM,
        text_delim: str = DEFAULT_TEXT_DELIM,
    ) -> 'Grid':
        """Build a grid from nested sequences of strings."""
        grid = cls(field_delim, text_delim)
        with _storage('from_rows'):
            grid._rows = [[Cell(text) for text in row] or [Cell()] for row in rows]
        return grid

    # Delimiters

    @property
    def field_delim(self) -> str:
        return self._field_delim

    @property
    def text_delim(self) -> str:
        return self._text_delim

    def set_field_delim(self, new_delim: str) -> None:
        validate_delimiters(new_delim, self._text_delim)
        self._field_delim = new_delim

    def set_text_delim(self, new_delim: str) -> None:
        validate_delimiters(self._field_delim, new_delim)
        self._text_delim = new_delim

    # Dimensions

    @property
    def height(self) -> int:
        return len(self._rows)

    def get_height(self) -> int:
        return len(self._rows)

    def get_width(self, row: int) -> int:
        """Return the number of fields in ``row`` (0 if the row does not exist)."""
        _check_index(row, 'row')
        if row >= len(self._rows):
            return 0
        return len(self._rows[row])

    def get_field_length(self, row: int, entry: int) -> int:
        """Return the length of a field's text (0 if the field does not exist)."""
        _check_index(row, 'row')
        _check_index(entry, 'entry')
        if not self._has_field(row, entry):
            return 0
        return self._rows[row][entry].length

    def _has_row(self, row: int) -> bool:
        return row < len(self._rows)

    def _has_field(self, row: int, entry: int) -> bool:
        return row < len(self._rows) and entry < len(self._rows[row])

    # Row and field storage

    def append_row(self) -> None:
        """Add a row holding one empty field at the end of the grid."""
        with _storage('append_row'):
            self._rows.append([Cell()])

    def append_field(self, row: int) -> None:
        """
        Add one empty field at the end of ``row``.

        Raises:
            GridIndexError: If the row does not exist.
        """
        _check_index(row, 'row')
        if not self._has_row(row):
            raise GridIndexError(f"Row {row} does not exist (height {len(self._rows)})")
        with _storage('append_field'):
            self._rows[row].append(Cell())

    def remove_last_field(self, row: int) -> None:
        """
        Remove the last field of ``row``.

        A row with a single field keeps it and has it cleared. Does nothing
        if the row does not exist.

        Raises:
            GridStateError: If the row exists but holds no fields.
        """
        _check_index(row, 'row')
        if not self._has_row(row):
            return
        fields = self._rows[row]
        if not fields:
            raise GridStateError(f"Row {row} has no fields")
        if len(fields) == 1:
            fields[0].clear()
            return
        del fields[-1]

    def remove_last_row(self) -> None:
        if not self._rows:
            return
        del self._rows[-1]

    def clear(self) -> None:
        """Release every row; the grid height becomes 0."""
        self._rows = []

    def clear_field(self, row: int, entry: int) -> None:
        """
        Clear a field.

        The last field of a row with more than one field is removed instead.
        Clearing a field that does not exist is a no-op.
        """
        _check_index(row, 'row')
        _check_index(entry, 'entry')
        if not self._has_field(row, entry):
            return
        if entry == len(self._rows[row]) - 1 and entry != 0:
            self.remove_last_field(row)
        else:
            self._rows[row][entry].clear()

    def clear_row(self, row: int) -> None:
        """
        Reduce ``row`` to a single empty field.

        The last row of the grid is removed rather than cleared.
        """
        _check_index(row, 'row')
        if not self._has_row(row):
            return
        if row == len(self._rows) - 1:
            self.remove_last_row()
            return
        fields = self._rows[row]
        del fields[1:]
        fields[0].clear()

    def remove_row(self, row: int) -> None:
        """Remove ``row``; later rows move up by one. No-op if absent."""
        _check_index(row, 'row')
        if not self._has_row(row):
            return
        del self._rows[row]

    def remove_field(self, row: int, entry: int) -> None:
        """Remove a field; later fields move left by one. No-op if absent."""
        _check_index(row, 'row')
        _check_index(entry, 'entry')
        if not self._has_field(row, entry):
            return
        fields = self._rows[row]
        if len(fields) == 1:
            fields[0].clear()
        else:
            del fields[entry]

    # Copies

    def copy_row(self, dest_row: int, src: 'Grid', src_row: int) -> None:
        """
        Deep-copy ``src_row`` of ``src`` into ``dest_row`` of this grid.

        ``src`` may be this grid. The destination row takes the source row's
        width, and the grid grows until ``dest_row`` exists. If the source
        row does not exist the destination row is cleared (see ``clear_row``).
        """
        _check_index(dest_row, 'dest_row')
        _check_index(src_row, 'src_row')
        if not isinstance(src, Grid):
            raise GridValidationError(f"Source must be a Grid, got {type(src).__name__}")
        if not src._has_row(src_row):
            self.clear_row(dest_row)
            return

        texts = [cell.text for cell in src._rows[src_row]]
        with _storage('copy_row'):
            fields = [Cell(text) for text in texts]
            if dest_row < len(self._rows):
                self._rows[dest_row] = fields
            else:
                padding = [[Cell()] for _ in range(len(self._rows), dest_row)]
                self._rows.extend(padding + [fields])

    def copy_field(self, dest_row: int, dest_entry: int,
                   src: 'Grid', src_row: int, src_entry: int) -> None:
        """
        Copy one field's text from ``src`` into this grid.

        Source and destination may be the same grid or even the same field.

        Raises:
            GridIndexError: If either field does not exist.
        """
        for value, name in ((dest_row, 'dest_row'), (dest_entry, 'dest_entry'),
                            (src_row, 'src_row'), (src_entry, 'src_entry')):
            _check_index(value, name)
        if not isinstance(src, Grid):
            raise GridValidationError(f"Source must be a Grid, got {type(src).__name__}")
        if not src._has_field(src_row, src_entry):
            raise GridIndexError(f"Source field ({src_row}, {src_entry}) does not exist")
        if not self._has_field(dest_row, dest_entry):
            raise GridIndexError(f"Destination field ({dest_row}, {dest_entry}) does not exist")
        self._rows[dest_row][dest_entry].text = src._rows[src_row][src_entry].text

    # Field text

    def set_field(self, row: int, entry: int, text: str) -> None:
        """
        Overwrite a field, growing the grid until ``(row, entry)`` exists.
        """
        _check_index(row, 'row')
        _check_index(entry, 'entry')
        cell = Cell(text)
        with _storage('set_field'):
            new_rows = [[Cell()] for _ in range(len(self._rows), row + 1)]
            fields = new_rows[-1] if new_rows else self._rows[row]
            new_fields = [Cell() for _ in range(len(fields), entry + 1)]
            fields.extend(new_fields)
            self._rows.extend(new_rows)
        fields[entry] = cell

    def insert_field(self, row: int, entry: int, text: str) -> None:
        """
        Insert a field at ``entry``, moving that field and later ones right.

        If ``(row, entry)`` does not exist this behaves like ``set_field``.
        """
        _check_index(row, 'row')
        _check_index(entry, 'entry')
        if not self._has_field(row, entry):
            self.set_field(row, entry, text)
            return
        cell = Cell(text)
        with _storage('insert_field'):
            self._rows[row].insert(entry, cell)

    def get_field(self, row: int, entry: int, capacity: int) -> FieldRead:
        """
        Read a field's text into at most ``capacity`` slots.

        ``capacity`` counts a terminator slot, so at most ``capacity - 1``
        characters are returned: a capacity of 2 on ``"hello"`` yields
        ``"h"`` with ``FieldStatus.TRUNCATED``.

        Returns:
            ``FieldRead(text, status)`` where status is ``OK`` when the whole
            text fits, ``TRUNCATED`` when it was cut, ``EMPTY`` when the field
            is empty or does not exist, and ``CAPACITY_ZERO`` when
            ``capacity`` is 0.
        """
        _check_index(row, 'row')
        _check_index(entry, 'entry')
        _check_index(capacity, 'capacity')
        if capacity == 0:
            return FieldRead('', FieldStatus.CAPACITY_ZERO)
        if not self._has_field(row, entry):
            return FieldRead('', FieldStatus.EMPTY)

        text = self._rows[row][entry].text
        if not text:
            return FieldRead('', FieldStatus.EMPTY)
        limit = capacity - 1
        if len(text) > limit:
            return FieldRead(text[:limit], FieldStatus.TRUNCATED)
        return FieldRead(text, FieldStatus.OK)

    # Bulk access

    def to_list(self) -> List[List[str]]:
        """Return every row as a list of field texts."""
        return [[cell.text for cell in fields] for fields in self._rows]

    def get_column(self, col: int) -> List[str]:
        """Get all values in a column; rows too short for it give ``''``."""
        _check_index(col, 'col')
        return [fields[col].text if col < len(fields) else '' for fields in self._rows]

    def to_array(self) -> np.ndarray:
        """
        Return the grid as a 2-D numpy array of ``object`` dtype.

        Rows shorter than the widest row are padded with ``''``.
        """
        width = max((len(fields) for fields in self._rows), default=0)
        array = np.full((len(self._rows), width), '', dtype=object)
        for i, fields in enumerate(self._rows):
            array[i, :len(fields)] = [cell.text for cell in fields]
        return array

    def pretty(self) -> str:
        """
        Render every field wrapped in the text delimiter and followed by the
        field delimiter, one row per line.
        """
        q, sep = self._text_delim, self._field_delim
        return '\n'.join(
            ''.join(f"{q}{cell.text}{q}{sep}" for cell in fields)
            for fields in self._rows
        )

    def _swap_storage(self, other: 'Grid') -> None:
        self._rows, other._rows = other._rows, self._rows

    # Python protocol

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[List[str]]:
        for fields in self._rows:
            yield [cell.text for cell in fields]

    def __getitem__(self, key: Union[int, Tuple[int, int]]) -> Union[str, List[str]]:
        """``grid[row]`` gives a row's texts, ``grid[row, entry]`` one field."""
        if isinstance(key, tuple):
            row, entry = key
        else:
            row, entry = key, None

        if row < 0:
            row = len(self._rows) + row
        if row < 0 or row >= len(self._rows):
            raise GridIndexError(f"Row index {row} out of range")
        fields = self._rows[row]
        if entry is None:
            return [cell.text for cell in fields]

        if entry < 0:
            entry = len(fields) + entry
        if entry < 0 or entry >= len(fields):
            raise GridIndexError(f"Field index {entry} out of range")
        return fields[entry].text

    def __eq__(self, other) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return (self._field_delim == other._field_delim
                and self._text_delim == other._text_delim
                and self._rows == other._rows)

    def __repr__(self) -> str:
        return (f"Grid(height={len(self._rows)}, "
                f"field_delim={self._field_delim!r}, text_delim={self._text_delim!r})")


def create_grid(field_delim: str = DEFAULT_FIELD_DELIM,
                text_delim: str = DEFAULT_TEXT_DELIM) -> Grid:
    """Create an empty grid."""
    return Grid(field_delim, text_delim)


def destroy_grid(grid: Grid) -> None:
    """Release every row and field owned by ``grid``."""
    grid.clear()


def copy_row(dest: Grid, dest_row: int, src: Grid, src_row: int) -> None:
    """Deep-copy a row between grids (which may be the same grid)."""
    dest.copy_row(dest_row, src, src_row)


def copy_field(dest: Grid, dest_row: int, dest_entry: int,
               src: Grid, src_row: int, src_entry: int) -> None:
    """Copy one field between grids (which may be the same grid)."""
    dest.copy_field(dest_row, dest_entry, src, src_row, src_entry)
