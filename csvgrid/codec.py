"""
Loading CSV text into a Grid and writing a Grid back out as CSV.
"""

import io
import logging
import stat
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, TextIO, Union

from .errors import (
    GridAllocError,
    GridNotFoundError,
    GridValidationError,
    GridWriteError,
)
from .grid import Grid
from .tokenizer import (
    DEFAULT_FIELD_DELIM,
    DEFAULT_TEXT_DELIM,
    NEWLINE,
    FieldEnd,
    tokenize,
)

logger = logging.getLogger(__name__)

# Maximum file size to load (default 10GB)
MAX_FILE_SIZE = 10 * 1024 * 1024 * 1024

DEFAULT_ENCODING = 'utf-8'

PathLike = Union[str, Path]


def _validate_file_path(path: PathLike, max_file_size: int) -> Path:
    """
    Validate a source path before opening it.

    Checks for:
    - Missing files
    - Symlinks (follows to final target, checks it's a regular file)
    - Device files, FIFOs and sockets
    - File size limits
    """
    file_path = Path(path)

    if not file_path.exists():
        raise GridNotFoundError(f"File not found: {path}")

    real_path = file_path.resolve()

    try:
        file_stat = real_path.stat()
    except OSError as e:
        raise GridValidationError(f"Cannot access file {path}: {e}") from e

    if stat.S_ISBLK(file_stat.st_mode) or stat.S_ISCHR(file_stat.st_mode):
        raise GridValidationError(f"Cannot load device file: {path}")
    if stat.S_ISFIFO(file_stat.st_mode):
        raise GridValidationError(f"Cannot load FIFO/pipe: {path}")
    if stat.S_ISSOCK(file_stat.st_mode):
        raise GridValidationError(f"Cannot load socket: {path}")
    if not stat.S_ISREG(file_stat.st_mode):
        raise GridValidationError(f"Path is not a regular file: {path}")

    if file_stat.st_size > max_file_size:
        raise GridValidationError(
            f"File too large: {file_stat.st_size} bytes "
            f"(max {max_file_size} bytes). "
            f"Increase max_file_size if this is intentional."
        )

    return real_path


@contextmanager
def _open_source(path: PathLike, encoding: str) -> Iterator[TextIO]:
    # newline='' keeps '\r' as field data; only '\n' ends a line
    try:
        f = open(path, 'r', encoding=encoding, newline='')
    except FileNotFoundError as e:
        raise GridNotFoundError(f"File not found: {path}") from e
    except OSError as e:
        raise GridValidationError(f"Cannot access file {path}: {e}") from e

    with f:
        try:
            yield f
        except UnicodeDecodeError as e:
            raise GridValidationError(f"Cannot decode {path} as {encoding}: {e}") from e


def load_into(grid: Grid, stream: TextIO) -> None:
    """
    Replace the contents of ``grid`` with the CSV read from ``stream``.

    The grid's own delimiters are used. Parsing happens in a scratch grid
    that is only swapped in once the whole stream has been read, so on
    failure ``grid`` keeps its previous contents.

    Raises:
        GridAllocError: If the grid storage cannot grow.
    """
    scratch = Grid(grid.field_delim, grid.text_delim)
    row = -1
    entry = 0
    new_row = True
    try:
        for text, end in tokenize(stream, grid.field_delim, grid.text_delim):
            if new_row:
                scratch.append_row()
                row += 1
                entry = 0
            else:
                scratch.append_field(row)
                entry += 1
            scratch.set_field(row, entry, text)
            new_row = end == FieldEnd.NEW_ROW
    except GridAllocError:
        raise
    except MemoryError as e:
        logger.warning("Out of memory while loading row %d; grid left unchanged", row)
        raise GridAllocError(f"Failed to grow grid while loading row {row}") from e

    grid._swap_storage(scratch)


def load(
    grid: Grid,
    path: PathLike,
    encoding: str = DEFAULT_ENCODING,
    max_file_size: int = MAX_FILE_SIZE,
    validate_path: bool = True,
) -> None:
    """
    Load a CSV file into ``grid``, replacing its contents.

    Args:
        grid: Destination grid; its delimiters drive the parse.
        path: Path to the CSV file
        encoding: Text encoding of the file
        max_file_size: Largest file accepted, in bytes
        validate_path: If True (default), validates the file path first.
                       Set to False only if you've already validated the path.

    Raises:
        GridNotFoundError: If the file does not exist
        GridValidationError: If path validation or decoding fails
        GridAllocError: If the grid storage cannot grow
    """
    source = _validate_file_path(path, max_file_size) if validate_path else path

    start = time.perf_counter()
    with _open_source(source, encoding) as f:
        load_into(grid, f)
    logger.debug("Loaded %s: %d rows in %.3fs", path, grid.height,
                 time.perf_counter() - start)


def load_file(
    path: PathLike,
    field_delim: str = DEFAULT_FIELD_DELIM,
    text_delim: str = DEFAULT_TEXT_DELIM,
    **kwargs
) -> Grid:
    """Load a CSV file into a new grid."""
    grid = Grid(field_delim, text_delim)
    load(grid, path, **kwargs)
    return grid


def loads(
    content: str,
    field_delim: str = DEFAULT_FIELD_DELIM,
    text_delim: str = DEFAULT_TEXT_DELIM,
) -> Grid:
    """
    Parse CSV text into a new grid.

    Example:
        >>> loads('name,age\\nAda,36\\n').to_list()
        [['name', 'age'], ['Ada', '36']]
    """
    grid = Grid(field_delim, text_delim)
    load_into(grid, io.StringIO(content))
    return grid


def _encode_field(text: str, field_delim: str, text_delim: str) -> str:
    if text_delim in text or field_delim in text or NEWLINE in text:
        escaped = text.replace(text_delim, text_delim * 2)
        return f"{text_delim}{escaped}{text_delim}"
    return text


def dumps(grid: Grid) -> str:
    """
    Serialize ``grid`` to CSV text.

    Fields containing the text delimiter, the field delimiter or a newline
    are wrapped in the text delimiter with inner text delimiters doubled.
    There is no newline after the last row. A final row made of one empty
    field is written as an empty quoted field so that it survives a reload.
    """
    field_delim = grid.field_delim
    text_delim = grid.text_delim

    lines = [
        field_delim.join(_encode_field(text, field_delim, text_delim) for text in fields)
        for fields in grid
    ]
    if lines and lines[-1] == '' and grid.get_width(grid.height - 1) == 1:
        lines[-1] = text_delim * 2
    return NEWLINE.join(lines)


def save(path: PathLike, grid: Grid, encoding: str = DEFAULT_ENCODING) -> None:
    """
    Write ``grid`` to ``path`` as CSV, overwriting any existing file.

    Raises:
        GridWriteError: If the file cannot be written
    """
    content = dumps(grid)
    try:
        with open(path, 'w', encoding=encoding, newline='') as f:
            f.write(content)
    except (OSError, UnicodeEncodeError) as e:
        raise GridWriteError(f"Cannot write to {path}: {e}") from e
    logger.debug("Saved %d rows to %s", grid.height, path)


def count_rows(
    path: PathLike,
    field_delim: str = DEFAULT_FIELD_DELIM,
    text_delim: str = DEFAULT_TEXT_DELIM,
    encoding: str = DEFAULT_ENCODING,
) -> int:
    """Count the rows of a CSV file without building a grid."""
    rows = 0
    new_row = True
    with _open_source(path, encoding) as f:
        for _, end in tokenize(f, field_delim, text_delim):
            if new_row:
                rows += 1
            new_row = end == FieldEnd.NEW_ROW
    return rows
