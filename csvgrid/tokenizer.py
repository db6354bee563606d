"""
CSV field tokenizer.

Reads one field at a time from a character stream and reports what follows
it: another field on the same row, a new row, or the end of the input.
"""

import enum
from typing import Iterator, Optional, TextIO, Tuple

from .errors import GridStateError, GridValidationError

DEFAULT_FIELD_DELIM = ','
DEFAULT_TEXT_DELIM = '"'
NEWLINE = '\n'

DEFAULT_CHUNK_SIZE = 64 * 1024

# Tokenizer states
_PLAIN = 0
_QUOTED = 1
_QUOTED_MAYBE_END = 2


class FieldEnd(enum.IntEnum):
    """What follows a field that has just been read."""

    SAME_ROW = 0
    NEW_ROW = 1
    END_OF_INPUT = 2


def validate_delimiters(field_delim: str, text_delim: str) -> None:
    """
    Check a field/text delimiter pair.

    Raises:
        GridValidationError: If either delimiter is not a single character,
            if they are equal, or if either one is a newline.
    """
    for name, value in (('Field delimiter', field_delim), ('Text delimiter', text_delim)):
        if not isinstance(value, str):
            raise GridValidationError(
                f"{name} must be a str, got {type(value).__name__}"
            )
        if not value:
            raise GridValidationError(f"{name} cannot be empty")
        if len(value) > 1:
            raise GridValidationError(
                f"{name} must be a single character, got '{value}' "
                f"(length {len(value)}). Multi-character delimiters are not supported."
            )
        if value == NEWLINE:
            raise GridValidationError(f"{name} cannot be a newline")

    if field_delim == text_delim:
        raise GridValidationError(
            f"Field delimiter and text delimiter cannot be the same ('{field_delim}')"
        )


class PushbackReader:
    """
    Character reader over a text stream with a single pushback slot.

    Characters are pulled from the stream in chunks and handed out one at a
    time. ``read()`` returns an empty string once the stream is exhausted.
    """

    def __init__(self, stream: TextIO, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size < 1:
            raise GridValidationError(f"chunk_size must be positive, got {chunk_size}")
        self._stream = stream
        self._chunk_size = chunk_size
        self._buffer = ''
        self._pos = 0
        self._pending: Optional[str] = None

    def read(self) -> str:
        if self._pending is not None:
            ch, self._pending = self._pending, None
            return ch
        if self._pos >= len(self._buffer):
            self._buffer = self._stream.read(self._chunk_size)
            self._pos = 0
            if not self._buffer:
                return ''
        ch = self._buffer[self._pos]
        self._pos += 1
        return ch

    def unread(self, ch: str) -> None:
        """Push ``ch`` back so the next ``read()`` returns it."""
        if self._pending is not None:
            raise GridStateError("Pushback slot is already occupied")
        if ch:
            self._pending = ch

    def peek(self) -> str:
        ch = self.read()
        self.unread(ch)
        return ch

    def at_end(self) -> bool:
        return self.peek() == ''


class Tokenizer:
    """
    Character-at-a-time CSV field reader.

    Quoted fields may contain the field delimiter and newlines verbatim, and a
    doubled text delimiter stands for one literal text delimiter. Anything
    between a closing quote and the next field delimiter, newline or end of
    input is discarded.
    """

    def __init__(self, field_delim: str = DEFAULT_FIELD_DELIM,
                 text_delim: str = DEFAULT_TEXT_DELIM):
        validate_delimiters(field_delim, text_delim)
        self.field_delim = field_delim
        self.text_delim = text_delim

    def read_field(self, reader: PushbackReader) -> Tuple[str, FieldEnd]:
        """
        Read the next field from ``reader``.

        Returns:
            The decoded field text and the ``FieldEnd`` that follows it. The
            reader is left at the start of the next field (or row).
        """
        field_delim = self.field_delim
        text_delim = self.text_delim

        chars = []
        state = _PLAIN
        while True:
            ch = reader.read()
            if not ch:
                break
            if state == _PLAIN:
                if ch == text_delim:
                    state = _QUOTED
                    chars = []
                elif ch == field_delim or ch == NEWLINE:
                    break
                else:
                    chars.append(ch)
            elif state == _QUOTED:
                if ch == text_delim:
                    state = _QUOTED_MAYBE_END
                else:
                    chars.append(ch)
            else:
                if ch == text_delim:
                    chars.append(ch)
                    state = _QUOTED
                else:
                    break

        text = ''.join(chars)

        # Skip trailing characters after a closing quote
        while ch and ch != field_delim and ch != NEWLINE:
            ch = reader.read()

        if ch == field_delim:
            return text, FieldEnd.SAME_ROW
        if ch == NEWLINE:
            # A newline right before the end of input only terminates the line
            if reader.at_end():
                return text, FieldEnd.END_OF_INPUT
            return text, FieldEnd.NEW_ROW
        return text, FieldEnd.END_OF_INPUT


def tokenize(
    stream: TextIO,
    field_delim: str = DEFAULT_FIELD_DELIM,
    text_delim: str = DEFAULT_TEXT_DELIM,
) -> Iterator[Tuple[str, FieldEnd]]:
    """
    Yield ``(text, FieldEnd)`` pairs for every field in ``stream``.

    The last pair yielded carries ``FieldEnd.END_OF_INPUT``. An empty stream
    yields nothing.

    Example:
        >>> import io
        >>> list(tokenize(io.StringIO('a,b\\nc')))
        [('a', <FieldEnd.SAME_ROW: 0>), ('b', <FieldEnd.NEW_ROW: 1>), ('c', <FieldEnd.END_OF_INPUT: 2>)]
    """
    tokenizer = Tokenizer(field_delim, text_delim)
    reader = PushbackReader(stream)
    if reader.at_end():
        return
    while True:
        text, end = tokenizer.read_field(reader)
        yield text, end
        if end == FieldEnd.END_OF_INPUT:
            return
