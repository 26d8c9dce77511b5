"""TextReader: character reader with pushback and mark/reset.

Codecs read one character at a time and need to look ahead without
consuming: ``classify`` must leave the reader where it found it.  The
reader keeps a pushback stack in front of the underlying stream and can
record everything read since a ``mark()`` so ``reset()`` can push it back.
"""

from __future__ import annotations

import io
from collections.abc import Callable, Generator
from contextlib import contextmanager
from typing import TextIO

from transmute.domain.errors import ParseError


class TextReader:
    """Pushback reader over a string or a text stream.

    ``read`` returns ``""`` at end of input, like :meth:`io.TextIOBase.read`.
    """

    def __init__(self, source: str | TextIO) -> None:
        self._stream: TextIO = io.StringIO(source) if isinstance(source, str) else source
        self._pushback: list[str] = []
        self._marks: list[list[str]] = []
        self._offset = 0

    @property
    def offset(self) -> int:
        """Number of characters consumed so far."""
        return self._offset

    def _next(self) -> str:
        if self._pushback:
            return self._pushback.pop()
        return self._stream.read(1)

    def peek(self) -> str:
        """Next character without consuming it (``""`` at end of input)."""
        char = self._next()
        if char:
            self._pushback.append(char)
        return char

    def read(self, count: int = 1) -> str:
        """Consume up to *count* characters."""
        chars: list[str] = []
        for _ in range(count):
            char = self._next()
            if not char:
                break
            chars.append(char)
        if chars:
            self._offset += len(chars)
            for recording in self._marks:
                recording.extend(chars)
        return "".join(chars)

    def unread(self, text: str) -> None:
        """Push *text* back so it is read again next."""
        if not text:
            return
        self._pushback.extend(reversed(text))
        self._offset -= len(text)
        for recording in self._marks:
            del recording[-len(text) :]

    def mark(self) -> None:
        """Start recording consumed characters.  Marks nest."""
        self._marks.append([])

    def reset(self) -> None:
        """Push back everything read since the innermost ``mark()``."""
        if not self._marks:
            raise RuntimeError("reset() without a matching mark()")
        recorded = self._marks.pop()
        self.unread("".join(recorded))

    def release(self) -> None:
        """Drop the innermost mark, keeping what was read."""
        if not self._marks:
            raise RuntimeError("release() without a matching mark()")
        self._marks.pop()

    @contextmanager
    def lookahead(self) -> Generator[TextReader]:
        """Read freely inside the block; the position is restored on exit."""
        self.mark()
        try:
            yield self
        finally:
            self.reset()

    def skip_whitespace(self) -> None:
        while self.peek().isspace():
            self.read()

    def read_while(self, predicate: Callable[[str], bool]) -> str:
        chars: list[str] = []
        while (char := self.peek()) and predicate(char):
            chars.append(self.read())
        return "".join(chars)

    def expect(self, literal: str) -> str:
        """Consume *literal* exactly.

        Raises:
            ParseError: The input does not continue with *literal*.
        """
        start = self._offset
        found = self.read(len(literal))
        if found != literal:
            raise ParseError(
                f"Expected {literal!r} at offset {start}, found {found or 'end of input'!r}",
                detail={"offset": start, "expected": literal, "found": found},
            )
        return found

    def read_all(self) -> str:
        """Consume and return the rest of the input."""
        head = "".join(reversed(self._pushback))
        self._pushback.clear()
        rest = head + self._stream.read()
        if rest:
            self._offset += len(rest)
            for recording in self._marks:
                recording.extend(rest)
        return rest

    def at_end(self) -> bool:
        return self.peek() == ""
