"""
Move notation: "0".."8" or algebraic "a1".."c3" (a1 = top-left, rows go down).
Notes:
- Parsing never consults a board; legality is checked separately with board.is_legal.
- Errors are returned as ParseError values so an interactive caller can report and retry.
- A leading sign is not a digit, so "-1" is an invalid format rather than out of range.
"""
from enum import IntEnum
from typing import Optional, TextIO, Union


class ParseError(IntEnum):
    INVALID_FORMAT = -1
    OUT_OF_RANGE = -2
    EOF = -3


COLUMNS = "abc"
ROWS = "123"


def parse_move(text: Optional[str]) -> Union[int, ParseError]:
    if text is None:
        return ParseError.INVALID_FORMAT
    s = text.lstrip()
    if not s:
        return ParseError.INVALID_FORMAT
    if s[0].isdecimal() and s[0].isascii():
        end = 0
        while end < len(s) and s[end].isascii() and s[end].isdecimal():
            end += 1
        value = int(s[:end])
        if not 0 <= value <= 8:
            return ParseError.OUT_OF_RANGE
        return value
    token = s.rstrip()
    if len(token) != 2:
        return ParseError.INVALID_FORMAT
    col, row = token[0].lower(), token[1]
    if col not in COLUMNS or row not in ROWS:
        return ParseError.INVALID_FORMAT
    return (int(row) - 1) * 3 + COLUMNS.index(col)


def read_move(stream: TextIO) -> Union[int, ParseError]:
    """Read one line from ``stream``; an exhausted stream yields ParseError.EOF."""
    line = stream.readline()
    if not line:
        return ParseError.EOF
    return parse_move(line)


def format_square(square: int) -> str:
    if not 0 <= square <= 8:
        raise ValueError(f"Square out of range: {square}")
    return f"{COLUMNS[square % 3]}{square // 3 + 1}"
