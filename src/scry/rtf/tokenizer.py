"""
RTF tokenizer — lex a raw byte buffer into markup tokens.

Tokens are produced lazily. Iterating a Tokenizer a second time starts
again from the first byte.

Recognised constructs:
- Control words: backslash + ASCII letters, optional signed decimal
  parameter, optional single delimiting space (consumed).
- Control symbols: backslash + one non-letter. Escaped braces and
  backslashes come back as literal Text; \\'hh carries its byte as the
  symbol parameter.
- Group delimiters: { and }.
- \\binN: the next N raw bytes are skipped as an opaque run.
- Everything else is literal text. Bare CR/LF bytes are not text.
"""

from dataclasses import dataclass
from typing import Iterator, Union

from scry.config import MAX_CONTROL_WORD_LEN, PARAMETER_MAX, PARAMETER_MIN
from scry.errors import MarkupFormatError

# ──────────────────────────────────────────────
# Tokens
# ──────────────────────────────────────────────


@dataclass(frozen=True)
class ControlWord:
    """A control word such as \\par or \\ansicpg1252."""

    name: str
    parameter: int | None = None


@dataclass(frozen=True)
class ControlSymbol:
    """A backslash followed by a single non-letter character."""

    symbol: str
    parameter: int | None = None


@dataclass(frozen=True)
class GroupStart:
    pass


@dataclass(frozen=True)
class GroupEnd:
    pass


@dataclass(frozen=True)
class Text:
    """A run of literal bytes."""

    data: bytes


@dataclass(frozen=True)
class BinarySkip:
    """An opaque \\bin run; the bytes themselves are never interpreted."""

    length: int


MarkupToken = Union[ControlWord, ControlSymbol, GroupStart, GroupEnd, Text, BinarySkip]

# ──────────────────────────────────────────────
# Lexing
# ──────────────────────────────────────────────

_BACKSLASH = ord("\\")
_OPEN = ord("{")
_CLOSE = ord("}")
_CR = ord("\r")
_LF = ord("\n")
_SPACE = ord(" ")
_MINUS = ord("-")
_UNDERSCORE = ord("_")
_QUOTE = ord("'")

_LITERAL_ESCAPES = frozenset(b"\\{}")
_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")

# Scrivener writes annotation markers as \Scrv_annot ... \end_Scrv_annot
_EXTENDED_WORD_PREFIXES = ("Scrv", "end")


def _is_letter(byte: int) -> bool:
    return 65 <= byte <= 90 or 97 <= byte <= 122


def _is_digit(byte: int) -> bool:
    return 48 <= byte <= 57


class Tokenizer:
    """Restartable, lazy token stream over an RTF byte buffer."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)

    def __iter__(self) -> Iterator[MarkupToken]:
        data = self._data
        size = len(data)
        pos = 0
        depth = 0
        text = bytearray()

        while pos < size:
            byte = data[pos]

            if byte == _BACKSLASH:
                try:
                    token, pos = self._read_control(pos)
                except MarkupFormatError:
                    if text:
                        yield Text(bytes(text))
                    raise
                if isinstance(token, Text):
                    text.extend(token.data)
                    continue

                if text:
                    yield Text(bytes(text))
                    text.clear()

                if isinstance(token, ControlWord) and token.name == "bin":
                    length = token.parameter or 0
                    if length < 0 or pos + length > size:
                        raise MarkupFormatError(
                            f"binary run of {length} bytes overruns input", pos
                        )
                    yield BinarySkip(length)
                    pos += length
                    continue

                yield token

            elif byte == _OPEN or byte == _CLOSE:
                if text:
                    yield Text(bytes(text))
                    text.clear()
                if byte == _OPEN:
                    depth += 1
                    yield GroupStart()
                else:
                    depth = max(depth - 1, 0)
                    yield GroupEnd()
                pos += 1

            elif byte == _CR or byte == _LF:
                pos += 1

            else:
                text.append(byte)
                pos += 1

        if text:
            yield Text(bytes(text))

        if depth > 0:
            raise MarkupFormatError(f"{depth} unterminated group(s) at end of input", size)

    def _read_control(self, start: int) -> tuple[MarkupToken, int]:
        """Lex the control construct beginning at the backslash at `start`."""
        data = self._data
        size = len(data)
        pos = start + 1

        if pos >= size:
            raise MarkupFormatError("trailing backslash at end of input", start)

        byte = data[pos]

        if not _is_letter(byte):
            # Control symbol
            if byte in _LITERAL_ESCAPES:
                return Text(bytes([byte])), pos + 1

            if byte == _QUOTE:
                hex_digits = data[pos + 1:pos + 3]
                if len(hex_digits) < 2 or not all(b in _HEX_DIGITS for b in hex_digits):
                    raise MarkupFormatError("malformed \\' hex escape", start)
                return ControlSymbol("'", int(hex_digits, 16)), pos + 3

            if byte == _CR or byte == _LF:
                return ControlSymbol("\n"), pos + 1

            return ControlSymbol(chr(byte)), pos + 1

        # Control word
        name_start = pos
        while pos < size and _is_letter(data[pos]):
            pos += 1
        if pos - name_start > MAX_CONTROL_WORD_LEN:
            raise MarkupFormatError(
                f"control word longer than {MAX_CONTROL_WORD_LEN} letters", start
            )
        name = data[name_start:pos].decode("ascii")

        if name in _EXTENDED_WORD_PREFIXES and pos < size and data[pos] == _UNDERSCORE:
            while pos < size and (_is_letter(data[pos]) or data[pos] == _UNDERSCORE):
                pos += 1
            name = data[name_start:pos].decode("ascii")

        parameter = None
        digits_start = pos
        if pos < size and data[pos] == _MINUS and pos + 1 < size and _is_digit(data[pos + 1]):
            pos += 1
        if pos < size and _is_digit(data[pos]):
            while pos < size and _is_digit(data[pos]):
                pos += 1
            parameter = int(data[digits_start:pos])
            if not PARAMETER_MIN <= parameter <= PARAMETER_MAX:
                raise MarkupFormatError(
                    f"parameter of \\{name} out of range: {parameter}", start
                )
        else:
            pos = digits_start

        if pos < size and data[pos] == _SPACE:
            pos += 1

        return ControlWord(name, parameter), pos


def tokenize(data: bytes) -> Iterator[MarkupToken]:
    """Convenience wrapper: iterate the tokens of `data` once."""
    return iter(Tokenizer(data))
