"""
RTF interpreter — turn a token stream into plain text per destination.

A single pass over the tokens with an explicit stack of group frames.
Each frame carries the destination its text is routed to (body,
annotation, comment or skip) plus the inherited decoding state.

Conversion is best-effort: a MarkupFormatError raised by the tokenizer
or detected here is recorded on the result, and the text decoded up to
that point is kept.

Scrivener annotations written as escaped text only become visible after
decoding; finish() moves them from the body to the annotation buffer.
"""

import codecs
import logging
from dataclasses import dataclass, field, replace
from typing import Iterable

from scry.config import (
    CODEPAGE_ALIASES,
    DEFAULT_CODEC,
    DEFAULT_UC_SKIP,
    DEFAULT_UNICODE_FALLBACK,
)
from scry.errors import MarkupFormatError
from scry.rtf.control import (
    CHARACTER_SYMBOLS,
    CHARACTER_WORDS,
    CHARSET_WORDS,
    DESTINATIONS,
    ESCAPED_ANNOTATION_CLOSE,
    ESCAPED_ANNOTATION_OPEN,
    ESCAPED_ANNOTATION_TEXT,
    SCRIVENER_ANNOTATION_END,
    SCRIVENER_ANNOTATION_START,
    SCRIVENER_ANNOTATION_TEXT,
    DestinationKind,
)
from scry.rtf.tokenizer import (
    BinarySkip,
    ControlSymbol,
    ControlWord,
    GroupEnd,
    GroupStart,
    MarkupToken,
    Text,
    Tokenizer,
)

logger = logging.getLogger(__name__)

_SIDE_DESTINATIONS = frozenset({DestinationKind.ANNOTATION, DestinationKind.COMMENT})

# Words handled directly by the interpreter rather than through a table
_HANDLED_WORDS = frozenset({
    "u", "uc", "ansicpg", "bin", "field", "fldrslt", "rtf",
    SCRIVENER_ANNOTATION_START, SCRIVENER_ANNOTATION_TEXT, SCRIVENER_ANNOTATION_END,
})

# ──────────────────────────────────────────────
# Data structures
# ──────────────────────────────────────────────


@dataclass
class Frame:
    """State of one open group. Child groups start from a copy."""

    kind: DestinationKind = DestinationKind.BODY
    codec: str = DEFAULT_CODEC
    uc_skip: int = DEFAULT_UC_SKIP
    # Scrivener inline annotation: None, "attributes", "text" or "closed"
    annotation_phase: str | None = None


@dataclass
class ConversionResult:
    """Plain text per destination kind, plus any recovered format errors."""

    buffers: dict[DestinationKind, str] = field(default_factory=dict)
    errors: list[MarkupFormatError] = field(default_factory=list)

    def text(self, kind: DestinationKind) -> str:
        return self.buffers.get(kind, "")

    @property
    def body(self) -> str:
        return self.text(DestinationKind.BODY)

    @property
    def annotation(self) -> str:
        return self.text(DestinationKind.ANNOTATION)

    @property
    def comment(self) -> str:
        return self.text(DestinationKind.COMMENT)

    @property
    def ok(self) -> bool:
        return not self.errors


def codec_for_codepage(codepage: int | None) -> str:
    """Map an RTF \\ansicpg number to a Python codec name (cp1252 if unknown)."""
    if codepage is None:
        return DEFAULT_CODEC

    name = CODEPAGE_ALIASES.get(codepage, f"cp{codepage}")
    try:
        return codecs.lookup(name).name
    except LookupError:
        logger.debug("Unknown codepage %s, using %s", codepage, DEFAULT_CODEC)
        return DEFAULT_CODEC


# ──────────────────────────────────────────────
# Interpreter
# ──────────────────────────────────────────────


class Interpreter:
    """
    Converts RTF bytes to plain text.

    The interpreter holds configuration only; every call to convert()
    runs on fresh state, so one instance can be shared between threads.
    """

    def __init__(self, fallback_char: str = DEFAULT_UNICODE_FALLBACK) -> None:
        self.fallback_char = fallback_char

    def convert(self, data: bytes) -> ConversionResult:
        """Tokenize and interpret `data`, returning one buffer per destination."""
        return self.interpret(Tokenizer(data))

    def interpret(self, tokens: Iterable[MarkupToken]) -> ConversionResult:
        """Interpret an already-tokenized stream (any iterable of tokens)."""
        run = _Conversion(self.fallback_char)
        try:
            for token in tokens:
                run.feed(token)
        except MarkupFormatError as e:
            logger.debug("Markup error, keeping partial text: %s", e)
            run.errors.append(e)
        return run.finish()


def convert(data: bytes, fallback_char: str = DEFAULT_UNICODE_FALLBACK) -> ConversionResult:
    """Convert RTF bytes to plain text with a one-off Interpreter."""
    return Interpreter(fallback_char).convert(data)


class _Conversion:
    """Mutable state for a single conversion."""

    def __init__(self, fallback_char: str) -> None:
        self.fallback_char = fallback_char
        self.stack: list[Frame] = [Frame()]
        self.errors: list[MarkupFormatError] = []
        self.buffers: dict[DestinationKind, list[str]] = {DestinationKind.BODY: []}

        # Undecoded bytes waiting for a change of destination or codec
        self._pending = bytearray()
        self._pending_kind = DestinationKind.BODY
        self._pending_codec = DEFAULT_CODEC

        self._skip = 0                      # fallback characters left to drop after \u
        self._high_surrogate: int | None = None
        self._high_surrogate_kind = DestinationKind.BODY
        self._ignorable = False             # last token was \*
        self._strip_equals = False          # Scrivener "\text=" separator pending

    @property
    def top(self) -> Frame:
        return self.stack[-1]

    # ── Token dispatch ──

    def feed(self, token: MarkupToken) -> None:
        ignorable, self._ignorable = self._ignorable, False

        if isinstance(token, Text):
            self._text(token.data)
        elif isinstance(token, ControlWord):
            self._control_word(token, ignorable)
        elif isinstance(token, ControlSymbol):
            self._control_symbol(token)
        elif isinstance(token, GroupStart):
            self._skip = 0
            self._flush_surrogate()
            self.stack.append(replace(self.top))
        elif isinstance(token, GroupEnd):
            self._skip = 0
            self._flush_surrogate()
            if len(self.stack) == 1:
                self.errors.append(MarkupFormatError("unbalanced group close"))
            else:
                self.stack.pop()
        elif isinstance(token, BinarySkip):
            self._skip = 0

    def _text(self, data: bytes) -> None:
        if self._skip:
            dropped = min(self._skip, len(data))
            self._skip -= dropped
            data = data[dropped:]

        if self._strip_equals and data:
            self._strip_equals = False
            if data.startswith(b"="):
                data = data[1:]

        if data:
            self._write_bytes(data)

    def _control_word(self, word: ControlWord, ignorable: bool) -> None:
        name, param = word.name, word.parameter
        top = self.top

        if name == "u":
            self._unicode(param or 0)
            return

        self._skip = 0

        if name in DESTINATIONS:
            self._set_destination(DESTINATIONS[name])
        elif name in CHARACTER_WORDS:
            self._write_text(CHARACTER_WORDS[name])
        elif name in CHARSET_WORDS:
            top.codec = CHARSET_WORDS[name]
        elif name == "ansicpg":
            top.codec = codec_for_codepage(param)
        elif name == "uc":
            top.uc_skip = max(param, 0) if param is not None else DEFAULT_UC_SKIP
        elif name == SCRIVENER_ANNOTATION_START:
            self._start_scrivener_annotation()
        elif name == SCRIVENER_ANNOTATION_TEXT and top.annotation_phase == "attributes":
            top.annotation_phase = "text"
            self._switch(DestinationKind.ANNOTATION)
            self._strip_equals = True
        elif name == SCRIVENER_ANNOTATION_END and top.annotation_phase == "text":
            top.annotation_phase = "closed"
            self._flush_pending()
            top.kind = DestinationKind.SKIP
        elif ignorable and name not in _HANDLED_WORDS:
            # \* before a word we do not know: an ignorable destination
            self._set_destination(DestinationKind.SKIP)

    def _control_symbol(self, symbol: ControlSymbol) -> None:
        if symbol.symbol == "'":
            if self._skip:
                self._skip -= 1
                return
            self._write_bytes(bytes([symbol.parameter or 0]))
            return

        self._skip = 0

        if symbol.symbol == "*":
            self._ignorable = True
        elif symbol.symbol in CHARACTER_SYMBOLS:
            self._write_text(CHARACTER_SYMBOLS[symbol.symbol])

    # ── Destinations ──

    def _set_destination(self, kind: DestinationKind) -> None:
        """Route the current group to `kind`. A skipped group stays skipped."""
        if self.top.kind is DestinationKind.SKIP:
            return
        self._switch(kind)

    def _switch(self, kind: DestinationKind) -> None:
        top = self.top
        self._flush_pending()

        if kind in _SIDE_DESTINATIONS and kind is not top.kind:
            # Each side region starts on its own line
            parts = self.buffers.setdefault(kind, [])
            if parts and not parts[-1].endswith("\n"):
                parts.append("\n")

        top.kind = kind

    def _start_scrivener_annotation(self) -> None:
        top = self.top
        if top.kind is DestinationKind.SKIP:
            return
        self._flush_pending()
        top.kind = DestinationKind.SKIP
        top.annotation_phase = "attributes"

    # ── Unicode ──

    def _unicode(self, value: int) -> None:
        code = value + 0x10000 if value < 0 else value
        self._skip = 0

        if 0xD800 <= code <= 0xDBFF:
            self._flush_surrogate()
            self._high_surrogate = code
            self._high_surrogate_kind = self.top.kind
        elif 0xDC00 <= code <= 0xDFFF:
            if self._high_surrogate is None:
                self._write_text(self.fallback_char)
            else:
                high, self._high_surrogate = self._high_surrogate, None
                combined = 0x10000 + ((high - 0xD800) << 10) + (code - 0xDC00)
                self._write_text(chr(combined))
        elif code > 0x10FFFF:
            self._write_text(self.fallback_char)
        else:
            self._write_text(chr(code))

        self._skip = self.top.uc_skip

    def _flush_surrogate(self) -> None:
        """Emit the fallback for a high surrogate that never found its pair."""
        if self._high_surrogate is not None:
            self._high_surrogate = None
            self._flush_pending()
            self._append(self._high_surrogate_kind, self.fallback_char)

    # ── Output ──

    def _write_bytes(self, data: bytes) -> None:
        top = self.top
        if top.kind is DestinationKind.SKIP:
            return

        self._flush_surrogate()
        if self._pending and (
            top.kind is not self._pending_kind or top.codec != self._pending_codec
        ):
            self._flush_pending()

        self._pending_kind = top.kind
        self._pending_codec = top.codec
        self._pending.extend(data)

    def _write_text(self, text: str) -> None:
        kind = self.top.kind
        if kind is DestinationKind.SKIP:
            return

        self._flush_surrogate()
        self._flush_pending()
        self._append(kind, text)

    def _flush_pending(self) -> None:
        if not self._pending:
            return
        text = bytes(self._pending).decode(self._pending_codec, errors="replace")
        self._pending.clear()
        self._append(self._pending_kind, text)

    def _append(self, kind: DestinationKind, text: str) -> None:
        if kind is DestinationKind.SKIP:
            return
        parts = self.buffers.setdefault(kind, [])
        if text:
            parts.append(text)

    def finish(self) -> ConversionResult:
        self._flush_surrogate()
        self._flush_pending()
        buffers = {kind: "".join(parts) for kind, parts in self.buffers.items()}

        body, annotations = split_escaped_annotations(buffers[DestinationKind.BODY])
        if annotations:
            buffers[DestinationKind.BODY] = body
            existing = buffers.get(DestinationKind.ANNOTATION, "")
            buffers[DestinationKind.ANNOTATION] = "\n".join(
                [existing.rstrip("\n")] + annotations if existing else annotations
            )
        return ConversionResult(buffers=buffers, errors=self.errors)


def split_escaped_annotations(text: str) -> tuple[str, list[str]]:
    """
    Pull Scrivener annotations written as escaped text out of `text`.

    Scrivener sometimes stores an inline annotation as literal characters
    in the document, so after decoding the text contains
    ``{\\Scrv_annot <attributes> \\text=<note>\\end_Scrv_annot}``. The whole
    marker span is dropped from the returned text; each note is returned
    separately. An unclosed annotation runs to the end of the text. An
    opener with no ``\\text=`` is left alone.
    """
    kept: list[str] = []
    annotations: list[str] = []
    pos = 0

    while True:
        start = text.find(ESCAPED_ANNOTATION_OPEN, pos)
        if start < 0:
            break
        marker = text.find(ESCAPED_ANNOTATION_TEXT, start + len(ESCAPED_ANNOTATION_OPEN))
        if marker < 0:
            break

        kept.append(text[pos:start])
        note_start = marker + len(ESCAPED_ANNOTATION_TEXT)
        end = text.find(ESCAPED_ANNOTATION_CLOSE, note_start)
        if end < 0:
            annotations.append(text[note_start:])
            pos = len(text)
            break
        annotations.append(text[note_start:end])
        pos = end + len(ESCAPED_ANNOTATION_CLOSE)

    if not annotations:
        return text, []
    kept.append(text[pos:])
    return "".join(kept), annotations
