"""RTF to plain text conversion: tokenizer, control tables and interpreter."""

from scry.rtf.control import DestinationKind
from scry.rtf.interpreter import ConversionResult, Interpreter, convert
from scry.rtf.tokenizer import Tokenizer, tokenize

__all__ = [
    "ConversionResult",
    "DestinationKind",
    "Interpreter",
    "Tokenizer",
    "convert",
    "tokenize",
]
