"""
Text post-processing — style tag stripping and paragraph normalisation.

Applied to interpreted text after conversion. The interpreter itself
never collapses breaks.
"""

import re

# Scrivener paragraph style markers, e.g. <$Scr_H::1> ... <!$Scr_H::1>
_STYLE_TAG_RE = re.compile(r"<!?\$Scr.*?>")

# Two or more consecutive blank lines
_BLANK_RUN_RE = re.compile(r"\n{3,}")


def strip_style_tags(text: str) -> str:
    """Remove Scrivener style tags such as <$Scr_Ps::0> from `text`."""
    return _STYLE_TAG_RE.sub("", text)


def normalize_paragraphs(text: str) -> str:
    """
    Tidy line structure of converted text.

    - Trailing whitespace is stripped from every line.
    - Runs of blank lines collapse to a single blank line.
    - Leading and trailing blank lines are removed.
    """
    lines = [line.rstrip() for line in text.split("\n")]
    joined = _BLANK_RUN_RE.sub("\n\n", "\n".join(lines))
    return joined.strip("\n")


def split_paragraphs(text: str) -> list[str]:
    """Non-empty lines of `text`, in order."""
    return [line for line in text.split("\n") if line.strip()]
