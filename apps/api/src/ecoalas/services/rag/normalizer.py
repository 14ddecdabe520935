from __future__ import annotations

import re
import unicodedata

# Word characters already cover accented letters, digits and underscore.
_DISALLOWED = re.compile(r"[^\w\s.,!?;:()\-–—°\"/+#$%&*=\[\]{}<>|\\]")
_DISALLOWED_INLINE = re.compile(r"[^\w .,!?;:()\-–—°\"/+#$%&*=\[\]{}<>|\\]")
_HORIZONTAL_SPACE = re.compile(r"[ \t]+")
_EXTRA_NEWLINES = re.compile(r"\n{3,}")
_SPACE_AROUND_NEWLINE = re.compile(r" *\n *")
_LETTER_RUN = re.compile(r"[^\W\d_]{3,}")


def clean_text(text: str | None) -> str:
    if not text:
        return ""

    cleaned = text.replace("\r\n", "\n").replace("\r", "\n")
    cleaned = _DISALLOWED.sub("", cleaned)
    cleaned = _HORIZONTAL_SPACE.sub(" ", cleaned.replace("\f", " ").replace("\v", " "))
    cleaned = _SPACE_AROUND_NEWLINE.sub("\n", cleaned)
    cleaned = _EXTRA_NEWLINES.sub("\n\n", cleaned)
    return cleaned.strip()


def strip_disallowed(line: str) -> str:
    """Remove characters outside the allow-list from a single line."""
    return _DISALLOWED_INLINE.sub("", line)


def fold_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def tokenize(text: str | None) -> set[str]:
    if not text:
        return set()
    folded = fold_diacritics(text.lower())
    return set(_LETTER_RUN.findall(folded))
