"""Text normalization for extracted document text.

Uploaded PDFs and text files carry layout debris that hurts embeddings:
form feeds, page counters, running headers in capitals, separator rules.
:func:`normalize_document_text` strips that debris and collapses the
result to a single line of space-separated words, ready for chunking.

The passes run in a fixed order; later passes rely on the line structure
left behind by earlier ones.
"""

import re

_LINE_BREAKS = re.compile(r"[\f\r]")
_MULTI_NEWLINE = re.compile(r"\n{3,}")
_LINE_EDGE_WHITESPACE = re.compile(r"^\s+|\s+$", re.MULTILINE)
_PAGE_COUNTER = re.compile(r"^Page \d+ of \d+$", re.IGNORECASE | re.MULTILINE)
_DIGIT_LINE = re.compile(r"^\d+\s*$", re.MULTILINE)
_UPPERCASE_LINE = re.compile(r"^[A-Z\s]+\s*$", re.MULTILINE)
_SEPARATOR_LINE = re.compile(r"^\s*[-_=*]+\s*$", re.MULTILINE)
_WHITESPACE_RUN = re.compile(r"\s+")

# (pattern, replacement) in application order.
_PASSES: list[tuple[re.Pattern[str], str]] = [
    (_LINE_BREAKS, "\n"),
    (_MULTI_NEWLINE, "\n\n"),
    (_LINE_EDGE_WHITESPACE, ""),
    (_PAGE_COUNTER, ""),
    (_DIGIT_LINE, ""),
    (_UPPERCASE_LINE, ""),
    (_SEPARATOR_LINE, ""),
]


def normalize_document_text(raw: str) -> str:
    """Clean raw extracted text into a single whitespace-normalized string.

    Parameters
    ----------
    raw:
        Text as it came out of the extractor.  Anything that is not a
        non-empty string yields ``""``.

    Returns
    -------
    str
        The cleaned text.  Applying the function to its own output leaves
        it unchanged.
    """
    if not raw or not isinstance(raw, str):
        return ""

    cleaned = _clean_once(raw)
    # Joining lines can form a new debris line ("Page 1" + "of 2").
    while True:
        again = _clean_once(cleaned)
        if again == cleaned:
            return cleaned
        cleaned = again


def _clean_once(text: str) -> str:
    for pattern, replacement in _PASSES:
        text = pattern.sub(replacement, text)
    return _WHITESPACE_RUN.sub(" ", text).strip()
