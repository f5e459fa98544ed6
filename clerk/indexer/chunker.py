"""Split document text into bounded-length chunks on blank-line boundaries."""

import re
from typing import List

MAX_CHUNK_CHARS = 2000

# A newline, any horizontal/vertical whitespace, then another newline
BLANK_LINE_RE = re.compile(r"\n\s*\n")


def split_into_chunks(text: str, max_chars: int = MAX_CHUNK_CHARS) -> List[str]:
    """
    Split ``text`` on one or more blank lines.

    Segments are stripped, empty ones dropped, and each is truncated to
    ``max_chars`` characters. Order follows the source text.
    """
    if not text:
        return []

    chunks = []
    for segment in BLANK_LINE_RE.split(text):
        segment = segment.strip()
        if segment:
            chunks.append(segment[:max_chars])
    return chunks
