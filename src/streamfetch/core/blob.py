"""Extraction of brace-balanced JSON objects embedded in markup."""

import logging
from typing import Sequence

from .errors import ExtractionNotFound

logger = logging.getLogger(__name__)

# Tried in order; pages have used every spelling across versions. The
# bare assignment is a substring of the declaration, so the declaration goes first.
PLAYER_RESPONSE_ANCHORS = (
    "var ytInitialPlayerResponse = {",
    "ytInitialPlayerResponse = {",
    "ytInitialPlayerResponse={",
)


def extract_json_blob(document: str, anchors: Sequence[str] = PLAYER_RESPONSE_ANCHORS) -> str:
    """
    Return the ``{...}`` span that follows the first anchor found in ``document``.

    Braces are counted without regard to string literals or comments, so a
    ``}`` inside a JSON string value can end the span early. Pages in the wild
    escape such characters, which keeps the simple count usable.

    Raises:
        ExtractionNotFound: no anchor occurs, or the braces never balance.
    """
    if not document:
        raise ExtractionNotFound("Document is empty")

    anchor_pos = -1
    for anchor in anchors:
        anchor_pos = document.find(anchor)
        if anchor_pos != -1:
            logger.debug(f"Found anchor {anchor!r} at offset {anchor_pos}")
            break
    if anchor_pos == -1:
        raise ExtractionNotFound(f"None of the anchors {list(anchors)} occur in the document")

    start = document.find("{", anchor_pos)
    if start == -1:
        raise ExtractionNotFound("No opening brace after anchor")

    depth = 0
    for i in range(start, len(document)):
        ch = document[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return document[start:i + 1]

    raise ExtractionNotFound(f"Unbalanced braces: object starting at offset {start} never closes")
