from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)

BEGIN_MARKER = "BEGIN:VCARD"
END_MARKER = "END:VCARD"


def iter_vcard_blocks(path: Path) -> Iterator[list[str]]:
    """Yield each BEGIN:VCARD … END:VCARD region of *path* as a list of lines.

    Markers are matched on the stripped line, case-sensitively. A BEGIN seen
    while already inside a card is kept as an ordinary content line, and a
    trailing card with no END is dropped. Bytes that are not UTF-8 become U+FFFD.
    """
    current: list[str] = []
    in_card = False
    with Path(path).open("r", encoding="utf-8", errors="replace") as fh:
        for raw in fh:
            line = raw.rstrip("\r\n")
            stripped = line.strip()
            if not in_card:
                if stripped == BEGIN_MARKER:
                    in_card = True
                    current = [line]
                continue
            current.append(line)
            if stripped == END_MARKER:
                in_card = False
                yield current
    if in_card:
        logger.debug("%s: dropped unterminated card (%d line(s))", path, len(current))


def read_vcard_blocks(path: Path) -> list[list[str]]:
    """Read every card block from *path*; I/O errors propagate with no partial result."""
    blocks = list(iter_vcard_blocks(path))
    logger.debug("%s: %d card block(s)", path, len(blocks))
    return blocks
