from __future__ import annotations

import base64
import binascii
import logging
import quopri
import re
from pathlib import Path
from typing import Iterable

from .io import read_vcard_blocks
from .model import Contact

logger = logging.getLogger(__name__)

# Order matters: properties are dispatched on the first key that matches.
RECOGNIZED_KEYS = ("FN", "N", "TEL", "EMAIL", "ORG", "TITLE", "ADR", "URL", "NOTE", "PHOTO", "END")

KEY_MATCHING_MODES = ("prefix", "exact")

# ── Property-line detection ────────────────────────────────────────────────────
#
# Besides the recognised keys, a physical line opens a new logical line when it
# starts with another vCard 2.1/3.0/4.0 property name or an X- extension
# followed by ";" or ":", or with an Apple-style "itemN." group prefix.
# Anything else (including lines with leading whitespace) is a continuation.

_OTHER_PROPERTIES = (
    "BEGIN", "VERSION", "NICKNAME", "BDAY", "ANNIVERSARY", "GENDER", "LABEL",
    "MAILER", "TZ", "GEO", "ROLE", "LOGO", "AGENT", "CATEGORIES", "PRODID",
    "REV", "SORT-STRING", "SOUND", "UID", "CLASS", "KEY", "SOURCE", "KIND",
    "XML", "IMPP", "LANG", "MEMBER", "RELATED", "FBURL", "CALADRURI", "CALURI",
    "CLIENTPIDMAP", "NAME", "PROFILE",
)
_PROPERTY_LINE = re.compile(
    r"^(?:item\d+\.[A-Z]|(?:X-[A-Z0-9-]+|" + "|".join(map(re.escape, _OTHER_PROPERTIES)) + r")[;:])",
    re.IGNORECASE,
)

# Bare control characters are not valid quoted-printable; a stray "=" is kept literally.
_QP_INVALID = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

_PHOTO_STRIP = str.maketrans("", "", "\r\n ")


def _starts_logical_line(line: str) -> bool:
    upper = line.upper()
    if any(upper.startswith(k) for k in RECOGNIZED_KEYS):
        return True
    return _PROPERTY_LINE.match(line) is not None


def unfold_lines(lines: Iterable[str]) -> list[str]:
    """Reassemble folded property lines.

    A line that does not open a property is appended (stripped) to the
    previous logical line, after removing one trailing "=" soft break from it.
    A leading BEGIN:VCARD marker is not part of the output.
    """
    lines = list(lines)
    if lines and lines[0].strip().upper() == "BEGIN:VCARD":
        lines = lines[1:]

    out: list[str] = []
    for line in lines:
        if out and not _starts_logical_line(line):
            prev = out[-1]
            if prev.endswith("="):
                prev = prev[:-1]
            out[-1] = prev + line.strip()
        else:
            out.append(line)
    return out


def split_property(line: str) -> tuple[str, str] | None:
    """Split a logical line into (KEY;PARAMS, value), or None if it carries no property."""
    line = line.strip()
    if not line or line.startswith("BEGIN") or line.startswith("END"):
        return None
    key, sep, value = line.partition(":")
    if not sep:
        logger.debug("Dropped line without ':' separator: %r", line[:60])
        return None
    return key.upper(), value.strip()


def decode_quoted_printable(value: str) -> str:
    """Decode a quoted-printable value as UTF-8, returning *value* unchanged if it is malformed."""
    if value == "=" or _QP_INVALID.search(value):
        logger.debug("Not valid quoted-printable, kept raw: %r", value[:60])
        return value
    try:
        return quopri.decodestring(value.encode("utf-8")).decode("utf-8")
    except (ValueError, UnicodeDecodeError):
        logger.debug("Quoted-printable payload is not UTF-8, kept raw: %r", value[:60])
        return value


def decode_photo(value: str) -> bytes | None:
    """Base64-decode a PHOTO value (empty payload gives b""), or None if it is not base64."""
    data = value.translate(_PHOTO_STRIP)
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        logger.debug("PHOTO payload is not valid base64 (%d chars), ignored", len(data))
        return None


def _key_matcher(key: str, key_matching: str):
    if key_matching == "exact":
        name = key.split(";", 1)[0].rsplit(".", 1)[-1]
        return lambda k: name == k
    return key.startswith


def parse_block(block: Iterable[str], index: int, *, key_matching: str = "prefix") -> Contact:
    """Build one Contact from the raw lines of a single card.

    Keys are dispatched in the order FN, N, TEL, EMAIL, ORG, TITLE, ADR, URL,
    NOTE, PHOTO. With "prefix" matching a key is routed to the first entry it
    starts with, so NOTE and NICKNAME land in the structured name. "exact"
    compares the property name without parameters or group.
    """
    if key_matching not in KEY_MATCHING_MODES:
        raise ValueError(f"key_matching must be one of {KEY_MATCHING_MODES}, got {key_matching!r}")

    full_name = ""
    structured_name: list[str] = []
    title = ""
    photo: bytes | None = None
    phones: list[str] = []
    emails: list[str] = []
    organizations: list[str] = []
    addresses: list[str] = []
    urls: list[str] = []
    notes: list[str] = []
    extra: dict[str, list[str]] = {}

    for line in unfold_lines(block):
        prop = split_property(line)
        if prop is None:
            continue
        key, value = prop
        is_ = _key_matcher(key, key_matching)

        if is_("FN"):
            full_name = decode_quoted_printable(value)
        elif is_("N"):
            structured_name = decode_quoted_printable(value).split(";")
        elif is_("TEL"):
            phones.append(value)
        elif is_("EMAIL"):
            emails.append(value)
        elif is_("ORG"):
            organizations.append(decode_quoted_printable(value))
        elif is_("TITLE"):
            title = decode_quoted_printable(value)
        elif is_("ADR"):
            addresses.append(decode_quoted_printable(value))
        elif is_("URL"):
            urls.append(value)
        elif is_("NOTE"):
            notes.append(decode_quoted_printable(value))
        elif is_("PHOTO"):
            decoded = decode_photo(value)
            if decoded is not None:
                photo = decoded
        else:
            extra.setdefault(key, []).append(value)

    return Contact(
        index=index,
        full_name=full_name,
        structured_name=tuple(structured_name),
        phones=tuple(phones),
        emails=tuple(emails),
        organizations=tuple(organizations),
        title=title,
        addresses=tuple(addresses),
        urls=tuple(urls),
        notes=tuple(notes),
        photo=photo,
        extra_fields={k: tuple(v) for k, v in extra.items()},
    )


def parse_contacts(blocks: Iterable[Iterable[str]], *, key_matching: str = "prefix") -> list[Contact]:
    return [parse_block(b, i, key_matching=key_matching) for i, b in enumerate(blocks, 1)]


def load_contacts(path: Path, *, key_matching: str = "prefix") -> list[Contact]:
    """Segment and parse every card in *path*."""
    contacts = parse_contacts(read_vcard_blocks(path), key_matching=key_matching)
    logger.info("Parsed %d contact(s) from %s", len(contacts), path)
    return contacts
