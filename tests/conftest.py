from __future__ import annotations

from pathlib import Path

import pytest

TWO_CARDS = (
    "BEGIN:VCARD\n"
    "VERSION:2.1\n"
    "FN:Alice Example\n"
    "TEL;TYPE=CELL:12345\n"
    "END:VCARD\n"
    "BEGIN:VCARD\n"
    "VERSION:2.1\n"
    "FN:Bob Example\n"
    "EMAIL:bob@example.com\n"
    "END:VCARD\n"
)


@pytest.fixture
def write_vcf(tmp_path: Path):
    """Write text to <tmp_path>/<name> and return the path."""
    def _write(text: str, name: str = "contacts.vcf") -> Path:
        p = tmp_path / name
        p.write_text(text, encoding="utf-8")
        return p
    return _write


@pytest.fixture
def two_cards_vcf(write_vcf) -> Path:
    return write_vcf(TWO_CARDS)
