from __future__ import annotations

import base64
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Contact:
    index: int
    full_name: str = ""
    structured_name: tuple[str, ...] = ()   # N components: family;given;additional;prefix;suffix
    phones: tuple[str, ...] = ()
    emails: tuple[str, ...] = ()
    organizations: tuple[str, ...] = ()
    title: str = ""
    addresses: tuple[str, ...] = ()
    urls: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()
    photo: bytes | None = None
    extra_fields: dict[str, tuple[str, ...]] = field(default_factory=dict)  # unrecognised props

    @property
    def has_phone(self) -> bool:
        return bool(self.phones)

    @property
    def display_structured_name(self) -> str:
        return " ".join(part for part in self.structured_name if part)

    @property
    def photo_data_uri(self) -> str | None:
        if not self.photo:
            return None
        return "data:image/jpeg;base64," + base64.b64encode(self.photo).decode("ascii")


@dataclass(frozen=True)
class ReportSummary:
    total: int
    with_phones: int
    without_phones: int
