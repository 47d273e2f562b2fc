from __future__ import annotations

import html
import logging
from pathlib import Path
from string import Template

from rich.columns import Columns
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .model import Contact, ReportSummary

logger = logging.getLogger(__name__)

console = Console()

_HERE = Path(__file__).resolve().parent
_STATIC = _HERE / "static"    # fixed HTML template lives here
TEMPLATE_PATH = _STATIC / "report.html"

REPORT_SUFFIX = "_report.html"
NO_PHOTO = "—"

# ── Palette ────────────────────────────────────────────────────────────────────
_ACCENT  = "#4d9fff"
_GREEN   = "#3ecf8e"
_AMBER   = "#f0a500"
_TEXT    = "#c9d1e0"
_MID     = "#8896af"
_DIM     = "#546075"
_BORDER  = "#2a3347"


# ── Data contract ──────────────────────────────────────────────────────────────

def build_summary(contacts: list[Contact]) -> ReportSummary:
    with_phones = sum(1 for c in contacts if c.has_phone)
    return ReportSummary(
        total=len(contacts),
        with_phones=with_phones,
        without_phones=len(contacts) - with_phones,
    )


def report_path_for(source: Path, output_dir: Path | None = None) -> Path:
    """<output_dir>/<source stem>_report.html (output_dir defaults to the cwd)."""
    return Path(output_dir or ".") / f"{Path(source).stem}{REPORT_SUFFIX}"


# ── HTML ───────────────────────────────────────────────────────────────────────

def _lines(values: tuple[str, ...]) -> str:
    return "<br>".join(html.escape(v) for v in values)


def _photo_cell(contact: Contact) -> str:
    uri = contact.photo_data_uri
    if uri is None:
        return NO_PHOTO
    return f'<img src="{uri}" class="thumb" alt="photo {contact.index}">'


def _render_row(c: Contact) -> str:
    cells = [
        str(c.index),
        html.escape(c.full_name),
        html.escape(c.display_structured_name),
        _lines(c.phones),
        _lines(c.emails),
        _lines(c.organizations),
        html.escape(c.title),
        _lines(c.addresses),
        _lines(c.urls),
        _lines(c.notes),
        _photo_cell(c),
    ]
    has_phone = "1" if c.has_phone else "0"
    return (
        f'<tr data-has-phone="{has_phone}">'
        + "".join(f"<td>{cell}</td>" for cell in cells)
        + "</tr>"
    )


def load_template(path: Path = TEMPLATE_PATH) -> Template:
    return Template(path.read_text(encoding="utf-8"))


def render_html(
    contacts: list[Contact],
    *,
    title: str = "Contacts",
    lang: str = "en",
    template: Template | None = None,
) -> str:
    summary = build_summary(contacts)
    tpl = template or load_template()
    return tpl.substitute(
        lang=html.escape(lang),
        title=html.escape(title),
        total=summary.total,
        with_phones=summary.with_phones,
        without_phones=summary.without_phones,
        rows="\n".join(_render_row(c) for c in contacts),
    )


def write_html_report(
    contacts: list[Contact],
    path: Path,
    *,
    title: str = "Contacts",
    lang: str = "en",
) -> ReportSummary:
    """Render and write the report; OSError from the filesystem propagates."""
    text = render_html(contacts, title=title, lang=lang)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    logger.info("Wrote report for %d contact(s) to %s", len(contacts), path)
    return build_summary(contacts)


# ── Console ────────────────────────────────────────────────────────────────────

def _stat_panel(value: str, label: str, colour: str) -> Panel:
    body = Text()
    body.append(f"{value}\n", style=f"bold {colour}")
    body.append(label, style=f"dim {_DIM}")
    return Panel(body, border_style=_BORDER, padding=(0, 2), expand=True)


def print_summary(summary: ReportSummary, out_path: Path) -> None:
    console.print()
    console.print(Text("  REPORT SUMMARY", style=f"dim {_DIM}"))
    console.print()
    console.print(Columns([
        _stat_panel(str(summary.total),          "contacts",       _ACCENT),
        _stat_panel(str(summary.with_phones),    "with phones",    _GREEN),
        _stat_panel(str(summary.without_phones), "without phones", _AMBER),
    ], equal=True, expand=True))
    console.print()

    body = Text()
    body.append("✓  Report written\n", style=f"bold {_GREEN}")
    body.append(str(out_path), style=f"dim {_MID}")
    console.print(Panel(body, border_style=_GREEN, padding=(0, 2)))


def print_contacts(contacts: list[Contact]) -> None:
    """Dump every parsed contact, one table per card."""
    for c in contacts:
        t = Table(
            title=f"Contact #{c.index}",
            title_justify="left",
            show_header=False,
            box=None,
            padding=(0, 2),
        )
        t.add_column("Field", style=f"dim {_MID}", no_wrap=True)
        t.add_column("Value", style=_TEXT)
        rows = [
            ("Full name",    c.full_name),
            ("Name",         ", ".join(c.structured_name)),
            ("Phones",       ", ".join(c.phones)),
            ("Email",        ", ".join(c.emails)),
            ("Organization", ", ".join(c.organizations)),
            ("Title",        c.title),
            ("Address",      ", ".join(c.addresses)),
            ("URL",          ", ".join(c.urls)),
            ("Notes",        ", ".join(c.notes)),
            ("Photo",        f"[base64] {len(c.photo)} bytes" if c.photo else NO_PHOTO),
        ]
        rows.extend((key, ", ".join(values)) for key, values in c.extra_fields.items())
        for label, value in rows:
            t.add_row(Text(label), Text(value))
        console.print(t)
        console.print(Text("─" * 40, style=_BORDER))
