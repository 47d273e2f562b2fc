from __future__ import annotations

import logging
from pathlib import Path

from rich.logging import RichHandler
from typer.testing import CliRunner

from vcf_report import cli
from vcf_report.cli import app
from vcf_report.config import load_settings

runner = CliRunner()


def test_no_argument_prints_usage():
    result = runner.invoke(app, [])
    assert result.exit_code == 0
    assert "Usage" in result.output


def test_writes_report_to_cwd(two_cards_vcf: Path, tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(app, [str(two_cards_vcf)])
    assert result.exit_code == 0, result.output
    assert "Total contacts: 2" in result.output
    report = tmp_path / "contacts_report.html"
    text = report.read_text(encoding="utf-8")
    assert '<span id="total">2</span>' in text
    assert '<span id="withPhones">1</span>' in text
    assert '<span id="withoutPhones">1</span>' in text


def test_output_dir_and_title(two_cards_vcf: Path, tmp_path: Path):
    out_dir = tmp_path / "reports"
    result = runner.invoke(app, [str(two_cards_vcf), "-o", str(out_dir), "--title", "Team"])
    assert result.exit_code == 0, result.output
    assert "<title>Team</title>" in (out_dir / "contacts_report.html").read_text(encoding="utf-8")


def test_empty_file_gives_empty_report(write_vcf, tmp_path: Path):
    path = write_vcf("nothing to see\n", name="empty.vcf")
    result = runner.invoke(app, [str(path), "-o", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert '<span id="total">0</span>' in (tmp_path / "empty_report.html").read_text(encoding="utf-8")


def test_exact_key_matching_option(write_vcf, tmp_path: Path):
    path = write_vcf("BEGIN:VCARD\nN:Doe;Jo\nNOTE:remember me\nEND:VCARD\n")
    result = runner.invoke(app, [str(path), "-o", str(tmp_path), "--key-matching", "exact"])
    assert result.exit_code == 0, result.output
    text = (tmp_path / "contacts_report.html").read_text(encoding="utf-8")
    assert "<td>Doe Jo</td>" in text
    assert "<td>remember me</td>" in text


def test_config_file_is_applied(two_cards_vcf: Path, tmp_path: Path):
    conf = tmp_path / "conf.toml"
    out_dir = tmp_path / "from-config"
    conf.write_text(f'title = "Configured"\noutput_dir = "{out_dir.as_posix()}"\n', encoding="utf-8")
    result = runner.invoke(app, [str(two_cards_vcf), "--config", str(conf)])
    assert result.exit_code == 0, result.output
    assert "<title>Configured</title>" in (out_dir / "contacts_report.html").read_text(encoding="utf-8")


def test_bad_key_matching_is_usage_error(two_cards_vcf: Path, tmp_path: Path):
    result = runner.invoke(app, [str(two_cards_vcf), "-o", str(tmp_path), "--key-matching", "fuzzy"])
    assert result.exit_code == 2
    assert not (tmp_path / "contacts_report.html").exists()


def test_missing_input_exits_nonzero(tmp_path: Path):
    result = runner.invoke(app, [str(tmp_path / "missing.vcf"), "-o", str(tmp_path)])
    assert result.exit_code == 1
    assert "Error reading VCF" in result.output
    assert list(tmp_path.iterdir()) == []


def test_unwritable_output_exits_nonzero(two_cards_vcf: Path, tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a folder", encoding="utf-8")
    result = runner.invoke(app, [str(two_cards_vcf), "-o", str(blocker)])
    assert result.exit_code == 1
    assert "Error generating HTML" in result.output


def test_dump_prints_contacts(two_cards_vcf: Path, tmp_path: Path):
    result = runner.invoke(app, [str(two_cards_vcf), "-o", str(tmp_path), "--dump"])
    assert result.exit_code == 0, result.output
    assert "Contact #1" in result.output
    assert "Bob Example" in result.output


def test_write_config(tmp_path: Path):
    conf = tmp_path / "vcf-report.toml"
    result = runner.invoke(app, ["--write-config", str(conf)])
    assert result.exit_code == 0, result.output
    assert conf.exists()


def test_non_utf8_input_still_reported(tmp_path: Path):
    path = tmp_path / "latin1.vcf"
    path.write_bytes(b"BEGIN:VCARD\nFN:Jos\xe9\nTEL:1\nEND:VCARD\n")
    result = runner.invoke(app, [str(path), "-o", str(tmp_path)])
    assert result.exit_code == 0, result.output
    text = (tmp_path / "latin1_report.html").read_text(encoding="utf-8")
    assert '<span id="withPhones">1</span>' in text
    assert "Jos\ufffd" in text


def test_logging_ready_before_config_is_read(two_cards_vcf: Path, tmp_path: Path, monkeypatch):
    seen: list[list[type]] = []

    def _load(path):
        seen.append([type(h) for h in logging.getLogger("vcf_report").handlers])
        return load_settings(path)

    monkeypatch.setattr(cli, "load_settings", _load)
    result = runner.invoke(app, [str(two_cards_vcf), "-o", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert seen == [[RichHandler]]


def test_directory_config_does_not_crash(two_cards_vcf: Path, tmp_path: Path):
    result = runner.invoke(app, [str(two_cards_vcf), "-o", str(tmp_path), "--config", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "contacts_report.html").exists()
