"""Tests for the fragments command line."""

import json
import os
from unittest.mock import patch

import pytest
import structlog

from fragments import __main__ as cli
from tests.fixtures.samples import SAMPLE_CSV, make_image


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Send log lines nowhere so stdout carries only converted bytes."""
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)
    structlog.configure(logger_factory=structlog.ReturnLoggerFactory())
    with patch.dict(os.environ, {}, clear=True):
        yield
    structlog.reset_defaults()


class TestFormats:
    def test_lists_extensions(self, capsys) -> None:
        assert cli.main(["formats", "text/markdown"]) == 0
        assert capsys.readouterr().out.split() == ["md", "html", "txt"]

    def test_parameters_ignored(self, capsys) -> None:
        assert cli.main(["formats", "text/plain; charset=utf-8"]) == 0
        assert capsys.readouterr().out.split() == ["txt"]

    def test_unsupported(self, capsys) -> None:
        assert cli.main(["formats", "application/pdf"]) == 1
        assert "Unsupported type" in capsys.readouterr().err


class TestCheckType:
    def test_supported(self, capsys) -> None:
        assert cli.main(["check-type", "image/png"]) == 0
        assert capsys.readouterr().out.strip() == "supported"

    def test_unsupported(self, capsys) -> None:
        assert cli.main(["check-type", "text/"]) == 1
        assert capsys.readouterr().out.strip() == "unsupported"


class TestConvert:
    def test_to_output_file(self, tmp_path) -> None:
        source = tmp_path / "data.csv"
        source.write_bytes(SAMPLE_CSV)
        target = tmp_path / "data.json"

        code = cli.main(["convert", str(source), "--type", "text/csv", "--to", "json", "--output", str(target)])

        assert code == 0
        assert json.loads(target.read_bytes())[1] == {"name": "Bob", "age": "25"}

    def test_to_stdout(self, tmp_path, capsysbinary) -> None:
        source = tmp_path / "doc.md"
        source.write_bytes(b"# Hello")

        assert cli.main(["convert", str(source), "--type", "text/markdown", "--to", "html"]) == 0
        assert capsysbinary.readouterr().out == b"<h1>Hello</h1>\n"

    def test_image(self, tmp_path) -> None:
        source = tmp_path / "img.png"
        source.write_bytes(make_image("PNG"))
        target = tmp_path / "img.jpg"

        assert cli.main(["convert", str(source), "--type", "image/png", "--to", "jpg", "--output", str(target)]) == 0
        assert target.read_bytes()[:2] == b"\xff\xd8"

    def test_unsupported_target(self, tmp_path, capsys) -> None:
        source = tmp_path / "a.txt"
        source.write_bytes(b"hi")
        assert cli.main(["convert", str(source), "--type", "text/plain", "--to", "png"]) == 1
        assert "Cannot convert text/plain to png" in capsys.readouterr().err

    def test_conversion_error(self, tmp_path, capsys) -> None:
        source = tmp_path / "bad.json"
        source.write_bytes(b"{broken")
        assert cli.main(["convert", str(source), "--type", "application/json", "--to", "yaml"]) == 1
        assert "Conversion error" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys) -> None:
        missing = tmp_path / "nope.md"
        assert cli.main(["convert", str(missing), "--type", "text/markdown", "--to", "html"]) == 1
        assert "Cannot read" in capsys.readouterr().err

    def test_to_is_required(self) -> None:
        with pytest.raises(SystemExit):
            cli.main(["convert", "x", "--type", "text/plain"])
