"""
Test suite for the command line interface
"""
import json

import pytest

from formfill import main as cli
from formfill.schemas.document import IdentityRecord
from formfill.services.extraction_service import ExtractionError


RECORD = IdentityRecord(name="Ravi Kumar", dob="15/08/1990", gender="Male", id_number="234512345678")


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keep the test run's log handlers untouched."""
    monkeypatch.setattr(cli, "configure_logging", lambda: None)


@pytest.fixture
def fake_ocr(monkeypatch):
    """Return a fixed record instead of running OCR."""
    paths = []

    async def process_identity_card(self, file_path):
        paths.append(file_path)
        return RECORD

    monkeypatch.setattr(cli.OCRService, "process_identity_card", process_identity_card)
    return paths


class TestCommands:
    """Test each sub-command."""

    def test_templates(self, capsys):
        """Test listing built-in templates."""
        assert cli.main(["templates"]) == 0
        out = capsys.readouterr().out
        assert "jan-dhan" in out
        assert "pm-kisan" in out

    def test_match(self, capsys):
        """Test label matching output."""
        assert cli.main(["match", "S/O", "xyz123"]) == 0
        out = capsys.readouterr().out
        assert "S/O: father_name (0.85)" in out
        assert "xyz123: no match" in out

    def test_extract(self, capsys, fake_ocr):
        """Test that the identity record is printed as JSON."""
        assert cli.main(["extract", "card.png"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["name"] == "Ravi Kumar"
        assert data["id_number"] == "234512345678"
        assert fake_ocr == ["card.png"]

    def test_fill_json(self, capsys, fake_ocr):
        """Test the JSON preview of a pre-filled form."""
        assert cli.main(["fill", "card.png", "--template", "jan-dhan", "--json"]) == 0
        captured = capsys.readouterr()
        data = json.loads(captured.out)
        assert data["template_id"] == "jan-dhan"
        assert data["rows"][0]["value"] == "Ravi Kumar"
        assert "Still required: Father's Name" in captured.err

    def test_fill_text(self, capsys, fake_ocr):
        """Test the plain-text preview."""
        assert cli.main(["fill", "card.png", "--template", "pm-kisan"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("PM-Kisan Scheme Registration")
        assert "Ravi Kumar  (auto-filled)" in out


class TestErrors:
    """Test failure handling."""

    def test_extraction_error(self, capsys, monkeypatch):
        """Test that extraction failures exit with status 1 and the user message."""
        async def process_identity_card(self, file_path):
            raise ExtractionError(detail="engine failed")

        monkeypatch.setattr(cli.OCRService, "process_identity_card", process_identity_card)
        assert cli.main(["extract", "card.png"]) == 1
        assert "Could not read the identity card" in capsys.readouterr().err

    def test_unknown_template(self, capsys):
        """Test that argparse rejects unknown templates."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["fill", "card.png", "--template", "passport"])
        assert exc_info.value.code == 2

    def test_command_required(self):
        """Test that a sub-command is mandatory."""
        with pytest.raises(SystemExit):
            cli.main([])


if __name__ == "__main__":
    pytest.main(["-v", __file__])
