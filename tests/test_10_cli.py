"""Tests for the ipa-server command line tool."""
from __future__ import annotations

import json

import pytest

from conftest import FakeProvider
from ipa_server import cli


def _json_line(out: str) -> dict:
    lines = [line for line in out.splitlines() if line.startswith("{")]
    return json.loads(lines[-1])


@pytest.fixture
def fake_polly(monkeypatch):
    provider = FakeProvider()
    monkeypatch.setattr(cli, "get_provider", lambda config: provider)
    return provider


class TestLanguages:
    """--languages output."""

    def test_lists_table(self, capsys):
        """--languages prints names and Polly codes."""
        assert cli.main(["--languages"]) == 0
        out = capsys.readouterr().out
        assert "Standard German" in out
        assert "de-AT" in out

    def test_json(self, capsys):
        """--languages --json maps all 22 names to keys."""
        assert cli.main(["--languages", "--json"]) == 0
        table = _json_line(capsys.readouterr().out)
        assert table["Hindi and Urdu"] == "hi"
        assert len(table) == 22


class TestDryRun:
    """--dry-run resolves without synthesis."""

    def test_dry_run(self, capsys):
        """--dry-run resolves without calling Polly."""
        code = cli.main(["--ipa", "kæt", "--language", "English", "--dry-run", "--json"])
        assert code == 0
        out = capsys.readouterr().out
        assert "DRY_RUN_OK" in out
        payload = _json_line(out)
        assert payload["key"] == "en"
        assert payload["dry_run"] is True

    def test_dry_run_unknown_language(self, capsys):
        """--dry-run reports unsupported languages with exit code 1."""
        code = cli.main(["--ipa", "kæt", "--language", "Klingon", "--dry-run", "--json"])
        assert code == 1
        payload = _json_line(capsys.readouterr().out)
        assert payload["message"] == "Language Klingon is unsupported"

    def test_dry_run_needs_input(self, capsys):
        """--dry-run without --ipa is a usage error."""
        assert cli.main(["--dry-run"]) == 2


class TestSynthesis:
    """Synthesis and voice listing against a fake provider."""

    def test_writes_audio(self, tmp_path, capsys, fake_polly):
        """--out receives the synthesized audio."""
        out_path = tmp_path / "cat.ogg"
        code = cli.main(["--ipa", "kæt", "--language", "English", "--out", str(out_path), "--json"])
        assert code == 0
        assert out_path.read_bytes() == fake_polly.audio
        payload = _json_line(capsys.readouterr().out)
        assert payload["bytes"] == len(fake_polly.audio)
        assert payload["speaker"] in {"Joanna", "Brian", "Aditi"}

    def test_rejected_request(self, tmp_path, fake_polly):
        """Rejected requests exit 1 and write nothing."""
        out_path = tmp_path / "x.ogg"
        code = cli.main(["--ipa", "", "--language", "English", "--out", str(out_path)])
        assert code == 1
        assert not out_path.exists()
        assert fake_polly.calls == []

    def test_voices(self, capsys, fake_polly):
        """--voices prints the inventory for the chosen region."""
        assert cli.main(["--voices", "--json", "--region", "us-east-1"]) == 0
        payload = _json_line(capsys.readouterr().out)
        assert payload["region"] == "us-east-1"
        assert payload["voices"]["en"] == ["Joanna", "Brian", "Aditi"]

    def test_startup_failure(self, monkeypatch, capsys):
        """A catalog failure exits 1 with STARTUP_FAILURE."""
        monkeypatch.setattr(cli, "get_provider", lambda config: FakeProvider(fail_describe=True))
        assert cli.main(["--voices", "--json"]) == 1
        assert _json_line(capsys.readouterr().out)["error"] == "STARTUP_FAILURE"

    def test_no_action(self, fake_polly):
        """No action flag is a usage error."""
        assert cli.main([]) == 2


class TestRegionOverride:
    """--region handling."""

    def test_with_region(self):
        """--region replaces provider.region and keeps other keys."""
        from ipa_server.core.config import Settings

        settings = cli._with_region(Settings(raw={"provider": {"engine": "standard"}}), "ca-central-1")
        assert settings.region == "ca-central-1"
        assert settings.raw["provider"]["engine"] == "standard"

    def test_without_region(self):
        """Without --region the settings are returned as-is."""
        from ipa_server.core.config import Settings

        settings = Settings(raw={})
        assert cli._with_region(settings, None) is settings
