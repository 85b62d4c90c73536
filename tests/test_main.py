"""
Tests for the command-line entry point.
"""

import logging

import pytest
import yaml

from funnelsort import main as cli

from conftest import FakeInferenceClient, write_file


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    root = logging.getLogger("funnelsort")
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()


@pytest.fixture
def config_file(temp_dir):
    path = temp_dir / "funnelsort.yaml"
    with open(path, 'w', encoding='utf-8') as f:
        yaml.dump({"logging": {"console_output": False}}, f)
    return path


class TestMain:
    """Tests for main()."""

    def test_sort_without_ai(self, temp_dir, config_file, capsys):
        root = temp_dir / "inbox"
        write_file(root / "logo.svg", b"<svg/>")
        write_file(root / "notes.md", b"n")
        write_file(root / "blob.dat", b"?")

        code = cli.main([str(root), "--config", str(config_file), "--no-ai"])

        assert code == 0
        assert (root / "01_Brand_Identity" / "logo.svg").exists()
        assert (root / "06_Research_Notes" / "notes.md").exists()
        assert (root / "99_Unsorted" / "blob.dat").exists()
        out = capsys.readouterr().out
        assert "Funnel Breakdown" in out
        assert "Found 3 files" in out

    def test_missing_directory(self, temp_dir, config_file):
        code = cli.main([str(temp_dir / "missing"), "--config", str(config_file), "--no-ai"])

        assert code == 1

    def test_no_directory_prints_help(self, config_file, capsys):
        assert cli.main(["--config", str(config_file)]) == 2
        assert "usage" in capsys.readouterr().out

    def test_bad_config(self, temp_dir):
        path = temp_dir / "bad.yaml"
        path.write_text("funnel: {concurrency: lots}\n", encoding="utf-8")

        assert cli.main([str(temp_dir), "--config", str(path)]) == 2

    def test_check(self, config_file, monkeypatch, capsys):
        monkeypatch.setattr(cli, "OllamaClient", lambda **kwargs: FakeInferenceClient())

        assert cli.main(["--check", "--config", str(config_file)]) == 0
        out = capsys.readouterr().out
        assert "✓ phi3" in out
        assert "✓ llava" in out

    def test_check_engine_down(self, config_file, monkeypatch):
        client = FakeInferenceClient()
        client.running = False
        monkeypatch.setattr(cli, "OllamaClient", lambda **kwargs: client)

        assert cli.main(["--check", "--config", str(config_file)]) == 1

    def test_pull(self, config_file, monkeypatch, capsys):
        monkeypatch.setattr(cli, "OllamaClient", lambda **kwargs: FakeInferenceClient())

        assert cli.main(["--pull", "phi3", "--config", str(config_file)]) == 0
        out = capsys.readouterr().out
        assert "100%" in out
        assert "Pulled phi3" in out
