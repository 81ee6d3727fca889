"""Integration tests for CLI commands."""

from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from modulemap_cli import config_manager
from modulemap_cli.cli import app
from modulemap_cli.errors import OracleError

from conftest import ScriptedClient


runner = CliRunner()


@pytest.fixture
def scripted(monkeypatch, sample_replies):
    """Route ``generate`` through a scripted oracle."""
    client = ScriptedClient(sample_replies)
    monkeypatch.setattr("modulemap_cli.cli.create_client", lambda *args, **kwargs: client)
    return client


class TestGenerateCommand:
    """Tests for 'modmap generate'."""

    def test_generate_writes_map(self, scripted, sample_project_path: Path, temp_dir: Path):
        """Test generating a map for the sample project."""
        output = temp_dir / "map.yml"

        result = runner.invoke(app, ["generate", str(sample_project_path), "-o", str(output)])

        assert result.exit_code == 0
        assert "generated successfully" in result.stdout
        assert "Total modules analyzed: 5" in result.stdout
        assert output.exists()
        data = yaml.safe_load(output.read_text(encoding="utf-8"))
        assert list(data["modules"]) == [
            "app/index.ts",
            "app/log.ts",
            "app/user-controller.ts",
            "app/user-service.ts",
            "app/user.ts",
        ]

    def test_generate_with_workers(self, scripted, sample_project_path: Path, temp_dir: Path):
        """Test generating with several workers."""
        output = temp_dir / "map.yml"

        result = runner.invoke(
            app, ["generate", str(sample_project_path), "-o", str(output), "--workers", "3"]
        )

        assert result.exit_code == 0
        data = yaml.safe_load(output.read_text(encoding="utf-8"))
        assert "app/index.ts" in data["modules"]["app/log.ts"]["callers"]

    def test_missing_root(self, scripted, temp_dir: Path):
        """Test a missing project root exits with an error."""
        result = runner.invoke(app, ["generate", str(temp_dir / "nope"), "-o", str(temp_dir / "map.yml")])

        assert result.exit_code == 1
        assert "Error generating module map" in result.stdout
        assert not (temp_dir / "map.yml").exists()

    def test_oracle_failure_aborts(self, scripted, sample_project_path: Path, temp_dir: Path):
        """Test an oracle failure aborts without writing a map."""
        scripted.by_file["app/user.ts"] = OracleError("quota exceeded")
        output = temp_dir / "map.yml"

        result = runner.invoke(app, ["generate", str(sample_project_path), "-o", str(output)])

        assert result.exit_code == 1
        assert "Error generating module map" in result.stdout
        assert not output.exists()

    def test_skip_reports_incomplete_map(self, scripted, sample_project_path: Path, temp_dir: Path):
        """Test skip mode writes the map and warns it is incomplete."""
        scripted.by_file["app/user.ts"] = OracleError("quota exceeded")
        output = temp_dir / "map.yml"

        result = runner.invoke(
            app, ["generate", str(sample_project_path), "-o", str(output), "--on-error", "skip"]
        )

        assert result.exit_code == 0
        assert "incomplete" in result.stdout
        data = yaml.safe_load(output.read_text(encoding="utf-8"))
        assert "app/user.ts" in data["skipped"]

    def test_invalid_error_policy(self, scripted, sample_project_path: Path, temp_dir: Path):
        """Test an unknown --on-error value is rejected."""
        result = runner.invoke(
            app, ["generate", str(sample_project_path), "-o", str(temp_dir / "m.yml"), "--on-error", "retry"]
        )

        assert result.exit_code != 0


def test_version():
    """Test --version prints the version."""
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "ModuleMap CLI v" in result.stdout


class TestLLMCommands:
    """Tests for set-llm, show-llm and unset-llm."""

    def test_set_llm_with_key(self):
        """Test setting a provider with an explicit key."""
        result = runner.invoke(app, ["set-llm", "groq", "-k", "gsk-secret-key"])

        assert result.exit_code == 0
        assert "LLM provider set to: groq" in result.stdout
        cfg = config_manager.load_config()
        assert cfg["provider"] == "groq"
        assert cfg["api_key"] == "gsk-secret-key"
        assert cfg["model"] == config_manager.DEFAULT_CONFIGS["groq"]["model"]

    def test_set_llm_prompts_for_missing_key(self):
        """Test the key is prompted for when missing."""
        result = runner.invoke(app, ["set-llm", "openai"], input="sk-typed\n")

        assert result.exit_code == 0
        assert config_manager.load_config()["api_key"] == "sk-typed"

    def test_set_llm_keyless_provider(self):
        """Test a local provider needs no key."""
        result = runner.invoke(app, ["set-llm", "ollama", "-m", "qwen2.5-coder:7b"])

        assert result.exit_code == 0
        cfg = config_manager.load_config()
        assert cfg["model"] == "qwen2.5-coder:7b"
        assert cfg.get("api_key", "") == ""

    def test_set_llm_unknown_provider(self):
        """Test an unknown provider writes nothing."""
        result = runner.invoke(app, ["set-llm", "skynet", "-k", "x"])

        assert result.exit_code == 1
        assert not config_manager.CONFIG_FILE.exists()

    def test_show_llm_masks_key(self):
        """Test show-llm masks the API key."""
        runner.invoke(app, ["set-llm", "groq", "-k", "gsk-1234567890abcdef"])

        result = runner.invoke(app, ["show-llm"])

        assert result.exit_code == 0
        assert "GROQ" in result.stdout
        assert "gsk-1234567890abcdef" not in result.stdout

    def test_unset_llm(self):
        """Test unset-llm removes the llm section."""
        runner.invoke(app, ["set-llm", "groq", "-k", "gsk-1"])

        result = runner.invoke(app, ["unset-llm"])

        assert result.exit_code == 0
        assert "llm" not in config_manager.load_full_config()

    def test_unset_llm_without_config(self):
        """Test unset-llm without a config file."""
        result = runner.invoke(app, ["unset-llm"])

        assert result.exit_code == 0
        assert "Nothing to unset" in result.stdout
