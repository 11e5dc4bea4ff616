"""
Tests for the CLI interface.
"""
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from ai_cost_compare.cli.main import app, EXIT_CODE_PASS, EXIT_CODE_FAIL, _resolve_model
from ai_cost_compare.core.catalog import FormatError

runner = CliRunner()


@pytest.fixture
def pricing_file(tmp_path, sample_tsv):
    """Write the sample dataset to a temporary TSV file."""
    path = tmp_path / "pricing.tsv"
    path.write_text(sample_tsv, encoding="utf-8")
    return str(path)


class TestCLI:
    """Test CLI commands."""

    def test_no_command_prints_hint(self):
        result = runner.invoke(app, [])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Use --help" in result.output

    def test_estimate_text_output(self, pricing_file):
        """Test the reference single-model scenario."""
        result = runner.invoke(app, [
            "estimate", "--pricing", pricing_file,
            "--model", "OpenAI | gpt-5", "--input", "1,000,000", "--output", "500,000",
            "--format", "text"
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Input cost: $1.25 / month" in result.output
        assert "Output cost: $5.00 / month" in result.output
        assert "Total: $6.25 / month" in result.output

    def test_estimate_annual_csv(self, pricing_file):
        result = runner.invoke(app, [
            "estimate", "-p", pricing_file, "-m", "OpenAI | gpt-5",
            "-i", "1000000", "-o", "500000", "--annual", "-f", "csv"
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert '"OpenAI","gpt-5",1000000,500000,1.25,10,15.00,60.00,75.00,,,"year"' in result.output

    def test_estimate_with_discount(self, pricing_file):
        result = runner.invoke(app, [
            "estimate", "-p", pricing_file, "-m", "0",
            "-i", "1000000", "-o", "500000", "--discount", "20", "-f", "markdown"
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert "- **AIsa estimate (illustrative, 20%)**: $5.00 / month" in result.output

    def test_estimate_display_output(self, pricing_file):
        result = runner.invoke(app, [
            "estimate", "-p", pricing_file, "-m", "gemini",
            "-i", "1000000", "-o", "500000"
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Google | gemini-2.5-pro" in result.output
        assert "$9.00" in result.output

    def test_estimate_preset(self, pricing_file):
        result = runner.invoke(app, [
            "estimate", "-p", pricing_file, "-m", "gpt-5-mini",
            "--preset", "50/50", "-f", "text"
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Monthly input tokens: 5,000,000" in result.output
        assert "Total: $11.25 / month" in result.output

    def test_estimate_unknown_preset(self, pricing_file):
        result = runner.invoke(app, [
            "estimate", "-p", pricing_file, "-m", "gpt-5-mini", "--preset", "90/10"
        ])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Unknown preset" in result.output

    def test_estimate_missing_tokens_hint(self, pricing_file):
        """Empty token fields produce a hint, not a crash."""
        result = runner.invoke(app, ["estimate", "-p", pricing_file, "-m", "gpt-5-mini"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Enter your token usage." in result.output

    def test_estimate_ambiguous_model(self, pricing_file):
        result = runner.invoke(app, ["estimate", "-p", pricing_file, "-m", "openai"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "matches 2 models" in result.output

    def test_estimate_writes_export(self, pricing_file, tmp_path):
        out = tmp_path / "estimate.csv"
        result = runner.invoke(app, [
            "estimate", "-p", pricing_file, "-m", "gpt-5-mini",
            "-i", "1000000", "-o", "1000000", "-f", "csv", "--out", str(out)
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert out.read_text(encoding="utf-8").strip().endswith(',2.25,,,"month"')

    def test_export_failure_is_not_fatal(self, pricing_file, tmp_path):
        out = tmp_path / "missing-dir" / "estimate.txt"
        result = runner.invoke(app, [
            "estimate", "-p", pricing_file, "-m", "gpt-5-mini",
            "-i", "1", "-o", "1", "-f", "text", "--out", str(out)
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Could not write export" in result.output

    def test_invalid_format(self, pricing_file):
        result = runner.invoke(app, [
            "estimate", "-p", pricing_file, "-m", "gpt-5-mini", "-f", "xlsx"
        ])
        assert result.exit_code == EXIT_CODE_FAIL

    def test_compare_positive_delta(self, pricing_file):
        result = runner.invoke(app, [
            "compare", "-p", pricing_file, "-a", "OpenAI | gpt-5", "-b", "gemini",
            "-i", "1000000", "-o", "500000", "-f", "text"
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Delta (B - A): +$2.75 / month" in result.output

    def test_compare_negative_delta_csv(self, pricing_file):
        result = runner.invoke(app, [
            "compare", "-p", pricing_file, "-a", "gemini", "-b", "OpenAI | gpt-5",
            "-i", "1000000", "-o", "500000", "-f", "csv"
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert '"Google","gemini-2.5-pro",9.00,"OpenAI","gpt-5",6.25,-2.75,"month"' in result.output

    def test_models_lists_catalog(self, pricing_file):
        result = runner.invoke(app, ["models", "-p", pricing_file])

        assert result.exit_code == EXIT_CODE_PASS
        assert "4 models" in result.output
        assert "claude-sonnet-4.5" in result.output

    def test_models_no_matches(self, pricing_file):
        result = runner.invoke(app, ["models", "-p", pricing_file, "--search", "llama"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "No matches found." in result.output

    def test_missing_pricing_file(self, tmp_path):
        result = runner.invoke(app, ["models", "-p", str(tmp_path / "nope.tsv")])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Error:" in result.output

    def test_load_error_is_reported(self):
        with patch(
            'ai_cost_compare.cli.main.load_pricing_file',
            side_effect=FormatError("No valid rows found.")
        ):
            result = runner.invoke(app, ["models"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "No valid rows found." in result.output

    def test_config_defaults_apply(self, pricing_file, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text(
            f"pricing_path: {pricing_file}\nannual: true\n"
            "discount:\n  enabled: true\n  percent: 50\n",
            encoding="utf-8"
        )
        result = runner.invoke(app, [
            "estimate", "-c", str(config), "-m", "OpenAI | gpt-5",
            "-i", "1000000", "-o", "500000", "-f", "text"
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Total: $75.00 / year" in result.output
        assert "AIsa estimate (illustrative, 50%): $37.50 / year" in result.output

    def test_bad_config_is_reported(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("colour: blue\n", encoding="utf-8")
        result = runner.invoke(app, ["models", "-c", str(config)])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Error loading config" in result.output


class TestResolveModel:
    """Test model query resolution."""

    def test_by_id(self, catalog):
        record, _ = _resolve_model(catalog, "3")
        assert record.model == "gemini-2.5-pro"

    def test_exact_label_beats_substring(self, catalog):
        """"OpenAI | gpt-5" is also a prefix of gpt-5-mini's label."""
        record, _ = _resolve_model(catalog, "openai | GPT-5")
        assert record.model == "gpt-5"

    def test_unique_substring(self, catalog):
        record, _ = _resolve_model(catalog, "sonnet")
        assert record.provider == "Anthropic"

    def test_no_match(self, catalog):
        record, reason = _resolve_model(catalog, "llama")
        assert record is None
        assert "No model matches" in reason
