"""
Tests for CLI interface.
"""
from pathlib import Path

import yaml
from typer.testing import CliRunner

from cli import app

from conftest import SAMPLE_RECORDS

# Default CliRunner mixes stderr and stdout into the .output attribute,
# which is what we want for testing console output.
runner = CliRunner()

# Wide enough that rich never wraps table cells.
WIDE = {"COLUMNS": "200"}


def create_temp_config(tmp_path: Path, records=SAMPLE_RECORDS, **overrides) -> Path:
    """Creates a temporary, valid YAML config file and journal for testing."""
    journal_path = tmp_path / "journal.yaml"
    journal_path.write_text(yaml.dump({"trades": records}))

    config_dict = {
        "journal": {"path": str(journal_path), "currency": "$"},
        "view": {"status": "ALL", "symbol_search": "", "sort_by": "DATE_DESC"},
        "dashboard": {"time_range": "MONTHLY", "pad_trailing": False},
        "reporting": {"output_dir": str(tmp_path / "out"), "output_formats": ["json", "markdown"]},
    }
    for section, values in overrides.items():
        config_dict[section].update(values)
    config_path = tmp_path / "test_config.yaml"
    config_path.write_text(yaml.dump(config_dict))
    return config_path


def test_cli_help() -> None:
    """Test CLI --help flag."""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "List journal trades" in result.output


def test_cli_trades_with_missing_config_file() -> None:
    """Test that `trades` exits if the config file does not exist."""
    result = runner.invoke(app, ["trades", "--config", "nonexistent.yaml"])
    assert result.exit_code == 2
    assert "does not exist" in result.output


def test_cli_trades_lists_all(tmp_path: Path) -> None:
    config_path = create_temp_config(tmp_path)
    result = runner.invoke(app, ["trades", "--config", str(config_path)], env=WIDE)

    assert result.exit_code == 0, f"CLI exited with error: {result.output}"
    assert "Trades (5 of 5)" in result.output
    assert result.output.index("AMZN") < result.output.index("AAPL")


def test_cli_trades_filters_open(tmp_path: Path) -> None:
    config_path = create_temp_config(tmp_path)
    result = runner.invoke(
        app, ["trades", "--config", str(config_path), "--status", "open"], env=WIDE
    )

    assert result.exit_code == 0, f"CLI exited with error: {result.output}"
    assert "Trades (2 of 5)" in result.output
    assert "TSLA" in result.output
    assert "AAPL" not in result.output


def test_cli_trades_no_match(tmp_path: Path) -> None:
    config_path = create_temp_config(tmp_path)
    result = runner.invoke(app, ["trades", "--config", str(config_path), "--search", "xyz"])
    assert result.exit_code == 0
    assert "No trades found matching your filters." in result.output


def test_cli_trades_rejects_unknown_sort(tmp_path: Path) -> None:
    config_path = create_temp_config(tmp_path)
    result = runner.invoke(app, ["trades", "--config", str(config_path), "--sort", "RANDOM"])
    assert result.exit_code == 1
    assert "Query Error" in result.output


def test_cli_malformed_journal(tmp_path: Path) -> None:
    records = [dict(SAMPLE_RECORDS[0], exit_date=None)]
    config_path = create_temp_config(tmp_path, records=records)
    result = runner.invoke(app, ["trades", "--config", str(config_path)])
    assert result.exit_code == 1
    assert "Journal Error" in result.output


def test_cli_invalid_config(tmp_path: Path) -> None:
    config_path = create_temp_config(tmp_path, view={"sort_by": "BOGUS"})
    result = runner.invoke(app, ["summary", "--config", str(config_path)])
    assert result.exit_code == 1
    assert "Configuration Error" in result.output


def test_cli_summary(tmp_path: Path) -> None:
    config_path = create_temp_config(tmp_path)
    result = runner.invoke(
        app, ["summary", "--config", str(config_path), "--date", "2025-03-20"], env=WIDE
    )

    assert result.exit_code == 0, f"CLI exited with error: {result.output}"
    assert "$1,229.08" in result.output
    assert "100.0%" in result.output
    assert "∞" in result.output


def test_cli_summary_other_month_is_empty(tmp_path: Path) -> None:
    config_path = create_temp_config(tmp_path)
    result = runner.invoke(
        app, ["summary", "--config", str(config_path), "--date", "2025-04-01"], env=WIDE
    )
    assert result.exit_code == 0, f"CLI exited with error: {result.output}"
    assert "n/a" in result.output


def test_cli_summary_unknown_range(tmp_path: Path) -> None:
    config_path = create_temp_config(tmp_path)
    result = runner.invoke(app, ["summary", "--config", str(config_path), "--range", "WEEKLY"])
    assert result.exit_code == 1
    assert "Query Error" in result.output


def test_cli_calendar(tmp_path: Path) -> None:
    config_path = create_temp_config(tmp_path)
    result = runner.invoke(
        app, ["calendar", "--config", str(config_path), "--month", "2025-03"], env=WIDE
    )

    assert result.exit_code == 0, f"CLI exited with error: {result.output}"
    assert "March 2025" in result.output
    assert "+551" in result.output


def test_cli_calendar_bad_month(tmp_path: Path) -> None:
    config_path = create_temp_config(tmp_path)
    result = runner.invoke(app, ["calendar", "--config", str(config_path), "--month", "March"])
    assert result.exit_code == 1


def test_cli_export(mocker, tmp_path: Path) -> None:
    """Tests that `export` loads the journal and hands it to the reporting step."""
    m_reports = mocker.patch("cli.generate_all_reports")
    config_path = create_temp_config(tmp_path)

    result = runner.invoke(app, ["export", "--config", str(config_path)])

    assert result.exit_code == 0, f"CLI exited with error: {result.output}"
    assert "Export finished" in result.output
    m_reports.assert_called_once()
    _, trades, run_dir, _ = m_reports.call_args.args
    assert len(trades) == 5
    assert run_dir == tmp_path / "out"
    assert run_dir.is_dir()
