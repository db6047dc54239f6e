"""Tests for the command line interface."""
import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from datetime import date, datetime
import pytest
from unittest.mock import patch
from fmcsa_register import main as cli
from fmcsa_register.core.models import PipelineRun, RegisterCategory, RegisterEntry, RegisterStatistics


def make_run(status="completed"):
    return PipelineRun(
        run_id="run-1",
        fetch_date=date(2026, 2, 20),
        register_date="20-FEB-26",
        start_time=datetime(2026, 2, 20, 12, 0, 0),
        status=status,
        entries_extracted=3,
        entries_saved=3 if status == "completed" else 0,
    )


def test_parser_rejects_bad_date():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["run", "--date", "20-FEB-26"])


def test_parser_parses_iso_date():
    args = cli.build_parser().parse_args(["run", "--date", "2026-02-20", "--refresh"])

    assert args.date == date(2026, 2, 20)
    assert args.refresh is True


@patch("fmcsa_register.main.setup_logging")
@patch("fmcsa_register.main.RegisterPipeline")
def test_run_success_exit_code(mock_pipeline, mock_logging, capsys):
    mock_pipeline.return_value.run.return_value = make_run()

    with pytest.raises(SystemExit) as exc_info:
        cli.main(["run", "--date", "2026-02-20"])

    assert exc_info.value.code == 0
    mock_pipeline.return_value.run.assert_called_once_with(date(2026, 2, 20), refresh=False)
    assert "20-FEB-26" in capsys.readouterr().out


@patch("fmcsa_register.main.setup_logging")
@patch("fmcsa_register.main.RegisterPipeline")
def test_run_failure_exit_code(mock_pipeline, mock_logging):
    mock_pipeline.return_value.run.return_value = make_run(status="invalid_document")

    with pytest.raises(SystemExit) as exc_info:
        cli.main(["run"])

    assert exc_info.value.code == 1


@patch("fmcsa_register.main.setup_logging")
@patch("fmcsa_register.main.RegisterDB")
def test_query_passes_filters(mock_db, mock_logging, capsys):
    mock_db.return_value.query_entries.return_value = [
        RegisterEntry(number="MC-1", title="ACME", decided="01/15/2024",
                      category=RegisterCategory.REVOCATION, fetch_date=date(2024, 1, 15)),
    ]

    cli.main(["query", "--category", "REVOCATION", "--from", "2024-01-01",
              "--to", "2024-01-31", "--search", "acme", "--limit", "10"])

    mock_db.return_value.query_entries.assert_called_once_with(
        category="REVOCATION",
        date_from=date(2024, 1, 1),
        date_to=date(2024, 1, 31),
        search_term="acme",
        limit=10,
    )
    out = capsys.readouterr().out
    assert "MC-1" in out
    assert "1 entries" in out


@patch("fmcsa_register.main.setup_logging")
@patch("fmcsa_register.main.RegisterDB")
def test_stats_output(mock_db, mock_logging, capsys):
    mock_db.return_value.get_statistics.return_value = RegisterStatistics(
        total_entries=3, by_category={"REVOCATION": 2, "DISMISSAL": 1}
    )

    cli.main(["stats"])

    out = capsys.readouterr().out
    assert "Total entries: 3" in out
    assert "REVOCATION: 2" in out


def test_no_command_prints_help():
    with pytest.raises(SystemExit) as exc_info:
        cli.main([])

    assert exc_info.value.code == 1
