import pytest
from click.testing import CliRunner

from querydeck import __version__
from querydeck.demo.setup_tickets import setup_tickets_database
from querydeck.main import cli


@pytest.fixture
def demo_db(tmp_path):
    return setup_tickets_database(str(tmp_path / "tickets.db"))


def test_query_prints_first_page(demo_db):
    result = CliRunner().invoke(cli, ["query", "SELECT id, jira_key FROM tickets", "-p", demo_db])

    assert result.exit_code == 0, result.output
    assert "Query returned 10 rows" in result.output
    assert "NIB-101" in result.output
    assert "PAGE 1" in result.output


def test_query_respects_page_size(demo_db):
    result = CliRunner().invoke(cli, ["query", "SELECT id FROM tickets", "-p", demo_db, "-n", "3"])
    assert result.exit_code == 0, result.output
    assert "Query returned 3 rows" in result.output


def test_query_export(demo_db, tmp_path):
    out_dir = tmp_path / "exports"
    result = CliRunner().invoke(
        cli, ["query", "SELECT * FROM teams", "-p", demo_db, "--export", str(out_dir)]
    )

    assert result.exit_code == 0, result.output
    files = list(out_dir.glob("query_results_*.csv"))
    assert len(files) == 1
    lines = files[0].read_text(encoding="utf-8").split("\n")
    assert lines[0] == "id,name"
    assert lines[1] == '"1","Payments"'


def test_failed_query_exits_non_zero(demo_db):
    result = CliRunner().invoke(cli, ["query", "SELECT * FROM nowhere", "-p", demo_db])
    assert result.exit_code == 1
    assert "no such table" in result.output


def test_empty_query_exits_non_zero(demo_db):
    result = CliRunner().invoke(cli, ["query", "  ", "-p", demo_db])
    assert result.exit_code == 1
    assert "SQL query cannot be empty" in result.output


def test_tables(demo_db):
    result = CliRunner().invoke(cli, ["tables", "-p", demo_db])
    assert result.exit_code == 0, result.output
    assert result.output.split() == ["incidents", "teams", "tickets"]


def test_version():
    result = CliRunner().invoke(cli, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output
