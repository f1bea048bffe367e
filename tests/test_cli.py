"""Tests for the seedplan CLI."""

import json

import pytest
import yaml
from click.testing import CliRunner

from seedplan.cli.main import cli


@pytest.fixture
def schema_file(tmp_path, app_schema_data):
    path = tmp_path / "schema.yaml"
    path.write_text(yaml.safe_dump(app_schema_data, sort_keys=False))
    return path


def test_validate(schema_file):
    """Test validating a schema file."""
    result = CliRunner().invoke(cli, ["validate", str(schema_file)])

    assert result.exit_code == 0
    assert "7 tables" in result.output


def test_validate_invalid_schema(tmp_path):
    """Test invalid schemas exit with an error."""
    path = tmp_path / "bad.json"
    path.write_text(
        json.dumps(
            {"post": {"columns": [{"name": "id"}], "parents": [{"target": "users", "column": "id"}]}}
        )
    )

    result = CliRunner().invoke(cli, ["validate", str(path)])

    assert result.exit_code == 1
    assert "unknown table 'users'" in result.output


def test_describe(schema_file, tmp_path):
    """Test descriptors are printed or written to a file."""
    runner = CliRunner()

    result = runner.invoke(cli, ["describe", str(schema_file)])
    assert result.exit_code == 0
    assert "class UsersScalars" in result.output

    output = tmp_path / "descriptors.py"
    result = runner.invoke(cli, ["describe", str(schema_file), "-o", str(output)])
    assert result.exit_code == 0
    assert "class WorkspaceScalars" in output.read_text()


def test_sql(schema_file):
    """Test generated INSERT statements are printed in dependency order."""
    result = CliRunner().invoke(
        cli, ["sql", str(schema_file), "--table", "workspace", "--count", "2", "--seed", "cli"]
    )

    assert result.exit_code == 0
    lines = result.output.strip().splitlines()
    assert len(lines) == 4
    assert lines[0].startswith('INSERT INTO "users"')
    assert lines[-1].startswith('INSERT INTO "workspace"')


def test_sql_is_reproducible(schema_file):
    """Test the same seed prints the same statements."""
    args = ["sql", str(schema_file), "--table", "users", "--count", "3", "--seed", "cli"]

    first = CliRunner().invoke(cli, args)
    second = CliRunner().invoke(cli, args)

    assert first.output == second.output


def test_sql_with_existing_rows(schema_file, tmp_path):
    """Test existing rows are connected to and never inserted again."""
    store_path = tmp_path / "existing.yaml"
    store_path.write_text("users:\n  - {id: u1, email: a@example.com}\n")

    result = CliRunner().invoke(
        cli,
        [
            "sql",
            str(schema_file),
            "--table",
            "workspace",
            "--store",
            str(store_path),
            "--auto-connect",
        ],
    )

    assert result.exit_code == 0
    lines = result.output.strip().splitlines()
    assert len(lines) == 1
    assert "'u1'" in lines[0]


def test_sql_unknown_table(schema_file):
    """Test unknown tables exit with an error."""
    result = CliRunner().invoke(cli, ["sql", str(schema_file), "--table", "nope"])

    assert result.exit_code == 1
    assert "not found in schema" in result.output
