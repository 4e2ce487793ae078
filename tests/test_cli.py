"""
Tests for the command-line interfaces.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from pos_backup_restore.cli.backup_cli import backup_app
from pos_backup_restore.cli.reset_cli import reset_app
from pos_backup_restore.cli.restore_cli import restore_app
from pos_backup_restore.errors import WriteError
from pos_backup_restore.reset.orchestrator import ResetResult
from pos_backup_restore.restore.importer import ImportResult

runner = CliRunner()


@pytest.fixture
def snapshot_file(tmp_path):
    path = tmp_path / "pos_export_2024-03-01.json"
    path.write_text(json.dumps({
        "exportDate": "2024-03-01T00:00:00.000Z",
        "version": "1.0",
        "data": {"history": [{"id": "h1"}, {"id": "h2"}], "tables": []},
    }), encoding="utf-8")
    return path


class TestResetCli:
    """Test the factory reset command."""

    def test_wrong_phrase_deletes_nothing(self):
        with patch("pos_backup_restore.cli.reset_cli.ResetManager") as manager:
            result = runner.invoke(reset_app, [], input="delete all data\n")

        assert result.exit_code == 1
        assert "Nothing was deleted" in result.output
        manager.assert_not_called()

    def test_exact_phrase_runs_reset(self, tmp_path):
        with patch("pos_backup_restore.cli.reset_cli.ResetManager") as manager:
            manager.return_value.run.return_value = ResetResult(
                backup_path=tmp_path / "pos_emergency_backup_2024-03-01.json",
                deleted={"history": 3, "shifts": 1},
                deleted_children=2
            )
            result = runner.invoke(reset_app, ["--output-dir", str(tmp_path)], input="DELETE ALL DATA\n")

        assert result.exit_code == 0
        assert "Factory reset completed successfully" in result.output
        assert manager.call_args[0][0].output_dir == tmp_path

    def test_failure_is_reported_once(self):
        def failing_run(on_progress=None, on_complete=None, on_error=None):
            error = WriteError("Emergency backup could not be written, nothing was deleted")
            on_error(error)
            raise error

        with patch("pos_backup_restore.cli.reset_cli.ResetManager") as manager:
            manager.return_value.run.side_effect = failing_run
            result = runner.invoke(reset_app, [], input="DELETE ALL DATA\n")

        assert result.exit_code == 1
        assert result.output.count("could not be written") == 1


class TestRestoreCli:
    """Test the restore commands."""

    def test_validate(self, snapshot_file):
        result = runner.invoke(restore_app, ["validate", str(snapshot_file)])

        assert result.exit_code == 0
        assert "validation passed" in result.output

    def test_validate_duplicate_ids(self, tmp_path):
        path = tmp_path / "dup.json"
        path.write_text(json.dumps({"version": "1.0", "data": {"history": [{"id": "h"}, {"id": "h"}]}}))

        result = runner.invoke(restore_app, ["validate", str(path)])

        assert result.exit_code == 1
        assert "Duplicate id" in result.output

    def test_import_rejects_bad_file_before_connecting(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"version": "2.0", "data": {}}))

        with patch("pos_backup_restore.cli.restore_cli.RestoreManager") as manager:
            result = runner.invoke(restore_app, ["import", str(path), "--force"])

        assert result.exit_code == 1
        assert "Nothing was written" in result.output
        manager.assert_not_called()

    def test_import_missing_file(self, tmp_path):
        result = runner.invoke(restore_app, ["import", str(tmp_path / "missing.json"), "--force"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_import_cancelled(self, snapshot_file):
        with patch("pos_backup_restore.cli.restore_cli.RestoreManager") as manager:
            result = runner.invoke(restore_app, ["import", str(snapshot_file)], input="n\n")

        assert result.exit_code == 0
        assert "cancelled" in result.output
        manager.assert_not_called()

    def test_import(self, snapshot_file):
        with patch("pos_backup_restore.cli.restore_cli.RestoreManager") as manager:
            manager.return_value.restore_from_file.return_value = ImportResult(
                collections={"history": 2}, commits=1, success=True
            )
            result = runner.invoke(restore_app, ["import", str(snapshot_file), "--force"])

        assert result.exit_code == 0
        assert "Restoration completed successfully" in result.output
        assert manager.return_value.restore_from_file.call_args[0][0] == snapshot_file

    def test_partial_import_is_reported(self, snapshot_file):
        with patch("pos_backup_restore.cli.restore_cli.RestoreManager") as manager:
            manager.return_value.restore_from_file.side_effect = WriteError(
                "commit rejected", collection="history", committed=400
            )
            result = runner.invoke(restore_app, ["import", str(snapshot_file), "--force"])

        assert result.exit_code == 1
        assert "400 records" in result.output

    def test_list_backups(self, snapshot_file, tmp_path):
        (tmp_path / "notes.json").write_text("[]")

        result = runner.invoke(restore_app, ["list-backups", "--backups-dir", str(tmp_path)])

        assert result.exit_code == 0
        assert "Found 2 file(s)" in result.output

    def test_list_backups_uses_configured_directory(self, snapshot_file, tmp_path, monkeypatch):
        monkeypatch.setenv("BACKUP_OUTPUT_DIR", str(tmp_path))

        result = runner.invoke(restore_app, ["list-backups"], env={"COLUMNS": "200"})

        assert result.exit_code == 0
        assert snapshot_file.name in result.output
        assert "Found 1 file(s)" in result.output


class TestBackupCli:
    """Test the export commands."""

    def test_list_collections(self):
        result = runner.invoke(backup_app, ["list-collections"])

        assert result.exit_code == 0
        assert "shifts" in result.output
        assert "payouts" in result.output

    def test_export(self, tmp_path):
        with patch("pos_backup_restore.cli.backup_cli.BackupManager") as manager:
            manager.return_value.export_to_file.return_value = tmp_path / "pos_export_2024-03-01.json"
            manager.return_value.get_backup_stats.return_value = {
                "backup_file": str(tmp_path / "pos_export_2024-03-01.json"),
                "record_counts": {"history": 2},
                "total_records": 2,
            }
            result = runner.invoke(backup_app, ["export", "--output-dir", str(tmp_path)])

        assert result.exit_code == 0
        assert manager.return_value.export_to_file.call_count == 1
        assert manager.call_args[0][0].output_dir == Path(tmp_path)
